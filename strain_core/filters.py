from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple


STRAIN_TYPES = ["Indica", "Indica-Dominant", "Hybrid", "Sativa-Dominant", "Sativa"]
STOCK_FILTERS = ["all", "in-stock", "out-of-stock"]
SORT_KEYS = ["recent", "name", "alphabetical", "thc", "confidence"]
SORT_ORDERS = ["asc", "desc"]

DEFAULT_THC_RANGE: Tuple[float, float] = (0.0, 35.0)


@dataclass(frozen=True)
class FilterCriteria:
    search_term: str = ""
    strain_type: str = "all"
    effects: List[str] = field(default_factory=list)
    flavors: List[str] = field(default_factory=list)
    thc_range: Tuple[float, float] = DEFAULT_THC_RANGE
    stock_filter: str = "all"


@dataclass(frozen=True)
class SortCriteria:
    sort_by: str = "recent"
    sort_order: str = "desc"


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s:
            out.append(s)
    return out


def _as_float(value: object, default: float) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except Exception:
        return default


def _match_choice(value: object, choices: List[str], default: str) -> str:
    s = str(value or "").strip()
    for choice in choices:
        if s.lower() == choice.lower():
            return choice
    return default


def normalize_filters(raw: Optional[dict]) -> FilterCriteria:
    raw = raw or {}

    search_term = str(raw.get("search_term") or "").strip()
    strain_type = _match_choice(raw.get("strain_type"), ["all"] + STRAIN_TYPES, "all")

    thc = raw.get("thc_range") or DEFAULT_THC_RANGE
    try:
        lo, hi = list(thc)[:2]
    except Exception:
        lo, hi = DEFAULT_THC_RANGE
    lo = _as_float(lo, DEFAULT_THC_RANGE[0])
    hi = _as_float(hi, DEFAULT_THC_RANGE[1])
    if lo > hi:
        lo, hi = hi, lo

    return FilterCriteria(
        search_term=search_term,
        strain_type=strain_type,
        effects=_as_str_list(raw.get("effects")),
        flavors=_as_str_list(raw.get("flavors")),
        thc_range=(lo, hi),
        stock_filter=_match_choice(raw.get("stock_filter"), STOCK_FILTERS, "all"),
    )


def normalize_sort(raw: Optional[dict]) -> SortCriteria:
    raw = raw or {}
    return SortCriteria(
        sort_by=_match_choice(raw.get("sort_by"), SORT_KEYS, "recent"),
        sort_order=_match_choice(raw.get("sort_order"), SORT_ORDERS, "desc"),
    )
