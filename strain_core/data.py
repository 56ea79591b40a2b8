from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from strain_core.filters import (
    STRAIN_TYPES,
    FilterCriteria,
    SortCriteria,
    normalize_filters,
    normalize_sort,
)
from strain_core.thc import ThcViewCache, get_view


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
FILE_GLOBS = ("strains*.csv", "strains*.json")

DEFAULT_CONFIDENCE = 85.0
DEFAULT_STRAIN_TYPE = "Hybrid"
THC_SLIDER_MAX = 35.0

CATALOG_COLUMNS = [
    "id",
    "name",
    "type",
    "cbd",
    "effects",
    "flavors",
    "terpenes",
    "description",
    "scanned_at",
    "confidence",
    "in_stock",
    "emoji",
    "now_price",
    "was_price",
]

# Normalized header -> canonical column.
COLUMN_ALIASES = {
    "strain": "name",
    "strain_name": "name",
    "strain_type": "type",
    "cbd_pct": "cbd",
    "effect_profiles": "effects",
    "flavor_profiles": "flavors",
    "terpene_profile": "terpenes",
    "scan_date": "scanned_at",
    "scanned": "scanned_at",
    "stock": "in_stock",
    "available": "in_stock",
    "price": "now_price",
    "price_oz": "now_price",
    "was": "was_price",
}

LIST_COLUMNS = ["effects", "flavors"]
NUMERIC_COLUMNS = ["cbd", "confidence", "now_price", "was_price"]

_TRUE_TOKENS = {"true", "yes", "y", "1", "in stock", "in-stock", "available"}
_FALSE_TOKENS = {"false", "no", "n", "0", "out of stock", "out-of-stock", "sold out"}


def get_source_files() -> List[Path]:
    found = set()
    for pattern in FILE_GLOBS:
        found.update(DATA_DIR.glob(pattern))
    return sorted(found)


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((f.name, f.stat().st_mtime) for f in files)


def empty_catalog() -> pd.DataFrame:
    return pd.DataFrame(columns=CATALOG_COLUMNS)


def canonical_column(header: object) -> str:
    s = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", str(header).strip())
    s = re.sub(r"[^a-z0-9]+", "_", s.lower()).strip("_")
    return COLUMN_ALIASES.get(s, s)


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize_name(value: object) -> Optional[str]:
    if _is_missing(value):
        return None
    s = re.sub(r"\s+", " ", str(value)).strip()
    if not s or s.lower() in {"nan", "none", "null", "<na>"}:
        return None
    return s


def normalize_strain_type(value: object) -> str:
    if _is_missing(value):
        return DEFAULT_STRAIN_TYPE
    s = re.sub(r"[\s_]+", "-", str(value).strip()).lower()
    for t in STRAIN_TYPES:
        if s == t.lower():
            return t
    return DEFAULT_STRAIN_TYPE


def _split_raw_list(value: object) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    if _is_missing(value):
        return []
    s = str(value).strip()
    if s.startswith("["):
        try:
            parsed = json.loads(s)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return parsed
    return re.split(r"[;,|]", s)


def split_profile_list(value: object) -> List[str]:
    """Flatten a profile cell (list, JSON array or ``;``-separated text) to names."""
    out: List[str] = []
    for item in _split_raw_list(value):
        if isinstance(item, dict):
            item = item.get("name")
        if item is None:
            continue
        s = str(item).strip()
        if s and s not in out:
            out.append(s)
    return out


def parse_terpenes(value: object) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for item in _split_raw_list(value):
        if isinstance(item, dict):
            name = normalize_name(item.get("name"))
            pct = item.get("percentage")
        else:
            name_part, _, pct = str(item).partition(":")
            name = normalize_name(name_part)
            pct = pct.strip().rstrip("%") or None
        if not name:
            continue
        try:
            pct_value = float(pct) if pct is not None else None
        except (TypeError, ValueError):
            pct_value = None
        out.append({"name": name, "percentage": pct_value})
    return out


def parse_bool(value: object, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if _is_missing(value):
        return default
    s = str(value).strip().lower()
    if s in _TRUE_TOKENS:
        return True
    if s in _FALSE_TOKENS:
        return False
    return default


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _default_description(row: pd.Series) -> str:
    effects = row["effects"] or []
    return f"A {str(row['type']).lower()} strain with {', '.join(effects) or 'various'} effects."


def normalize_catalog(raw: pd.DataFrame) -> pd.DataFrame:
    if raw.empty:
        return empty_catalog()
    df = raw.rename(columns={c: canonical_column(c) for c in raw.columns})
    df = drop_duplicate_columns(df).copy()
    for col in CATALOG_COLUMNS:
        if col not in df.columns:
            df[col] = pd.NA

    df["name"] = df["name"].apply(normalize_name)
    df = df.dropna(subset=["name"]).copy()
    if df.empty:
        return empty_catalog()

    df["type"] = df["type"].apply(normalize_strain_type)
    for col in LIST_COLUMNS:
        df[col] = df[col].apply(split_profile_list)
    df["terpenes"] = df["terpenes"].apply(parse_terpenes)
    df = numericize(df, NUMERIC_COLUMNS)
    df["confidence"] = df["confidence"].fillna(DEFAULT_CONFIDENCE)
    df["in_stock"] = df["in_stock"].apply(parse_bool).astype(bool)
    df["scanned_at"] = pd.to_datetime(df["scanned_at"], errors="coerce", utc=True, format="mixed")

    df["description"] = df["description"].astype(object)
    missing_desc = df["description"].apply(lambda v: normalize_name(v) is None)
    if missing_desc.any():
        df.loc[missing_desc, "description"] = df[missing_desc].apply(_default_description, axis=1)

    df["id"] = df["id"].astype(object)
    missing_id = df["id"].apply(lambda v: normalize_name(v) is None)
    if missing_id.any():
        df.loc[missing_id, "id"] = df.loc[missing_id, "name"].apply(slugify)
    df["id"] = df["id"].astype(str)

    return df[CATALOG_COLUMNS].reset_index(drop=True)


def read_catalog_file(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".json":
        payload = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(payload, dict):
            payload = payload.get("strains", [])
        return pd.DataFrame(payload)
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def load_catalog(path: Path | str) -> pd.DataFrame:
    path = Path(path)
    df = normalize_catalog(read_catalog_file(path))
    logger.info("Loaded %d strains from %s", len(df), path.name)
    return df


# ---------------- THC annotation, filtering, sorting ----------------
def annotate_thc(df: pd.DataFrame, cache: Optional[ThcViewCache] = None) -> pd.DataFrame:
    out = df.copy()
    views = [get_view(str(name), cache) for name in out["name"]]
    out["thc_min"] = pd.Series([v.low for v in views], index=out.index, dtype=float)
    out["thc_max"] = pd.Series([v.high for v in views], index=out.index, dtype=float)
    out["thc_avg"] = pd.Series([v.average for v in views], index=out.index, dtype=float)
    out["thc_display"] = pd.Series([v.display for v in views], index=out.index, dtype=object)
    return out


def thc_midpoint(df: pd.DataFrame) -> pd.Series:
    """Unrounded (low + high) / 2, the value THC filters and sorts compare against."""
    return (df["thc_min"] + df["thc_max"]) / 2


def _list_contains_term(values: object, term: str) -> bool:
    return any(term in str(v).lower() for v in (values or []))


def apply_filters(df: pd.DataFrame, criteria: FilterCriteria) -> pd.DataFrame:
    if df.empty:
        return df
    if "thc_min" not in df.columns:
        df = annotate_thc(df)

    mask = pd.Series(True, index=df.index)

    if criteria.search_term:
        term = criteria.search_term.lower()
        hit = (
            df["name"].astype(str).str.lower().str.contains(term, regex=False)
            | df["description"].fillna("").astype(str).str.lower().str.contains(term, regex=False)
            | df["effects"].apply(lambda xs: _list_contains_term(xs, term)).astype(bool)
            | df["flavors"].apply(lambda xs: _list_contains_term(xs, term)).astype(bool)
        )
        mask &= hit

    if criteria.strain_type != "all":
        mask &= df["type"] == criteria.strain_type

    if criteria.effects:
        wanted = set(criteria.effects)
        mask &= df["effects"].apply(lambda xs: wanted.issubset(xs or [])).astype(bool)

    if criteria.flavors:
        wanted_flavors = set(criteria.flavors)
        mask &= df["flavors"].apply(lambda xs: wanted_flavors.issubset(xs or [])).astype(bool)

    lo, hi = criteria.thc_range
    mask &= thc_midpoint(df).between(lo, hi)

    if criteria.stock_filter == "in-stock":
        mask &= df["in_stock"].astype(bool)
    elif criteria.stock_filter == "out-of-stock":
        mask &= ~df["in_stock"].astype(bool)

    return df[mask]


SORT_COLUMNS = {"recent": "scanned_at", "confidence": "confidence"}


def sort_strains(df: pd.DataFrame, sort: SortCriteria) -> pd.DataFrame:
    if df.empty:
        return df
    ascending = sort.sort_order == "asc"
    if sort.sort_by in ("name", "alphabetical"):
        return df.sort_values("name", key=lambda s: s.astype(str).str.lower(), ascending=ascending, kind="mergesort")
    if sort.sort_by == "thc":
        if "thc_min" not in df.columns:
            df = annotate_thc(df)
        order = thc_midpoint(df).sort_values(ascending=ascending, kind="mergesort")
        return df.loc[order.index]
    return df.sort_values(SORT_COLUMNS[sort.sort_by], ascending=ascending, kind="mergesort", na_position="last")


def filter_options(df: pd.DataFrame, cache: Optional[ThcViewCache] = None) -> Dict[str, Any]:
    if df.empty:
        return {"types": [], "effects": [], "flavors": [], "thc_range": [0.0, THC_SLIDER_MAX]}
    effects = sorted({e for xs in df["effects"] for e in (xs or [])})
    flavors = sorted({f for xs in df["flavors"] for f in (xs or [])})
    views = [get_view(str(name), cache) for name in df["name"]]
    lows = [v.low for v in views]
    highs = [v.high for v in views]
    return {
        "types": sorted(df["type"].dropna().astype(str).unique().tolist()),
        "effects": effects,
        "flavors": flavors,
        "thc_range": [min(lows + [0.0]), max(highs + [THC_SLIDER_MAX])],
    }


def find_strain(df: pd.DataFrame, name: str) -> Optional[Dict[str, Any]]:
    if df.empty or not name:
        return None
    wanted = re.sub(r"\s+", " ", name).strip().lower()
    hits = df[df["name"].astype(str).str.lower() == wanted]
    if hits.empty:
        return None
    return hits.iloc[0].to_dict()


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_catalog_data_cached(files_sig: Tuple[Tuple[str, float], ...]) -> Dict[str, object]:
    frames = []
    for name, _ in files_sig:
        try:
            frames.append(load_catalog(DATA_DIR / name))
        except (OSError, ValueError) as exc:
            logger.warning("Skipping unreadable catalog file %s: %s", name, exc)
    frames = [f for f in frames if not f.empty]
    catalog = pd.concat(frames, ignore_index=True) if frames else empty_catalog()
    return {"files": [name for name, _ in files_sig], "catalog": catalog}


def load_catalog_data() -> Dict[str, object]:
    files = get_source_files()
    if not files:
        return {"files": [], "catalog": empty_catalog()}
    return _load_catalog_data_cached(file_signature(files))


def prepare_context(
    filters: dict | FilterCriteria | None,
    sort: dict | SortCriteria | None,
    data_ctx: Dict[str, object],
    cache: Optional[ThcViewCache] = None,
) -> Dict[str, object]:
    if cache is None:
        cache = ThcViewCache()
    crit = filters if isinstance(filters, FilterCriteria) else normalize_filters(filters)
    order = sort if isinstance(sort, SortCriteria) else normalize_sort(sort)

    catalog: pd.DataFrame = data_ctx.get("catalog", empty_catalog()).copy()
    annotated = annotate_thc(catalog, cache)
    filtered = sort_strains(apply_filters(annotated, crit), order)

    return {
        "filters": crit,
        "sort": order,
        "thc_cache": cache,
        "catalog": annotated,
        "filtered_strains": filtered,
    }
