from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from strain_core.charts import thc_histogram
from strain_core.data import find_strain
from strain_core.thc import ThcViewCache, get_view, round_half_up


def _metric_value(value: Any) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def _timestamp(value: Any) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value).isoformat()


def _first(values: Any) -> Optional[str]:
    values = list(values or [])
    return str(values[0]) if values else None


def strain_card(strain: Mapping[str, Any], cache: Optional[ThcViewCache] = None) -> Dict[str, Any]:
    name = str(strain.get("name", ""))
    emoji = strain.get("emoji")
    return {
        "id": str(strain.get("id") or ""),
        "name": name,
        "type": str(strain.get("type") or ""),
        "emoji": None if emoji is None or pd.isna(emoji) or emoji == "" else str(emoji),
        "thc": get_view(name, cache).to_dict(),
        "cbd": _metric_value(strain.get("cbd")),
        "in_stock": bool(strain.get("in_stock", True)),
        "now_price": _metric_value(strain.get("now_price")),
        "was_price": _metric_value(strain.get("was_price")),
        "top_effect": _first(strain.get("effects")),
        "top_flavor": _first(strain.get("flavors")),
        "confidence": _metric_value(strain.get("confidence")),
        "scanned_at": _timestamp(strain.get("scanned_at")),
    }


def compute_browse(ctx: Dict[str, Any], *, limit: Optional[int] = None) -> Dict[str, Any]:
    catalog: pd.DataFrame = ctx.get("catalog", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered_strains", pd.DataFrame())
    cache: Optional[ThcViewCache] = ctx.get("thc_cache")

    rows = filtered if limit is None else filtered.head(max(0, int(limit)))
    cards: List[Dict[str, Any]] = [strain_card(rec, cache) for rec in rows.to_dict(orient="records")]

    in_stock = int(filtered["in_stock"].astype(bool).sum()) if not filtered.empty else 0
    filters = ctx.get("filters")
    sort = ctx.get("sort")
    return {
        "filters": asdict(filters) if filters is not None else {},
        "sort": asdict(sort) if sort is not None else {},
        "counts": {"total": int(len(catalog)), "matching": int(len(filtered)), "in_stock": in_stock},
        "strains": cards,
        "charts": {"thc_distribution": thc_histogram(filtered)},
    }


def compute_strain_detail(name: str, ctx: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    catalog: pd.DataFrame = ctx.get("catalog", pd.DataFrame())
    strain = find_strain(catalog, name)
    if strain is None:
        return None
    detail = strain_card(strain, ctx.get("thc_cache"))
    detail.update(
        {
            "description": str(strain.get("description") or ""),
            "effects": list(strain.get("effects") or []),
            "flavors": list(strain.get("flavors") or []),
            "terpenes": list(strain.get("terpenes") or []),
        }
    )
    return detail


def compute_summary(ctx: Dict[str, Any]) -> Dict[str, Any]:
    catalog: pd.DataFrame = ctx.get("catalog", pd.DataFrame())
    if catalog.empty:
        return {"total": 0, "in_stock": 0, "type_counts": {}, "avg_thc": None, "avg_cbd": None}

    type_counts = catalog["type"].astype(str).value_counts().sort_index()
    cbd = pd.to_numeric(catalog["cbd"], errors="coerce").dropna()
    return {
        "total": int(len(catalog)),
        "in_stock": int(catalog["in_stock"].astype(bool).sum()),
        "type_counts": {str(k): int(v) for k, v in type_counts.items()},
        "avg_thc": round_half_up(float(catalog["thc_avg"].mean()), 1),
        "avg_cbd": round_half_up(float(cbd.mean()), 1) if not cbd.empty else None,
    }
