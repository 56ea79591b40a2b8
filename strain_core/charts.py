from __future__ import annotations

from typing import Any, Dict, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def thc_histogram(df: pd.DataFrame) -> Optional[Dict[str, Any]]:
    """Histogram of derived THC averages, stacked by strain type."""
    if df.empty or "thc_avg" not in df.columns:
        return None
    src = df[["name", "type", "thc_avg"]].copy()
    src["name"] = src["name"].astype(str)
    src["type"] = src["type"].astype(str)
    src["thc_avg"] = src["thc_avg"].astype(float)
    chart = (
        alt.Chart(src)
        .mark_bar()
        .encode(
            x=alt.X("thc_avg:Q", bin=alt.Bin(step=0.5), title="Average THC %"),
            y=alt.Y("count():Q", title="Strains"),
            color=alt.Color("type:N", title="Type"),
            tooltip=["type", alt.Tooltip("count():Q", title="Strains")],
        )
    )
    return to_vega_spec(chart)
