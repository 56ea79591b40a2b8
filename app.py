import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Dict, List, Optional

from strain_core.browse import compute_browse, compute_strain_detail, compute_summary
from strain_core.data import filter_options, load_catalog_data, prepare_context
from strain_core.exports import PrintConfig, format_filename, generate_menu
from strain_core.filters import SORT_KEYS, STOCK_FILTERS, STRAIN_TYPES
from strain_core.thc import ThcViewCache

alt.data_transformers.disable_max_rows()
# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .card-actions {font-size: 0.9rem;color: #2563eb;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .thc-badge {background: #dcfce7;border: 1px solid #4ade80;border-radius: 14px;padding: 2px 10px;
                    font-size: 0.85rem;font-weight: 600;color: #166534;}
        .price-badge {background: #bbf7d0;border: 1px solid #4ade80;border-radius: 8px;padding: 2px 8px;font-size: 0.8rem;color: #14532d;}
        .price-was {text-decoration: line-through;color: #9ca3af;margin-right: 4px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(search_term: str, strain_type: str, thc_range: List[float], stock_filter: str) -> str:
    chips = [
        f"Search: {search_term}" if search_term else "Search: All",
        "Type: All" if strain_type == "all" else f"Type: {strain_type}",
        f"Avg THC: {thc_range[0]:.1f}–{thc_range[1]:.1f}%",
        f"Stock: {stock_filter}",
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, export_text: Optional[str] = None, export_name: str = "menu.txt"):
    inject_base_styles()
    top = st.container()
    c1, c2 = top.columns([7, 3])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        btn_cols = st.columns(2)
        if btn_cols[0].button("Refresh"):
            st.session_state["thc_cache"].clear()
            st.rerun()
        if export_text:
            btn_cols[1].download_button("Export menu", data=export_text.encode("utf-8"), file_name=export_name, mime="text/plain")
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


def render_price_badge(strain: Dict) -> str:
    now = strain.get("now_price")
    if now is None:
        return ""
    was = strain.get("was_price")
    was_html = f"<span class='price-was'>${was:,.0f}</span>" if was is not None and was > now else ""
    return f"<span class='price-badge'>{was_html}${now:,.0f}/oz</span>"


def render_strain_card(strain: Dict, ctx: Dict):
    emoji = strain.get("emoji") or ""
    stock = "In stock" if strain["in_stock"] else "Out of stock"
    with card(f"{emoji} {strain['name']}".strip(), actions=stock):
        st.markdown(
            f"<span class='chip'>{strain['type']}</span> "
            f"<span class='thc-badge'>{strain['thc']['display']} THC</span> "
            f"{render_price_badge(strain)}",
            unsafe_allow_html=True,
        )
        tops = [t for t in [strain.get("top_effect"), strain.get("top_flavor")] if t]
        if tops:
            st.caption(" · ".join(tops))
        with st.expander("Details"):
            detail = compute_strain_detail(strain["name"], ctx) or {}
            st.write(detail.get("description", ""))
            cols = st.columns(3)
            cols[0].metric("Avg THC", f"{strain['thc']['average']:.1f}%")
            cols[1].metric("CBD", f"{strain['cbd']:g}%" if strain.get("cbd") else "N/A")
            cols[2].metric("Confidence", f"{strain['confidence']:.0f}%" if strain.get("confidence") is not None else "N/A")
            if detail.get("effects"):
                st.markdown("**Effects:** " + ", ".join(detail["effects"]))
            if detail.get("flavors"):
                st.markdown("**Flavors:** " + ", ".join(detail["flavors"]))
            if detail.get("terpenes"):
                st.dataframe(pd.DataFrame(detail["terpenes"]), hide_index=True, use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Strain Catalog", layout="wide")
inject_base_styles()
st.title("Strain Catalog")
st.caption("Browse strains, compare THC ranges and export a shop menu.")

if "thc_cache" not in st.session_state:
    st.session_state["thc_cache"] = ThcViewCache()
thc_cache: ThcViewCache = st.session_state["thc_cache"]

data_ctx = load_catalog_data()
if not data_ctx.get("files"):
    st.error("No catalog found. Place strains*.csv or strains*.json files next to app.py.")
    st.stop()

base_ctx = prepare_context(None, None, data_ctx, thc_cache)
options = filter_options(base_ctx["catalog"], thc_cache)
if base_ctx["catalog"].empty:
    st.error("The catalog files contain no strains.")
    st.stop()

# ----- Sidebar: filters -----
with st.sidebar:
    st.markdown("### Filters")
    search_term = st.text_input("Search name, description, effects", "")
    strain_type = st.selectbox("Type", ["all"] + STRAIN_TYPES, index=0)
    effects = st.multiselect("Effects (all of)", options=options["effects"], default=[])
    flavors = st.multiselect("Flavors (all of)", options=options["flavors"], default=[])
    thc_lo, thc_hi = options["thc_range"]
    thc_range = st.slider("Average THC %", min_value=float(thc_lo), max_value=float(thc_hi), value=(float(thc_lo), float(thc_hi)), step=0.5)
    stock_filter = st.radio("Stock", STOCK_FILTERS, index=0, horizontal=True)

    st.markdown("---")
    st.markdown("### Sort")
    sort_by = st.selectbox("Sort by", SORT_KEYS, index=0)
    sort_order = st.radio("Order", ["desc", "asc"], index=0, horizontal=True)

    st.markdown("---")
    with st.expander("Menu export settings", expanded=False):
        menu_title = st.text_input("Menu title", PrintConfig.menu_title)
        menu_columns = st.radio("Columns", [2, 3], index=0, horizontal=True)
        group_by = st.selectbox("Group by", ["tier", "type", "none"], index=0)
        menu_sort = st.selectbox("Menu order", ["alphabetical", "thc-low", "thc-high"], index=0)
        menu_width = st.selectbox("Width", ["narrow", "standard", "wide"], index=1)
        include_pricing = st.checkbox("Include pricing", value=True)
        compact_mode = st.checkbox("Compact", value=False)

filters = {
    "search_term": search_term,
    "strain_type": strain_type,
    "effects": effects,
    "flavors": flavors,
    "thc_range": list(thc_range),
    "stock_filter": stock_filter,
}
sort = {"sort_by": sort_by, "sort_order": sort_order}

ctx = prepare_context(filters, sort, data_ctx, thc_cache)
payload = compute_browse(ctx)
summary = compute_summary(ctx)

menu_config = PrintConfig(
    menu_title=menu_title,
    menu_columns=menu_columns,
    group_by=group_by,
    sort_by=menu_sort,
    menu_width=menu_width,
    include_pricing=include_pricing,
    compact_mode=compact_mode,
)
menu_text = generate_menu(ctx["filtered_strains"], menu_config, thc_cache)

render_page_header(
    "Browse Strains",
    "Catalog / Browse",
    format_filter_summary(search_term, strain_type, list(thc_range), stock_filter),
    export_text=menu_text,
    export_name=f"{format_filename(menu_config.default_filename, 'Menu')}.txt",
)

cols = st.columns(4)
cols[0].metric("Strains", f"{payload['counts']['matching']} / {payload['counts']['total']}")
cols[1].metric("In stock", str(payload["counts"]["in_stock"]))
cols[2].metric("Avg THC (catalog)", f"{summary['avg_thc']:.1f}%" if summary["avg_thc"] is not None else "N/A")
cols[3].metric("Avg CBD (catalog)", f"{summary['avg_cbd']:.1f}%" if summary["avg_cbd"] is not None else "N/A")

chart_spec = payload["charts"]["thc_distribution"]
if chart_spec:
    with card("THC distribution"):
        st.vega_lite_chart(chart_spec, use_container_width=True)

if not payload["strains"]:
    st.info("No strains match the selected filters.")
else:
    grid = st.columns(3)
    for idx, strain in enumerate(payload["strains"]):
        with grid[idx % 3]:
            render_strain_card(strain, ctx)

with st.expander("Menu preview"):
    st.code(menu_text, language=None)
