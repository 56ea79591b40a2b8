"""Shareable text outputs for strains: plain text, JSON, ASCII table, social post and the columned menu."""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

import pandas as pd

from strain_core.data import parse_bool
from strain_core.thc import ThcViewCache, get_view


OUTPUT_MODES = ["ascii-table", "plain-text", "social-media", "full-menu", "json"]
MENU_WIDTHS = {"narrow": 34, "standard": 60, "wide": 80}
GROUP_BY_OPTIONS = ["type", "tier", "none"]
MENU_SORTS = ["alphabetical", "thc-low", "thc-high"]
TABLE_STYLES = ["simple", "bordered", "double"]

# (exclusive upper bound on THC low, label); anything above falls in TOP_TIER.
TIERS = [(15.0, "Budget Tier"), (20.0, "Mid Tier"), (25.0, "Premium Tier")]
TOP_TIER = "Top Shelf"


@dataclass(frozen=True)
class PrintConfig:
    include_thc: bool = True
    include_effects: bool = True
    include_flavors: bool = True
    include_terpenes: bool = False
    include_description: bool = True
    include_pricing: bool = True
    include_stock_status: bool = False
    menu_title: str = "Today's Cannabis Menu"
    menu_columns: int = 2
    group_by: str = "tier"
    sort_by: str = "alphabetical"
    menu_width: str = "standard"
    menu_footer: str = "All prices are per ounce. Taxes not included."
    show_header: bool = True
    show_footer: bool = True
    compact_mode: bool = False
    default_filename: str = "{StrainName}-{Date}"
    ascii_table_style: str = "bordered"


def normalize_print_config(raw: Optional[dict]) -> PrintConfig:
    raw = raw or {}
    base = PrintConfig()
    values: Dict[str, Any] = {}
    for key, default in asdict(base).items():
        value = raw.get(key, default)
        if value is None:
            value = default
        if isinstance(default, bool):
            value = parse_bool(value, default)
        elif isinstance(default, int):
            try:
                value = int(value)
            except (TypeError, ValueError):
                value = default
        else:
            value = str(value)
        values[key] = value

    if values["menu_columns"] not in (2, 3):
        values["menu_columns"] = base.menu_columns
    if values["group_by"] not in GROUP_BY_OPTIONS:
        values["group_by"] = base.group_by
    if values["sort_by"] not in MENU_SORTS:
        values["sort_by"] = base.sort_by
    if values["menu_width"] not in MENU_WIDTHS:
        values["menu_width"] = base.menu_width
    if values["ascii_table_style"] not in TABLE_STYLES:
        values["ascii_table_style"] = base.ascii_table_style
    return PrintConfig(**values)


def _present(value: Any) -> bool:
    if value is None:
        return False
    try:
        return not bool(pd.isna(value))
    except (TypeError, ValueError):
        return True


def _format_price(value: Any) -> str:
    return f"${float(value):,.0f}"


def _price_line(strain: Mapping[str, Any]) -> Optional[str]:
    now = strain.get("now_price")
    if not _present(now):
        return None
    line = f"{_format_price(now)}/oz"
    was = strain.get("was_price")
    if _present(was) and float(was) > float(now):
        line += f" (was {_format_price(was)})"
    return line


def _cbd(strain: Mapping[str, Any]) -> Optional[float]:
    cbd = strain.get("cbd")
    if _present(cbd) and float(cbd) > 0:
        return float(cbd)
    return None


def generate_plain_text(strain: Mapping[str, Any], config: PrintConfig, cache: Optional[ThcViewCache] = None) -> str:
    name = str(strain.get("name", ""))
    lines: List[str] = [name, f"Type: {strain.get('type', '')}"]

    if config.include_thc:
        lines.append(f"THC: {get_view(name, cache).display}")
    cbd = _cbd(strain)
    if cbd is not None:
        lines.append(f"CBD: {cbd:g}%")
    if config.include_pricing:
        price = _price_line(strain)
        if price:
            lines.append(f"Price: {price}")
    lines.append("")

    if config.include_effects and strain.get("effects"):
        lines.append("Effects:")
        lines.extend(f"- {e}" for e in strain["effects"])
        lines.append("")

    if config.include_flavors and strain.get("flavors"):
        lines.append("Flavors:")
        lines.extend(f"- {f}" for f in strain["flavors"])
        lines.append("")

    if config.include_terpenes and strain.get("terpenes"):
        lines.append("Terpenes:")
        for t in strain["terpenes"]:
            pct = t.get("percentage")
            lines.append(f"- {t['name']}: {pct:g}%" if pct is not None else f"- {t['name']}")
        lines.append("")

    description = strain.get("description")
    if config.include_description and _present(description) and description:
        lines.append("Description:")
        lines.append(str(description))
        lines.append("")

    lines.append(f"Status: {'IN STOCK' if strain.get('in_stock', True) else 'OUT OF STOCK'}")
    return "\n".join(lines)


def generate_json(strain: Mapping[str, Any], config: PrintConfig, cache: Optional[ThcViewCache] = None) -> str:
    name = str(strain.get("name", ""))
    view = get_view(name, cache)
    data: Dict[str, Any] = {
        "name": name,
        "type": strain.get("type"),
        "inStock": bool(strain.get("in_stock", True)),
        "thc": {"min": view.low, "max": view.high, "average": view.average},
    }
    cbd = _cbd(strain)
    if cbd is not None:
        data["cbd"] = cbd
    if config.include_effects and strain.get("effects"):
        data["effects"] = list(strain["effects"])
    if config.include_flavors and strain.get("flavors"):
        data["flavors"] = list(strain["flavors"])
    if config.include_terpenes and strain.get("terpenes"):
        data["terpenes"] = [dict(t) for t in strain["terpenes"]]
    description = strain.get("description")
    if config.include_description and _present(description) and description:
        data["description"] = str(description)
    if config.include_pricing and _present(strain.get("now_price")):
        data["price"] = {
            "now": float(strain["now_price"]),
            "was": float(strain["was_price"]) if _present(strain.get("was_price")) else None,
        }
    return json.dumps(data, indent=2, ensure_ascii=False)


# ---------------- Full menu ----------------
def thc_tier(thc_low: float) -> str:
    for bound, label in TIERS:
        if thc_low < bound:
            return label
    return TOP_TIER


def _center(text: str, width: int) -> str:
    return " " * max(0, (width - len(text)) // 2) + text


def _menu_entry(strain: Mapping[str, Any], config: PrintConfig, width: int, cache: Optional[ThcViewCache]) -> List[str]:
    name = str(strain.get("name", ""))
    strain_type = str(strain.get("type", ""))
    lines = [name[:width]]
    if config.include_thc:
        lines.append(f"{strain_type} | {get_view(name, cache).display}"[:width])
    else:
        lines.append(strain_type[:width])
    if config.include_pricing:
        price = _price_line(strain)
        if price:
            lines.append(price[:width])
    if config.include_stock_status:
        lines.append(f"Stock: {'Available' if strain.get('in_stock', True) else 'Out of Stock'}"[:width])
    if config.include_effects and strain.get("effects"):
        lines.append(str(strain["effects"][0])[:width])
    if config.include_flavors and strain.get("flavors"):
        lines.append(str(strain["flavors"][0])[:width])
    description = strain.get("description")
    if config.include_description and not config.compact_mode and _present(description) and description:
        text = str(description)
        if len(text) > width - 10:
            text = text[: max(0, width - 13)] + "..."
        lines.append(text[:width])
    return lines


def _sort_menu(strains: List[Dict[str, Any]], config: PrintConfig, cache: Optional[ThcViewCache]) -> List[Dict[str, Any]]:
    if config.sort_by == "thc-low":
        return sorted(strains, key=lambda s: get_view(str(s["name"]), cache).low)
    if config.sort_by == "thc-high":
        return sorted(strains, key=lambda s: get_view(str(s["name"]), cache).low, reverse=True)
    return sorted(strains, key=lambda s: str(s["name"]).lower())


def _group_menu(strains: List[Dict[str, Any]], config: PrintConfig, cache: Optional[ThcViewCache]) -> Dict[str, List[Dict[str, Any]]]:
    if config.group_by == "none":
        return {"All Strains": strains}
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for strain in strains:
        if config.group_by == "type":
            key = str(strain.get("type", ""))
        else:
            key = thc_tier(get_view(str(strain["name"]), cache).low)
        groups.setdefault(key, []).append(strain)
    return groups


def generate_menu(df: pd.DataFrame, config: PrintConfig, cache: Optional[ThcViewCache] = None) -> str:
    records = df.to_dict(orient="records") if not df.empty else []
    in_stock = [r for r in records if bool(r.get("in_stock", True))]
    if not in_stock:
        return "No strains currently in stock."

    page_width = MENU_WIDTHS[config.menu_width]
    col_width = page_width // config.menu_columns - 2
    lines: List[str] = []

    if config.show_header:
        lines.append("=" * page_width)
        lines.append(_center(config.menu_title, page_width))
        lines.append("=" * page_width)
        lines.append("")

    groups = _group_menu(_sort_menu(in_stock, config, cache), config, cache)
    for group_name, members in groups.items():
        if config.group_by != "none":
            lines.append(_center(f"--- {group_name} ---", page_width))
            lines.append("")
        for i in range(0, len(members), config.menu_columns):
            row = [_menu_entry(s, config, col_width, cache) for s in members[i : i + config.menu_columns]]
            for line_idx in range(max(len(entry) for entry in row)):
                parts = [(entry[line_idx] if line_idx < len(entry) else "").ljust(col_width) for entry in row]
                lines.append("  ".join(parts).rstrip())
            if not config.compact_mode:
                lines.append("")
        if config.group_by != "none":
            lines.append("-" * page_width)
            lines.append("")

    if config.show_footer:
        lines.append(_center(config.menu_footer, page_width))
        lines.append("=" * page_width)
    return "\n".join(lines)


# ---------------- ASCII table ----------------
TABLE_WIDTH = 60
TABLE_BORDERS = {
    "simple": ("-", "|", "+"),
    "bordered": ("═", "║", "╬"),
    "double": ("═", "║", "╬"),
}


def _wrap_words(text: str, width: int) -> List[str]:
    rows: List[str] = []
    current = ""
    for word in text.split():
        if current and len(current) + 1 + len(word) > width:
            rows.append(current)
            current = word
        else:
            current = f"{current} {word}" if current else word
    if current:
        rows.append(current)
    return rows


def generate_ascii_table(strain: Mapping[str, Any], config: PrintConfig, cache: Optional[ThcViewCache] = None) -> str:
    top, side, corner = TABLE_BORDERS[config.ascii_table_style]
    inner = TABLE_WIDTH - 2
    rule = corner + top * inner + corner

    def row(text: str) -> str:
        return side + f" {text}"[:inner].ljust(inner) + side

    def section(title: str, entries: List[str]) -> List[str]:
        return [rule, row(title)] + [row(e) for e in entries]

    name = str(strain.get("name", ""))
    lines = [rule, row(name), rule, row(f"Type: {strain.get('type', '')}")]
    if config.include_thc:
        lines.append(row(f"THC: {get_view(name, cache).display}"))
    cbd = _cbd(strain)
    if cbd is not None:
        lines.append(row(f"CBD: {cbd:g}%"))
    if config.include_pricing:
        price = _price_line(strain)
        if price:
            lines.append(row(f"Price: {price}"))

    if config.include_effects and strain.get("effects"):
        lines.extend(section("EFFECTS", [str(e) for e in strain["effects"]]))
    if config.include_flavors and strain.get("flavors"):
        lines.extend(section("FLAVORS", [str(f) for f in strain["flavors"]]))
    if config.include_terpenes and strain.get("terpenes"):
        terps = [
            f"{t['name']}: {t['percentage']:g}%" if t.get("percentage") is not None else str(t["name"])
            for t in strain["terpenes"]
        ]
        lines.extend(section("TERPENES", terps))
    description = strain.get("description")
    if config.include_description and _present(description) and description:
        lines.extend(section("DESCRIPTION", _wrap_words(str(description), inner - 2)))

    lines.append(rule)
    lines.append(row("✅ IN STOCK" if strain.get("in_stock", True) else "❌ OUT OF STOCK"))
    lines.append(rule)
    return "\n".join(lines)


# ---------------- Social media post ----------------
def _hashtag(text: str) -> str:
    return "#" + re.sub(r"[^\w]+", "", str(text))


def generate_social_media(strain: Mapping[str, Any], config: PrintConfig, cache: Optional[ThcViewCache] = None) -> str:
    name = str(strain.get("name", ""))
    strain_type = str(strain.get("type", ""))
    emoji = strain.get("emoji")
    emoji = str(emoji) if _present(emoji) and emoji else "🌿"
    effects = [str(e) for e in (strain.get("effects") or [])]
    flavors = [str(f) for f in (strain.get("flavors") or [])]

    lines = [f"{emoji} {name} {emoji}", ""]
    if config.include_thc:
        lines.append(f"🧬 {strain_type} | THC: {get_view(name, cache).display}")
    else:
        lines.append(f"🧬 {strain_type} Strain")
    lines.append("")

    if config.include_effects and effects:
        lines.append(f"Effects: {' '.join(effects[:3])}")
    if config.include_flavors and flavors:
        lines.append(f"Flavors: {' '.join(flavors[:3])}")
    lines.append("")

    if strain.get("in_stock", True):
        lines.append("✅ Available Now!")
    else:
        lines.append("❌ Currently Out of Stock")
    lines.append("")

    tags = ["#Cannabis", "#StrainCatalog", _hashtag(strain_type)]
    tags += [_hashtag(e) for e in effects[:2]] + [_hashtag(f) for f in flavors[:2]]
    lines.append(" ".join(tags))
    return "\n".join(lines)


_SINGLE_STRAIN_GENERATORS: Dict[str, Callable[..., str]] = {
    "plain-text": generate_plain_text,
    "json": generate_json,
    "ascii-table": generate_ascii_table,
    "social-media": generate_social_media,
}


def generate_output(
    mode: str,
    config: PrintConfig,
    *,
    strain: Optional[Mapping[str, Any]] = None,
    catalog: Optional[pd.DataFrame] = None,
    cache: Optional[ThcViewCache] = None,
) -> str:
    if mode == "full-menu":
        if catalog is None:
            raise ValueError("full-menu output needs the strain catalog")
        return generate_menu(catalog, config, cache)
    generator = _SINGLE_STRAIN_GENERATORS.get(mode)
    if generator is None:
        raise ValueError(f"Unknown output mode: {mode}")
    if strain is None:
        raise ValueError(f"{mode} output needs a strain")
    return generator(strain, config, cache)


def format_filename(template: str, strain_name: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return (
        template.replace("{StrainName}", re.sub(r"[^A-Za-z0-9]", "_", strain_name))
        .replace("{Date}", now.strftime("%Y-%m-%d"))
        .replace("{Time}", now.strftime("%H-%M-%S"))
    )
