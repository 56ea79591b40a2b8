from __future__ import annotations

import json
from datetime import datetime

import pandas as pd
import pytest

from strain_core.exports import (
    PrintConfig,
    format_filename,
    generate_ascii_table,
    generate_json,
    generate_menu,
    generate_output,
    generate_plain_text,
    generate_social_media,
    normalize_print_config,
    thc_tier,
)
from strain_core.thc import get_view


@pytest.fixture
def blue_dream(catalog):
    return catalog[catalog["name"] == "Blue Dream"].iloc[0].to_dict()


def test_plain_text(blue_dream):
    text = generate_plain_text(blue_dream, PrintConfig())
    lines = text.splitlines()
    assert lines[0] == "Blue Dream"
    assert "Type: Hybrid" in lines
    assert f"THC: {get_view('Blue Dream').display}" in lines
    assert "CBD: 0.2%" in lines
    assert "Price: $300/oz (was $350)" in lines
    assert "- Relaxed" in lines
    assert lines[-1] == "Status: IN STOCK"


def test_plain_text_respects_toggles(blue_dream):
    config = PrintConfig(include_thc=False, include_effects=False, include_pricing=False, include_description=False)
    text = generate_plain_text(blue_dream, config)
    assert "THC:" not in text
    assert "Effects:" not in text
    assert "Price:" not in text
    assert "Description:" not in text


def test_json_output(blue_dream):
    view = get_view("Blue Dream")
    data = json.loads(generate_json(blue_dream, PrintConfig(include_terpenes=True)))
    assert data["thc"] == {"min": view.low, "max": view.high, "average": view.average}
    assert data["inStock"] is True
    assert data["effects"] == ["Relaxed", "Happy"]
    assert data["price"] == {"now": 300.0, "was": 350.0}
    assert "terpenes" not in data


def test_menu_lists_in_stock_strains_only(catalog):
    menu = generate_menu(catalog, PrintConfig(menu_title="House Menu"))
    assert "House Menu" in menu
    assert "Blue Dream" in menu
    assert "OG Kush" not in menu
    assert any(tier in menu for tier in ["--- Premium Tier ---", "--- Top Shelf ---"])
    assert get_view("Sour Diesel").display in menu
    assert menu.splitlines()[-1] == "=" * 60


def test_menu_group_by_type_and_width(catalog):
    config = PrintConfig(group_by="type", menu_width="narrow", menu_columns=2, show_footer=False)
    menu = generate_menu(catalog, config)
    assert "--- Hybrid ---" in menu
    assert "--- Sativa ---" in menu
    assert all(len(line) <= 34 for line in menu.splitlines())


def test_menu_without_stock():
    empty = pd.DataFrame([{"name": "OG Kush", "type": "Indica", "in_stock": False}])
    assert generate_menu(empty, PrintConfig()) == "No strains currently in stock."


def test_thc_tiers():
    assert thc_tier(14.9) == "Budget Tier"
    assert thc_tier(19.0) == "Mid Tier"
    assert thc_tier(22.0) == "Premium Tier"
    assert thc_tier(25.0) == "Top Shelf"


def test_ascii_table_layout(blue_dream):
    text = generate_ascii_table(blue_dream, PrintConfig())
    lines = text.splitlines()
    assert all(len(line) == 60 for line in lines)
    assert lines[0] == "╬" + "═" * 58 + "╬"
    assert lines[1].rstrip("║").rstrip() == "║ Blue Dream"
    assert any(f"THC: {get_view('Blue Dream').display}" in line for line in lines)
    assert any("EFFECTS" in line for line in lines)
    assert any("DESCRIPTION" in line for line in lines)
    assert "✅ IN STOCK" in lines[-2]


def test_ascii_table_simple_style_and_toggles(blue_dream):
    config = PrintConfig(ascii_table_style="simple", include_effects=False, include_description=False)
    lines = generate_ascii_table(blue_dream, config).splitlines()
    assert lines[0] == "+" + "-" * 58 + "+"
    assert all(line.startswith("|") or line.startswith("+") for line in lines)
    assert not any("EFFECTS" in line for line in lines)
    assert not any("DESCRIPTION" in line for line in lines)


def test_ascii_table_wraps_long_description(blue_dream):
    strain = dict(blue_dream, description="word " * 40)
    lines = generate_ascii_table(strain, PrintConfig()).splitlines()
    start = next(i for i, line in enumerate(lines) if "DESCRIPTION" in line)
    body = [line for line in lines[start + 1 :] if "word" in line]
    assert len(body) > 1
    assert all(len(line) == 60 for line in body)


def test_social_media_post(blue_dream):
    lines = generate_social_media(blue_dream, PrintConfig()).splitlines()
    assert lines[0] == "🌿 Blue Dream 🌿"
    assert lines[2] == f"🧬 Hybrid | THC: {get_view('Blue Dream').display}"
    assert "Effects: Relaxed Happy" in lines
    assert "Flavors: Berry Sweet" in lines
    assert "✅ Available Now!" in lines
    assert lines[-1] == "#Cannabis #StrainCatalog #Hybrid #Relaxed #Happy #Berry #Sweet"


def test_social_media_out_of_stock_without_thc(catalog):
    og = catalog[catalog["name"] == "OG Kush"].iloc[0].to_dict()
    strain = dict(og, type="Indica-Dominant", emoji="🔥")
    lines = generate_social_media(strain, PrintConfig(include_thc=False)).splitlines()
    assert lines[0] == "🔥 OG Kush 🔥"
    assert lines[2] == "🧬 Indica-Dominant Strain"
    assert "❌ Currently Out of Stock" in lines
    assert "#IndicaDominant" in lines[-1].split()


def test_generate_output_dispatch(blue_dream, catalog):
    config = PrintConfig()
    assert generate_output("plain-text", config, strain=blue_dream).startswith("Blue Dream")
    assert json.loads(generate_output("json", config, strain=blue_dream))["name"] == "Blue Dream"
    assert "Blue Dream" in generate_output("full-menu", config, catalog=catalog)
    assert generate_output("ascii-table", config, strain=blue_dream).splitlines()[1].startswith("║ Blue Dream")
    assert generate_output("social-media", config, strain=blue_dream).startswith("🌿 Blue Dream 🌿")
    with pytest.raises(ValueError):
        generate_output("pdf", config, strain=blue_dream)
    with pytest.raises(ValueError):
        generate_output("full-menu", config)
    with pytest.raises(ValueError):
        generate_output("json", config)


def test_normalize_print_config():
    config = normalize_print_config({"menu_columns": 4, "group_by": "price", "menu_width": "wide", "include_thc": False})
    assert config.menu_columns == 2
    assert config.group_by == "tier"
    assert config.menu_width == "wide"
    assert config.include_thc is False
    assert normalize_print_config(None) == PrintConfig()


def test_format_filename():
    now = datetime(2024, 5, 6, 7, 8, 9)
    assert format_filename("{StrainName}-{Date}-{Time}", "Blue Dream #1", now) == "Blue_Dream__1-2024-05-06-07-08-09"


def test_normalize_print_config_parses_string_flags():
    config = normalize_print_config({"include_thc": "false", "show_footer": "no", "compact_mode": "yes", "ascii_table_style": "fancy"})
    assert config.include_thc is False
    assert config.show_footer is False
    assert config.compact_mode is True
    assert config.ascii_table_style == "bordered"
