from __future__ import annotations

from strain_core.filters import FilterCriteria, SortCriteria, normalize_filters, normalize_sort


def test_defaults_for_empty_input():
    assert normalize_filters(None) == FilterCriteria()
    assert normalize_filters({}) == FilterCriteria()
    assert normalize_sort(None) == SortCriteria(sort_by="recent", sort_order="desc")


def test_coerces_choices_case_insensitively():
    crit = normalize_filters(
        {
            "search_term": "  kush ",
            "strain_type": "indica-dominant",
            "stock_filter": "IN-STOCK",
        }
    )
    assert crit.search_term == "kush"
    assert crit.strain_type == "Indica-Dominant"
    assert crit.stock_filter == "in-stock"


def test_unknown_choices_fall_back():
    crit = normalize_filters({"strain_type": "Ruderalis", "stock_filter": "maybe"})
    assert crit.strain_type == "all"
    assert crit.stock_filter == "all"
    order = normalize_sort({"sort_by": "potency", "sort_order": "sideways"})
    assert order == SortCriteria()


def test_thc_range_is_swapped_and_coerced():
    assert normalize_filters({"thc_range": [30, "21.5"]}).thc_range == (21.5, 30.0)
    assert normalize_filters({"thc_range": 5}).thc_range == (0.0, 35.0)
    assert normalize_filters({"thc_range": ["low", None]}).thc_range == (0.0, 35.0)


def test_profile_lists_drop_blanks():
    crit = normalize_filters({"effects": ["Happy", " ", None, 3], "flavors": "Berry"})
    assert crit.effects == ["Happy", "3"]
    assert crit.flavors == ["Berry"]


def test_sort_accepts_any_case():
    assert normalize_sort({"sort_by": "THC", "sort_order": "ASC"}) == SortCriteria(sort_by="thc", sort_order="asc")
