from __future__ import annotations

import pandas as pd
import pytest

from strain_core.data import normalize_catalog
from strain_core.thc import ThcViewCache


RAW_STRAINS = [
    {
        "Strain Name": "Blue Dream",
        "Type": "hybrid",
        "CBD": "0.2",
        "Effects": "Relaxed; Happy",
        "Flavors": "Berry; Sweet",
        "Scanned At": "2024-03-01T10:00:00Z",
        "Confidence": "92",
        "In Stock": "yes",
        "Price": "300",
        "Was Price": "350",
    },
    {
        "Strain Name": "OG Kush",
        "Type": "Indica",
        "Effects": "Sleepy, Relaxed",
        "Flavors": "Earthy; Pine",
        "Terpenes": "Myrcene:0.8; Limonene:0.4",
        "Scanned At": "2024-04-01T10:00:00Z",
        "Confidence": "88",
        "In Stock": "no",
        "Price": "320",
    },
    {
        "Strain Name": "Sour Diesel",
        "Type": "Sativa",
        "Effects": "Energetic; Happy",
        "Flavors": "Diesel",
        "Description": "Pungent and uplifting.",
        "Scanned At": "2024-02-01T10:00:00Z",
        "In Stock": "true",
    },
    {
        "Strain Name": "Granddaddy Purple",
        "Type": "indica dominant",
        "Effects": "Sleepy; Happy",
        "Flavors": "Grape; Berry",
        "Scanned At": "2024-01-15T09:30:00Z",
        "Confidence": "85",
        "In Stock": "yes",
    },
    {
        "Strain Name": "   ",
        "Type": "Sativa",
    },
]


@pytest.fixture
def raw_catalog() -> pd.DataFrame:
    return pd.DataFrame(RAW_STRAINS)


@pytest.fixture
def catalog(raw_catalog) -> pd.DataFrame:
    return normalize_catalog(raw_catalog)


@pytest.fixture
def data_ctx(catalog):
    return {"files": ["strains_test.csv"], "catalog": catalog}


@pytest.fixture
def thc_cache() -> ThcViewCache:
    return ThcViewCache()
