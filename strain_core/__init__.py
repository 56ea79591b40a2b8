"""Core (UI-agnostic) strain catalog logic.

This package contains:
- deterministic THC range derivation from strain names
- catalog loading (CSV/JSON -> pandas)
- filter/sort normalization and application
- page compute functions (JSON-serializable payloads)
- text/JSON/menu exports
- chart helpers (Altair -> Vega-Lite spec dict)
"""
