from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import api.main as api_main
from strain_core.thc import get_view


@pytest.fixture
def client(monkeypatch, data_ctx):
    monkeypatch.setattr(api_main, "load_catalog_data", lambda: data_ctx)
    return TestClient(api_main.app)


def test_thc_view(client):
    res = client.get("/thc/a")
    assert res.status_code == 200
    body = res.json()
    assert body["name"] == "a"
    assert body["range"] == [24.4, 25.35]
    assert body["display"] == "24.40%–25.35%"


def test_thc_batch_dedupes_through_cache(client):
    res = client.post("/thc/batch", json={"names": ["OG Kush", "OG Kush", ""]})
    assert res.status_code == 200
    body = res.json()
    assert body["distinct"] == 2
    assert [v["display"] for v in body["views"]] == [
        get_view("OG Kush").display,
        get_view("OG Kush").display,
        "22.36%–23.05%",
    ]


def test_meta_endpoints(client):
    assert client.get("/meta/files").json() == {"files": ["strains_test.csv"]}
    opts = client.get("/meta/filter-options").json()
    assert opts["thc_range"] == [0.0, 35.0]
    assert "Sativa" in opts["types"]
    summary = client.get("/meta/summary").json()
    assert summary["total"] == 4


def test_browse(client):
    res = client.post(
        "/browse",
        params={"limit": 1},
        json={"filters": {"strain_type": "Indica-Dominant"}, "sort": {"sort_by": "thc"}},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["counts"]["matching"] == 1
    assert [s["name"] for s in body["strains"]] == ["Granddaddy Purple"]
    assert body["strains"][0]["thc"]["display"] == get_view("Granddaddy Purple").display


def test_browse_defaults_with_empty_body(client):
    res = client.post("/browse", json={})
    assert res.status_code == 200
    assert res.json()["counts"] == {"total": 4, "matching": 4, "in_stock": 3}


def test_strain_detail(client):
    res = client.get("/strains/sour diesel")
    assert res.status_code == 200
    assert res.json()["description"] == "Pungent and uplifting."
    missing = client.get("/strains/Nope")
    assert missing.status_code == 404
    assert missing.json()["type"] == "NotFound"


def test_export_plain_text(client):
    res = client.post("/export/plain-text", json={"strain_name": "Blue Dream"})
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/plain")
    assert f"THC: {get_view('Blue Dream').display}" in res.text
    assert "filename=Blue_Dream-" in res.headers["content-disposition"]


def test_export_menu_and_errors(client):
    menu = client.post("/export/full-menu", json={"config": {"menu_title": "Tonight"}})
    assert menu.status_code == 200
    assert "Tonight" in menu.text
    assert client.post("/export/pdf", json={"strain_name": "Blue Dream"}).status_code == 400
    assert client.post("/export/json", json={}).status_code == 400
    assert client.post("/export/json", json={"strain_name": "Nope"}).status_code == 404


def test_export_ascii_table_and_social_post(client):
    table = client.post("/export/ascii-table", json={"strain_name": "Blue Dream", "config": {"ascii_table_style": "simple"}})
    assert table.status_code == 200
    assert table.text.splitlines()[0] == "+" + "-" * 58 + "+"
    assert "filename=Blue_Dream-" in table.headers["content-disposition"]
    post = client.post("/export/social-media", json={"strain_name": "Sour Diesel"})
    assert post.status_code == 200
    assert post.text.startswith("🌿 Sour Diesel 🌿")


def test_export_load_failure_returns_json_error(monkeypatch):
    def broken():
        raise RuntimeError("disk gone")

    monkeypatch.setattr(api_main, "load_catalog_data", broken)
    client = TestClient(api_main.app, raise_server_exceptions=False)
    res = client.post("/export/full-menu", json={})
    assert res.status_code == 500
    assert res.json() == {"error": "disk gone", "type": "RuntimeError"}
