import io

import pytest

from brixshield import api, config
from brixshield.app import scanner
from brixshield.db import MemoryStorage
from brixshield.errors import RecommendationError
from brixshield.scan_store import ScanStore


class CannedClient:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error

    def complete(self, prompt):
        if self.error:
            raise self.error
        return self.text


@pytest.fixture
def store(monkeypatch):
    s = ScanStore(MemoryStorage())
    monkeypatch.setattr(api, "_store", s)
    monkeypatch.setattr(config, "API_KEY", None)
    monkeypatch.setattr(scanner, "default_reputation_checks", lambda: ())
    return s


@pytest.fixture
def client(store):
    api.app.config["TESTING"] = True
    api.limiter.enabled = False
    with api.app.test_client() as c:
        yield c


def test_health(client):
    rv = client.get("/health")
    assert rv.status_code == 200
    assert rv.get_json()["status"] == "ok"


def test_scan_url_records_result(client, store):
    rv = client.post("/scan-url", json={"url": "http://example.com"})
    assert rv.status_code == 200
    d = rv.get_json()
    assert d["url"] == "http://example.com"
    assert d["score"] == 75
    assert d["status"] == "safe"
    assert d["details"]["ssl"] is False
    assert d["recommendations"]
    assert d["timestamp"].endswith("+00:00")
    stored = store.get_all()
    assert [s["id"] for s in stored] == [d["scan_id"]]
    assert stored[0]["type"] == "url"
    assert "recommendations" not in stored[0]


@pytest.mark.parametrize("body", [{}, {"url": ""}, ["http://example.com"]])
def test_scan_url_requires_url(client, store, body):
    rv = client.post("/scan-url", json=body)
    assert rv.status_code == 400
    assert store.get_all() == []


@pytest.mark.parametrize("url", ["not a url", "example.com", "http://[::1"])
def test_scan_url_rejects_malformed(client, store, url):
    rv = client.post("/scan-url", json={"url": url})
    assert rv.status_code == 400
    assert rv.get_json()["error"] == "Invalid URL format"
    assert store.get_all() == []


def test_scan_file(client, store):
    rv = client.post(
        "/scan-file",
        data={"file": (io.BytesIO(b"x" * 50), "invoice.exe", "application/x-msdownload")},
        content_type="multipart/form-data",
    )
    assert rv.status_code == 200
    d = rv.get_json()
    assert d["name"] == "invoice.exe"
    assert d["size"] == 50
    assert d["type"] == "application/x-msdownload"
    assert d["score"] == 40
    assert d["status"] == "warning"
    rec = store.get_scan(d["scan_id"])
    assert rec["size"] == 50
    assert rec["mime_type"] == "application/x-msdownload"


def test_scan_file_missing(client):
    rv = client.post("/scan-file", data={}, content_type="multipart/form-data")
    assert rv.status_code == 400


def test_scan_file_too_large(client, store, monkeypatch):
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 10)
    rv = client.post(
        "/scan-file",
        data={"file": (io.BytesIO(b"x" * 11), "big.bin")},
        content_type="multipart/form-data",
    )
    assert rv.status_code == 400
    assert store.get_all() == []


def test_scan_failure_is_generic_and_not_recorded(client, store, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("bug")

    monkeypatch.setattr(scanner, "score_url", explode)
    rv = client.post("/scan-url", json={"url": "https://example.com"})
    assert rv.status_code == 500
    assert rv.get_json() == {"error": "scan_failed"}
    assert store.get_all() == []


def test_history_and_item(client, store):
    for i in range(3):
        client.post("/scan-url", json={"url": f"https://site{i}.example"})
    rv = client.get("/history?limit=2")
    d = rv.get_json()
    assert d["count"] == 2
    assert d["rows"][0]["target"] == "https://site2.example"

    scan_id = d["rows"][1]["id"]
    assert client.get(f"/history/{scan_id}").get_json()["target"] == "https://site1.example"
    assert client.get("/history/unknown").status_code == 404
    assert client.get("/history?limit=abc").status_code == 400


def test_delete_and_clear(client, store):
    ids = [client.post("/scan-url", json={"url": f"https://s{i}.example"}).get_json()["scan_id"] for i in range(3)]
    rv = client.post("/history/delete", json={"ids": ids[:2]})
    assert rv.status_code == 200
    assert [s["id"] for s in store.get_all()] == [ids[2]]
    assert client.post("/history/delete", json={"ids": "nope"}).status_code == 400

    assert client.delete("/history").status_code == 200
    assert store.get_all() == []


def test_stats(client):
    client.post("/scan-url", json={"url": "http://example.com"})
    client.post("/scan-url", json={"url": "https://fake-bank.com"})
    d = client.get("/stats").get_json()
    assert d["total"] == 2
    assert d["safe"] == 1
    assert d["threats"] == 1
    assert d["url_scans"] == 2
    assert d["average_score"] == 38


def test_ai_recommendations(client, store, monkeypatch):
    scan_id = client.post("/scan-url", json={"url": "http://example.com"}).get_json()["scan_id"]
    monkeypatch.setattr(api, "get_recommender", lambda: CannedClient(text="Enable HTTPS."))
    rv = client.post("/ai-recommendations", json={"scan_id": scan_id})
    assert rv.status_code == 200
    assert rv.get_json() == {"recommendations": "Enable HTTPS."}
    assert store.get_scan(scan_id)["ai_recommendations"] == "Enable HTTPS."

    assert client.post("/ai-recommendations", json={"scan_id": "missing"}).status_code == 404
    assert client.post("/ai-recommendations", json={}).status_code == 400


def test_ai_recommendations_failure(client, monkeypatch):
    scan_id = client.post("/scan-url", json={"url": "http://example.com"}).get_json()["scan_id"]
    monkeypatch.setattr(api, "get_recommender", lambda: CannedClient(error=RecommendationError("down")))
    rv = client.post("/ai-recommendations", json={"scan_id": scan_id})
    assert rv.status_code == 502


@pytest.mark.parametrize("fmt,mimetype", [
    ("json", "application/json"), ("csv", "text/csv"), ("html", "text/html"),
])
def test_export(client, fmt, mimetype):
    client.post("/scan-url", json={"url": "http://example.com"})
    rv = client.get(f"/export/{fmt}")
    assert rv.status_code == 200
    assert rv.mimetype == mimetype
    assert "attachment" in rv.headers["Content-Disposition"]
    assert b"example.com" in rv.data


def test_export_unknown_format(client):
    assert client.get("/export/xml").status_code == 400


def test_api_key(client, monkeypatch):
    monkeypatch.setattr(config, "API_KEY", "sekret")
    assert client.get("/stats").status_code == 401
    assert client.get("/stats", headers={"X-API-Key": "sekret"}).status_code == 200
    assert client.get("/health").status_code == 200
