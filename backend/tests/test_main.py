import os

import pytest
from fastapi.testclient import TestClient

from docsearch.config import get_settings
from docsearch.main import create_app


def write(p, text):
    os.makedirs(os.path.dirname(p), exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        f.write(text)


@pytest.fixture
def site(tmp_path, monkeypatch):
    content = tmp_path / "beamng"
    site_dir = tmp_path / "_site"
    write(str(content / "setup.md"), "---\ntitle: Setup Guide\n---\nInstall the mod.")
    write(str(site_dir / "index.html"), "<html><body>home</body></html>")
    monkeypatch.setenv("DOCSEARCH_CONTENT_DIR", str(content))
    monkeypatch.setenv("DOCSEARCH_SITE_DIR", str(site_dir))
    monkeypatch.delenv("DOCSEARCH_INDEX_PATH", raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


def test_health_and_static_pages(site):
    client = TestClient(create_app())
    assert client.get("/health").json() == {"ok": True}
    r = client.get("/")
    assert r.status_code == 200
    assert "home" in r.text


def test_index_missing_until_reindex(site):
    client = TestClient(create_app())
    assert client.get("/assets/search.json").status_code == 404
    stats = client.get("/stats").json()
    assert stats["entries"] == 0
    assert stats["built"] is False

    r = client.post("/reindex")
    assert r.status_code == 200
    assert r.json()["entries"] == 1

    r = client.get("/assets/search.json")
    assert r.status_code == 200
    assert r.json() == [{"title": "Setup Guide", "content": "---\ntitle: Setup Guide\n---\nInstall the mod.",
                         "url": "/beamng/setup.html"}]
    assert client.get("/stats").json()["entries"] == 1


def test_reindex_failure_is_500(site, monkeypatch):
    monkeypatch.setenv("DOCSEARCH_CONTENT_DIR", str(site / "missing"))
    get_settings.cache_clear()
    client = TestClient(create_app())
    r = client.post("/reindex")
    assert r.status_code == 500
    assert "content directory not found" in r.json()["detail"]
