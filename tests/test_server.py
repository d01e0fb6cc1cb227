"""
HTTP API tests (FastAPI TestClient, heuristic classifier only).
"""

import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

import server
from menuscan.ocr.sources import MockWordSource
from menuscan.pipeline import MenuPipeline, PipelineConfig
from menuscan.session import ScanSession

VIEWPORT = {"naturalWidth": 400, "naturalHeight": 100, "displayWidth": 400, "displayHeight": 100}


class _MockSources:
    def get(self):
        return MockWordSource()


class _MissingEngine:
    def get(self):
        raise ImportError("No module named 'easyocr'")


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(server, "scan_session", ScanSession(MenuPipeline(PipelineConfig(use_remote=False))))
    monkeypatch.setattr(server, "word_sources", _MockSources())
    return TestClient(server.app)


def _png(width=200, height=100) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buf, format="PNG")
    return buf.getvalue()


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "remote_classifier": False, "has_analysis": False}


class TestAnalyze:
    def test_analyze_words(self, client, pizza_response):
        response = client.post("/api/analyze", json=pizza_response)
        assert response.status_code == 200
        data = response.json()
        assert data["classifierSource"] == "heuristic"
        assert data["items"] == [{"id": "item0", "title": "PIZZA", "prices": ["450"], "description": "fresh basil"}]
        assert [w["category"] for w in data["words"]] == ["title", "price", "description"]
        assert client.get("/api/health").json()["has_analysis"]

    def test_no_text(self, client):
        response = client.post("/api/analyze", json={"text": "", "words": []})
        assert response.status_code == 200
        assert response.json()["items"] == []
        assert response.json()["warnings"] == ["No text detected"]

    def test_invalid_box(self, client):
        bad = {"words": [{"bbox": {"x0": 10, "y0": 0, "x1": 5, "y1": 10}, "text": "A"}]}
        assert client.post("/api/analyze", json=bad).status_code == 422

    def test_analyze_image(self, client):
        response = client.post("/api/analyze-image", files={"image": ("menu.png", _png(), "image/png")})
        assert response.status_code == 200
        data = response.json()
        assert data["image"] == {"width": 200, "height": 100}
        assert data["normalized"] is True
        assert data["items"][0]["title"] == "TITLE"

    def test_analyze_image_rejects_garbage(self, client):
        response = client.post("/api/analyze-image", files={"image": ("menu.png", b"not an image", "image/png")})
        assert response.status_code == 400

    def test_analyze_image_without_engine(self, client, monkeypatch):
        monkeypatch.setattr(server, "word_sources", _MissingEngine())
        response = client.post("/api/analyze-image", files={"image": ("menu.png", _png(), "image/png")})
        assert response.status_code == 503


class TestTap:
    def test_tap_before_analysis(self, client):
        response = client.post("/api/tap", json={"x": 1, "y": 1, "viewport": VIEWPORT})
        assert response.status_code == 409

    def test_tap_hit_and_miss(self, client, pizza_response):
        client.post("/api/analyze", json=pizza_response)

        hit = client.post("/api/tap", json={"x": 50, "y": 25, "viewport": VIEWPORT})
        assert hit.status_code == 200
        assert hit.json()["dish"]["title"] == "PIZZA"

        miss = client.post("/api/tap", json={"x": 320, "y": 25, "viewport": VIEWPORT})
        assert miss.status_code == 404

    def test_tap_with_pixel_ratio(self, client, pizza_response):
        client.post("/api/analyze", json=pizza_response)
        viewport = dict(VIEWPORT, displayWidth=200, displayHeight=50, devicePixelRatio=2)
        hit = client.post("/api/tap", json={"x": 50, "y": 25, "viewport": viewport})
        assert hit.json()["dish"]["id"] == "item0"

    def test_invalid_viewport(self, client):
        viewport = dict(VIEWPORT, displayWidth=0)
        response = client.post("/api/tap", json={"x": 1, "y": 1, "viewport": viewport})
        assert response.status_code == 422
