"""
Test the HTTP API: health, disc photo analysis, share links and catalog filters.
"""
import base64

import pytest

from bagr.config import config

DEFAULT_HEX = "#6366F1"


def test_health_check(test_client):
    response = test_client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["version"].startswith("v")
    assert data["service"] == "bagr-disc-photos"


def test_root(test_client):
    response = test_client.get("/")

    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


class TestPhotoUpload:
    """POST /v1/discs/photo"""

    def test_upload_disc(self, test_client, disc_png):
        response = test_client.post(
            "/v1/discs/photo",
            files={"file": ("disc.png", disc_png(), "image/png")}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["cropped"] is True
        assert data["cropped_image_data"].startswith("data:image/jpeg;base64,")
        assert data["dominant_color_hex"] == "#C02020"
        assert data["crop_rect"]["size"] > 0
        assert data["disc_radius"] == pytest.approx(100, rel=0.05)

    def test_missing_file(self, test_client):
        response = test_client.post("/v1/discs/photo")

        assert response.status_code == 400
        assert response.json()["detail"] == "No file selected"

    def test_garbage_upload_falls_back(self, test_client):
        garbage = b"not really a png"

        response = test_client.post(
            "/v1/discs/photo",
            files={"file": ("disc.png", garbage, "image/png")}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["cropped"] is False
        assert data["cropped_image_data"] == "data:image/png;base64," + base64.b64encode(garbage).decode()
        assert data["dominant_color_hex"] == DEFAULT_HEX
        assert data["crop_rect"] is None

    def test_file_too_large(self, test_client, disc_png, monkeypatch):
        monkeypatch.setattr(config, "MAX_FILE_MB", 0)

        response = test_client.post(
            "/v1/discs/photo",
            files={"file": ("disc.png", disc_png(), "image/png")}
        )

        assert response.status_code == 400
        assert "too large" in response.json()["detail"]


class TestPhotoUrl:
    """POST /v1/discs/photo-url"""

    def test_pasted_data_uri(self, test_client, disc_png):
        uri = "data:image/png;base64," + base64.b64encode(disc_png(disc=(40, 40, 200))).decode()

        response = test_client.post("/v1/discs/photo-url", json={"url": uri})

        assert response.status_code == 200
        assert response.json()["dominant_color_hex"] == "#2020C0"

    def test_unsupported_scheme_keeps_url(self, test_client):
        url = "ftp://files.example.com/disc.png"

        response = test_client.post("/v1/discs/photo-url", json={"url": url})

        assert response.status_code == 200
        data = response.json()
        assert data["cropped_image_data"] == url
        assert data["dominant_color_hex"] == DEFAULT_HEX

    def test_malformed_url_keeps_url(self, test_client):
        url = "https://[::1/disc.png"

        response = test_client.post("/v1/discs/photo-url", json={"url": url})

        assert response.status_code == 200
        data = response.json()
        assert data["cropped"] is False
        assert data["cropped_image_data"] == url
        assert data["dominant_color_hex"] == DEFAULT_HEX

    def test_empty_url_rejected(self, test_client):
        response = test_client.post("/v1/discs/photo-url", json={"url": ""})

        assert response.status_code == 422


class TestMetricsEndpoint:
    def test_metrics_after_upload(self, test_client, disc_png):
        test_client.post("/v1/discs/photo", files={"file": ("disc.png", disc_png(), "image/png")})

        response = test_client.get("/v1/discs/metrics")

        assert response.status_code == 200
        data = response.json()
        assert data["counters"]["photo_requests_total"] == 1
        assert data["counters"]["photo_source_upload_total"] == 1
        assert "crop_duration_ms" in data["timing_stats"]
        assert data["disc_radius_stats"]["count"] == 1

    def test_metrics_disabled(self, test_client, monkeypatch):
        monkeypatch.setattr(config, "METRICS_ENABLED", False)

        assert test_client.get("/v1/discs/metrics").status_code == 404


class TestBagShare:
    """POST /v1/bag/share and /v1/bag/parse"""

    BAG = {"slots": [{"discId": 5, "plastic": "Star"}, {}], "name": "Sam"}

    def test_share_and_parse(self, test_client):
        response = test_client.post(
            "/v1/bag/share",
            json={"bag": self.BAG, "base_url": "https://bagr.example.com/#bag=stale"}
        )

        assert response.status_code == 200
        shared = response.json()
        assert shared["url"] == "https://bagr.example.com/" + shared["fragment"]
        assert shared["fragment"].startswith("#bag=")

        response = test_client.post("/v1/bag/parse", json={"fragment": shared["url"]})

        assert response.status_code == 200
        bag = response.json()
        assert bag["name"] == "Sam"
        assert bag["slots"][0]["discId"] == 5
        assert bag["slots"][0]["plastic"] == "Star"
        assert bag["slots"][1]["discId"] is None

    def test_parse_invalid(self, test_client):
        response = test_client.post("/v1/bag/parse", json={"fragment": "#bag=%7Bbroken"})

        assert response.status_code == 422


def test_catalog_filter(test_client):
    discs = [
        {"id": 1, "name": "Destroyer", "manufacturer": "Innova", "type": "Distance Driver",
         "speed": 12, "glide": 5, "turn": -1, "fade": 3},
        {"id": 2, "name": "Buzzz", "manufacturer": "Discraft", "type": "Midrange",
         "speed": 5, "glide": 4, "turn": -1, "fade": 1},
    ]

    response = test_client.post(
        "/v1/catalog/filter",
        json={"discs": discs, "search": "buz", "manufacturer": "all", "disc_type": "all"}
    )

    assert response.status_code == 200
    data = response.json()
    assert [d["name"] for d in data["discs"]] == ["Buzzz"]
    assert data["manufacturers"] == ["Discraft", "Innova"]
