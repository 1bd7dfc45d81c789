"""Tests for the Flask front end."""
import io

import pytest

from conftest import FakeProvider, make_png_data_url
from nanobanana.errors import GenerationError
from nanobanana.web_server import _LoopThread, create_app


@pytest.fixture
def provider():
    return FakeProvider(make_png_data_url())


@pytest.fixture
def client(settings, provider):
    app = create_app(settings, provider=provider)
    app.config["TESTING"] = True
    return app.test_client()


def test_index_renders_page(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "NanoBanana Studio" in body
    assert "Your creation will appear here" in body
    assert "Pencil Sketch" in body


def test_state_endpoint(client):
    data = client.get("/api/state").get_json()
    assert data["success"] is True
    assert data["state"]["style"] == "Photorealistic"
    assert data["view"]["status"] == "idle"


def test_options_endpoint(client):
    data = client.get("/api/options").get_json()
    assert "No Style" in data["styles"]
    assert data["aspect_ratios"] == ["1:1", "16:9", "9:16", "4:3", "3:4"]


def test_field_updates(client):
    client.post("/api/prompt", json={"prompt": "A cat"})
    client.post("/api/style", json={"style": "Anime"})
    data = client.post("/api/aspect-ratio", json={"aspect_ratio": "4:3"}).get_json()
    assert data["state"]["prompt"] == "A cat"
    assert data["state"]["style"] == "Anime"
    assert data["state"]["aspect_ratio"] == "4:3"


def test_invalid_style_rejected(client):
    response = client.post("/api/style", json={"style": "Baroque"})
    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_generate_success_and_download(client, provider):
    response = client.post(
        "/api/generate", json={"prompt": "A cat", "style": "No Style", "aspect_ratio": "16:9"}
    )
    data = response.get_json()
    assert response.status_code == 200
    assert data["view"]["status"] == "succeeded"
    assert data["state"]["loading"] is False
    assert data["view"]["result"]["mode"] == "image"
    assert provider.requests[0].aspect_ratio.value == "16:9"
    assert provider.requests[0].prompt == "A cat"

    download = client.get("/api/download")
    assert download.status_code == 200
    assert download.mimetype == "image/png"
    disposition = download.headers["Content-Disposition"]
    assert "filename=nanobanana-" in disposition
    assert disposition.endswith(".png")
    assert download.data.startswith(b"\x89PNG")


def test_generate_blank_prompt_reports_error(client, provider):
    data = client.post("/api/generate", json={"prompt": "   "}).get_json()
    assert data["state"]["error"] == "Please enter a description for your image."
    assert data["view"]["error"]["message"] == "Please enter a description for your image."
    assert provider.requests == []


def test_generate_failure_is_reported_in_state(settings):
    app = create_app(settings, provider=FakeProvider(GenerationError("Quota exceeded")))
    client = app.test_client()
    data = client.post("/api/generate", json={"prompt": "A cat"}).get_json()
    assert data["state"]["error"] == "Quota exceeded"
    assert data["state"]["loading"] is False
    assert client.get("/api/download").status_code == 404


def test_source_image_upload_and_clear(client, provider):
    client.post("/api/prompt", json={"prompt": "Add a hat"})
    response = client.post(
        "/api/source-image",
        data={"image": (io.BytesIO(b"\x00\x00"), "photo.jpg", "image/jpeg")},
        content_type="multipart/form-data",
    )
    data = response.get_json()
    assert data["state"]["source_image"] == "data:image/jpeg;base64,AAA="
    assert data["view"]["submit"]["label"] == "Generate Edit"

    client.post("/api/generate", json={})
    assert provider.requests[0].source_image == "data:image/jpeg;base64,AAA="

    data = client.delete("/api/source-image").get_json()
    assert data["state"]["source_image"] is None
    assert data["state"]["prompt"] == "Add a hat"


def test_source_image_requires_image(client):
    response = client.post("/api/source-image", json={"image": "not a data url"})
    assert response.status_code == 400


def test_browser_form_post_redirects(client):
    response = client.post(
        "/api/generate",
        data={"prompt": "A cat", "style": "Anime", "aspect_ratio": "1:1"},
        headers={"Accept": "text/html,application/xhtml+xml"},
    )
    assert response.status_code == 302
    page = client.get("/").get_data(as_text=True)
    assert "Generation Complete" in page
    assert "A cat, in the style of Anime, high quality, detailed" in page


def test_unknown_endpoint(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.get_json() == {"success": False, "error": "Endpoint not found"}


def test_generate_null_prompt_is_blank(client, provider):
    data = client.post("/api/generate", json={"prompt": None}).get_json()
    assert data["state"]["prompt"] == ""
    assert data["state"]["error"] == "Please enter a description for your image."
    assert provider.requests == []


def test_update_prompt_null_is_blank(client):
    data = client.post("/api/prompt", json={"prompt": None}).get_json()
    assert data["state"]["prompt"] == ""


def test_source_image_upload_rejects_non_image(client):
    response = client.post(
        "/api/source-image",
        data={"image": (io.BytesIO(b"hello"), "notes.txt", "text/plain")},
        content_type="multipart/form-data",
    )
    assert response.status_code == 400
    assert client.get("/api/state").get_json()["state"]["source_image"] is None


def test_loop_thread_shutdown_closes_provider():
    provider = FakeProvider()
    runner = _LoopThread()
    runner.shutdown(provider)
    assert provider.closed is True
    assert runner.loop.is_closed()
    runner.shutdown(provider)
