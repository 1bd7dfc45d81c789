import base64
import io
from types import SimpleNamespace

import pytest
from PIL import Image

from nanobanana.config import EngineConfig, Settings
from nanobanana.errors import GenerationError
from nanobanana.providers.base_provider import BaseImageProvider


def make_png_data_url(color=(255, 200, 0)) -> str:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("utf-8")


class FakeProvider(BaseImageProvider):
    """Records requests and replays queued outcomes (data URLs or exceptions)."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [make_png_data_url()]
        self.requests = []
        self.closed = False
        self.observed_loading = []
        self.controller = None

    async def generate_image(self, request):
        self.requests.append(request)
        if self.controller is not None:
            self.observed_loading.append(self.controller.state.loading)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def fake_genai_client(response=None, error=None):
    models = FakeModels(response=response, error=error)
    return SimpleNamespace(aio=SimpleNamespace(models=models)), models


def gemini_response(*parts):
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))]
    )


def inline_part(mime_type, data):
    return SimpleNamespace(text=None, inline_data=SimpleNamespace(mime_type=mime_type, data=data))


def text_part(text):
    return SimpleNamespace(text=text, inline_data=None)


@pytest.fixture
def png_data_url():
    return make_png_data_url()


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def failing_provider():
    return FakeProvider(GenerationError("Quota exceeded"))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        output_dir=str(tmp_path / "out"),
        default_engine="gemini",
        engines={"gemini": EngineConfig(kind="gemini", api_key="test-key")},
    )
