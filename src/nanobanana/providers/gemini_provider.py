import base64
import json
import logging
from typing import Any, List, Optional

from google import genai
from google.genai import types

from nanobanana.config import EngineConfig
from nanobanana.errors import GenerationError
from nanobanana.models import ImageGenerationRequest
from nanobanana.providers.base_provider import (
    BaseImageProvider,
    FALLBACK_MESSAGE,
    NO_IMAGE_MESSAGE,
)
from nanobanana.utils import build_prompt, split_data_url, to_data_url

logger = logging.getLogger(__name__)


class GeminiProvider(BaseImageProvider):
    """Gemini image model via the google-genai SDK."""

    def __init__(self, engine_config: EngineConfig, client: Optional[Any] = None):
        self.config = engine_config
        if client is None:
            if not self.config.api_key:
                raise GenerationError(
                    "Gemini API key is required. Set NANOBANANA__GEMINI_API_KEY or GEMINI_API_KEY."
                )
            client = genai.Client(api_key=self.config.api_key)
        self.client = client

    def build_contents(self, request: ImageGenerationRequest) -> List[types.Part]:
        parts: List[types.Part] = []
        if request.source_image:
            source = split_data_url(request.source_image)
            parts.append(
                types.Part.from_bytes(
                    data=base64.b64decode(source.data), mime_type=source.mime_type
                )
            )
        parts.append(types.Part.from_text(text=build_prompt(request.prompt, request.style)))
        return parts

    def build_config(self, request: ImageGenerationRequest) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=request.aspect_ratio.value)
        )

    async def generate_image(self, request: ImageGenerationRequest) -> str:
        try:
            contents = self.build_contents(request)
            config = self.build_config(request)
            if request.verbose:
                print("--- Gemini generate_content Request ---")
                print(
                    json.dumps(
                        {
                            "model": self.config.model,
                            "text": contents[-1].text,
                            "has_source_image": len(contents) > 1,
                            "aspect_ratio": request.aspect_ratio.value,
                        },
                        indent=2,
                    )
                )
                print("---------------------------------------")
            response = await self.client.aio.models.generate_content(
                model=self.config.model,
                contents=contents,
                config=config,
            )
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"Gemini API Error: {e}")
            raise GenerationError(str(e) or FALLBACK_MESSAGE) from e
        return extract_image(response)

    async def close(self):
        aio = getattr(self.client, "aio", None)
        if hasattr(aio, "aclose"):
            await aio.aclose()


def extract_image(response: Any) -> str:
    """Returns the first inline image of the first candidate as a data URL."""
    candidates = getattr(response, "candidates", None)
    if candidates:
        content = getattr(candidates[0], "content", None)
        for part in getattr(content, "parts", None) or []:
            inline_data = getattr(part, "inline_data", None)
            if inline_data is not None and inline_data.data:
                return to_data_url(inline_data.mime_type, inline_data.data)
    logger.error(NO_IMAGE_MESSAGE)
    raise GenerationError(NO_IMAGE_MESSAGE)
