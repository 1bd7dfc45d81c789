import json
import logging
import os
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

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

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenAISDKProvider(BaseImageProvider):
    """Gemini image models served through an OpenAI-compatible chat endpoint (OpenRouter)."""

    def __init__(self, engine_config: EngineConfig, client: Optional[Any] = None):
        self.config = engine_config
        if client is None:
            if not self.config.api_key:
                raise GenerationError(
                    "API key is required for OpenAI-compatible engines."
                )
            client = AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=str(self.config.base_url or OPENROUTER_BASE_URL),
            )
        self.async_client = client

    def build_messages(self, request: ImageGenerationRequest) -> List[Dict[str, Any]]:
        content_items: List[Dict[str, Any]] = []
        if request.source_image:
            source = split_data_url(request.source_image)
            content_items.append(
                {
                    "type": "image_url",
                    "image_url": {"url": to_data_url(source.mime_type, source.data)},
                }
            )
        content_items.append(
            {"type": "text", "text": build_prompt(request.prompt, request.style)}
        )
        return [{"role": "user", "content": content_items}]

    def build_extra_headers(self) -> Dict[str, str]:
        # Optional OpenRouter ranking headers from env
        extra_headers = {}
        ref = os.environ.get("OPENROUTER_HTTP_REFERER")
        ttl = os.environ.get("OPENROUTER_X_TITLE")
        if ref:
            extra_headers["HTTP-Referer"] = ref
        if ttl:
            extra_headers["X-Title"] = ttl
        return extra_headers

    async def generate_image(self, request: ImageGenerationRequest) -> str:
        messages = self.build_messages(request)
        extra_body = {
            "modalities": ["image", "text"],
            "image_config": {"aspect_ratio": request.aspect_ratio.value},
        }
        if request.verbose:
            print("--- OpenRouter Chat.Completions Request ---")
            print(
                json.dumps(
                    {"model": self.config.model, "extra_body": extra_body},
                    indent=2,
                )
            )
            print("------------------------------------------")
        try:
            completion = await self.async_client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                extra_headers=self.build_extra_headers() or None,
                extra_body=extra_body,
            )
        except Exception as e:
            logger.error(f"OpenRouter API Error: {e}")
            raise GenerationError(str(e) or FALLBACK_MESSAGE) from e
        return extract_image(completion)

    async def close(self):
        await self.async_client.close()


def extract_image(completion: Any) -> str:
    """Returns the first image attached to the first choice as a data URL."""
    choices = getattr(completion, "choices", None)
    if choices:
        images = getattr(choices[0].message, "images", None) or []
        for image in images:
            try:
                url = image["image_url"]["url"]
            except (KeyError, TypeError):
                continue
            if url and url.startswith("data:"):
                source = split_data_url(url)
                return to_data_url(source.mime_type, source.data)
    logger.error(NO_IMAGE_MESSAGE)
    raise GenerationError(NO_IMAGE_MESSAGE)
