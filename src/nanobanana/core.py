import logging

from nanobanana.config import EngineConfig
from nanobanana.errors import GenerationError
from nanobanana.models import ImageGenerationRequest
from nanobanana.providers.base_provider import BaseImageProvider, FALLBACK_MESSAGE
from nanobanana.providers.gemini_provider import GeminiProvider
from nanobanana.providers.openai_sdk_provider import OpenAISDKProvider

logger = logging.getLogger(__name__)


def create_provider(engine_config: EngineConfig) -> BaseImageProvider:
    if engine_config.kind == "openrouter":
        return OpenAISDKProvider(engine_config)
    return GeminiProvider(engine_config)


async def generate_image_core(
    request: ImageGenerationRequest, provider: BaseImageProvider
) -> str:
    """Runs one provider call; every failure surfaces as GenerationError."""
    logger.info(
        "Generating image: style=%s, ratio=%s, edit=%s",
        request.style.value,
        request.aspect_ratio.value,
        request.source_image is not None,
    )
    try:
        return await provider.generate_image(request)
    except GenerationError:
        raise
    except Exception as e:
        logger.exception(f"An unexpected error occurred in generate_image_core: {e}")
        raise GenerationError(str(e) or FALLBACK_MESSAGE) from e
