from abc import ABC, abstractmethod
from nanobanana.models import ImageGenerationRequest

NO_IMAGE_MESSAGE = "No image data found in the response."
FALLBACK_MESSAGE = "Failed to generate image."


class BaseImageProvider(ABC):
    @abstractmethod
    async def generate_image(self, request: ImageGenerationRequest) -> str:
        """
        Generates or edits an image based on the provided request.
        Returns the image as a data URL; raises GenerationError on failure.
        """
        pass

    async def close(self):
        pass
