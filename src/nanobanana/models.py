from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    STANDARD_LANDSCAPE = "4:3"
    STANDARD_PORTRAIT = "3:4"


class ArtStyle(str, Enum):
    NONE = "No Style"
    PHOTOREALISTIC = "Photorealistic"
    ANIME = "Anime"
    CINEMATIC = "Cinematic"
    SURREAL = "Surreal"
    WATERCOLOR = "Watercolor"
    MOEBIUS = "Moebius"
    HYPER_REALISTIC = "Hyper-realistic"
    CYBERPUNK = "Cyberpunk"
    OIL_PAINTING = "Oil Painting"
    SKETCH = "Pencil Sketch"
    PIXEL_ART = "Pixel Art"


class RequestStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SourceImage(BaseModel):
    mime_type: str = "image/png"
    data: str = Field(..., description="Base64 encoded image payload.")


class ImageGenerationRequest(BaseModel):
    prompt: str
    style: ArtStyle = ArtStyle.PHOTOREALISTIC
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    # Data URL of the image to edit; None means generate from scratch.
    source_image: Optional[str] = None
    verbose: bool = False


class GenerationResult(BaseModel):
    image_url: Optional[str] = None
    prompt_used: str = ""
