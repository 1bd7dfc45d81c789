"""
Studio state controller.

State changes go through ``reduce`` (a pure ``(state, event) -> (state, effect)``
function); ``StudioController`` owns the single state record and runs the
one asynchronous effect, the provider call.
"""

import logging
import threading
from typing import Optional, Tuple, Union

from pydantic import BaseModel

from nanobanana.core import generate_image_core
from nanobanana.errors import GenerationError
from nanobanana.models import (
    ArtStyle,
    AspectRatio,
    GenerationResult,
    ImageGenerationRequest,
    RequestStatus,
)
from nanobanana.providers.base_provider import BaseImageProvider
from nanobanana.utils import build_prompt, generate_download_filename

logger = logging.getLogger(__name__)

EDIT_PROMPT_REQUIRED = "Please enter instructions for editing the image."
GENERATE_PROMPT_REQUIRED = "Please enter a description for your image."
GENERIC_FAILURE = "Something went wrong. Please try again."


class StudioState(BaseModel):
    prompt: str = ""
    style: ArtStyle = ArtStyle.PHOTOREALISTIC
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    source_image: Optional[str] = None
    loading: bool = False
    result: Optional[GenerationResult] = None
    error: Optional[str] = None

    @property
    def is_edit(self) -> bool:
        return self.source_image is not None

    @property
    def prompt_is_blank(self) -> bool:
        return not self.prompt.strip()

    @property
    def status(self) -> RequestStatus:
        if self.loading:
            return RequestStatus.LOADING
        if self.error is not None:
            return RequestStatus.FAILED
        if self.result is not None:
            return RequestStatus.SUCCEEDED
        return RequestStatus.IDLE


class UpdatePrompt(BaseModel):
    text: str


class UpdateStyle(BaseModel):
    style: ArtStyle


class UpdateAspectRatio(BaseModel):
    aspect_ratio: AspectRatio


class SetSourceImage(BaseModel):
    image: Optional[str] = None


class Submit(BaseModel):
    pass


class GenerationSucceeded(BaseModel):
    result: GenerationResult


class GenerationFailed(BaseModel):
    message: Optional[str] = None


class Settled(BaseModel):
    pass


Event = Union[
    UpdatePrompt,
    UpdateStyle,
    UpdateAspectRatio,
    SetSourceImage,
    Submit,
    GenerationSucceeded,
    GenerationFailed,
    Settled,
]


class GenerateEffect(BaseModel):
    request: ImageGenerationRequest


def reduce(
    state: StudioState, event: Event
) -> Tuple[StudioState, Optional[GenerateEffect]]:
    if isinstance(event, UpdatePrompt):
        return state.model_copy(update={"prompt": event.text}), None
    if isinstance(event, UpdateStyle):
        return state.model_copy(update={"style": event.style}), None
    if isinstance(event, UpdateAspectRatio):
        return state.model_copy(update={"aspect_ratio": event.aspect_ratio}), None
    if isinstance(event, SetSourceImage):
        return state.model_copy(update={"source_image": event.image}), None
    if isinstance(event, Submit):
        if state.loading:
            logger.warning("Ignoring submit while a generation request is in flight")
            return state, None
        if state.prompt_is_blank:
            message = EDIT_PROMPT_REQUIRED if state.is_edit else GENERATE_PROMPT_REQUIRED
            return state.model_copy(update={"error": message, "loading": False}), None
        request = ImageGenerationRequest(
            prompt=state.prompt,
            style=state.style,
            aspect_ratio=state.aspect_ratio,
            source_image=state.source_image,
        )
        loading = state.model_copy(update={"loading": True, "error": None, "result": None})
        return loading, GenerateEffect(request=request)
    if isinstance(event, GenerationSucceeded):
        return state.model_copy(update={"result": event.result, "error": None}), None
    if isinstance(event, GenerationFailed):
        message = event.message or GENERIC_FAILURE
        return state.model_copy(update={"error": message, "result": None}), None
    if isinstance(event, Settled):
        return state.model_copy(update={"loading": False}), None
    raise TypeError(f"Unknown event: {type(event).__name__}")


class StudioController:
    def __init__(
        self,
        provider: BaseImageProvider,
        state: Optional[StudioState] = None,
        product_name: str = "nanobanana",
        verbose: bool = False,
    ):
        self.provider = provider
        self.product_name = product_name
        self.verbose = verbose
        self._state = state or StudioState()
        self._lock = threading.Lock()

    @property
    def state(self) -> StudioState:
        return self._state

    def dispatch(self, event: Event) -> Optional[GenerateEffect]:
        with self._lock:
            self._state, effect = reduce(self._state, event)
        return effect

    def update_prompt(self, text: str) -> StudioState:
        self.dispatch(UpdatePrompt(text=text))
        return self.state

    def update_style(self, style: ArtStyle) -> StudioState:
        self.dispatch(UpdateStyle(style=style))
        return self.state

    def update_aspect_ratio(self, aspect_ratio: AspectRatio) -> StudioState:
        self.dispatch(UpdateAspectRatio(aspect_ratio=aspect_ratio))
        return self.state

    def set_source_image(self, image: Optional[str]) -> StudioState:
        self.dispatch(SetSourceImage(image=image))
        return self.state

    async def submit(self) -> StudioState:
        effect = None
        try:
            effect = self.dispatch(Submit())
            if effect is None:
                return self.state
            request = effect.request
            if self.verbose:
                request = request.model_copy(update={"verbose": True})
            image_url = await generate_image_core(request, self.provider)
            self.dispatch(
                GenerationSucceeded(
                    result=GenerationResult(
                        image_url=image_url,
                        prompt_used=build_prompt(request.prompt, request.style),
                    )
                )
            )
        except GenerationError as e:
            self.dispatch(GenerationFailed(message=e.message))
        except Exception as e:
            logger.exception(f"Unexpected error while generating: {e}")
            self.dispatch(GenerationFailed(message=str(e) or None))
        finally:
            # Only the submit that started the request clears the loading flag.
            if effect is not None:
                self.dispatch(Settled())
        return self.state

    def download(self, timestamp_ms: Optional[int] = None) -> Optional[Tuple[str, str]]:
        """Returns (data URL, filename) for the current result, if any."""
        result = self.state.result
        if result is None or not result.image_url:
            return None
        filename = generate_download_filename(self.product_name, timestamp_ms)
        return result.image_url, filename
