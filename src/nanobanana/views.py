"""View models for the studio page. Each function is a pure function of state."""

from typing import Any, Dict, Optional

from nanobanana.controller import StudioState
from nanobanana.models import ArtStyle, AspectRatio

DOWNLOAD_URL = "/api/download"


def upload_control(state: StudioState) -> Dict[str, Any]:
    if state.source_image is None:
        return {"mode": "upload", "hint": "Click to upload an image to edit"}
    return {"mode": "preview", "image": state.source_image, "caption": "Image Loaded"}


def configuration_panel(state: StudioState) -> Dict[str, Any]:
    if state.is_edit:
        prompt_label = "Instructions"
        placeholder = "Describe how you want to change the image... (e.g., Make it look like a sketch)"
    else:
        prompt_label = "Description"
        placeholder = "Describe your imagination... (e.g., A futuristic city on Mars)"
    return {
        "prompt": state.prompt,
        "prompt_label": prompt_label,
        "placeholder": placeholder,
        "styles": [
            {"value": s.value, "selected": s == state.style} for s in ArtStyle
        ],
        "aspect_ratios": [
            {"value": r.value, "active": r == state.aspect_ratio} for r in AspectRatio
        ],
    }


def submit_control(state: StudioState) -> Dict[str, Any]:
    if state.loading:
        label = "Editing..." if state.is_edit else "Generating..."
    else:
        label = "Generate Edit" if state.is_edit else "Generate Image"
    return {
        "label": label,
        "disabled": state.loading or state.prompt_is_blank,
        "busy": state.loading,
    }


def result_pane(state: StudioState) -> Dict[str, Any]:
    if state.loading:
        return {"mode": "loading", "message": "Dreaming up your image..."}
    if state.result is None or not state.result.image_url:
        return {"mode": "empty", "message": "Your creation will appear here"}
    return {
        "mode": "image",
        "image": state.result.image_url,
        "download_url": DOWNLOAD_URL,
        "badge": "Edit Complete" if state.is_edit else "Generation Complete",
        "prompt_heading": "Instructions Used" if state.is_edit else "Prompt Used",
        "prompt_used": state.result.prompt_used,
    }


def error_banner(state: StudioState) -> Optional[Dict[str, str]]:
    if state.error is None:
        return None
    return {"message": state.error}


def render_page(state: StudioState, model_name: str = "") -> Dict[str, Any]:
    return {
        "model_name": model_name,
        "status": state.status.value,
        "upload": upload_control(state),
        "config": configuration_panel(state),
        "submit": submit_control(state),
        "result": result_pane(state),
        "error": error_banner(state),
    }
