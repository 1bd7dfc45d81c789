#!/usr/bin/env python3
"""
Web server for NanoBanana Studio - browser front end for image generation and editing.
Renders the studio page and exposes REST endpoints that drive the studio controller.
"""

import asyncio
import atexit
import binascii
import logging
import threading
from typing import Any, Dict, Optional

from flask import (
    Flask,
    Response,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_cors import CORS

from nanobanana.config import Settings, get_settings
from nanobanana.controller import StudioController
from nanobanana.core import create_provider
from nanobanana.models import ArtStyle, AspectRatio
from nanobanana.providers.base_provider import BaseImageProvider
from nanobanana.utils import decode_data_url, file_to_data_url, split_data_url
from nanobanana.views import render_page

logger = logging.getLogger(__name__)


class _LoopThread:
    """Runs provider coroutines on one long-lived event loop so SDK clients keep their loop."""

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self.loop.run_forever, daemon=True)
        self._thread.start()

    def run(self, coro):
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result()

    def shutdown(self, provider: Optional[BaseImageProvider] = None):
        if not self._thread.is_alive():
            return
        if provider is not None:
            try:
                self.run(provider.close())
            except Exception as e:
                logger.warning(f"Failed to close provider cleanly: {e}")
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join()
        self.loop.close()


def _wants_html() -> bool:
    return request.accept_mimetypes.best_match(["application/json", "text/html"]) == "text/html"


def _payload() -> Dict[str, Any]:
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def _error(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[BaseImageProvider] = None,
    engine: Optional[str] = None,
) -> Flask:
    settings = settings or get_settings()
    engine_config = settings.engine(engine)
    if provider is None:
        provider = create_provider(engine_config)

    app = Flask(__name__)
    CORS(app)  # Enable CORS for all routes
    app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024  # 16MB max file size

    controller = StudioController(provider, product_name=settings.product_name)
    runner = _LoopThread()
    atexit.register(runner.shutdown, provider)

    def state_response():
        if _wants_html():
            return redirect(url_for("index"))
        state = controller.state
        return jsonify(
            {
                "success": True,
                "state": state.model_dump(mode="json"),
                "view": render_page(state, engine_config.model),
            }
        )

    def apply_fields(data: Dict[str, Any]) -> None:
        # Raises ValueError for values outside the style/ratio enumerations.
        if "prompt" in data:
            controller.update_prompt(str(data.get("prompt") or ""))
        if data.get("style"):
            controller.update_style(ArtStyle(data["style"]))
        if data.get("aspect_ratio"):
            controller.update_aspect_ratio(AspectRatio(data["aspect_ratio"]))

    @app.route("/")
    def index():
        """Serve the studio page"""
        return render_template("index.html", page=render_page(controller.state, engine_config.model))

    @app.route("/api/state")
    def get_state():
        state = controller.state
        return jsonify(
            {
                "success": True,
                "state": state.model_dump(mode="json"),
                "view": render_page(state, engine_config.model),
            }
        )

    @app.route("/api/options")
    def get_options():
        return jsonify(
            {
                "success": True,
                "styles": [s.value for s in ArtStyle],
                "aspect_ratios": [r.value for r in AspectRatio],
                "model": engine_config.model,
            }
        )

    @app.route("/api/prompt", methods=["POST"])
    def update_prompt():
        data = _payload()
        if "prompt" not in data:
            return _error("Prompt is required", 400)
        controller.update_prompt(str(data.get("prompt") or ""))
        return state_response()

    @app.route("/api/style", methods=["POST"])
    def update_style():
        try:
            controller.update_style(ArtStyle(_payload().get("style")))
        except ValueError:
            return _error(f"Style must be one of: {', '.join(s.value for s in ArtStyle)}", 400)
        return state_response()

    @app.route("/api/aspect-ratio", methods=["POST"])
    def update_aspect_ratio():
        try:
            controller.update_aspect_ratio(AspectRatio(_payload().get("aspect_ratio")))
        except ValueError:
            return _error(
                f"Aspect ratio must be one of: {', '.join(r.value for r in AspectRatio)}", 400
            )
        return state_response()

    @app.route("/api/source-image", methods=["POST"])
    def set_source_image():
        upload = request.files.get("image")
        if upload is not None and upload.filename:
            if not (upload.mimetype or "").startswith("image/"):
                return _error("An image file or image data URL is required", 400)
            image = file_to_data_url(
                upload.read(), filename=upload.filename, mime_type=upload.mimetype or None
            )
        else:
            image = _payload().get("image")
            if not image or not str(image).startswith("data:image/"):
                return _error("An image file or image data URL is required", 400)
        controller.set_source_image(image)
        return state_response()

    @app.route("/api/source-image", methods=["DELETE"])
    @app.route("/api/source-image/clear", methods=["POST"])
    def clear_source_image():
        controller.set_source_image(None)
        return state_response()

    @app.route("/api/generate", methods=["POST"])
    def generate_image():
        """Apply any submitted fields, then run one generation request"""
        try:
            apply_fields(_payload())
        except ValueError as e:
            return _error(str(e), 400)
        runner.run(controller.submit())
        return state_response()

    @app.route("/api/download")
    def download_image():
        download = controller.download()
        if download is None:
            return _error("No image has been generated yet", 404)
        data_url, filename = download
        try:
            image_bytes = decode_data_url(data_url)
        except (binascii.Error, ValueError) as e:
            return _error(f"Stored image could not be decoded: {e}", 500)
        return Response(
            image_bytes,
            mimetype=split_data_url(data_url).mime_type,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.errorhandler(404)
    def not_found(error):
        return _error("Endpoint not found", 404)

    @app.errorhandler(413)
    def too_large(error):
        return _error("Uploaded file is too large", 413)

    @app.errorhandler(500)
    def internal_error(error):
        return _error("Internal server error", 500)

    return app


def run(host: Optional[str] = None, port: Optional[int] = None, engine: Optional[str] = None):
    settings = get_settings()
    app = create_app(settings, engine=engine)
    host = host or settings.host
    port = port or settings.port
    logger.info(f"Available engines: {list(settings.engines.keys())}")
    logger.info(f"Web interface will be available at: http://{host}:{port}")
    app.run(host=host, port=port, threaded=True)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
