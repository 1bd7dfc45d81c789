import base64
import binascii
import io
import logging
import mimetypes
import re
import time
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from nanobanana.models import ArtStyle, SourceImage

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"
_MIME_RE = re.compile(r":(.*?);")


def build_prompt(prompt: str, style: Optional[Union[ArtStyle, str]]) -> str:
    """Appends the style clause to the prompt unless no style is selected."""
    style_value = style.value if isinstance(style, ArtStyle) else style
    if not style_value or style_value == ArtStyle.NONE.value:
        return prompt
    return f"{prompt}, in the style of {style_value}, high quality, detailed"


def split_data_url(data_url: str) -> SourceImage:
    """Splits a data URL into its mime type and encoded payload."""
    header, _, payload = data_url.partition(",")
    match = _MIME_RE.search(header)
    mime_type = match.group(1) if match and match.group(1) else DEFAULT_MIME_TYPE
    return SourceImage(mime_type=mime_type, data=payload)


def to_data_url(mime_type: Optional[str], data: Union[bytes, str]) -> str:
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("utf-8")
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{data}"


def decode_data_url(data_url: str) -> bytes:
    return base64.b64decode(split_data_url(data_url).data)


def file_to_data_url(content: bytes, filename: Optional[str] = None,
                     mime_type: Optional[str] = None) -> str:
    """Encodes an uploaded image file the way a browser FileReader would."""
    if not mime_type and filename:
        mime_type = mimetypes.guess_type(filename)[0]
    return to_data_url(mime_type or DEFAULT_MIME_TYPE, content)


def read_image_file(path: Path) -> str:
    return file_to_data_url(path.read_bytes(), filename=path.name)


def generate_download_filename(product_name: str = "nanobanana",
                               timestamp_ms: Optional[int] = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{product_name}-{timestamp_ms}.png"


def save_image_from_data_url(data_url: str, output_path: Path) -> Optional[Path]:
    try:
        image_bytes = decode_data_url(data_url)
    except (binascii.Error, ValueError) as e:
        logger.error(f"Error decoding image data URL: {e}")
        return None
    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.save(output_path)
        logger.info(f"Image saved to {output_path}")
        return output_path
    except (OSError, ValueError) as e:
        logger.error(f"Failed to process and save image to {output_path}: {e}")
        return None
