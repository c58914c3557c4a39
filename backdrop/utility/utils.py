"""Shared helpers for settings, prompt assembly, and image byte conversion."""

import io
import base64
import yaml
from PIL import Image, UnidentifiedImageError
from functools import lru_cache
from typing import Dict, Any, Optional
from backdrop.utility.path_finder import Finder

DEFAULT_MIME = "application/octet-stream"


@lru_cache(maxsize=1)
def _read_settings_file(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class Helper:
    """Reusable helpers used by the codec, the editor, and the controller.

    Loads ``settings.yml``, builds the effective prompt, and converts
    between PIL images, raw bytes, and base64 text.
    """

    def __init__(self):
        self.path = Finder()

    def load_settings(self, key: Optional[str] = None) -> Any:
        """Return the parsed settings mapping, or a single top-level entry."""
        data = _read_settings_file(str(self.path.get_directory("settings")))
        if key is None:
            return data
        if key not in data:
            raise KeyError(f"Setting '{key}' missing in settings.yml")
        return data[key]

    def build_prompt(self, prompt: str, aspect_ratio: str, clause: str) -> str:
        """Append the aspect-ratio clause unless the original ratio is kept."""
        if aspect_ratio == "original":
            return prompt
        return f"{prompt.strip()} {clause.format(ratio=aspect_ratio)}"

    def sniff_mime(self, data: bytes) -> Optional[str]:
        """Detect an image MIME type from the bytes with Pillow, if possible."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                return Image.MIME.get(img.format or "")
        except (UnidentifiedImageError, OSError):
            return None

    def clean_content_type(self, value: Optional[str]) -> Optional[str]:
        """Drop parameters such as ``; charset=...`` from a Content-Type header."""
        if not value:
            return None
        return value.split(";", 1)[0].strip().lower() or None

    def ensure_mode_rgba(self, img: Image.Image) -> Image.Image:
        """Convert any mode (RGB, P, CMYK, ...) to RGBA."""
        if img.mode != "RGBA":
            return img.convert("RGBA")
        return img

    def to_png_bytes(self, data: bytes) -> bytes:
        """Re-encode arbitrary image bytes as RGBA PNG."""
        with Image.open(io.BytesIO(data)) as img:
            buf = io.BytesIO()
            self.ensure_mode_rgba(img).save(buf, format="PNG", optimize=True)
            return buf.getvalue()

    def b64_encode(self, data: bytes) -> str:
        return base64.b64encode(data).decode("utf-8")

    def b64_decode(self, text: str) -> bytes:
        return base64.b64decode(text)
