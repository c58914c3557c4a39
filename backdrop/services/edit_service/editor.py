"""Background-replacement calls against Gemini, OpenAI, or a local mock."""

import os
import io
import asyncio
import requests
from PIL import Image
from google import genai
from dotenv import load_dotenv
from google.genai import types
from typing import Optional

from backdrop.utility.utils import Helper
from backdrop.handlers.error_handler import (
    GenerationError,
    GeminiGenerationError,
    OpenAIGenerationError,
    MapExceptions,
)
from backdrop.utility.path_finder import Finder
from backdrop.utility.logger import AppLogger

path_finder = Finder()
env_path = path_finder.get_directory("root") / ".env"
load_dotenv(env_path)
logger = AppLogger.get_logger(__name__)

PROVIDERS = ("gemini", "openai", "mock")


class Editor:
    """Provider backends for a single image-edit request.

    Every backend takes base64 image bytes, a MIME type and a prompt, and
    returns base64 PNG bytes or raises a GenerationError.
    """

    def __init__(self):
        self.utility = Helper()
        self.exception = MapExceptions()
        self.settings = self.utility.load_settings("GENERATION")

    def read_gemini_image_part(self, part) -> Optional[bytes]:
        """
        Gemini can return inline_data (bytes) or a URI. Return raw image bytes.
        """
        if getattr(part, "inline_data", None) and getattr(
            part.inline_data, "data", None
        ):
            return part.inline_data.data
        if getattr(part, "file_data", None) and getattr(part.file_data, "file_uri", None):
            r = requests.get(part.file_data.file_uri, timeout=60)
            r.raise_for_status()
            return r.content
        return None

    def pick_openai_size_from_image(self, img: Image.Image) -> str:
        """Map the source size to a square size the edits endpoint accepts."""
        m = max(img.size)
        if m <= 256:
            return "256x256"
        if m <= 512:
            return "512x512"
        return "1024x1024"

    def edit_with_gemini(self, image_b64: str, mime_type: str, prompt: str) -> str:
        """Send prompt plus image to Gemini and return the first image part as PNG base64."""
        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise GeminiGenerationError(
                message="GEMINI_API_KEY is not set.",
                status_code=500,
                error_type="key_error",
            )
        try:
            client = genai.Client(api_key=api_key)
            logger.info("Sending edit request to Gemini")
            resp = client.models.generate_content(
                model=self.settings.get("gemini_model", "gemini-2.5-flash-image"),
                contents=[
                    prompt,
                    types.Part.from_bytes(
                        data=self.utility.b64_decode(image_b64), mime_type=mime_type
                    ),
                ],
            )

            edited_bytes = None
            for candidate in getattr(resp, "candidates", None) or []:
                content = getattr(candidate, "content", None)
                for part in getattr(content, "parts", None) or []:
                    edited_bytes = self.read_gemini_image_part(part)
                    if edited_bytes:
                        break
                if edited_bytes:
                    break

            if not edited_bytes:
                raise GeminiGenerationError(
                    message="The model did not return an image.",
                    status_code=502,
                    error_type="empty_response",
                )
            logger.info("Edit response received from Gemini")
            return self.utility.b64_encode(self.utility.to_png_bytes(edited_bytes))
        except Exception as e:
            raise self.exception.map_gemini_exception(e)

    def edit_with_openai(self, image_b64: str, mime_type: str, prompt: str) -> str:
        """Submit an edit job to the OpenAI edits endpoint and return PNG base64."""
        api_key = os.getenv("OPENAI_API_KEY")
        edit_url = os.getenv("OPENAI_EDIT_URL", "https://api.openai.com/v1/images/edits")
        if not api_key:
            raise OpenAIGenerationError(
                message="OPENAI_API_KEY is not set.",
                status_code=500,
                error_type="key_error",
            )
        try:
            src = Image.open(io.BytesIO(self.utility.b64_decode(image_b64)))
            files = {
                "image": (
                    "image.png",
                    self.utility.to_png_bytes(self.utility.b64_decode(image_b64)),
                    "image/png",
                ),
            }
            data = {
                "model": self.settings.get("openai_model", "dall-e-2"),
                "prompt": prompt,
                "size": self.pick_openai_size_from_image(src),
                "response_format": "b64_json",
            }
            logger.info("Sending edit request to OpenAI")
            resp = requests.post(
                edit_url,
                headers={"Authorization": f"Bearer {api_key}"},
                data=data,
                files=files,
                timeout=self.settings.get("timeout", 90),
            )
            if not resp.ok:
                raise OpenAIGenerationError(
                    message=f"OpenAI rejected the edit: {resp.text}",
                    status_code=resp.status_code,
                    error_type="bad_request" if resp.status_code < 500 else "api_error",
                )

            out = (resp.json().get("data") or [{}])[0]
            if out.get("b64_json"):
                edited_bytes = self.utility.b64_decode(out["b64_json"])
            elif out.get("url"):
                logger.info("Fetching edited image from URL")
                r = requests.get(out["url"], timeout=30)
                r.raise_for_status()
                edited_bytes = r.content
            else:
                raise OpenAIGenerationError(
                    message="The model did not return an image.",
                    status_code=502,
                    error_type="empty_response",
                )
            return self.utility.b64_encode(self.utility.to_png_bytes(edited_bytes))
        except Exception as e:
            raise self.exception.map_openai_exception(e)

    def edit_with_mock_image(self, image_b64: str, mime_type: str, prompt: str) -> str:
        """
        Offline stand-in for the real providers.

        Does NOT call any external API; the source image comes back as PNG so
        the page can exercise the whole generate flow locally.
        """
        logger.info("Running mock edit (no external API call).")
        try:
            return self.utility.b64_encode(
                self.utility.to_png_bytes(self.utility.b64_decode(image_b64))
            )
        except Exception as e:
            raise GenerationError(
                provider="mock",
                message=f"Mock edit failed: {e}",
                error_type="mock_error",
            ) from e


class GenerationClient:
    """
    Single entry point used by the controller. Picks the provider from
    ``RUN_MODE``/``IMAGE_PROVIDER``/settings and runs the blocking SDK call
    in a worker thread. One request per call: no retries, no streaming.
    """

    def __init__(self, provider: Optional[str] = None):
        self.editor = Editor()
        self.provider = self.resolve_provider(provider)
        logger.info(f"Generation client using provider '{self.provider}'")

    def resolve_provider(self, provider: Optional[str] = None) -> str:
        """Mock mode wins, then the explicit argument, env, and settings."""
        if os.getenv("RUN_MODE", "actual").lower() == "mock":
            return "mock"
        name = (
            provider
            or os.getenv("IMAGE_PROVIDER")
            or self.editor.settings.get("provider", "gemini")
        ).lower()
        if name not in PROVIDERS:
            raise ValueError(f"Unknown image provider '{name}'. Valid: {PROVIDERS}")
        return name

    async def generate(self, image_b64: str, mime_type: str, prompt: str) -> str:
        """Return base64 PNG bytes of the edited image."""
        if self.provider == "mock":
            backend = self.editor.edit_with_mock_image
        elif self.provider == "openai":
            backend = self.editor.edit_with_openai
        else:
            backend = self.editor.edit_with_gemini
        return await asyncio.to_thread(backend, image_b64, mime_type, prompt)
