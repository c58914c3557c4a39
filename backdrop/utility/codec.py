"""Turn local files and remote URLs into data-URL image assets."""

import io
import asyncio
import requests
from pathlib import Path
from typing import BinaryIO, Optional, Union

from backdrop.models.studio import ImageAsset
from backdrop.handlers.error_handler import ReadError, FetchError
from backdrop.utility.utils import Helper, DEFAULT_MIME
from backdrop.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)

FileSource = Union[str, Path, BinaryIO]


class ImageCodec:
    """Encode image sources as ``data:<mime>;base64,<payload>`` assets.

    Blocking reads and HTTP calls run in a worker thread so the event
    loop stays free while a workflow is suspended on them.
    """

    def __init__(self):
        self.utility = Helper()
        upload = self.utility.load_settings("UPLOAD")
        self.accepted_types = tuple(upload.get("accepted_types", ()))
        self.max_bytes = int(upload.get("max_bytes", 0))
        self.fetch_timeout = self.utility.load_settings("FETCH_TIMEOUT")

    @staticmethod
    def _read(file: FileSource) -> bytes:
        if isinstance(file, (str, Path)):
            return Path(file).read_bytes()
        if hasattr(file, "seek"):
            file.seek(0)
        return file.read()

    def check_upload(self, data: bytes, mime_type: str) -> None:
        """Warn about oversize or unexpected files; the limits are advisory only."""
        if self.max_bytes and len(data) > self.max_bytes:
            logger.warning(
                f"Image is {len(data)} bytes, above the advertised {self.max_bytes} byte limit"
            )
        if self.accepted_types and mime_type not in self.accepted_types:
            logger.warning(f"Image type {mime_type} is not one of {self.accepted_types}")

    async def encode_file(
        self, file: FileSource, content_type: Optional[str] = None
    ) -> ImageAsset:
        """Read ``file`` and return it as an ImageAsset.

        The declared ``content_type`` wins, as it does for a browser File;
        otherwise Pillow sniffs the format.
        """
        try:
            data = await asyncio.to_thread(self._read, file)
        except Exception as e:
            logger.error(f"Could not read image file: {e}")
            raise ReadError(f"Failed to read image file: {e}") from e

        if not isinstance(data, (bytes, bytearray)):
            raise ReadError("Image file did not yield binary content.")

        mime_type = (
            self.utility.clean_content_type(content_type)
            or self.utility.sniff_mime(data)
            or DEFAULT_MIME
        )
        self.check_upload(data, mime_type)
        data_url = f"data:{mime_type};base64,{self.utility.b64_encode(bytes(data))}"
        return ImageAsset.from_data_url(data_url)

    async def encode_from_url(self, url: str) -> ImageAsset:
        """Fetch ``url`` and encode the body as if it were an uploaded file."""
        try:
            logger.info(f"Fetching image from {url}")
            resp = await asyncio.to_thread(requests.get, url, timeout=self.fetch_timeout)
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch image from {url}: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise FetchError(f"Failed to fetch image from {url}")

        synthetic = io.BytesIO(resp.content)
        synthetic.name = "initial-image.jpeg"
        return await self.encode_file(synthetic, resp.headers.get("Content-Type"))
