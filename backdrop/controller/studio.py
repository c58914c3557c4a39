"""State store and workflows (initial load, upload, generate) for the studio page."""

from typing import Any, Optional

from backdrop.models.studio import (
    ASPECT_RATIOS,
    PNG_DATA_URL_PREFIX,
    StudioState,
)
from backdrop.services.edit_service.editor import GenerationClient
from backdrop.utility.codec import FileSource, ImageCodec
from backdrop.utility.utils import Helper
from backdrop.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)

INITIAL_LOAD_ERROR = (
    "Could not load the initial example image. Please try uploading your own."
)
READ_ERROR = "Failed to read the image file."
VALIDATION_ERROR = "Please upload an image and provide a prompt."
GENERATION_ERROR_PREFIX = "Generation failed: "
UNKNOWN_ERROR = "An unknown error occurred."


class StateStore:
    """
    Holds the current StudioState and replaces it wholesale on every change.

    Each workflow takes a ticket from a monotonically increasing counter when
    it starts. Only the holder of the latest ticket may commit results, set
    the error, or clear the loading flag; older workflows that finish late
    are dropped.
    """

    def __init__(self, state: StudioState):
        self._state = state
        self._ticket = 0

    @property
    def state(self) -> StudioState:
        return self._state

    @property
    def ticket(self) -> int:
        return self._ticket

    def update(self, **changes: Any) -> StudioState:
        """Apply a synchronous transition outside any workflow."""
        self._state = self._state.model_copy(update=changes)
        return self._state

    def begin(self, **changes: Any) -> int:
        """Start a workflow: clear the error, set loading, apply ``changes``."""
        self._ticket += 1
        self.update(error=None, is_loading=True, **changes)
        return self._ticket

    def is_current(self, ticket: int) -> bool:
        return ticket == self._ticket

    def commit(self, ticket: int, **changes: Any) -> bool:
        """Apply ``changes`` if ``ticket`` still belongs to the latest workflow."""
        if not self.is_current(ticket):
            logger.debug(f"Dropping stale result of workflow {ticket} (latest {self._ticket})")
            return False
        self.update(**changes)
        return True

    def finish(self, ticket: int) -> None:
        """Clear the loading flag if ``ticket`` is still the latest workflow."""
        self.commit(ticket, is_loading=False)


class StudioController:
    """Drives the page state through load, upload, and generate workflows.

    Every workflow has the same shape: clear error and set loading, await
    the I/O step, commit data or an error message, then clear loading.
    Failures never propagate; they end up as ``state.error``.
    """

    def __init__(
        self,
        codec: Optional[ImageCodec] = None,
        client: Optional[GenerationClient] = None,
    ):
        self.utility = Helper()
        self.codec = codec or ImageCodec()
        self.client = client or GenerationClient()
        self.example_image_url = self.utility.load_settings("EXAMPLE_IMAGE_URL")
        self.aspect_clause = self.utility.load_settings("ASPECT_RATIO_CLAUSE")
        self.store = StateStore(
            StudioState(prompt=self.utility.load_settings("DEFAULT_PROMPT"))
        )

    @property
    def state(self) -> StudioState:
        return self.store.state

    def set_prompt(self, prompt: str) -> StudioState:
        return self.store.update(prompt=prompt)

    def set_aspect_ratio(self, aspect_ratio: str) -> StudioState:
        if aspect_ratio not in ASPECT_RATIOS:
            raise ValueError(f"Unknown aspect ratio '{aspect_ratio}'.")
        return self.store.update(aspect_ratio=aspect_ratio)

    async def load_initial(self) -> StudioState:
        """Fetch the bundled example image; failure only asks for an upload."""
        ticket = self.store.begin()
        try:
            asset = await self.codec.encode_from_url(self.example_image_url)
            self.store.commit(ticket, original_image=asset, error=None)
        except Exception as e:
            logger.error(f"Failed to load initial image: {e}")
            self.store.commit(ticket, error=INITIAL_LOAD_ERROR)
        finally:
            self.store.finish(ticket)
        return self.state

    async def upload(
        self, file: FileSource, content_type: Optional[str] = None
    ) -> StudioState:
        """Replace the original image; any previous edit is discarded up front."""
        ticket = self.store.begin(edited_image=None)
        try:
            asset = await self.codec.encode_file(file, content_type)
            self.store.commit(ticket, original_image=asset, error=None)
        except Exception as e:
            logger.error(f"Upload failed: {e}")
            self.store.commit(ticket, error=READ_ERROR)
        finally:
            self.store.finish(ticket)
        return self.state

    def build_prompt(self) -> str:
        """Prompt sent to the provider, with the aspect-ratio clause when needed."""
        return self.utility.build_prompt(
            self.state.prompt, self.state.aspect_ratio, self.aspect_clause
        )

    async def generate(self) -> StudioState:
        """Send the original image and prompt to the provider and store the result."""
        original = self.state.original_image
        if original is None or not self.state.prompt:
            logger.warning("Generate requested without an image or a prompt")
            self.store.update(error=VALIDATION_ERROR)
            return self.state

        final_prompt = self.build_prompt()
        ticket = self.store.begin(edited_image=None)
        try:
            result_b64 = await self.client.generate(
                original.payload, original.mime_type, final_prompt
            )
            self.store.commit(
                ticket, edited_image=f"{PNG_DATA_URL_PREFIX}{result_b64}", error=None
            )
        except Exception as e:
            logger.error(f"Generation failed: {e}")
            message = str(e) or UNKNOWN_ERROR
            self.store.commit(ticket, error=f"{GENERATION_ERROR_PREFIX}{message}")
        finally:
            self.store.finish(ticket)
        return self.state
