"""Dependency factory for the generation client."""

from functools import lru_cache

from backdrop.services.edit_service.editor import GenerationClient


class ImageEditing:
    """Keeps FastAPI dependency wiring for the generation backend in one place."""

    @staticmethod
    @lru_cache(maxsize=1)
    def get_generation_client() -> GenerationClient:
        """Provide the process-wide generation client."""
        return GenerationClient()
