"""Pydantic models for studio state, image assets, and API payloads."""

import base64
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

AspectRatio = Literal["original", "1:1", "9:16", "4:5"]
ASPECT_RATIOS = ("original", "1:1", "9:16", "4:5")
PNG_DATA_URL_PREFIX = "data:image/png;base64,"


class ImageAsset(BaseModel):
    """An image held as a base64 data URL together with its declared MIME type."""

    data_url: str = Field(alias="dataUrl")
    mime_type: str = Field(alias="mimeType")

    model_config = {"populate_by_name": True, "frozen": True}

    @classmethod
    def from_data_url(cls, data_url: str) -> "ImageAsset":
        """Build an asset, reading the MIME type from the ``data:<mime>;`` segment."""
        mime_type = data_url[data_url.find(":") + 1 : data_url.find(";")]
        return cls(data_url=data_url, mime_type=mime_type)

    @property
    def payload(self) -> str:
        """Base64 text after the first comma of the data URL."""
        return self.data_url.split(",", 1)[1]

    def to_bytes(self) -> bytes:
        """Decode the payload back to the raw image bytes."""
        return base64.b64decode(self.payload)


class StudioState(BaseModel):
    """Immutable snapshot of everything the page renders."""

    original_image: Optional[ImageAsset] = Field(default=None, alias="originalImage")
    edited_image: Optional[str] = Field(default=None, alias="editedImage")
    prompt: str = ""
    aspect_ratio: AspectRatio = Field(default="original", alias="aspectRatio")
    is_loading: bool = Field(default=True, alias="isLoading")
    error: Optional[str] = None

    model_config = {"populate_by_name": True, "frozen": True}


class AspectOption(BaseModel):
    """Selectable aspect ratio with its display label."""

    key: AspectRatio
    label: str


class OptionsResponse(BaseModel):
    """Static choices a client needs to render the controls."""

    aspect_ratios: List[AspectOption] = Field(alias="aspectRatios")
    default_prompt: str = Field(alias="defaultPrompt")
    accepted_types: List[str] = Field(alias="acceptedTypes")
    max_upload_bytes: int = Field(alias="maxUploadBytes")

    model_config = {"populate_by_name": True}


class PromptRequest(BaseModel):
    """Replace the prompt text. Emptiness is checked only at generate time."""

    prompt: str


class AspectRatioRequest(BaseModel):
    """Select an aspect ratio; unknown values fail validation."""

    aspect_ratio: AspectRatio = Field(alias="aspectRatio")

    model_config = {
        "populate_by_name": True,
        "str_strip_whitespace": True,
        "extra": "ignore",
    }

    @field_validator("aspect_ratio", mode="before")
    def normalize_ratio(cls, value):
        """Accept ``Original`` and friends by lower-casing the key."""
        if isinstance(value, str):
            return value.strip().lower()
        return value
