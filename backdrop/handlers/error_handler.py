"""Studio error taxonomy and mapping of provider SDK failures to it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from openai import (
    APIError,
    RateLimitError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    APIConnectionError,
)
from google.api_core.exceptions import (
    GoogleAPIError,
    DeadlineExceeded,
    ResourceExhausted,
    InvalidArgument,
    PermissionDenied,
)
from backdrop.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)


class StudioError(Exception):
    """Base class for failures raised inside a studio workflow."""

    error_type = "studio_error"
    status_code = 400


class ReadError(StudioError):
    """A local image file could not be read."""

    error_type = "read_error"


class FetchError(StudioError):
    """A remote image could not be fetched."""

    error_type = "fetch_error"
    status_code = 502


class ValidationError(StudioError):
    """Generate was requested without an image or without a prompt."""

    error_type = "validation_error"
    status_code = 422


@dataclass(eq=False)
class GenerationError(Exception):
    """
    Base error for every image-provider failure (Gemini, OpenAI, mock).
    ``message`` is what ends up after "Generation failed: " in the UI.
    """

    provider: str
    message: str
    status_code: int = 500
    error_type: str = "provider_error"
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message


class OpenAIGenerationError(GenerationError):
    """Failure reported by, or while talking to, the OpenAI edits endpoint."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_type: str = "openai_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            provider="openai",
            message=message,
            status_code=status_code,
            error_type=error_type,
            details=details,
        )


class GeminiGenerationError(GenerationError):
    """Failure reported by, or while talking to, Gemini."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_type: str = "gemini_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            provider="gemini",
            message=message,
            status_code=status_code,
            error_type=error_type,
            details=details,
        )


class MapExceptions:
    """Translate provider SDK exceptions into GenerationError subclasses.

    Also registers the FastAPI handlers that render studio errors as JSON.
    """

    def map_openai_exception(self, exc: Exception) -> OpenAIGenerationError:
        """Map a low-level OpenAI/requests failure to an OpenAIGenerationError."""
        logger.error("OpenAI error during image edit", exc_info=exc)

        if isinstance(exc, GenerationError):
            return exc
        if isinstance(exc, RateLimitError):
            return OpenAIGenerationError(
                message="OpenAI rate limit reached. Please try again in a moment.",
                status_code=429,
                error_type="rate_limit",
            )
        if isinstance(exc, APITimeoutError):
            return OpenAIGenerationError(
                message="OpenAI timed out while editing the image.",
                status_code=504,
                error_type="timeout",
            )
        if isinstance(exc, AuthenticationError):
            return OpenAIGenerationError(
                message="Authentication with OpenAI failed. Check API key configuration.",
                status_code=401,
                error_type="auth_error",
            )
        if isinstance(exc, BadRequestError):
            return OpenAIGenerationError(
                message="Invalid request sent to OpenAI. Please verify your prompt or image.",
                status_code=400,
                error_type="bad_request",
            )
        if isinstance(exc, APIConnectionError):
            return OpenAIGenerationError(
                message="Could not connect to OpenAI. Please check network or OpenAI status.",
                status_code=503,
                error_type="connection_error",
            )
        if isinstance(exc, APIError):
            return OpenAIGenerationError(
                message="OpenAI encountered an internal error while editing the image.",
                status_code=502,
                error_type="api_error",
            )

        return OpenAIGenerationError(
            message=f"An unexpected error occurred while editing the image with OpenAI: {exc}",
            status_code=500,
            error_type="unknown_error",
            details={"exception_type": exc.__class__.__name__},
        )

    def map_gemini_exception(self, exc: Exception) -> GeminiGenerationError:
        """Map a low-level Gemini / Google failure to a GeminiGenerationError."""
        logger.error("Gemini error during image edit", exc_info=exc)

        if isinstance(exc, GenerationError):
            return exc
        if isinstance(exc, ResourceExhausted):
            return GeminiGenerationError(
                message="Gemini usage limits reached. Please try again later.",
                status_code=429,
                error_type="rate_limit",
            )
        if isinstance(exc, DeadlineExceeded):
            return GeminiGenerationError(
                message="Gemini timed out while editing the image.",
                status_code=504,
                error_type="timeout",
            )
        if isinstance(exc, InvalidArgument):
            return GeminiGenerationError(
                message="Invalid request sent to Gemini. Please verify your prompt or image.",
                status_code=400,
                error_type="bad_request",
            )
        if isinstance(exc, PermissionDenied):
            return GeminiGenerationError(
                message="Access denied when calling Gemini. Check credentials or project permissions.",
                status_code=403,
                error_type="permission_denied",
            )
        if isinstance(exc, GoogleAPIError):
            return GeminiGenerationError(
                message="Gemini encountered an internal error while editing the image.",
                status_code=502,
                error_type="api_error",
            )

        return GeminiGenerationError(
            message=f"An unexpected error occurred while editing the image with Gemini: {exc}",
            status_code=500,
            error_type="unknown_error",
            details={"exception_type": exc.__class__.__name__},
        )

    @staticmethod
    def register_exception_handlers(app: FastAPI) -> None:
        """
        Install JSON handlers for errors that escape a route:

            app = FastAPI()
            MapExceptions.register_exception_handlers(app)
        """

        @app.exception_handler(GenerationError)
        async def generation_error_handler(
            request: Request, exc: GenerationError
        ) -> JSONResponse:
            logger.error(
                "GenerationError caught by FastAPI handler",
                extra={"provider": exc.provider, "type": exc.error_type},
            )
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "status": "error",
                    "provider": exc.provider,
                    "error_type": exc.error_type,
                    "message": exc.message,
                    "details": exc.details,
                },
            )

        @app.exception_handler(StudioError)
        async def studio_error_handler(
            request: Request, exc: StudioError
        ) -> JSONResponse:
            logger.error(f"StudioError caught by FastAPI handler: {exc}")
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "status": "error",
                    "provider": None,
                    "error_type": exc.error_type,
                    "message": str(exc),
                    "details": None,
                },
            )
