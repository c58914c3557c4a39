"""Tests for mapping provider exceptions to studio errors and JSON handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backdrop.handlers.error_handler import (
    MapExceptions,
    GenerationError,
    OpenAIGenerationError,
    GeminiGenerationError,
    FetchError,
    ReadError,
    StudioError,
    ValidationError,
)

from openai import (  # type: ignore
    APIError,
    RateLimitError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    APIConnectionError,
)
from google.api_core.exceptions import (  # type: ignore
    GoogleAPIError,
    DeadlineExceeded,
    ResourceExhausted,
    InvalidArgument,
    PermissionDenied,
)


class TestErrorBasics:
    def test_generation_error_str_is_the_message(self):
        err = GenerationError(
            provider="test_provider",
            message="Something went wrong",
            status_code=500,
            error_type="test_error",
            details={"foo": "bar"},
        )
        assert str(err) == "Something went wrong"

    def test_taxonomy(self):
        for cls in (ReadError, FetchError, ValidationError):
            assert issubclass(cls, StudioError)
        assert issubclass(GeminiGenerationError, GenerationError)
        assert issubclass(OpenAIGenerationError, GenerationError)

    def test_already_mapped_errors_pass_through(self):
        mapper = MapExceptions()
        err = GeminiGenerationError(message="no key", error_type="key_error")
        assert mapper.map_gemini_exception(err) is err


class TestMapOpenAIExceptions:
    def setup_method(self):
        self.mapper = MapExceptions()
        from httpx import Request, Response

        self._req = Request("POST", "https://example.com/v1/images/edits")
        self._resp = Response(status_code=400, request=self._req)

    def test_rate_limit_error(self):
        exc = RateLimitError(message="rate limited", response=self._resp, body=None)
        mapped = self.mapper.map_openai_exception(exc)

        assert isinstance(mapped, OpenAIGenerationError)
        assert mapped.status_code == 429
        assert mapped.error_type == "rate_limit"
        assert "rate limit" in mapped.message.lower()

    def test_timeout_error(self):
        mapped = self.mapper.map_openai_exception(APITimeoutError(self._req))

        assert mapped.status_code == 504
        assert mapped.error_type == "timeout"
        assert "timed out" in mapped.message.lower()

    def test_authentication_error(self):
        exc = AuthenticationError(message="bad key", response=self._resp, body=None)
        mapped = self.mapper.map_openai_exception(exc)

        assert mapped.status_code == 401
        assert mapped.error_type == "auth_error"

    def test_bad_request_error(self):
        exc = BadRequestError(message="bad request", response=self._resp, body=None)
        mapped = self.mapper.map_openai_exception(exc)

        assert mapped.status_code == 400
        assert mapped.error_type == "bad_request"
        assert "invalid request" in mapped.message.lower()

    def test_connection_error(self):
        exc = APIConnectionError(message="connection issue", request=self._req)
        mapped = self.mapper.map_openai_exception(exc)

        assert mapped.status_code == 503
        assert mapped.error_type == "connection_error"

    def test_generic_api_error(self):
        exc = APIError(message="generic api issue", body=None, request=self._req)
        mapped = self.mapper.map_openai_exception(exc)

        assert mapped.status_code == 502
        assert mapped.error_type == "api_error"

    def test_unknown_exception_keeps_its_text(self):
        class CustomException(Exception):
            pass

        mapped = self.mapper.map_openai_exception(CustomException("something else"))

        assert mapped.status_code == 500
        assert mapped.error_type == "unknown_error"
        assert "something else" in mapped.message
        assert mapped.details["exception_type"] == "CustomException"


class TestMapGeminiExceptions:
    def setup_method(self):
        self.mapper = MapExceptions()

    @pytest.mark.parametrize(
        "exc, status_code, error_type",
        [
            (ResourceExhausted("quota exceeded"), 429, "rate_limit"),
            (DeadlineExceeded("deadline"), 504, "timeout"),
            (InvalidArgument("bad arg"), 400, "bad_request"),
            (PermissionDenied("denied"), 403, "permission_denied"),
            (GoogleAPIError("google api error"), 502, "api_error"),
        ],
    )
    def test_google_exceptions(self, exc, status_code, error_type):
        mapped = self.mapper.map_gemini_exception(exc)

        assert isinstance(mapped, GeminiGenerationError)
        assert mapped.provider == "gemini"
        assert mapped.status_code == status_code
        assert mapped.error_type == error_type

    def test_unknown_exception(self):
        class CustomException(Exception):
            pass

        mapped = self.mapper.map_gemini_exception(CustomException("some other issue"))

        assert mapped.status_code == 500
        assert mapped.error_type == "unknown_error"
        assert "some other issue" in mapped.message
        assert mapped.details["exception_type"] == "CustomException"


def create_test_app():
    app = FastAPI()
    MapExceptions.register_exception_handlers(app)

    @app.get("/raise-gemini")
    async def raise_gemini():
        raise GeminiGenerationError(
            message="Simulated Gemini failure",
            status_code=400,
            error_type="bad_request",
            details={"foo": "bar"},
        )

    @app.get("/raise-validation")
    async def raise_validation():
        raise ValidationError("Please upload an image and provide a prompt.")

    return app


class TestFastAPIExceptionHandler:
    def setup_method(self):
        self.client = TestClient(create_test_app())

    def test_generation_error_response_shape(self):
        resp = self.client.get("/raise-gemini")
        assert resp.status_code == 400

        data = resp.json()
        assert data["status"] == "error"
        assert data["provider"] == "gemini"
        assert data["error_type"] == "bad_request"
        assert data["message"] == "Simulated Gemini failure"
        assert data["details"] == {"foo": "bar"}

    def test_studio_error_response_shape(self):
        resp = self.client.get("/raise-validation")
        assert resp.status_code == 422

        data = resp.json()
        assert data["status"] == "error"
        assert data["error_type"] == "validation_error"
        assert data["message"] == "Please upload an image and provide a prompt."
