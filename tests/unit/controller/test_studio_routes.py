"""HTTP-level tests for the studio router with provider and network faked out."""

import io
import base64

from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image

from backdrop.controller.studio import StudioController, VALIDATION_ERROR
from backdrop.controller.studio_routes import router, get_controller
from backdrop.handlers.error_handler import MapExceptions
from backdrop.utility.codec import ImageCodec


def _png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), (1, 2, 3)).save(buf, format="PNG")
    return buf.getvalue()


class RecordingClient:
    def __init__(self):
        self.calls = []

    async def generate(self, image_b64, mime_type, prompt):
        self.calls.append((image_b64, mime_type, prompt))
        return base64.b64encode(b"generated-png").decode("utf-8")


def create_test_app(controller):
    app = FastAPI()
    MapExceptions.register_exception_handlers(app)
    app.include_router(router)
    app.dependency_overrides[get_controller] = lambda: controller
    return app


class TestStudioRoutes:
    def setup_method(self):
        self.provider = RecordingClient()
        self.controller = StudioController(codec=ImageCodec(), client=self.provider)
        self.client = TestClient(create_test_app(self.controller))

    def upload(self, data=None, content_type="image/png"):
        return self.client.post(
            "/api/studio/upload",
            files={"file": ("product.png", data or _png_bytes(), content_type)},
        )

    def test_state_uses_camel_case_fields(self):
        data = self.client.get("/api/studio/state").json()
        assert data["originalImage"] is None
        assert data["editedImage"] is None
        assert data["aspectRatio"] == "original"
        assert data["isLoading"] is True

    def test_options_list_aspect_ratios(self):
        data = self.client.get("/api/studio/options").json()
        assert [o["key"] for o in data["aspectRatios"]] == ["original", "1:1", "9:16", "4:5"]
        assert data["aspectRatios"][3]["label"] == "4:5 (Portrait)"
        assert data["maxUploadBytes"] == 10 * 1024 * 1024
        assert "image/webp" in data["acceptedTypes"]

    def test_upload_then_generate_then_download(self):
        png = _png_bytes()
        state = self.upload(png).json()
        assert state["originalImage"]["mimeType"] == "image/png"
        assert state["isLoading"] is False

        self.client.put("/api/studio/prompt", json={"prompt": "on a beach"})
        self.client.put("/api/studio/aspect-ratio", json={"aspectRatio": "1:1"})
        state = self.client.post("/api/studio/generate").json()

        image_b64, mime_type, prompt = self.provider.calls[0]
        assert base64.b64decode(image_b64) == png
        assert mime_type == "image/png"
        assert prompt == (
            "on a beach Please ensure the final image composition "
            "is suitable for a 1:1 aspect ratio."
        )
        assert state["editedImage"].startswith("data:image/png;base64,")

        resp = self.client.get("/api/studio/download")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert 'filename="edited-image.png"' in resp.headers["content-disposition"]
        assert resp.content == b"generated-png"

    def test_download_before_generation_is_404(self):
        assert self.client.get("/api/studio/download").status_code == 404

    def test_generate_without_image_reports_validation_error(self):
        self.controller.store.update(is_loading=False)
        state = self.client.post("/api/studio/generate").json()

        assert state["error"] == VALIDATION_ERROR
        assert state["isLoading"] is False
        assert self.provider.calls == []

    def test_unknown_aspect_ratio_is_rejected(self):
        resp = self.client.put("/api/studio/aspect-ratio", json={"aspectRatio": "16:9"})
        assert resp.status_code == 422
        assert self.controller.state.aspect_ratio == "original"
