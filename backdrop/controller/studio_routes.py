"""API routes exposing studio state and the upload/generate workflows."""

import io
import traceback
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import StreamingResponse

from backdrop.controller.studio import StudioController
from backdrop.models.studio import (
    AspectOption,
    AspectRatioRequest,
    OptionsResponse,
    PromptRequest,
    StudioState,
)
from backdrop.services.edit_service.main import ImageEditing
from backdrop.utility.utils import Helper
from backdrop.utility.logger import AppLogger

router = APIRouter(prefix="/api/studio", tags=["Studio"])
logger = AppLogger.get_logger(__name__)

DOWNLOAD_FILENAME = "edited-image.png"


@lru_cache(maxsize=1)
def get_controller() -> StudioController:
    """Process-wide controller; the studio is single-user by design."""
    return StudioController(client=ImageEditing.get_generation_client())


@router.get("/state", response_model=StudioState)
async def get_state(
    controller: StudioController = Depends(get_controller),
) -> StudioState:
    """Return the current page state."""
    return controller.state


@router.get("/options", response_model=OptionsResponse)
async def get_options() -> OptionsResponse:
    """Return aspect-ratio choices, the default prompt, and upload hints."""
    try:
        helper = Helper()
        upload = helper.load_settings("UPLOAD")
        return OptionsResponse(
            aspect_ratios=[
                AspectOption(**item) for item in helper.load_settings("ASPECT_RATIOS")
            ],
            default_prompt=helper.load_settings("DEFAULT_PROMPT"),
            accepted_types=upload.get("accepted_types", []),
            max_upload_bytes=upload.get("max_bytes", 0),
        )
    except Exception as e:
        logger.error(f"Exception Occurred : {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        )


@router.put("/prompt", response_model=StudioState)
async def set_prompt(
    payload: PromptRequest,
    controller: StudioController = Depends(get_controller),
) -> StudioState:
    """Replace the prompt text."""
    return controller.set_prompt(payload.prompt)


@router.put("/aspect-ratio", response_model=StudioState)
async def set_aspect_ratio(
    payload: AspectRatioRequest,
    controller: StudioController = Depends(get_controller),
) -> StudioState:
    """Select the aspect ratio used when building the prompt."""
    return controller.set_aspect_ratio(payload.aspect_ratio)


@router.post("/upload", response_model=StudioState)
async def upload_image(
    file: UploadFile = File(...),
    controller: StudioController = Depends(get_controller),
) -> StudioState:
    """Run the upload workflow on the posted file."""
    logger.info(f"Received upload: {file.filename} ({file.content_type})")
    try:
        return await controller.upload(file.file, file.content_type)
    finally:
        await file.close()


@router.post("/generate", response_model=StudioState)
async def generate(
    controller: StudioController = Depends(get_controller),
) -> StudioState:
    """Run the generate workflow; failures are reported in ``error``."""
    return await controller.generate()


@router.get("/download")
async def download_image(
    controller: StudioController = Depends(get_controller),
) -> Any:
    """Download the edited image as ``edited-image.png``."""
    edited = controller.state.edited_image
    if not edited:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No edited image available yet.",
        )
    try:
        raw_bytes = Helper().b64_decode(edited.split(",", 1)[1])
    except Exception as e:
        logger.error(f"Exception occurred while downloading : {e}")
        traceback.print_exc()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        ) from e
    return StreamingResponse(
        io.BytesIO(raw_bytes),
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{DOWNLOAD_FILENAME}"'},
    )
