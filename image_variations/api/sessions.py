"""Session endpoints: submissions, downloads and the result viewer."""

from typing import List
from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from ..core.session import FAILURE_MESSAGE, SessionRegistry, VariationSession
from ..models.enums import AspectRatio
from ..models.schemas import (
    MAX_REFERENCE_IMAGES,
    EditRequest,
    ReferenceImage,
    ViewerState,
)
from ..utils.errors import (
    AllGenerationsFailed,
    ConfigurationError,
    ImageProcessingError,
    SessionNotFound,
    StaleResultError,
    ValidationError,
)
from ..utils.images import dedupe_by_identity
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

# Upload slots accepted per request before dedupe and the reference cap
MAX_UPLOADS = 4 * MAX_REFERENCE_IMAGES


class EditRequestPayload(BaseModel):
    """Edit request as sent by the upload form; images are base64 or data URLs."""
    images: List[str] = Field(default_factory=list, max_length=MAX_UPLOADS)
    subject_description: str = ""
    scene_description: str = ""
    background_removal: bool = False
    target_width: int = Field(default=0, ge=0)
    target_height: int = Field(default=0, ge=0)
    aspect_ratio: AspectRatio = AspectRatio.VERTICAL

    def to_edit_request(self, max_images: int = MAX_REFERENCE_IMAGES) -> EditRequest:
        """
        Decode, drop duplicates and keep the first `max_images` uploads.

        Uploads after the cap is reached are never decoded.
        """
        decoded = (ReferenceImage.from_encoded(value) for value in self.images)
        unique = dedupe_by_identity(decoded, limit=max_images, content=lambda image: image.data)

        if len(unique) < len(self.images):
            logger.warning(
                "Reference images trimmed",
                extra={
                    "received": len(self.images),
                    "kept": len(unique),
                    "max_images": max_images,
                }
            )

        return EditRequest(
            reference_images=unique,
            subject_description=self.subject_description,
            scene_description=self.scene_description,
            background_removal=self.background_removal,
            target_width=self.target_width,
            target_height=self.target_height,
            aspect_ratio=self.aspect_ratio,
        )


class SessionCreated(BaseModel):
    session_id: str


class KeyPayload(BaseModel):
    key: str


class SwipePayload(BaseModel):
    start_x: float
    end_x: float


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_session(request: Request, session_id: str) -> VariationSession:
    try:
        return get_registry(request).get(session_id)
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=SessionCreated, status_code=201)
async def create_session(request: Request):
    session = get_registry(request).create()
    return SessionCreated(session_id=session.session_id)


@router.delete("/{session_id}", status_code=204)
async def drop_session(request: Request, session_id: str):
    try:
        get_registry(request).drop(session_id)
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(status_code=204)


@router.post("/{session_id}/generate")
async def generate(request: Request, session_id: str, payload: EditRequestPayload):
    """
    Generate variations for the session.

    Returns the (possibly partial) result set. No images uploaded → 400;
    missing credential → 503; nothing generated → 502; superseded by a newer
    submission → 409.
    """
    session = get_session(request, session_id)
    max_images = request.app.state.config.generation.max_reference_images

    try:
        edit_request = payload.to_edit_request(max_images)
    except (ImageProcessingError, PydanticValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        result = await session.submit(edit_request)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConfigurationError:
        raise HTTPException(status_code=503, detail=FAILURE_MESSAGE)
    except AllGenerationsFailed:
        raise HTTPException(status_code=502, detail=FAILURE_MESSAGE)
    except StaleResultError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return result.model_dump(mode="json")


@router.get("/{session_id}/result")
async def current_result(request: Request, session_id: str):
    result = get_session(request, session_id).result
    return result.model_dump(mode="json") if result else None


@router.get("/{session_id}/images/archive")
async def download_all(request: Request, session_id: str):
    session = get_session(request, session_id)
    try:
        filename, archive = session.download_all()
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(
        content=archive,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{session_id}/images/{index}")
async def download_image(request: Request, session_id: str, index: int):
    session = get_session(request, session_id)
    try:
        image = session.download(index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(
        content=image.image_bytes,
        media_type=image.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{image.filename}"'},
    )


# Viewer

@router.get("/{session_id}/viewer", response_model=ViewerState)
async def viewer_state(request: Request, session_id: str):
    return get_session(request, session_id).viewer_state()


@router.post("/{session_id}/viewer/select/{index}", response_model=ViewerState)
async def viewer_select(request: Request, session_id: str, index: int):
    session = get_session(request, session_id)
    try:
        return session.select(index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{session_id}/viewer/next", response_model=ViewerState)
async def viewer_next(request: Request, session_id: str):
    return get_session(request, session_id).navigate("next")


@router.post("/{session_id}/viewer/prev", response_model=ViewerState)
async def viewer_prev(request: Request, session_id: str):
    return get_session(request, session_id).navigate("prev")


@router.post("/{session_id}/viewer/close", response_model=ViewerState)
async def viewer_close(request: Request, session_id: str):
    return get_session(request, session_id).dismiss()


@router.post("/{session_id}/viewer/key", response_model=ViewerState)
async def viewer_key(request: Request, session_id: str, payload: KeyPayload):
    return get_session(request, session_id).navigate("handle_key", payload.key)


@router.post("/{session_id}/viewer/swipe", response_model=ViewerState)
async def viewer_swipe(request: Request, session_id: str, payload: SwipePayload):
    return get_session(request, session_id).navigate("swipe", payload.start_x, payload.end_x)
