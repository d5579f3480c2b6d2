"""Data models and schemas for the image variation service."""

from .schemas import (
    ReferenceImage,
    EditRequest,
    RawResponse,
    GeneratedImage,
    GenerationResult,
    ViewerState,
    MAX_REFERENCE_IMAGES,
)
from .enums import (
    GenerationStatus,
    AspectRatio,
    NavigatorEvent,
    ViewerKey,
)

__all__ = [
    "ReferenceImage",
    "EditRequest",
    "RawResponse",
    "GeneratedImage",
    "GenerationResult",
    "ViewerState",
    "MAX_REFERENCE_IMAGES",
    "GenerationStatus",
    "AspectRatio",
    "NavigatorEvent",
    "ViewerKey",
]
