"""Pydantic schemas for data validation."""

from typing import Any, Dict, List, Optional, Tuple
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from .enums import AspectRatio, GenerationStatus, NavigatorEvent
from ..utils.images import (
    DEFAULT_MIME_TYPE,
    base64_to_bytes,
    generated_filename,
    sniff_mime_type,
    split_data_url,
    to_data_url,
)

MAX_REFERENCE_IMAGES = 5


class ReferenceImage(BaseModel):
    """One uploaded reference image."""
    model_config = ConfigDict(frozen=True)

    data: bytes = Field(min_length=1)
    mime_type: str = DEFAULT_MIME_TYPE

    @classmethod
    def from_encoded(cls, value: str) -> "ReferenceImage":
        """Build from a base64 string or data URL, sniffing the type if absent."""
        mime_type, _ = split_data_url(value.strip())
        data = base64_to_bytes(value)
        return cls(data=data, mime_type=mime_type or sniff_mime_type(data))


class EditRequest(BaseModel):
    """
    Structured description of the desired edit.

    Immutable once captured. An empty `reference_images` is representable so
    the orchestrator can report it as a validation failure.
    """
    model_config = ConfigDict(frozen=True)

    reference_images: Tuple[ReferenceImage, ...] = Field(
        default=(), max_length=MAX_REFERENCE_IMAGES
    )
    subject_description: str = ""
    scene_description: str = ""
    background_removal: bool = False
    target_width: int = Field(default=0, ge=0)
    target_height: int = Field(default=0, ge=0)
    aspect_ratio: AspectRatio = AspectRatio.VERTICAL

    @field_validator("subject_description", "scene_description", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_dimensions(self) -> "EditRequest":
        if (self.target_width > 0) != (self.target_height > 0):
            raise ValueError(
                "target_width and target_height must be both zero (auto) or both positive"
            )
        return self

    @property
    def has_explicit_size(self) -> bool:
        return self.target_width > 0 and self.target_height > 0


class RawResponse(BaseModel):
    """Result of one fan-out call: the decoded service body or the failure."""
    index: int
    payload: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class GeneratedImage(BaseModel):
    """One image surviving the fan-out."""
    index: int
    source_index: int
    image_bytes: bytes = Field(exclude=True, repr=False)
    mime_type: str = DEFAULT_MIME_TYPE

    @computed_field
    @property
    def filename(self) -> str:
        return generated_filename(self.index, self.mime_type)

    @computed_field
    @property
    def data_url(self) -> str:
        return to_data_url(self.image_bytes, self.mime_type)

    @property
    def size_bytes(self) -> int:
        return len(self.image_bytes)


class GenerationResult(BaseModel):
    """Final result of one submission."""
    submission_id: str
    generation: int = 0
    status: GenerationStatus
    images: List[GeneratedImage] = Field(default_factory=list)
    requested: int
    instruction: str = ""
    error: Optional[str] = None
    processing_time_seconds: Optional[float] = None

    @property
    def succeeded(self) -> int:
        return len(self.images)


class ViewerState(BaseModel):
    """Snapshot of the carousel navigator."""
    is_open: bool
    index: Optional[int] = None
    total: int
    can_navigate: bool
    event: Optional[NavigatorEvent] = None
