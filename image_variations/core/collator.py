"""Reduces raw fan-out responses to the ordered result set."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..models.schemas import GeneratedImage, RawResponse
from ..utils.errors import ImageProcessingError
from ..utils.images import DEFAULT_MIME_TYPE, base64_to_bytes
from ..utils.logger import get_logger

logger = get_logger(__name__)


def extract_inline_image(
    payload: Dict[str, Any],
    default_mime_type: str = DEFAULT_MIME_TYPE,
) -> Optional[Tuple[bytes, str]]:
    """
    Find the first embedded image in a generateContent response.

    Accepts both the REST camelCase (`inlineData`, `mimeType`) and the SDK
    snake_case (`inline_data`, `mime_type`) spellings.

    Returns:
        (image_bytes, mime_type) or None when the response holds no image
    """
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None

    candidate = candidates[0]
    content = candidate.get("content") if isinstance(candidate, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None

    for part in parts:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        if not isinstance(inline, dict):
            continue

        data = inline.get("data")
        if isinstance(data, str) and data:
            data = base64_to_bytes(data)
        elif not isinstance(data, bytes) or not data:
            continue

        mime_type = inline.get("mimeType") or inline.get("mime_type")
        if not isinstance(mime_type, str) or not mime_type:
            mime_type = default_mime_type
        return data, mime_type

    return None


class ResultCollator:
    """Extracts at most one image per response, keeping fan-out order."""

    def __init__(self, expected: int, default_mime_type: str = DEFAULT_MIME_TYPE):
        """
        Initialize collator.

        Args:
            expected: Number of calls in the fan-out (K)
            default_mime_type: Used when the service omits a MIME type
        """
        self.expected = expected
        self.default_mime_type = default_mime_type

    def collate(self, responses: Sequence[RawResponse]) -> List[GeneratedImage]:
        """
        Build the result set from raw responses.

        Failed, empty and undecodable responses contribute nothing; survivors
        are renumbered 0..n-1 and remember their call index.

        Args:
            responses: Fan-out responses in call order

        Returns:
            Ordered list of generated images (possibly empty)
        """
        images: List[GeneratedImage] = []

        for response in responses:
            if response.failed or not response.payload:
                continue

            try:
                extracted = extract_inline_image(response.payload, self.default_mime_type)
            except ImageProcessingError as e:
                logger.warning(
                    f"Discarding undecodable image from call {response.index}",
                    extra={"call_index": response.index, "error": str(e)}
                )
                continue

            if extracted is None:
                logger.info(
                    f"Call {response.index} returned no image",
                    extra={"call_index": response.index}
                )
                continue

            image_bytes, mime_type = extracted
            images.append(
                GeneratedImage(
                    index=len(images),
                    source_index=response.index,
                    image_bytes=image_bytes,
                    mime_type=mime_type,
                )
            )

        if 0 < len(images) < self.expected:
            logger.warning(
                f"Could not generate all {self.expected} images. Some results may be missing.",
                extra={
                    "expected": self.expected,
                    "received": len(images),
                    "missing_calls": sorted(
                        set(range(self.expected)) - {img.source_index for img in images}
                    ),
                }
            )
        elif images:
            logger.info(
                f"Collated {len(images)}/{self.expected} images",
                extra={"expected": self.expected, "received": len(images)}
            )

        return images
