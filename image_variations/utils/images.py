"""Image processing utilities."""

import base64
import binascii
import hashlib
import zipfile
from io import BytesIO
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar
from PIL import Image, UnidentifiedImageError

from .logger import get_logger
from .errors import ImageProcessingError

logger = get_logger(__name__)

T = TypeVar('T')

DEFAULT_MIME_TYPE = "image/png"

# PIL format name -> MIME type
FORMAT_MIME_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "HEIF": "image/heif",
}

MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heif": "heif",
}


def split_data_url(value: str) -> Tuple[Optional[str], str]:
    """
    Split a data URL into (mime_type, base64 payload).

    Plain base64 strings come back with a None mime type.
    """
    if value.startswith("data:") and "," in value:
        header, payload = value.split(",", 1)
        mime_type = header[len("data:"):].split(";")[0] or None
        return mime_type, payload
    return None, value


def base64_to_bytes(base64_string: str) -> bytes:
    """
    Convert base64 string (or data URL) to bytes.

    Args:
        base64_string: Base64 encoded image, optionally a data URL

    Returns:
        Image bytes

    Raises:
        ImageProcessingError: If the payload is not valid base64
    """
    _, payload = split_data_url(base64_string.strip())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageProcessingError(f"Invalid base64 image data: {e}")


def bytes_to_base64(image_bytes: bytes) -> str:
    """Convert image bytes to base64 string."""
    return base64.b64encode(image_bytes).decode('utf-8')


def to_data_url(image_bytes: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    """Render image bytes as a browser-addressable data URL."""
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{bytes_to_base64(image_bytes)}"


def sniff_mime_type(image_bytes: bytes, default: str = DEFAULT_MIME_TYPE) -> str:
    """
    Detect the MIME type of image bytes with Pillow.

    Args:
        image_bytes: Raw image bytes
        default: Returned when the bytes are not a recognised image

    Returns:
        MIME type string
    """
    try:
        with Image.open(BytesIO(image_bytes)) as image:
            return FORMAT_MIME_TYPES.get(image.format, default)
    except (UnidentifiedImageError, OSError):
        return default


def extension_for(mime_type: Optional[str]) -> str:
    """File extension for a MIME type, png when unknown."""
    return MIME_EXTENSIONS.get((mime_type or "").lower(), "png")


def generated_filename(index: int, mime_type: Optional[str] = None) -> str:
    """Download name of the result at zero-based `index`."""
    return f"generated-image-{index + 1}.{extension_for(mime_type)}"


def dedupe_by_identity(
    items: Iterable[T],
    limit: Optional[int] = None,
    content: Callable[[T], bytes] = bytes,
) -> List[T]:
    """
    Drop repeated images (same content) keeping first-seen order.

    Args:
        items: Images in upload order
        limit: Keep at most this many distinct images
        content: Returns the raw bytes of an item

    Returns:
        Ordered list of distinct items
    """
    seen = set()
    unique: List[T] = []
    for item in items:
        digest = hashlib.sha256(content(item)).hexdigest()
        if digest in seen:
            continue
        seen.add(digest)
        unique.append(item)
        if limit is not None and len(unique) >= limit:
            break
    return unique


def build_archive(entries: Sequence[Tuple[str, bytes]]) -> bytes:
    """
    Pack (filename, bytes) pairs into an in-memory zip archive.

    Entries are stored uncompressed.
    """
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as archive:
        for filename, data in entries:
            archive.writestr(filename, data)

    logger.debug(
        "Built results archive",
        extra={"entries": len(entries), "archive_kb": len(buffer.getvalue()) / 1024}
    )
    return buffer.getvalue()
