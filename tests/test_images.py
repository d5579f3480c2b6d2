"""Tests for image helpers and reference image decoding."""

import base64

import pytest
from pydantic import ValidationError as PydanticValidationError

from image_variations.models import EditRequest, ReferenceImage
from image_variations.utils.errors import ImageProcessingError
from image_variations.utils.images import (
    base64_to_bytes,
    dedupe_by_identity,
    generated_filename,
    sniff_mime_type,
    to_data_url,
)

from conftest import make_png


def test_data_url_round_trip(png_bytes):
    assert base64_to_bytes(to_data_url(png_bytes)) == png_bytes


def test_invalid_base64():
    with pytest.raises(ImageProcessingError):
        base64_to_bytes("not*base64")


def test_sniff_mime_type(png_bytes):
    assert sniff_mime_type(png_bytes) == "image/png"
    assert sniff_mime_type(b"garbage") == "image/png"
    assert sniff_mime_type(b"garbage", default="application/octet-stream") == "application/octet-stream"


@pytest.mark.parametrize("index, mime_type, expected", [
    (0, "image/png", "generated-image-1.png"),
    (3, "image/jpeg", "generated-image-4.jpg"),
    (1, None, "generated-image-2.png"),
])
def test_generated_filename(index, mime_type, expected):
    assert generated_filename(index, mime_type) == expected


def test_dedupe_keeps_first_seen_order_and_limit():
    a, b, c = b"a", b"b", b"c"

    assert dedupe_by_identity([a, b, a, c, b]) == [a, b, c]
    assert dedupe_by_identity([a, b, a, c], limit=2) == [a, b]


def test_reference_image_from_plain_base64_sniffs_type(png_bytes):
    image = ReferenceImage.from_encoded(base64.b64encode(png_bytes).decode())

    assert image.data == png_bytes
    assert image.mime_type == "image/png"


def test_reference_image_from_data_url_keeps_declared_type(png_bytes):
    encoded = base64.b64encode(png_bytes).decode()

    image = ReferenceImage.from_encoded(f"data:image/webp;base64,{encoded}")

    assert image.mime_type == "image/webp"


class TestEditRequest:

    def test_at_most_five_images(self):
        images = [ReferenceImage(data=make_png((i, i, i))) for i in range(6)]

        with pytest.raises(PydanticValidationError):
            EditRequest(reference_images=images)

    def test_dimensions_both_or_neither(self):
        with pytest.raises(PydanticValidationError):
            EditRequest(target_width=100, target_height=0)

        assert EditRequest(target_width=100, target_height=50).has_explicit_size
        assert not EditRequest().has_explicit_size

    def test_negative_dimensions_rejected(self):
        with pytest.raises(PydanticValidationError):
            EditRequest(target_width=-1, target_height=-1)

    def test_unknown_aspect_ratio_rejected(self):
        with pytest.raises(PydanticValidationError):
            EditRequest(aspect_ratio="2:1")

    def test_immutable(self, edit_request):
        with pytest.raises(PydanticValidationError):
            edit_request.subject_description = "something else"
