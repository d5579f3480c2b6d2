"""Tests for collating raw responses into the result set."""

import base64

from image_variations.core.collator import ResultCollator, extract_inline_image
from image_variations.models import RawResponse

from conftest import image_payload, make_png, text_only_payload


def test_keeps_fan_out_order_and_renumbers():
    red, green, blue = make_png((255, 0, 0)), make_png((0, 255, 0)), make_png((0, 0, 255))
    responses = [
        RawResponse(index=0, payload=image_payload(red)),
        RawResponse(index=1, error="timeout"),
        RawResponse(index=2, payload=image_payload(green)),
        RawResponse(index=3, payload=image_payload(blue)),
    ]

    images = ResultCollator(expected=4).collate(responses)

    assert [img.image_bytes for img in images] == [red, green, blue]
    assert [img.index for img in images] == [0, 1, 2]
    assert [img.source_index for img in images] == [0, 2, 3]


def test_missing_mime_type_defaults_to_png(png_bytes):
    responses = [RawResponse(index=0, payload=image_payload(png_bytes, mime_type=None))]

    images = ResultCollator(expected=1).collate(responses)

    assert images[0].mime_type == "image/png"
    assert images[0].data_url.startswith("data:image/png;base64,")


def test_preserves_service_mime_type(png_bytes):
    responses = [RawResponse(index=0, payload=image_payload(png_bytes, mime_type="image/jpeg"))]

    images = ResultCollator(expected=1).collate(responses)

    assert images[0].mime_type == "image/jpeg"
    assert images[0].filename == "generated-image-1.jpg"


def test_image_less_and_malformed_responses_contribute_nothing(png_bytes):
    responses = [
        RawResponse(index=0, payload=text_only_payload()),
        RawResponse(index=1, payload={"candidates": []}),
        RawResponse(index=2, payload={"promptFeedback": {"blockReason": "SAFETY"}}),
        RawResponse(index=3, payload={"candidates": [{"content": {"parts": [
            {"inlineData": {"data": "%%% not base64 %%%", "mimeType": "image/png"}}
        ]}}]}),
        RawResponse(index=4, payload={"candidates": [{"content": {"parts": [{"inlineData": "abc"}]}}]}),
        RawResponse(index=5, payload={"candidates": [{"content": [{"parts": []}]}]}),
        RawResponse(index=6, payload={"candidates": {"0": {"content": {}}}}),
        RawResponse(index=7, payload={"candidates": [{"content": {"parts": [{"inlineData": {"data": 42}}]}}]}),
        RawResponse(index=8, payload={"candidates": [{"content": {"parts": "abc"}}]}),
    ]

    assert ResultCollator(expected=9).collate(responses) == []


def test_partial_set_is_returned(png_bytes):
    responses = [
        RawResponse(index=0, payload=image_payload(png_bytes)),
        RawResponse(index=1, error="failed"),
        RawResponse(index=2, payload=image_payload(png_bytes)),
        RawResponse(index=3, payload=image_payload(png_bytes)),
    ]

    images = ResultCollator(expected=4).collate(responses)

    assert len(images) == 3


def test_extract_accepts_snake_case_parts(png_bytes):
    payload = {
        "candidates": [{
            "content": {"parts": [{"inline_data": {
                "data": base64.b64encode(png_bytes).decode(),
                "mime_type": "image/webp",
            }}]}
        }]
    }

    assert extract_inline_image(payload) == (png_bytes, "image/webp")


def test_extract_takes_first_image_only():
    first, second = make_png((1, 1, 1)), make_png((2, 2, 2))
    payload = image_payload(first)
    payload["candidates"][0]["content"]["parts"].append(
        {"inlineData": {"data": base64.b64encode(second).decode(), "mimeType": "image/png"}}
    )

    image_bytes, _ = extract_inline_image(payload)

    assert image_bytes == first
