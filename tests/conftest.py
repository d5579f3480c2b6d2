"""Pytest configuration and shared fixtures."""

import asyncio
import base64
from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence

import pytest
from PIL import Image

from image_variations.core import VariationOrchestrator
from image_variations.models import EditRequest, ReferenceImage
from image_variations.utils.config import Config


def make_png(color=(255, 0, 0), size=(8, 8)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def image_payload(image_bytes: bytes, mime_type: Optional[str] = "image/png") -> Dict[str, Any]:
    """generateContent body carrying one inline image."""
    inline = {"data": base64.b64encode(image_bytes).decode("utf-8")}
    if mime_type:
        inline["mimeType"] = mime_type
    return {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"text": "Here is your image."},
                        {"inlineData": inline},
                    ]
                },
                "finishReason": "STOP",
            }
        ]
    }


def text_only_payload() -> Dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": "I can't do that."}]}}]}


class FakeGenerationClient:
    """
    Scripted stand-in for the generation service.

    `outcomes[i]` is what the i-th call returns (a dict) or raises (an
    exception); calls beyond the script reuse the last entry.
    """

    def __init__(self, outcomes: Sequence[Any], delay: float = 0.0):
        self.outcomes = list(outcomes)
        self.delay = delay
        self.calls: List[tuple] = []
        self.active = 0
        self.max_active = 0

    async def generate(self, images, instruction):
        call_index = len(self.calls)
        self.calls.append((tuple(images), instruction))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            # Yield so sibling calls get scheduled before any of them finishes
            await asyncio.sleep(self.delay)
            outcome = self.outcomes[min(call_index, len(self.outcomes) - 1)]
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        finally:
            self.active -= 1


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def reference_images() -> List[ReferenceImage]:
    return [
        ReferenceImage(data=make_png((255, 0, 0)), mime_type="image/png"),
        ReferenceImage(data=make_png((0, 0, 255)), mime_type="image/png"),
    ]


@pytest.fixture
def edit_request(reference_images) -> EditRequest:
    """The two-image 'a robot' request at 1:1."""
    return EditRequest(
        reference_images=reference_images,
        subject_description="a robot",
        background_removal=False,
        aspect_ratio="1:1",
        target_width=0,
        target_height=0,
    )


@pytest.fixture
def successful_client(png_bytes) -> FakeGenerationClient:
    return FakeGenerationClient([image_payload(png_bytes)])


@pytest.fixture
def orchestrator(successful_client) -> VariationOrchestrator:
    return VariationOrchestrator(client=successful_client, variations=4)


@pytest.fixture
def config() -> Config:
    return Config(GEMINI_API_KEY="test-key")
