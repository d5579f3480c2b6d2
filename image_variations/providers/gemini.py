"""Gemini image model client (generateContent over REST)."""

import json
from typing import Any, Dict, Optional, Sequence
import httpx

from .base import BaseProvider
from ..models.schemas import ReferenceImage
from ..utils.logger import get_logger
from ..utils.errors import ProviderError, AuthenticationError, RateLimitError
from ..utils.images import bytes_to_base64

logger = get_logger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiImageClient(BaseProvider):
    """
    Client for the Gemini image generation endpoint.

    `generate` is the only capability the orchestrator needs: send the
    reference images plus one instruction, get back the raw response body.
    The client is safe to call concurrently; every call is independent.
    """

    provider_name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key
            model: Image-capable model name
            base_url: API root (v1beta)
            timeout: Request timeout in seconds
            transport: Optional httpx transport
        """
        super().__init__(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )
        self.model = model

    def _get_default_headers(self) -> dict:
        """Get default headers for Gemini requests."""
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_payload(
        self,
        images: Sequence[ReferenceImage],
        instruction: str,
    ) -> Dict[str, Any]:
        """Images first, instruction last, image + text response modalities."""
        parts = [
            {
                "inlineData": {
                    "mimeType": image.mime_type,
                    "data": bytes_to_base64(image.data),
                }
            }
            for image in images
        ]
        parts.append({"text": instruction})

        return {
            "contents": [{"parts": parts}],
            "generationConfig": {
                "responseModalities": ["IMAGE", "TEXT"],
            },
        }

    async def generate(
        self,
        images: Sequence[ReferenceImage],
        instruction: str,
    ) -> Dict[str, Any]:
        """
        Request one image from the model.

        Args:
            images: Reference images, sent in order
            instruction: Generation instruction text

        Returns:
            Decoded JSON response body (may hold no image)

        Raises:
            AuthenticationError: Credential rejected
            RateLimitError: Quota exhausted
            ProviderError: Any other non-success response
        """
        self._ensure_client()

        payload = self.build_payload(images, instruction)

        logger.info(
            f"Submitting generation to {self.model}",
            extra={
                "model": self.model,
                "reference_images": len(images),
                "instruction": instruction[:100],
            }
        )

        response = await self.client.post(self.endpoint, json=payload)

        self._handle_response_errors(response)

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise ProviderError(
                self.provider_name,
                f"Response was not valid JSON: {e}",
                response.status_code,
            )

        logger.info(
            "Generation response received",
            extra={
                "model": self.model,
                "candidates": len(data.get("candidates") or []),
                "finish_reason": _first_finish_reason(data),
            }
        )

        return data

    def _handle_response_errors(self, response: httpx.Response):
        """Handle HTTP response errors."""
        if response.status_code in (401, 403):
            raise AuthenticationError(self.provider_name)
        elif response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                self.provider_name,
                int(retry_after) if retry_after and retry_after.isdigit() else None
            )
        elif response.status_code >= 400:
            try:
                error_data = response.json()
                error_message = error_data.get("error", {}).get("message", response.text)
            except (json.JSONDecodeError, AttributeError):
                error_message = response.text

            logger.error(
                f"Gemini request failed: {response.status_code}",
                extra={
                    "status": response.status_code,
                    "error": error_message,
                }
            )

            raise ProviderError(
                self.provider_name,
                error_message,
                response.status_code
            )


def _first_finish_reason(data: Dict[str, Any]) -> Optional[str]:
    candidates = data.get("candidates") or []
    if candidates and isinstance(candidates[0], dict):
        return candidates[0].get("finishReason")
    return None
