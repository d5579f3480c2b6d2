"""Concurrent fan-out of identical generation calls."""

import asyncio
from typing import Any, Dict, List, Protocol, Sequence

from ..models.schemas import RawResponse, ReferenceImage
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_VARIATIONS = 4


class ImageGenerationClient(Protocol):
    """The opaque generation capability."""

    async def generate(
        self,
        images: Sequence[ReferenceImage],
        instruction: str,
    ) -> Dict[str, Any]:
        ...


class RequestFanout:
    """Issues K independent generation calls for the same inputs."""

    def __init__(self, client: ImageGenerationClient, variations: int = DEFAULT_VARIATIONS):
        """
        Initialize fan-out.

        Args:
            client: Generation capability, must tolerate concurrent calls
            variations: Number of calls per run (K)
        """
        if variations < 1:
            raise ValueError("variations must be at least 1")
        self.client = client
        self.variations = variations

    async def call_single(
        self,
        index: int,
        images: Sequence[ReferenceImage],
        instruction: str,
    ) -> RawResponse:
        """
        Run one call and fold its outcome into a RawResponse.

        Failures are recorded on the response, never raised, so one call
        cannot affect its siblings.
        """
        try:
            payload = await self.client.generate(images, instruction)
        except Exception as e:
            logger.warning(
                f"Generation call {index} failed",
                extra={
                    "call_index": index,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return RawResponse(index=index, error=str(e) or type(e).__name__)

        if not isinstance(payload, dict):
            return RawResponse(index=index, error=f"Unexpected response type: {type(payload).__name__}")

        return RawResponse(index=index, payload=payload)

    async def run(
        self,
        images: Sequence[ReferenceImage],
        instruction: str,
    ) -> List[RawResponse]:
        """
        Launch all calls concurrently and wait for every one to settle.

        Args:
            images: Reference images shared read-only by every call
            instruction: Instruction shared by every call

        Returns:
            One RawResponse per call, in call order
        """
        images = tuple(images)

        logger.info(
            f"Starting fan-out of {self.variations} generation calls",
            extra={
                "variations": self.variations,
                "reference_images": len(images),
            }
        )

        tasks = [
            self.call_single(index, images, instruction)
            for index in range(self.variations)
        ]

        results = await asyncio.gather(*tasks, return_exceptions=True)

        responses: List[RawResponse] = []
        for index, result in enumerate(results):
            if isinstance(result, BaseException):
                # call_single already absorbs Exception; this catches cancellation
                logger.error(
                    f"Generation call {index} did not complete",
                    extra={"call_index": index, "error": repr(result)}
                )
                responses.append(RawResponse(index=index, error=repr(result)))
            else:
                responses.append(result)

        failed = sum(1 for r in responses if r.failed)
        logger.info(
            f"Fan-out settled: {len(responses) - failed}/{len(responses)} calls answered",
            extra={
                "answered": len(responses) - failed,
                "failed": failed,
            }
        )

        return responses
