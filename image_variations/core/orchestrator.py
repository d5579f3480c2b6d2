"""Main orchestrator coordinating one variation submission."""

import time
import uuid
from typing import Optional

from .prompt_builder import PromptBuilder
from .fanout import DEFAULT_VARIATIONS, ImageGenerationClient, RequestFanout
from .collator import ResultCollator
from ..models.schemas import EditRequest, GenerationResult
from ..models.enums import GenerationStatus
from ..utils.errors import AllGenerationsFailed, ConfigurationError, ValidationError
from ..utils.images import DEFAULT_MIME_TYPE
from ..utils.logger import get_logger

logger = get_logger(__name__)

NO_IMAGES_MESSAGE = "Please upload at least one image."
MISSING_CREDENTIAL_MESSAGE = "GEMINI_API_KEY is not set."


class VariationOrchestrator:
    """Validates, builds the instruction, fans out and collates."""

    def __init__(
        self,
        client: Optional[ImageGenerationClient],
        builder: Optional[PromptBuilder] = None,
        variations: int = DEFAULT_VARIATIONS,
        default_mime_type: str = DEFAULT_MIME_TYPE,
    ):
        """
        Initialize orchestrator.

        Args:
            client: Generation capability, None when no credential is configured
            builder: PromptBuilder instance
            variations: Calls per submission (K)
            default_mime_type: MIME type assumed when the service omits one
        """
        self.client = client
        self.builder = builder or PromptBuilder()
        self.variations = variations
        self.fanout = RequestFanout(client, variations) if client is not None else None
        self.collator = ResultCollator(expected=variations, default_mime_type=default_mime_type)

    async def generate(
        self,
        request: EditRequest,
        submission_id: Optional[str] = None,
        generation: int = 0,
    ) -> GenerationResult:
        """
        Run one submission end to end.

        Args:
            request: Captured edit request
            submission_id: Identifier used in logs and the result
            generation: Session generation number the result belongs to

        Returns:
            GenerationResult with status success (K images) or partial (fewer)

        Raises:
            ValidationError: No reference images; nothing was sent
            ConfigurationError: No credential for the generation service
            AllGenerationsFailed: Every call failed or returned no image
        """
        submission_id = submission_id or uuid.uuid4().hex
        start_time = time.time()

        if not request.reference_images:
            logger.warning(
                "Submission rejected: no reference images",
                extra={"submission_id": submission_id}
            )
            raise ValidationError(NO_IMAGES_MESSAGE)

        if self.fanout is None:
            logger.error(
                "Submission rejected: generation service has no credential",
                extra={"submission_id": submission_id}
            )
            raise ConfigurationError(MISSING_CREDENTIAL_MESSAGE)

        instruction = self.builder.build(request)

        logger.info(
            "Starting variation generation",
            extra={
                "submission_id": submission_id,
                "generation": generation,
                "reference_images": len(request.reference_images),
                "background_removal": request.background_removal,
                "variations": self.variations,
            }
        )

        responses = await self.fanout.run(request.reference_images, instruction)
        images = self.collator.collate(responses)

        processing_time = time.time() - start_time

        if not images:
            errors = [r.error for r in responses if r.error]
            logger.error(
                f"All {self.variations} generations failed",
                extra={
                    "submission_id": submission_id,
                    "failures": len(errors),
                    "empty_responses": self.variations - len(errors),
                    "processing_time_seconds": processing_time,
                }
            )
            raise AllGenerationsFailed(errors, attempted=self.variations)

        status = (
            GenerationStatus.SUCCESS
            if len(images) >= self.variations
            else GenerationStatus.PARTIAL
        )

        logger.info(
            f"Generation complete: {len(images)}/{self.variations} images",
            extra={
                "submission_id": submission_id,
                "generation": generation,
                "status": status.value,
                "processing_time_seconds": processing_time,
            }
        )

        return GenerationResult(
            submission_id=submission_id,
            generation=generation,
            status=status,
            images=images,
            requested=self.variations,
            instruction=instruction,
            processing_time_seconds=processing_time,
        )
