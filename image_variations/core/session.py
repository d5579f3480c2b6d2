"""Per-user variation sessions: active result set, viewer and downloads."""

import time
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from .navigator import SWIPE_THRESHOLD, CarouselNavigator
from .orchestrator import VariationOrchestrator
from ..models.enums import GenerationStatus, NavigatorEvent
from ..models.schemas import EditRequest, GeneratedImage, GenerationResult, ViewerState
from ..utils.errors import (
    AllGenerationsFailed,
    ConfigurationError,
    SessionNotFound,
    StaleResultError,
)
from ..utils.images import build_archive
from ..utils.logger import get_logger

logger = get_logger(__name__)

FAILURE_MESSAGE = "Failed to generate images. Please check your API key and try again."
ARCHIVE_FILENAME = "generated-images.zip"
SESSION_IDLE_TTL_SECONDS = 3600.0


class VariationSession:
    """
    State scoped to one user's submissions.

    Each submission bumps `generation`; a result is only installed if its
    generation is still current when it resolves, so an older in-flight
    submission can never overwrite a newer one. Installing anything (result
    or failure) destroys the viewer.
    """

    def __init__(
        self,
        orchestrator: VariationOrchestrator,
        session_id: Optional[str] = None,
        swipe_threshold: float = SWIPE_THRESHOLD,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.orchestrator = orchestrator
        self.swipe_threshold = swipe_threshold
        self.generation = 0
        self.in_flight = 0
        self.result: Optional[GenerationResult] = None
        self.error: Optional[str] = None
        self._navigator: Optional[CarouselNavigator] = None

    @property
    def images(self) -> List[GeneratedImage]:
        return self.result.images if self.result else []

    @property
    def is_loading(self) -> bool:
        return self.in_flight > 0

    async def submit(self, request: EditRequest) -> GenerationResult:
        """
        Run a submission and install its result if it is still current.

        Raises:
            ValidationError: Request has no reference images
            ConfigurationError: No credential; session shows the failure message
            AllGenerationsFailed: Nothing generated; same failure message
            StaleResultError: A newer submission started while this one ran
        """
        self.generation += 1
        generation = self.generation
        self._reset()
        self.in_flight += 1

        try:
            result = await self.orchestrator.generate(
                request,
                submission_id=f"{self.session_id}-{generation}",
                generation=generation,
            )
        except (ConfigurationError, AllGenerationsFailed) as e:
            if generation != self.generation:
                raise StaleResultError(generation, self.generation) from e
            self._install_failure(generation, e)
            raise
        finally:
            self.in_flight -= 1

        if generation != self.generation:
            logger.warning(
                "Discarding stale generation result",
                extra={
                    "session_id": self.session_id,
                    "generation": generation,
                    "current_generation": self.generation,
                }
            )
            raise StaleResultError(generation, self.generation)

        self.result = result
        self.error = None
        self._navigator = None
        return result

    def _install_failure(self, generation: int, exc: Exception) -> None:
        logger.error(
            "Submission failed",
            extra={
                "session_id": self.session_id,
                "generation": generation,
                "error": str(exc),
                "error_type": type(exc).__name__,
            }
        )
        self.result = GenerationResult(
            submission_id=f"{self.session_id}-{generation}",
            generation=generation,
            status=GenerationStatus.FAILED,
            requested=self.orchestrator.variations,
            error=FAILURE_MESSAGE,
        )
        self.error = FAILURE_MESSAGE
        self._navigator = None

    def _reset(self) -> None:
        self.result = None
        self.error = None
        self._navigator = None

    # Viewer

    @property
    def navigator(self) -> Optional[CarouselNavigator]:
        return self._navigator

    def select(self, index: int) -> ViewerState:
        """Open the viewer at `index`, creating the navigator on first use."""
        if self._navigator is None:
            self._navigator = CarouselNavigator(len(self.images), self.swipe_threshold)
        event = self._navigator.select(index)
        return self._navigator.state(event)

    def navigate(self, action: str, *args) -> ViewerState:
        """Apply a navigator transition (next, prev, close, handle_key, swipe)."""
        if self._navigator is None:
            return self.viewer_state(NavigatorEvent.IGNORED)
        event = getattr(self._navigator, action)(*args)
        return self._navigator.state(event)

    def dismiss(self) -> ViewerState:
        """Close the viewer and forget its index."""
        self._navigator = None
        return self.viewer_state(NavigatorEvent.CLOSED)

    def viewer_state(self, event: Optional[NavigatorEvent] = None) -> ViewerState:
        if self._navigator is None:
            total = len(self.images)
            return ViewerState(is_open=False, total=total, can_navigate=total > 1, event=event)
        return self._navigator.state(event)

    # Downloads

    def download(self, index: int) -> GeneratedImage:
        images = self.images
        if not 0 <= index < len(images):
            raise IndexError(f"No generated image at index {index}")
        return images[index]

    def download_all(self) -> Tuple[str, bytes]:
        images = self.images
        if not images:
            raise IndexError("No generated images to download")
        return ARCHIVE_FILENAME, build_archive(
            [(image.filename, image.image_bytes) for image in images]
        )


class SessionRegistry:
    """
    In-memory sessions keyed by id; nothing outlives the process.

    Sessions idle for longer than `idle_ttl_seconds` are evicted on the next
    `create` or `get`. A session with a submission in flight is never evicted.
    """

    def __init__(
        self,
        orchestrator: VariationOrchestrator,
        swipe_threshold: float = SWIPE_THRESHOLD,
        idle_ttl_seconds: float = SESSION_IDLE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.orchestrator = orchestrator
        self.swipe_threshold = swipe_threshold
        self.idle_ttl_seconds = idle_ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, VariationSession] = {}
        self._last_seen: Dict[str, float] = {}

    def create(self) -> VariationSession:
        self.evict_idle()
        session = VariationSession(self.orchestrator, swipe_threshold=self.swipe_threshold)
        self._sessions[session.session_id] = session
        self._last_seen[session.session_id] = self._clock()
        logger.info(
            "Session created",
            extra={"session_id": session.session_id, "total_sessions": len(self._sessions)}
        )
        return session

    def get(self, session_id: str) -> VariationSession:
        self.evict_idle()
        try:
            session = self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(session_id)
        self._last_seen[session_id] = self._clock()
        return session

    def drop(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFound(session_id)
        self._last_seen.pop(session_id, None)
        logger.info("Session dropped", extra={"session_id": session_id})

    def evict_idle(self) -> int:
        """
        Remove sessions idle for longer than the TTL.

        Returns:
            Number of sessions evicted
        """
        now = self._clock()
        idle_ids = [
            session_id for session_id, last_seen in self._last_seen.items()
            if now - last_seen > self.idle_ttl_seconds
            and not self._sessions[session_id].is_loading
        ]

        for session_id in idle_ids:
            age_minutes = (now - self._last_seen.pop(session_id)) / 60
            del self._sessions[session_id]
            logger.info(
                "Evicted idle session",
                extra={"session_id": session_id, "idle_minutes": round(age_minutes, 1)}
            )

        return len(idle_ids)

    def __len__(self) -> int:
        return len(self._sessions)
