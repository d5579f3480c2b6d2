"""Carousel navigation over a fixed result set."""

from typing import Optional

from ..models.enums import NavigatorEvent, ViewerKey
from ..models.schemas import ViewerState

SWIPE_THRESHOLD = 50.0


class CarouselNavigator:
    """
    Closed/open(index) state machine with wraparound.

    The length is fixed for the navigator's lifetime; a new result set gets a
    new navigator. Every transition method returns the NavigatorEvent it
    produced.
    """

    def __init__(self, total: int, swipe_threshold: float = SWIPE_THRESHOLD):
        if total < 0:
            raise ValueError("total must not be negative")
        self.total = total
        self.swipe_threshold = swipe_threshold
        self.index: Optional[int] = None
        self._gesture_start: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.index is not None

    @property
    def can_navigate(self) -> bool:
        """Directional controls only make sense with more than one image."""
        return self.total > 1

    def select(self, index: int) -> NavigatorEvent:
        if self.total == 0:
            return NavigatorEvent.IGNORED
        if not 0 <= index < self.total:
            raise IndexError(f"Image index {index} out of range 0..{self.total - 1}")
        self.index = index
        return NavigatorEvent.OPENED

    def next(self) -> NavigatorEvent:
        return self._step(1)

    def prev(self) -> NavigatorEvent:
        return self._step(-1)

    def _step(self, offset: int) -> NavigatorEvent:
        if self.index is None or not self.can_navigate:
            return NavigatorEvent.IGNORED
        self.index = (self.index + offset + self.total) % self.total
        return NavigatorEvent.MOVED

    def close(self) -> NavigatorEvent:
        if self.index is None:
            return NavigatorEvent.IGNORED
        self.index = None
        self._gesture_start = None
        return NavigatorEvent.CLOSED

    def handle_key(self, key: str) -> NavigatorEvent:
        if key == ViewerKey.NEXT.value:
            return self.next()
        if key == ViewerKey.PREV.value:
            return self.prev()
        if key == ViewerKey.DISMISS.value:
            return self.close()
        return NavigatorEvent.IGNORED

    def begin_gesture(self, x: float) -> None:
        self._gesture_start = x

    def end_gesture(self, x: float) -> NavigatorEvent:
        """Finish a horizontal drag; leftward past the threshold moves forward."""
        start, self._gesture_start = self._gesture_start, None
        if start is None:
            return NavigatorEvent.IGNORED

        displacement = start - x
        if displacement > self.swipe_threshold:
            return self.next()
        if displacement < -self.swipe_threshold:
            return self.prev()
        return NavigatorEvent.IGNORED

    def swipe(self, start_x: float, end_x: float) -> NavigatorEvent:
        self.begin_gesture(start_x)
        return self.end_gesture(end_x)

    def state(self, event: Optional[NavigatorEvent] = None) -> ViewerState:
        return ViewerState(
            is_open=self.is_open,
            index=self.index,
            total=self.total,
            can_navigate=self.can_navigate,
            event=event,
        )
