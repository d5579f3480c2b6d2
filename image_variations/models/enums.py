"""Enumerations for the image variation service."""

from enum import Enum


class GenerationStatus(str, Enum):
    """Outcome of one submission."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class AspectRatio(str, Enum):
    """Aspect ratios offered for composed (non background-removal) output."""
    VERTICAL = "9:16"
    HORIZONTAL = "16:9"
    SQUARE = "1:1"
    PORTRAIT = "3:4"
    PORTRAIT_TALL = "4:6"


class NavigatorEvent(str, Enum):
    """Transition reported by the carousel navigator."""
    OPENED = "opened"
    MOVED = "moved"
    CLOSED = "closed"
    IGNORED = "ignored"


class ViewerKey(str, Enum):
    """Keyboard signals understood by the carousel."""
    NEXT = "ArrowRight"
    PREV = "ArrowLeft"
    DISMISS = "Escape"
