"""Core business logic components."""

from .prompt_builder import PromptBuilder
from .fanout import RequestFanout
from .collator import ResultCollator
from .navigator import CarouselNavigator
from .orchestrator import VariationOrchestrator
from .session import VariationSession, SessionRegistry

__all__ = [
    "PromptBuilder",
    "RequestFanout",
    "ResultCollator",
    "CarouselNavigator",
    "VariationOrchestrator",
    "VariationSession",
    "SessionRegistry",
]
