"""API provider clients for external services."""

from .base import BaseProvider
from .gemini import GeminiImageClient

__all__ = [
    "BaseProvider",
    "GeminiImageClient",
]
