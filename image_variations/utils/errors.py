"""Custom exception classes for the image variation service."""


class ImageVariationError(Exception):
    """Base exception for all service errors."""
    pass


class ConfigurationError(ImageVariationError):
    """Configuration or credential errors."""
    pass


class ValidationError(ImageVariationError):
    """Edit request rejected before any generation started."""
    pass


class APIError(ImageVariationError):
    """Base class for API-related errors."""
    pass


class GenerationError(ImageVariationError):
    """Errors during image generation."""
    pass


class AllGenerationsFailed(GenerationError):
    """Every call of a fan-out failed or came back without an image."""

    def __init__(self, errors: list = None, attempted: int = 0):
        self.errors = errors or []
        self.attempted = attempted
        super().__init__(
            f"All {attempted} generations failed"
            + (f": {self.errors[0]}" if self.errors else "")
        )


class ImageProcessingError(ImageVariationError):
    """Error processing image data."""
    pass


class SessionError(ImageVariationError):
    """Base class for session lifecycle errors."""
    pass


class SessionNotFound(SessionError):
    """Unknown or already dropped session."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class StaleResultError(SessionError):
    """A generation finished after a newer submission replaced it."""

    def __init__(self, generation: int, current: int):
        self.generation = generation
        self.current = current
        super().__init__(
            f"Result of generation {generation} discarded, "
            f"generation {current} is active"
        )


class ProviderError(APIError):
    """Generic provider API error with status code."""

    def __init__(self, provider: str, message: str, status_code: int = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider} error: {message}")


class AuthenticationError(ProviderError):
    """API authentication failed."""

    def __init__(self, provider: str):
        super().__init__(provider, "Authentication failed", 401)


class RateLimitError(ProviderError):
    """API rate limit exceeded."""

    def __init__(self, provider: str, retry_after: int = None):
        self.retry_after = retry_after
        message = "Rate limit exceeded"
        if retry_after:
            message += f", retry after {retry_after}s"
        super().__init__(provider, message, 429)
