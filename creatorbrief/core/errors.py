class CreatorBriefError(Exception):
    """Base exception class for the creator brief service."""

    status_code = 500
    code = "INTERNAL_ERROR"
    error = "Internal server error"

    def __init__(self, message: str = "", user_message: str | None = None):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message


class ConfigError(CreatorBriefError):
    """Raised when the startup configuration is invalid."""

    def __init__(self, message: str = "", user_message: str | None = None):
        # the diagnostic names paths and env keys; callers only see this
        super().__init__(
            message,
            user_message or "The service is not configured correctly. Please try again later.",
        )


class ValidationError(CreatorBriefError):
    """Raised when caller input violates a declared constraint."""

    status_code = 400
    code = "VALIDATION_ERROR"
    error = "Validation error"


class RateLimitError(CreatorBriefError):
    """Raised when a caller exceeded its admission window."""

    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    error = "Rate limit exceeded"


class ProviderError(CreatorBriefError):
    """Raised when an LLM backend call fails or returns no usable text."""

    status_code = 503
    code = "AI_SERVICE_ERROR"
    error = "AI service error"


class ResponseFormatError(CreatorBriefError):
    """Raised when the backend output is not a structurally valid brief."""

    status_code = 500
    code = "RESPONSE_FORMAT_ERROR"
    error = "Response format error"

    def __init__(self, message: str = "", user_message: str | None = None, field: str | None = None):
        super().__init__(message, user_message)
        self.field = field


class BriefGenerationError(CreatorBriefError):
    """Raised for any failure that fits none of the other kinds."""
    pass
