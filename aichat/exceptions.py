"""
Error taxonomy for backend chat calls.

Every error carries the context needed to log it and to pick the localized
message shown to the user:
- The provider and model that were selected
- The HTTP status of the backend response, when there was one
- The backend error code used as the translation key
"""

from __future__ import annotations

DEFAULT_ERROR_CODE = "AIAPIError"


class ChatError(Exception):
    """Base chat error with rich context."""

    def __init__(
        self,
        message: str,
        service: str = "unknown",
        model: str = "unknown",
        status_code: int | None = None,
        error_code: str | None = None,
    ):
        super().__init__(message)
        self.service = service
        self.model = model
        self.status_code = status_code
        self.error_code = error_code or DEFAULT_ERROR_CODE


class InvalidServiceError(ChatError):
    """The selected AI service is not a supported provider."""

    def __init__(self, service: str, **kwargs):
        super().__init__(
            f"Invalid AI service: {service!r}",
            service=service,
            error_code="InvalidAIService",
            **kwargs,
        )


class BackendStatusError(ChatError):
    """The backend answered with a non-2xx status."""

    @classmethod
    def from_failure(cls, failure, service: str = "unknown", model: str = "unknown"):
        return cls(
            f"API request to {service} failed with status {failure.status} "
            f"and body {failure.message}",
            service=service,
            model=model,
            status_code=failure.status,
            error_code=failure.error_code,
        )


class EmptyBodyError(ChatError):
    """Streaming response finished without sending any bytes."""
    pass


class DecodeError(ChatError):
    """A wire line carried malformed JSON or an unexpected payload shape."""
    pass


class NestingDepthError(ChatError):
    """Tool results kept triggering continuation calls past the allowed depth."""
    pass
