"""Typed failures raised along the chat pipeline.

Every error carries its ``kind`` from the point where it is raised, so the
gateway never has to inspect message text to pick an HTTP status.
"""
from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    UPSTREAM_FAILURE = "upstream_failure"
    INTERNAL_ERROR = "internal_error"


class ChatError(Exception):
    """Base class for failures the gateway knows how to render."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidInput(ChatError):
    """Raised when the client payload fails validation.

    ``public_message`` is the fixed text shown to the client; None means the
    default minimum-length message.
    """

    kind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, public_message: str | None = None):
        self.public_message = public_message
        super().__init__(message)


class PayloadTooLarge(ChatError):
    """Raised when the request body exceeds the configured size cap."""

    kind = ErrorKind.PAYLOAD_TOO_LARGE

    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(f"Request body of {size} bytes exceeds {max_size} bytes")


class RateLimited(ChatError):
    """Raised when a client has used up its quota for the current window."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Try again in {retry_after} seconds.")


class ChatTimeout(ChatError):
    """Raised when the model call does not finish before the deadline."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, deadline: float):
        self.deadline = deadline
        super().__init__(f"Model response timed out after {deadline:g}s")


class UpstreamFailure(ChatError):
    """Raised when the model provider rejects the call or answers with garbage.

    ``invalid_request`` is set when the provider itself reported the request
    as malformed (HTTP 400).
    """

    kind = ErrorKind.UPSTREAM_FAILURE

    def __init__(self, message: str, invalid_request: bool = False):
        self.invalid_request = invalid_request
        super().__init__(message)
