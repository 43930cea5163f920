"""
Error taxonomy for the streaming session and search pipeline.

Two failure classes reach callers:
- TransportError subclasses: the request could not be started. Raised before
  any chunk or result is produced.
- StreamInterruptedError: the stream started but broke mid-flight. Raised to
  the consumer after every chunk produced so far has been delivered.

Record decode failures, per-result fetch failures and selector compile failures
are recovered locally and never surface as exceptions.
"""

from dataclasses import dataclass, field
from typing import Any

VALID_ERROR_CODES = {"connect", "timeout", "http_status", "interrupted", "unknown"}


@dataclass(frozen=True)
class NormalizedError:
    code: str
    message: str
    provider: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.code not in VALID_ERROR_CODES:
            object.__setattr__(self, "code", "unknown")

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "provider": self.provider,
            "retryable": self.retryable,
            "details": self.details,
        }


class AssistantError(Exception):
    """Base class for errors reported to callers."""

    def __init__(self, error: NormalizedError):
        super().__init__(error.message)
        self.error = error


class TransportError(AssistantError):
    """A top-level request could not be started."""


class InferenceUnavailableError(TransportError):
    """The inference server could not be reached or refused the chat request."""


class SearchUnavailableError(TransportError):
    """The search provider could not be reached or refused the query."""


class StreamInterruptedError(AssistantError):
    """A stream that had already started failed before completing."""
