"""
Error taxonomy for the search assistant.

Validation and upstream failures propagate to the caller as typed
exceptions. Persistence and title-synthesis failures are absorbed by the
component that raised them and only ever show up in the logs.
"""

from enum import Enum
from typing import Any


class UpstreamErrorKind(str, Enum):
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_CREDENTIALS = "invalid_credentials"
    NETWORK = "network"
    GENERIC = "generic"


_UPSTREAM_STATUS = {
    UpstreamErrorKind.QUOTA_EXCEEDED: 429,
    UpstreamErrorKind.INVALID_CREDENTIALS: 401,
    UpstreamErrorKind.NETWORK: 503,
    UpstreamErrorKind.GENERIC: 500,
}

_UPSTREAM_MESSAGES = {
    UpstreamErrorKind.QUOTA_EXCEEDED: "API quota exceeded. Please try again later.",
    UpstreamErrorKind.INVALID_CREDENTIALS: "Invalid API configuration",
    UpstreamErrorKind.NETWORK: "Network error. Please check your connection and try again.",
    UpstreamErrorKind.GENERIC: (
        "An error occurred while processing your request. Please try again."
    ),
}


class AskWebError(Exception):
    """Base class for every error raised by the assistant."""

    code = "error"
    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidInput(AskWebError):
    code = "invalid_input"
    status_code = 400


class UpstreamUnavailable(AskWebError):
    """A retrieval or generation call failed. Never retried automatically."""

    code = "upstream_unavailable"

    def __init__(
        self,
        kind: UpstreamErrorKind = UpstreamErrorKind.GENERIC,
        details: str | None = None,
        provider: str | None = None,
    ):
        super().__init__(_UPSTREAM_MESSAGES[kind], details=details)
        self.kind = kind
        self.provider = provider

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return _UPSTREAM_STATUS[self.kind]


class ConfigurationError(AskWebError):
    """Required API keys or settings are missing."""

    code = "configuration_error"
    status_code = 500


class PersistenceDegraded(AskWebError):
    code = "persistence_degraded"


class TitleSynthesisFailed(AskWebError):
    code = "title_synthesis_failed"


_QUOTA_MARKERS = ("insufficient_quota", "quota", "429", "rate limit", "too many requests")
_AUTH_MARKERS = ("invalid_api_key", "401", "403", "unauthorized", "invalid api key", "permission")
_NETWORK_MARKERS = (
    "timed out",
    "timeout",
    "connection",
    "enotfound",
    "etimedout",
    "name resolution",
    "503",
    "service unavailable",
)


def classify_upstream_error(exc: BaseException) -> UpstreamErrorKind:
    """
    Map a provider SDK exception onto an UpstreamErrorKind.

    Looks at the structured ``code``/``status_code`` attributes first (openai
    and google-genai both expose them), then at the exception type name and
    finally at the message text.
    """
    code = str(getattr(exc, "code", "") or "").lower()
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    type_name = type(exc).__name__.lower()
    text = str(exc).lower()

    if code == "insufficient_quota" or status == 429 or "ratelimit" in type_name:
        return UpstreamErrorKind.QUOTA_EXCEEDED
    if code == "invalid_api_key" or status in (401, 403) or "authentication" in type_name:
        return UpstreamErrorKind.INVALID_CREDENTIALS
    if (
        isinstance(exc, (TimeoutError, ConnectionError))
        or "timeout" in type_name
        or "connection" in type_name
        or status in (502, 503, 504)
    ):
        return UpstreamErrorKind.NETWORK

    if any(marker in text for marker in _QUOTA_MARKERS):
        return UpstreamErrorKind.QUOTA_EXCEEDED
    if any(marker in text for marker in _AUTH_MARKERS):
        return UpstreamErrorKind.INVALID_CREDENTIALS
    if any(marker in text for marker in _NETWORK_MARKERS):
        return UpstreamErrorKind.NETWORK
    return UpstreamErrorKind.GENERIC
