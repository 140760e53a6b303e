"""Route generation error taxonomy and provider failure classification."""

from __future__ import annotations

from enum import Enum
from typing import Final

import httpx


class RouteErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    EMPTY_RESULT = "empty_result"
    UNAVAILABLE = "unavailable"
    NO_VIABLE_CANDIDATE = "no_viable_candidate"
    CONFIGURATION = "configuration"


_RETRYABLE: Final[dict[RouteErrorKind, bool]] = {
    RouteErrorKind.RATE_LIMITED: True,
    RouteErrorKind.EMPTY_RESULT: False,
    RouteErrorKind.UNAVAILABLE: True,
    RouteErrorKind.NO_VIABLE_CANDIDATE: True,
    RouteErrorKind.CONFIGURATION: False,
}

_MESSAGES: Final[dict[RouteErrorKind, str]] = {
    RouteErrorKind.RATE_LIMITED: "Rate limited. Please wait a moment and try again.",
    RouteErrorKind.EMPTY_RESULT: "No walkable routes found near this location. Try a different starting point.",
    RouteErrorKind.UNAVAILABLE: "Routing service is temporarily unavailable.",
    RouteErrorKind.NO_VIABLE_CANDIDATE: (
        "Could not find a suitable route. Try adjusting your preferences or location."
    ),
    RouteErrorKind.CONFIGURATION: "Server configuration error.",
}

# Highest priority first when a whole batch fails.
_BATCH_PRIORITY: Final[tuple[RouteErrorKind, ...]] = (
    RouteErrorKind.RATE_LIMITED,
    RouteErrorKind.EMPTY_RESULT,
    RouteErrorKind.UNAVAILABLE,
)


class ProviderError(Exception):
    """Non-2xx response from the directions provider."""

    def __init__(self, status: int, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(f"Provider returned HTTP {status}: {body[:240]}" if body else f"Provider returned HTTP {status}")


class RouteGenerationError(Exception):
    """A failure from the closed route-generation taxonomy.

    ``retryable`` is the only thing a caller needs to decide whether to offer
    the user another attempt.
    """

    def __init__(self, kind: RouteErrorKind, message: str | None = None, *, detail: str | None = None) -> None:
        self.kind = kind
        self.message = message or _MESSAGES[kind]
        self.retryable = _RETRYABLE[kind]
        self.detail = detail
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"RouteGenerationError(kind={self.kind.value!r}, retryable={self.retryable})"


def classify_status(status: int) -> RouteErrorKind:
    """Map a provider HTTP status onto the taxonomy."""
    if status == 429:
        return RouteErrorKind.RATE_LIMITED
    return RouteErrorKind.UNAVAILABLE


def classify_exception(exc: BaseException) -> RouteGenerationError:
    """Convert any failure raised while talking to the provider into a taxonomy error."""
    if isinstance(exc, RouteGenerationError):
        return exc
    if isinstance(exc, ProviderError):
        return RouteGenerationError(classify_status(exc.status), detail=str(exc))
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return RouteGenerationError(RouteErrorKind.UNAVAILABLE, detail=f"timeout: {type(exc).__name__}")
    # Transport failures and malformed payloads are generic service failures.
    return RouteGenerationError(RouteErrorKind.UNAVAILABLE, detail=f"{type(exc).__name__}: {exc}")


def representative_error(errors: list[RouteGenerationError]) -> RouteGenerationError:
    """Pick the error reported for a batch in which every seed failed."""
    kinds = {error.kind for error in errors}
    for kind in _BATCH_PRIORITY:
        if kind in kinds:
            return RouteGenerationError(kind)
    return RouteGenerationError(RouteErrorKind.UNAVAILABLE)
