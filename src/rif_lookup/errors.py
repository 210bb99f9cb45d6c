"""Error taxonomy and the result type used at source boundaries.

Every upstream source (registry, indexer, price API, token contract) reports
its outcome as ``Ok(value)`` or ``Err(kind, message)``. Callers collapse an
``Err`` into "no result" only at the aggregator or service boundary, so the
original failure stays available for logging and tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    NETWORK = "network"
    UPSTREAM = "upstream"
    VALIDATION = "validation"
    RETRIES_EXHAUSTED = "retries_exhausted"


class RifLookupError(Exception):
    """Base class for all errors raised by rif-lookup."""

    kind: ErrorKind = ErrorKind.UPSTREAM


class NetworkError(RifLookupError):
    """Transport failure: connection refused, DNS, timeout."""

    kind = ErrorKind.NETWORK


class UpstreamError(RifLookupError):
    """Upstream answered with a non-2xx status or a malformed payload."""

    kind = ErrorKind.UPSTREAM

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(RifLookupError):
    """Raised when the input address is malformed."""

    kind = ErrorKind.VALIDATION

    def __init__(self, address: str):
        super().__init__(f"Address is not valid: {address!r}")
        self.address = address


class RetriesExhaustedError(RifLookupError):
    """Retry budget of a paginated traversal ran out.

    Only raised inside the pagination client; never surfaced to callers.
    """

    kind = ErrorKind.RETRIES_EXHAUSTED


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> Err:
        kind = exc.kind if isinstance(exc, RifLookupError) else ErrorKind.UPSTREAM
        return cls(kind=kind, message=str(exc) or type(exc).__name__)


SourceResult = Union[Ok[T], Err]


def unwrap_or(result: SourceResult[T], default: T) -> T:
    """Return the value of an ``Ok`` result, or ``default`` for an ``Err``."""
    if isinstance(result, Ok):
        return result.value
    return default
