"""Error kinds and explicit success/failure values shared by every component."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Fixed set of failure kinds surfaced to callers."""

    AI_UNAVAILABLE = "AI_UNAVAILABLE"
    AI_RATE_LIMITED = "AI_RATE_LIMITED"
    AI_INVALID_RESPONSE = "AI_INVALID_RESPONSE"
    AI_MODEL_NOT_FOUND = "AI_MODEL_NOT_FOUND"
    SCRAPER_FAILED = "SCRAPER_FAILED"
    SCRAPER_TIMEOUT = "SCRAPER_TIMEOUT"
    SCRAPER_RATE_LIMITED = "SCRAPER_RATE_LIMITED"
    NO_DATA_AVAILABLE = "NO_DATA_AVAILABLE"
    INVALID_DATA_FORMAT = "INVALID_DATA_FORMAT"
    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    INVALID_CONFIG = "INVALID_CONFIG"
    UNKNOWN = "UNKNOWN"


@dataclass(slots=True)
class AppError:
    """Classified failure with a human-readable message."""

    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass(slots=True)
class Result(Generic[T]):
    """Outcome of a fallible operation: either a value or an `AppError`."""

    value: T | None = None
    error: AppError | None = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise `RuntimeError` describing the failure."""

        if self.error is not None:
            raise RuntimeError(str(self.error))
        return self.value  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        if self.error is not None:
            return default
        return self.value  # type: ignore[return-value]


def success(value: T) -> Result[T]:
    return Result(value=value)


def failure(kind: ErrorKind, message: str, **details: Any) -> Result[Any]:
    return Result(error=AppError(kind=kind, message=message, details=details))


def log_error(context: str, error: AppError) -> None:
    """Log a classified error with a consistent prefix."""

    if error.details:
        logger.error("[%s] %s: %s (%s)", context, error.kind.value, error.message, error.details)
    else:
        logger.error("[%s] %s: %s", context, error.kind.value, error.message)


def propagate(result: Result[Any]) -> Result[Any]:
    """Re-type a failed result so its error can be returned from another operation."""

    return Result(error=result.error)
