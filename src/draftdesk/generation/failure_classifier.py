"""Deterministic mapping of generation backend failures to error kinds."""

from __future__ import annotations

import anthropic

from draftdesk.errors import AppError, ErrorKind

_STATUS_KINDS: dict[int, ErrorKind] = {
    401: ErrorKind.AI_UNAVAILABLE,
    403: ErrorKind.AI_UNAVAILABLE,
    429: ErrorKind.AI_RATE_LIMITED,
    404: ErrorKind.AI_MODEL_NOT_FOUND,
}


def classify_status(status_code: int | None) -> ErrorKind:
    if status_code is None:
        return ErrorKind.UNKNOWN
    return _STATUS_KINDS.get(status_code, ErrorKind.UNKNOWN)


def classify_backend_failure(error: Exception, *, model: str) -> AppError:
    """Classify an exception raised by the Messages API call."""

    if isinstance(error, anthropic.APIStatusError):
        status = error.status_code
        kind = classify_status(status)
        if kind is ErrorKind.AI_UNAVAILABLE:
            message = "Invalid or missing API key."
        elif kind is ErrorKind.AI_RATE_LIMITED:
            message = "Rate limited by the generation backend."
        elif kind is ErrorKind.AI_MODEL_NOT_FOUND:
            message = f"Model not found: {model}"
        else:
            message = error.message or f"Generation backend returned HTTP {status}."
        return AppError(kind=kind, message=message, details={"status": status, "model": model})

    if isinstance(error, anthropic.APITimeoutError):
        return AppError(
            kind=ErrorKind.UNKNOWN,
            message="Generation backend request timed out.",
            details={"model": model},
        )

    if isinstance(error, anthropic.APIConnectionError):
        return AppError(
            kind=ErrorKind.UNKNOWN,
            message=f"Could not reach generation backend: {error}",
            details={"model": model},
        )

    return AppError(
        kind=ErrorKind.UNKNOWN,
        message=str(error) or "Unknown error during generation.",
        details={"model": model, "error_type": type(error).__name__},
    )
