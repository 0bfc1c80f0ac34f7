"""Error taxonomy shared by the upstream clients, the services and the routers."""

from enum import Enum
from typing import Optional

import openai
from googleapiclient.errors import HttpError


OVERLOADED_STATUS_CODES = {503, 529}
AUTH_STATUS_CODES = {401, 403}
TRANSIENT_STATUS_CODES = {408, 409, 425, 429}


class ErrorKind(str, Enum):
    OVERLOADED = "overloaded"
    AUTH_FAILURE = "auth_failure"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    FATAL = "fatal"


class UpstreamError(Exception):
    """Raised by a transport (YouTube, transcripts, LLM) with a classified kind."""

    def __init__(
        self, message: str, kind: ErrorKind, status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @classmethod
    def from_exception(cls, error: Exception, context: str) -> "UpstreamError":
        return cls(
            f"{context}: {error}",
            kind=classify_error(error),
            status_code=status_code_of(error),
        )


class StorageError(Exception):
    """Raised when the persistence backend fails. Never degraded."""

    pass


class SyncInProgressError(Exception):
    """Raised when a sync is requested while one is running for the same user."""

    pass


class SummaryNotFoundError(Exception):
    pass


def status_code_of(error: Exception) -> Optional[int]:
    """Best-effort HTTP status code of an upstream exception."""
    if isinstance(error, UpstreamError):
        return error.status_code
    if isinstance(error, openai.APIStatusError):
        return error.status_code
    if isinstance(error, HttpError):
        try:
            return int(error.resp.status)
        except (TypeError, ValueError, AttributeError):
            return None
    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    return status if isinstance(status, int) else None


def classify_error(error: Exception) -> ErrorKind:
    """
    Maps an exception raised by an upstream call onto the closed ErrorKind set.

    Retry and degradation policies dispatch on the returned kind only.
    """
    if isinstance(error, UpstreamError):
        return error.kind

    status = status_code_of(error)
    message = str(error).lower()

    if status in OVERLOADED_STATUS_CODES or "overloaded" in message:
        return ErrorKind.OVERLOADED
    if status in AUTH_STATUS_CODES or isinstance(
        error, (openai.AuthenticationError, openai.PermissionDeniedError)
    ):
        return ErrorKind.AUTH_FAILURE
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status is not None and (status in TRANSIENT_STATUS_CODES or status >= 500):
        return ErrorKind.TRANSIENT
    if isinstance(error, (openai.APIConnectionError, TimeoutError, ConnectionError)):
        return ErrorKind.TRANSIENT
    return ErrorKind.FATAL
