r"""Error taxonomy for the request-execution pipeline.

Every failed endpoint call surfaces as exactly one ``ApiError`` subclass.
``RefreshError`` is the only exception that is not an ``ApiError``: it is
raised by a credential when its own refresh fails and is propagated to the
caller unchanged.
"""

from __future__ import annotations

__all__ = [
    "ApiError",
    "ApplicationError",
    "ErrorKind",
    "ExpiredCredentialError",
    "HttpError",
    "MalformedResponseError",
    "RefreshError",
    "TooManyRequestsError",
    "TransportError",
    "UnknownApplicationError",
]

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Closed set of error kinds produced by the pipeline."""

    TRANSPORT = "transport"
    EXPIRED_CREDENTIAL = "expired_credential"
    TOO_MANY_REQUESTS = "too_many_requests"
    APPLICATION = "application"
    UNKNOWN_APPLICATION = "unknown_application"
    HTTP = "http"
    MALFORMED_RESPONSE = "malformed_response"


class ApiError(Exception):
    r"""Base class for all errors returned by an endpoint call.

    Args:
        summary: A human-readable summary of the error.
        reason: The structured reason payload, usually the ``error``
            field of the response body.
        kind: The error kind. Subclasses set a default.

    Example:
        ```pycon
        >>> from storepipe.exceptions import ApiError, ErrorKind
        >>> error = ApiError("something went wrong", reason={".tag": "other"})
        >>> error.kind
        <ErrorKind.HTTP: 'http'>
        >>> error.summary
        'something went wrong'

        ```
    """

    default_kind: ErrorKind = ErrorKind.HTTP

    def __init__(
        self,
        summary: str,
        reason: dict[str, Any] | None = None,
        *,
        kind: ErrorKind | None = None,
    ) -> None:
        super().__init__(summary)
        self.summary = summary
        self.reason: dict[str, Any] = reason if reason is not None else {}
        self.kind = kind if kind is not None else self.default_kind
        self._retry_after: int | None = None

    @property
    def retry_after(self) -> int | None:
        """Number of seconds the server asked to wait, if any."""
        return self._retry_after

    @retry_after.setter
    def retry_after(self, value: int) -> None:
        if self._retry_after is not None:
            msg = "retry_after can only be set once"
            raise AttributeError(msg)
        self._retry_after = value

    @property
    def reason_tag(self) -> str | None:
        """The ``.tag`` discriminant of the reason payload, if any."""
        tag = self.reason.get(".tag")
        return tag if isinstance(tag, str) else None

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a JSON-friendly mapping."""
        result: dict[str, Any] = {"kind": self.kind.value, "summary": self.summary}
        if self.reason:
            result["reason"] = self.reason
        if self._retry_after is not None:
            result["retry_after"] = self._retry_after
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, summary={self.summary!r})"


class TransportError(ApiError):
    """Network or connection failure raised by a transport."""

    default_kind = ErrorKind.TRANSPORT

    def __init__(self, summary: str, *, cause: Exception | None = None) -> None:
        super().__init__(summary)
        self.__cause__ = cause


class ExpiredCredentialError(ApiError):
    """The access token was rejected (HTTP 401)."""

    default_kind = ErrorKind.EXPIRED_CREDENTIAL


class TooManyRequestsError(ApiError):
    """The server is rate limiting the caller (HTTP 429)."""

    default_kind = ErrorKind.TOO_MANY_REQUESTS


class HttpError(ApiError):
    r"""Any HTTP status without a dedicated error kind.

    Args:
        status_code: The HTTP status code of the response.
        body: The raw body text of the response.

    Example:
        ```pycon
        >>> from storepipe.exceptions import HttpError
        >>> error = HttpError(503, "server busy")
        >>> str(error)
        'HTTP 503: server busy'

        ```
    """

    default_kind = ErrorKind.HTTP

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["status_code"] = self.status_code
        return result


class ApplicationError(ApiError):
    r"""Endpoint-specific error decoded from a response payload.

    Args:
        summary: The ``error_summary`` of the payload.
        reason: The ``error`` field of the payload.
        error_shape: Name of the error shape the payload was decoded with.
        tag_path: Discriminant tags from the outermost to the innermost
            variant, e.g. ``("path", "not_found")``.

    Example:
        ```pycon
        >>> from storepipe.exceptions import ApplicationError
        >>> error = ApplicationError(
        ...     "path/not_found/..",
        ...     {".tag": "path", "path": {".tag": "not_found"}},
        ...     error_shape="GetMetadataError",
        ...     tag_path=("path", "not_found"),
        ... )
        >>> error.tag
        'path'
        >>> error.qualified_tag
        'path/not_found'

        ```
    """

    default_kind = ErrorKind.APPLICATION

    def __init__(
        self,
        summary: str,
        reason: dict[str, Any] | None = None,
        *,
        error_shape: str,
        tag_path: tuple[str, ...] = (),
    ) -> None:
        super().__init__(summary, reason)
        self.error_shape = error_shape
        self.tag_path = tag_path

    @property
    def tag(self) -> str | None:
        """The outermost discriminant tag."""
        return self.tag_path[0] if self.tag_path else None

    @property
    def qualified_tag(self) -> str:
        """All discriminant tags joined with ``/``."""
        return "/".join(self.tag_path)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error_shape"] = self.error_shape
        result["tag"] = self.qualified_tag
        return result


class UnknownApplicationError(ApplicationError):
    """Application error whose discriminant is not part of the shape."""

    default_kind = ErrorKind.UNKNOWN_APPLICATION


class MalformedResponseError(ApiError):
    """A success payload could not be decoded with the result shape."""

    default_kind = ErrorKind.MALFORMED_RESPONSE


class RefreshError(RuntimeError):
    r"""Raised by a credential when refreshing the access token fails.

    This error is never wrapped by the pipeline.

    Example:
        ```pycon
        >>> from storepipe.exceptions import RefreshError
        >>> raise RefreshError("invalid_grant")
        Traceback (most recent call last):
            ...
        storepipe.exceptions.RefreshError: invalid_grant

        ```
    """
