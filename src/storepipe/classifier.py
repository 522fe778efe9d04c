r"""Classification of raw HTTP responses.

The classifier maps a response's status code to a dispatch decision:
either the success path, where the payload goes to the result builder,
or a fully built ``ApiError``.

| Status | Decision                                              |
|--------|-------------------------------------------------------|
| 200    | success path                                          |
| 409    | success path (endpoint error encoded in the payload)  |
| 401    | ``ExpiredCredentialError``                            |
| 429    | ``TooManyRequestsError`` with ``retry_after``         |
| other  | ``HttpError`` with status code and body text          |

Status 409 only carries endpoint-specific errors; whether a 200/409
payload is a result or an error is decided by the result builder, so a
single classifier serves every endpoint.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_RATE_LIMIT_REASON",
    "DEFAULT_RATE_LIMIT_SUMMARY",
    "SUCCESS_STATUS_CODES",
    "ErrorClassifier",
]

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from storepipe.exceptions import (
    ApiError,
    ExpiredCredentialError,
    HttpError,
    TooManyRequestsError,
)
from storepipe.utils.retry_after import parse_retry_after

if TYPE_CHECKING:
    from storepipe.transport import RawResponse

logger: logging.Logger = logging.getLogger(__name__)

# 200: OK, 409: endpoint-specific error carried in the payload
SUCCESS_STATUS_CODES = (200, 409)

# Used when a 429 has no JSON body, e.g. on upload endpoints
DEFAULT_RATE_LIMIT_SUMMARY = "Too many requests."
DEFAULT_RATE_LIMIT_REASON = "too_many_write_operations"


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, str):
        return {".tag": value}
    return {}


class ErrorClassifier:
    r"""Maps raw responses to the success path or an ``ApiError``.

    Example:
        ```pycon
        >>> import httpx
        >>> from storepipe.classifier import ErrorClassifier
        >>> from storepipe.transport import RawResponse
        >>> classifier = ErrorClassifier()
        >>> classifier.classify(RawResponse(200, body={"name": "a.txt"})) is None
        True
        >>> error = classifier.classify(
        ...     RawResponse(429, headers=httpx.Headers({"Retry-After": "5"}))
        ... )
        >>> error.summary, error.reason_tag, error.retry_after
        ('Too many requests.', 'too_many_write_operations', 5)

        ```
    """

    def is_success(self, response: RawResponse) -> bool:
        """Return True if the response goes to the result builder."""
        return response.status_code in SUCCESS_STATUS_CODES

    def classify(self, response: RawResponse) -> ApiError | None:
        """Classify a response.

        Args:
            response: The response to classify.

        Returns:
            None for the success path, otherwise the error describing the
            response.
        """
        status_code = response.status_code
        if self.is_success(response):
            return None
        if status_code == 401:
            error: ApiError = self._expired_credential(response)
        elif status_code == 429:
            error = self._too_many_requests(response)
        else:
            error = HttpError(status_code, response.text)
        logger.debug(f"Classified {status_code} response as {error.kind.value}")
        return error

    def _expired_credential(self, response: RawResponse) -> ExpiredCredentialError:
        body = response.body
        if isinstance(body, Mapping):
            summary = body.get("error_summary") or f"HTTP {response.status_code}"
            return ExpiredCredentialError(str(summary), _as_dict(body.get("error")))
        return ExpiredCredentialError(f"HTTP {response.status_code}")

    def _too_many_requests(self, response: RawResponse) -> TooManyRequestsError:
        body = response.body
        if isinstance(body, Mapping):
            error_field = body.get("error")
            reason = error_field.get("reason") if isinstance(error_field, Mapping) else None
            error = TooManyRequestsError(
                str(body.get("error_summary") or DEFAULT_RATE_LIMIT_SUMMARY),
                _as_dict(reason) or {".tag": DEFAULT_RATE_LIMIT_REASON},
            )
        else:
            error = TooManyRequestsError(
                DEFAULT_RATE_LIMIT_SUMMARY, {".tag": DEFAULT_RATE_LIMIT_REASON}
            )
        error.retry_after = parse_retry_after(response.headers.get("retry-after"))
        return error
