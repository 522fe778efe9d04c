r"""Shared test helpers.

This module contains common test infrastructure used across multiple
test files to reduce duplication.
"""

from __future__ import annotations

__all__ = [
    "EXPIRED_TOKEN_BODY",
    "GET_METADATA_ERROR",
    "LOOKUP_ERROR",
    "TYPED_GET_METADATA_ERROR",
    "NotFoundError",
    "PathLookupError",
    "create_raw_response",
    "make_contract",
]

from typing import TYPE_CHECKING, Any

import httpx

from storepipe.endpoints import (
    EndpointContract,
    EndpointStyle,
    ErrorShape,
    HttpMethod,
    raw_result,
)
from storepipe.exceptions import ApplicationError
from storepipe.transport import RawResponse

if TYPE_CHECKING:
    from collections.abc import Callable

LOOKUP_ERROR = ErrorShape("LookupError", ["not_found", "not_file", "malformed_path"])
GET_METADATA_ERROR = ErrorShape("GetMetadataError", {"path": LOOKUP_ERROR})


class PathLookupError(ApplicationError):
    """Raised for any lookup error under the ``path`` tag."""


class NotFoundError(PathLookupError):
    """Raised when the looked up path does not exist."""


TYPED_GET_METADATA_ERROR = ErrorShape(
    "GetMetadataError",
    {
        "path": ErrorShape(
            "LookupError",
            ["not_found", "not_file", "malformed_path"],
            errors={"not_found": NotFoundError},
        )
    },
    errors={"path": PathLookupError},
)

EXPIRED_TOKEN_BODY = {
    "error_summary": "expired_access_token/..",
    "error": {".tag": "expired_access_token"},
}


def make_contract(
    *,
    name: str = "files/get_metadata",
    method: HttpMethod = HttpMethod.POST,
    path: str = "/2/files/get_metadata",
    result_shape: Callable[[Any], Any] = raw_result,
    error_shape: ErrorShape = GET_METADATA_ERROR,
    style: EndpointStyle = EndpointStyle.RPC,
) -> EndpointContract:
    """Create an endpoint contract with test defaults."""
    return EndpointContract(
        name=name,
        method=method,
        path=path,
        result_shape=result_shape,
        error_shape=error_shape,
        style=style,
    )


def create_raw_response(
    status_code: int = 200,
    body: Any = None,
    *,
    headers: dict[str, str] | None = None,
    text: str = "",
    content: bytes = b"",
) -> RawResponse:
    """Create a RawResponse for testing."""
    return RawResponse(
        status_code=status_code,
        headers=httpx.Headers(headers or {}),
        body=body,
        text=text,
        content=content,
    )
