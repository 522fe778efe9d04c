r"""Shared core logic for the request executors.

This module holds the pieces used by both ``RequestExecutor`` and
``AsyncRequestExecutor``: session state, wire request building, the
refresh decision and the final decoding of a successful response.
"""

from __future__ import annotations

__all__ = [
    "API_ARG_HEADER",
    "DownloadResult",
    "Session",
    "build_request_spec",
    "build_session",
    "encode_api_arg",
    "finish_response",
    "should_refresh",
]

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from storepipe.core.config import DEFAULT_USER_AGENT, MAX_ATTEMPTS
from storepipe.endpoints.contract import EndpointStyle
from storepipe.exceptions import ErrorKind
from storepipe.result_builder import build_result
from storepipe.transport import RequestSpec

if TYPE_CHECKING:
    from collections.abc import Mapping

    from storepipe.credential import Credential
    from storepipe.endpoints.contract import EndpointContract
    from storepipe.exceptions import ApiError
    from storepipe.transport import RawResponse

# Header carrying the JSON arguments of upload and download endpoints
API_ARG_HEADER = "Dropbox-API-Arg"


@dataclass(frozen=True)
class Session:
    """Authenticated session state derived from a credential.

    Attributes:
        token: The access token the headers were built with.
        headers: Headers sent with every request of the session.
    """

    token: str
    headers: Mapping[str, str] = field(hash=False)


@dataclass(frozen=True)
class DownloadResult:
    """Result of a download endpoint.

    Attributes:
        result: The decoded ``Dropbox-API-Result`` header.
        content: The downloaded bytes.
    """

    result: Any
    content: bytes = field(repr=False)


def build_session(credential: Credential, user_agent: str = DEFAULT_USER_AGENT) -> Session:
    """Build the session headers for the credential's current token.

    Example:
        ```pycon
        >>> from storepipe.credential import StaticCredential
        >>> from storepipe.executor_core import build_session
        >>> session = build_session(StaticCredential("abc"))
        >>> session.headers["Authorization"]
        'Bearer abc'

        ```
    """
    token = credential.access_token
    headers = {"Authorization": f"Bearer {token}", "User-Agent": user_agent}
    return Session(token=token, headers=MappingProxyType(headers))


def encode_api_arg(params: Mapping[str, Any]) -> str:
    r"""Encode arguments for the ``Dropbox-API-Arg`` header.

    HTTP headers must be ASCII, so every non-ASCII character and DEL are
    escaped as ``\uXXXX``.

    Example:
        ```pycon
        >>> from storepipe.executor_core import encode_api_arg
        >>> encode_api_arg({"path": "/café.txt"})
        '{"path": "/caf\\u00e9.txt"}'

        ```
    """
    return json.dumps(params, ensure_ascii=True).replace("\x7f", "\\u007f")


def build_request_spec(
    contract: EndpointContract,
    params: Mapping[str, Any] | None,
    session: Session,
    *,
    content: bytes | None = None,
) -> RequestSpec:
    """Build the wire request of one attempt.

    Args:
        contract: The endpoint contract.
        params: The call parameters. Placeholders of the path template are
            taken from them; the rest become the JSON body (RPC) or the
            ``Dropbox-API-Arg`` header (upload/download).
        session: The current session.
        content: The bytes to upload, for upload endpoints.

    Returns:
        The request spec.

    Raises:
        ValueError: If a path parameter is missing, or if ``content`` is
            given for a non-upload endpoint.
    """
    path, arguments = contract.render_path(params)
    headers = dict(session.headers)
    body: Any = None

    if contract.style is EndpointStyle.RPC:
        if content is not None:
            msg = f"{contract.name} is an RPC endpoint and does not accept content"
            raise ValueError(msg)
        if params is not None:
            headers["Content-Type"] = "application/json"
            body = arguments
    else:
        headers[API_ARG_HEADER] = encode_api_arg(arguments)
        if contract.style is EndpointStyle.UPLOAD:
            headers["Content-Type"] = "application/octet-stream"
            body = content if content is not None else b""
        elif content is not None:
            msg = f"{contract.name} is a download endpoint and does not accept content"
            raise ValueError(msg)

    return RequestSpec(
        method=contract.method,
        path=path,
        style=contract.style,
        headers=headers,
        body=body,
    )


def should_refresh(error: ApiError, credential: Credential, attempt: int) -> bool:
    """Return True if the call should refresh the credential and retry.

    Args:
        error: The error classified for this attempt.
        credential: The credential bound to the executor.
        attempt: The current attempt number (0-indexed).
    """
    return (
        error.kind is ErrorKind.EXPIRED_CREDENTIAL
        and attempt + 1 < MAX_ATTEMPTS
        and credential.can_refresh()
    )


def finish_response(response: RawResponse, contract: EndpointContract) -> Any:
    """Decode a response classified as success.

    Raises:
        ApplicationError: If the payload is an error envelope.
        MalformedResponseError: If the result shape cannot decode it.
    """
    result = build_result(response.body, contract.result_shape, contract.error_shape)
    if contract.style is EndpointStyle.DOWNLOAD:
        return DownloadResult(result=result, content=response.content)
    return result
