r"""Transport layer: wire request/response types and httpx transports.

The pipeline talks to the network through a transport, an object with a
``send(spec)`` method turning a ``RequestSpec`` into a ``RawResponse``.
The default transports wrap an ``httpx.Client`` or ``httpx.AsyncClient``.
Timeouts and connection failures are raised as ``TransportError``; any
status code, including error statuses, is returned as a ``RawResponse``.
"""

from __future__ import annotations

__all__ = [
    "API_RESULT_HEADER",
    "AsyncHttpxTransport",
    "AsyncTransport",
    "HttpxTransport",
    "RawResponse",
    "RequestSpec",
    "Transport",
    "decode_response",
]

import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx

from storepipe.core.config import DEFAULT_BASE_URL, DEFAULT_CONTENT_BASE_URL
from storepipe.endpoints.contract import EndpointStyle, HttpMethod
from storepipe.exceptions import TransportError

if TYPE_CHECKING:
    from collections.abc import Mapping

logger: logging.Logger = logging.getLogger(__name__)

# Header carrying the JSON result of download endpoints
API_RESULT_HEADER = "Dropbox-API-Result"


@dataclass(frozen=True)
class RequestSpec:
    """One wire request, built fresh for every attempt.

    Attributes:
        method: The HTTP method.
        path: The request path, relative to the host selected by ``style``.
        style: The endpoint style; selects the host and body encoding.
        headers: Request headers, including authorization.
        body: JSON-serializable payload for RPC endpoints, raw bytes for
            upload endpoints, or None.
    """

    method: HttpMethod
    path: str
    style: EndpointStyle = EndpointStyle.RPC
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    body: Any = field(default=None, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


@dataclass(frozen=True)
class RawResponse:
    """Status, headers and decoded body of one HTTP response.

    Attributes:
        status_code: The HTTP status code.
        headers: Response headers, case-insensitive.
        body: The decoded JSON body, or None when the body is not JSON.
            For successful download responses this is the decoded
            ``Dropbox-API-Result`` header.
        text: The raw body text.
        content: The raw body bytes.
    """

    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers, compare=False)
    body: Any = None
    text: str = ""
    content: bytes = field(default=b"", repr=False)

    @property
    def has_body(self) -> bool:
        return self.body is not None


@runtime_checkable
class Transport(Protocol):
    """Protocol implemented by synchronous transports."""

    def send(self, spec: RequestSpec) -> RawResponse: ...


@runtime_checkable
class AsyncTransport(Protocol):
    """Protocol implemented by asynchronous transports."""

    async def send(self, spec: RequestSpec) -> RawResponse: ...


def _is_json(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower() == "application/json"


def decode_response(response: httpx.Response, style: EndpointStyle) -> RawResponse:
    """Convert an ``httpx.Response`` into a ``RawResponse``.

    Successful download responses carry their JSON result in the
    ``Dropbox-API-Result`` header and their body is the file itself,
    whatever its content type. Other JSON bodies are decoded when the
    content type says so.
    Undecodable JSON leaves the body empty.

    Args:
        response: The httpx response, fully read.
        style: The style of the endpoint that was called.

    Returns:
        The decoded response.
    """
    body: Any = None
    raw: str | None = None
    if style is EndpointStyle.DOWNLOAD and response.status_code == 200:
        raw = response.headers.get(API_RESULT_HEADER)
    elif _is_json(response):
        raw = response.text

    if raw:
        try:
            body = json.loads(raw)
        except ValueError:
            logger.debug(f"Failed to decode JSON body of {response.status_code} response")

    return RawResponse(
        status_code=response.status_code,
        headers=response.headers,
        body=body,
        text=response.text,
        content=response.content,
    )


def _request_kwargs(spec: RequestSpec) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"headers": dict(spec.headers)}
    if spec.body is None:
        return kwargs
    if spec.style is EndpointStyle.RPC:
        kwargs["content"] = json.dumps(spec.body).encode("utf-8")
    else:
        kwargs["content"] = spec.body
    return kwargs


def _transport_error(exc: httpx.RequestError, method: str, url: str) -> TransportError:
    if isinstance(exc, httpx.TimeoutException):
        return TransportError(f"{method} request to {url} timed out", cause=exc)
    return TransportError(
        f"{method} request to {url} failed with {type(exc).__name__}: {exc}", cause=exc
    )


class _BaseHttpxTransport:
    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        content_base_url: str = DEFAULT_CONTENT_BASE_URL,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.content_base_url = content_base_url.rstrip("/")

    def build_url(self, spec: RequestSpec) -> str:
        host = self.content_base_url if spec.style.uses_content_host else self.base_url
        return f"{host}{spec.path}"


class HttpxTransport(_BaseHttpxTransport):
    r"""Synchronous transport backed by ``httpx.Client``.

    The transport does not own the client: closing it is the caller's
    responsibility.

    Args:
        client: The httpx client used to send requests.
        base_url: Base URL of the RPC host.
        content_base_url: Base URL of the upload/download host.

    Example:
        ```pycon
        >>> import httpx
        >>> from storepipe.endpoints import HttpMethod
        >>> from storepipe.transport import HttpxTransport, RequestSpec
        >>> mock = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True}))
        >>> with httpx.Client(transport=mock) as client:
        ...     response = HttpxTransport(client).send(RequestSpec(HttpMethod.POST, "/2/check/app"))
        ...
        >>> response.status_code, response.body
        (200, {'ok': True})

        ```
    """

    def __init__(self, client: httpx.Client, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.client = client

    def send(self, spec: RequestSpec) -> RawResponse:
        """Send one request and decode its response.

        Raises:
            TransportError: On timeouts and connection failures.
        """
        url = self.build_url(spec)
        try:
            response = self.client.request(spec.method.value, url, **_request_kwargs(spec))
        except httpx.RequestError as exc:
            raise _transport_error(exc, spec.method.value, url) from exc
        logger.debug(f"{spec.method.value} {url} -> {response.status_code}")
        return decode_response(response, spec.style)


class AsyncHttpxTransport(_BaseHttpxTransport):
    """Asynchronous transport backed by ``httpx.AsyncClient``.

    Args:
        client: The httpx async client used to send requests.
        base_url: Base URL of the RPC host.
        content_base_url: Base URL of the upload/download host.
    """

    def __init__(self, client: httpx.AsyncClient, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.client = client

    async def send(self, spec: RequestSpec) -> RawResponse:
        """Send one request and decode its response.

        Raises:
            TransportError: On timeouts and connection failures.
        """
        url = self.build_url(spec)
        try:
            response = await self.client.request(spec.method.value, url, **_request_kwargs(spec))
        except httpx.RequestError as exc:
            raise _transport_error(exc, spec.method.value, url) from exc
        logger.debug(f"{spec.method.value} {url} -> {response.status_code}")
        return decode_response(response, spec.style)
