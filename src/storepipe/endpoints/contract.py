r"""Immutable per-endpoint contracts.

An ``EndpointContract`` is defined once per remote operation and shared
by all calls. It names the HTTP method, the path template, the request
style and the shapes used to decode success and error payloads.

Example:
    ```pycon
    >>> from storepipe.endpoints import EndpointContract, ErrorShape, HttpMethod, raw_result
    >>> get_metadata = EndpointContract(
    ...     name="files/get_metadata",
    ...     method=HttpMethod.POST,
    ...     path="/2/files/get_metadata",
    ...     result_shape=raw_result,
    ...     error_shape=ErrorShape("GetMetadataError", ["path"]),
    ... )
    >>> get_metadata.render_path({"path": "/a.txt"})
    ('/2/files/get_metadata', {'path': '/a.txt'})

    ```
"""

from __future__ import annotations

__all__ = ["EndpointContract", "EndpointStyle", "HttpMethod"]

import string
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from storepipe.endpoints.shapes import ErrorShape, ResultShape


class HttpMethod(str, Enum):
    """HTTP methods used by endpoint contracts."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class EndpointStyle(Enum):
    """How arguments and results travel for an endpoint.

    Attributes:
        RPC: Arguments in a JSON body, result in a JSON body.
        UPLOAD: Arguments in the ``Dropbox-API-Arg`` header, raw bytes as
            body, JSON result.
        DOWNLOAD: Arguments in the ``Dropbox-API-Arg`` header, result in
            the ``Dropbox-API-Result`` header, raw bytes as body.
    """

    RPC = "rpc"
    UPLOAD = "upload"
    DOWNLOAD = "download"

    @property
    def uses_content_host(self) -> bool:
        return self is not EndpointStyle.RPC


@dataclass(frozen=True)
class EndpointContract:
    """Declarative binding of one remote operation.

    Args:
        name: Identifier of the endpoint, e.g. ``"files/get_metadata"``.
        method: The HTTP method.
        path: Path template; ``{name}`` placeholders are filled from the
            call parameters.
        result_shape: Callable decoding a success payload.
        error_shape: Vocabulary of application errors.
        style: How arguments and results travel.
    """

    name: str
    method: HttpMethod
    path: str
    result_shape: ResultShape = field(compare=False)
    error_shape: ErrorShape = field(compare=False)
    style: EndpointStyle = EndpointStyle.RPC

    def __post_init__(self) -> None:
        if not self.path.startswith("/"):
            msg = f"path must start with '/', got {self.path!r}"
            raise ValueError(msg)

    @property
    def path_fields(self) -> tuple[str, ...]:
        """Names of the placeholders in the path template."""
        return tuple(
            field_name
            for _, field_name, _, _ in string.Formatter().parse(self.path)
            if field_name
        )

    def render_path(self, params: Mapping[str, Any] | None) -> tuple[str, dict[str, Any]]:
        """Fill the path template from the call parameters.

        Args:
            params: The call parameters.

        Returns:
            The rendered path and the parameters not consumed by it.

        Raises:
            ValueError: If a placeholder has no matching parameter.
        """
        remaining = dict(params or {})
        fields = self.path_fields
        missing = [name for name in fields if name not in remaining]
        if missing:
            msg = f"{self.name}: missing path parameter(s) {', '.join(missing)}"
            raise ValueError(msg)
        values = {name: remaining.pop(name) for name in fields}
        return self.path.format(**values), remaining
