r"""storepipe - Request-execution pipeline for cloud-storage API clients.

This package provides the machinery shared by every endpoint of a
cloud-storage HTTP API: building requests from immutable endpoint
contracts, sending them over httpx, classifying responses, refreshing an
expired access token and retrying exactly once, and decoding payloads
into typed results or typed errors.

Key Features:
    - Immutable endpoint contracts and a static endpoint registry
    - RPC, upload and download request styles
    - One-shot refresh-and-retry on expired credentials, with
      single-flight refresh across concurrent calls
    - Rate-limit classification with Retry-After surfacing
    - Closed, per-endpoint application error vocabularies
    - Sync and async clients, lifecycle callbacks, structured logging

Example:
    ```pycon
    >>> from storepipe import StoreClient
    >>> from storepipe.credential import StaticCredential
    >>> from storepipe.endpoints import (
    ...     EndpointContract,
    ...     EndpointRegistry,
    ...     ErrorShape,
    ...     HttpMethod,
    ...     raw_result,
    ... )
    >>> registry = EndpointRegistry(
    ...     [
    ...         EndpointContract(
    ...             name="files/get_metadata",
    ...             method=HttpMethod.POST,
    ...             path="/2/files/get_metadata",
    ...             result_shape=raw_result,
    ...             error_shape=ErrorShape("GetMetadataError", ["path"]),
    ...         )
    ...     ]
    ... ).freeze()
    >>> with StoreClient(StaticCredential("token"), registry) as client:  # doctest: +SKIP
    ...     metadata = client.call("files/get_metadata", path="/report.pdf")
    ...

    ```
"""

from __future__ import annotations

__all__ = [
    "ApiError",
    "AsyncRequestExecutor",
    "AsyncStoreClient",
    "ErrorKind",
    "RefreshError",
    "RequestExecutor",
    "StoreClient",
    "__version__",
]

from importlib.metadata import PackageNotFoundError, version

from storepipe.client import StoreClient
from storepipe.client_async import AsyncStoreClient
from storepipe.exceptions import ApiError, ErrorKind, RefreshError
from storepipe.executor import RequestExecutor
from storepipe.executor_async import AsyncRequestExecutor

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
