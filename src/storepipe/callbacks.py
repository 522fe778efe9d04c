r"""Callback types and data structures for observability.

This module lets users hook into the lifecycle of an endpoint call for
logging, metrics or alerting. Four hooks are available:

- on_request: Called before each attempt is sent
- on_refresh: Called after an expired credential was refreshed, before
  the call is retried
- on_success: Called when the call produced a result
- on_failure: Called when the call ends with an error

Example:
    ```pycon
    >>> from storepipe.callbacks import RefreshInfo
    >>> from storepipe.core.config import ClientConfig
    >>> def log_refresh(info: RefreshInfo) -> None:
    ...     print(f"refreshed credential for {info.endpoint}")
    ...
    >>> config = ClientConfig(on_refresh=log_refresh)

    ```
"""

from __future__ import annotations

__all__ = [
    "CallbackConfig",
    "CallbackManager",
    "FailureInfo",
    "RefreshInfo",
    "RequestInfo",
    "ResponseInfo",
]

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from storepipe.exceptions import ApiError


@dataclass(frozen=True)
class RequestInfo:
    """Information passed to on_request callback.

    Attributes:
        endpoint: The endpoint name.
        method: The HTTP method (e.g., "POST").
        path: The rendered request path.
        attempt: The current attempt number (1-indexed).
    """

    endpoint: str
    method: str
    path: str
    attempt: int


@dataclass(frozen=True)
class RefreshInfo:
    """Information passed to on_refresh callback.

    Attributes:
        endpoint: The endpoint name.
        attempt: The attempt that was rejected (1-indexed).
        error: The expired credential error that triggered the refresh.
    """

    endpoint: str
    attempt: int
    error: ApiError


@dataclass(frozen=True)
class ResponseInfo:
    """Information passed to on_success callback.

    Attributes:
        endpoint: The endpoint name.
        attempt: The attempt that succeeded (1-indexed).
        status_code: The HTTP status code of the final response.
        total_time: Total time spent on the call (seconds).
    """

    endpoint: str
    attempt: int
    status_code: int
    total_time: float


@dataclass(frozen=True)
class FailureInfo:
    """Information passed to on_failure callback.

    Attributes:
        endpoint: The endpoint name.
        attempt: The final attempt number (1-indexed).
        error: The error returned to the caller.
        status_code: The final HTTP status code, if a response was received.
        total_time: Total time spent on the call (seconds).
    """

    endpoint: str
    attempt: int
    error: Exception
    status_code: int | None
    total_time: float


@dataclass(frozen=True)
class CallbackConfig:
    """Configuration for callbacks.

    Attributes:
        on_request: Optional callback invoked before each attempt.
        on_refresh: Optional callback invoked after a credential refresh.
        on_success: Optional callback invoked when the call succeeds.
        on_failure: Optional callback invoked when the call fails.
    """

    on_request: Callable[[RequestInfo], None] | None = None
    on_refresh: Callable[[RefreshInfo], None] | None = None
    on_success: Callable[[ResponseInfo], None] | None = None
    on_failure: Callable[[FailureInfo], None] | None = None


class CallbackManager:
    """Invokes the configured callbacks at lifecycle events.

    Attempt numbers are 0-indexed internally and passed to callbacks
    1-indexed.
    """

    def __init__(self, callbacks: CallbackConfig | None = None) -> None:
        self.callbacks = callbacks or CallbackConfig()

    def on_request(self, endpoint: str, method: str, path: str, attempt: int) -> None:
        if self.callbacks.on_request is not None:
            self.callbacks.on_request(
                RequestInfo(endpoint=endpoint, method=method, path=path, attempt=attempt + 1)
            )

    def on_refresh(self, endpoint: str, attempt: int, error: ApiError) -> None:
        if self.callbacks.on_refresh is not None:
            self.callbacks.on_refresh(
                RefreshInfo(endpoint=endpoint, attempt=attempt + 1, error=error)
            )

    def on_success(
        self, endpoint: str, attempt: int, status_code: int, start_time: float
    ) -> None:
        if self.callbacks.on_success is not None:
            self.callbacks.on_success(
                ResponseInfo(
                    endpoint=endpoint,
                    attempt=attempt + 1,
                    status_code=status_code,
                    total_time=time.time() - start_time,
                )
            )

    def on_failure(
        self,
        endpoint: str,
        attempt: int,
        error: Exception,
        status_code: int | None,
        start_time: float,
    ) -> None:
        if self.callbacks.on_failure is not None:
            self.callbacks.on_failure(
                FailureInfo(
                    endpoint=endpoint,
                    attempt=attempt + 1,
                    error=error,
                    status_code=status_code,
                    total_time=time.time() - start_time,
                )
            )
