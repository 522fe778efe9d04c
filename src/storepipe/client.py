r"""Synchronous context manager client for cloud-storage endpoints.

This module provides the ``StoreClient`` class. It binds a credential, an
endpoint registry and an ``httpx.Client`` together and exposes every
registered endpoint through ``call()``.
"""

from __future__ import annotations

__all__ = ["StoreClient"]

from typing import TYPE_CHECKING, Any

import httpx

from storepipe.core.config import ClientConfig
from storepipe.endpoints.registry import EndpointRegistry
from storepipe.executor import RequestExecutor
from storepipe.transport import HttpxTransport

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType
    from typing import Self

    from storepipe.credential import Credential
    from storepipe.endpoints.contract import EndpointContract


class StoreClient:
    r"""Synchronous context manager for cloud-storage endpoint calls.

    Two usage patterns are supported, as with any httpx-based client:

    - Pass an ``httpx.Client`` that is managed by an outer ``with`` block;
      ``StoreClient`` uses it without closing it.
    - Omit the client; ``StoreClient`` creates one when the ``with`` block
      is entered and closes it on exit. Calls outside the block raise
      ``RuntimeError``.

    Args:
        credential: The credential authenticating requests.
        registry: The endpoints callable by name.
        config: Optional client configuration.
        client: Optional httpx client. If ``None``, a new client is created
            with the configured timeout.

    Example:
        ```pycon
        >>> from storepipe import StoreClient
        >>> from storepipe.credential import RefreshableCredential
        >>> from storepipe.endpoints import EndpointRegistry
        >>> credential = RefreshableCredential("token", refresh_func=lambda: "new-token")
        >>> with StoreClient(credential, EndpointRegistry()) as client:  # doctest: +SKIP
        ...     account = client.call("users/get_current_account")
        ...

        ```
    """

    def __init__(
        self,
        credential: Credential,
        registry: EndpointRegistry | None = None,
        *,
        config: ClientConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._config: ClientConfig = config or ClientConfig()
        self._registry: EndpointRegistry = registry if registry is not None else EndpointRegistry()
        self._credential = credential
        self._owns_client = client is None
        self._client: httpx.Client | None = client
        self._executor: RequestExecutor | None = None
        if client is not None:
            self._executor = self._create_executor(client)

    def __enter__(self) -> Self:
        """Enter the context manager.

        Without a client passed by the caller, one is created and entered
        here and closed on exit; a client passed by the caller is left untouched.
        """
        if self._owns_client:
            client = httpx.Client(timeout=self._config.timeout)
            client.__enter__()
            self._client = client
            self._executor = self._create_executor(client)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._owns_client and self._client is not None:
            try:
                self._client.__exit__(exc_type, exc_val, exc_tb)
            finally:
                self._client = None
                self._executor = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def credential(self) -> Credential:
        return self._credential

    @property
    def registry(self) -> EndpointRegistry:
        return self._registry

    def execute(
        self,
        contract: EndpointContract,
        params: Mapping[str, Any] | None = None,
        *,
        content: bytes | None = None,
    ) -> Any:
        """Execute a call against an explicit contract.

        See ``RequestExecutor.execute`` for the semantics.
        """
        return self._get_executor().execute(contract, params, content=content)

    def call(self, endpoint: str, /, *, content: bytes | None = None, **params: Any) -> Any:
        r"""Call a registered endpoint by name.

        Args:
            endpoint: The endpoint name, e.g. ``"files/get_metadata"``.
            content: The bytes to upload, for upload endpoints.
            **params: The call parameters. Calls without parameters send
                no body.

        Returns:
            The decoded result.

        Raises:
            KeyError: If the endpoint is not registered.
            ApiError: If the call fails.
            RuntimeError: If the client owns its httpx client and is used
                outside a ``with`` block.
        """
        contract = self._registry.get(endpoint)
        return self._get_executor().execute(contract, params or None, content=content)

    def _create_executor(self, client: httpx.Client) -> RequestExecutor:
        return RequestExecutor(
            HttpxTransport(
                client,
                base_url=self._config.base_url,
                content_base_url=self._config.content_base_url,
            ),
            self._credential,
            callbacks=self._config.callback_config(),
            user_agent=self._config.user_agent,
        )

    def _get_executor(self) -> RequestExecutor:
        if self._executor is None:
            msg = "StoreClient must be used within a context manager (with statement)"
            raise RuntimeError(msg)
        return self._executor
