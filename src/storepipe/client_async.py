r"""Asynchronous context manager client for cloud-storage endpoints.

This module provides the ``AsyncStoreClient`` class, the asyncio
counterpart of ``StoreClient``.
"""

from __future__ import annotations

__all__ = ["AsyncStoreClient"]

from typing import TYPE_CHECKING, Any

import httpx

from storepipe.core.config import ClientConfig
from storepipe.endpoints.registry import EndpointRegistry
from storepipe.executor_async import AsyncRequestExecutor
from storepipe.transport import AsyncHttpxTransport

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType
    from typing import Self

    from storepipe.credential import Credential
    from storepipe.endpoints.contract import EndpointContract


class AsyncStoreClient:
    r"""Asynchronous context manager for cloud-storage endpoint calls.

    Args:
        credential: The credential authenticating requests.
        registry: The endpoints callable by name.
        config: Optional client configuration.
        client: Optional httpx async client. If ``None``, a new client is
            created with the configured timeout when the ``async with``
            block is entered, and closed on exit.

    Example:
        ```pycon
        >>> import asyncio
        >>> from storepipe import AsyncStoreClient
        >>> from storepipe.credential import StaticCredential
        >>> async def main():
        ...     async with AsyncStoreClient(StaticCredential("token")) as client:
        ...         return await client.call("users/get_current_account")
        ...
        >>> asyncio.run(main())  # doctest: +SKIP

        ```
    """

    def __init__(
        self,
        credential: Credential,
        registry: EndpointRegistry | None = None,
        *,
        config: ClientConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config: ClientConfig = config or ClientConfig()
        self._registry: EndpointRegistry = registry if registry is not None else EndpointRegistry()
        self._credential = credential
        self._owns_client = client is None
        self._client: httpx.AsyncClient | None = client
        self._executor: AsyncRequestExecutor | None = None
        if client is not None:
            self._executor = self._create_executor(client)

    async def __aenter__(self) -> Self:
        """Enter the async context manager.

        Without a client passed by the caller, one is created and entered
        here and closed on exit; a client passed by the caller is left untouched.
        """
        if self._owns_client:
            client = httpx.AsyncClient(timeout=self._config.timeout)
            await client.__aenter__()
            self._client = client
            self._executor = self._create_executor(client)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._owns_client and self._client is not None:
            try:
                await self._client.__aexit__(exc_type, exc_val, exc_tb)
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

    async def execute(
        self,
        contract: EndpointContract,
        params: Mapping[str, Any] | None = None,
        *,
        content: bytes | None = None,
    ) -> Any:
        """Execute a call against an explicit contract."""
        return await self._get_executor().execute(contract, params, content=content)

    async def call(self, endpoint: str, /, *, content: bytes | None = None, **params: Any) -> Any:
        """Call a registered endpoint by name.

        Raises:
            KeyError: If the endpoint is not registered.
            ApiError: If the call fails.
            RuntimeError: If the client owns its httpx client and is used
                outside an ``async with`` block.
        """
        contract = self._registry.get(endpoint)
        return await self._get_executor().execute(contract, params or None, content=content)

    def _create_executor(self, client: httpx.AsyncClient) -> AsyncRequestExecutor:
        return AsyncRequestExecutor(
            AsyncHttpxTransport(
                client,
                base_url=self._config.base_url,
                content_base_url=self._config.content_base_url,
            ),
            self._credential,
            callbacks=self._config.callback_config(),
            user_agent=self._config.user_agent,
        )

    def _get_executor(self) -> AsyncRequestExecutor:
        if self._executor is None:
            msg = "AsyncStoreClient must be used within an async context manager (async with statement)"
            raise RuntimeError(msg)
        return self._executor
