r"""Asynchronous request executor.

This module provides the ``AsyncRequestExecutor`` class, the asyncio
counterpart of ``RequestExecutor``. The credential's refresh function is
blocking, so it runs in a worker thread; refreshes of one executor are
serialized with an ``asyncio.Lock`` so concurrent tasks that hit an
expired token trigger a single refresh.
"""

from __future__ import annotations

__all__ = ["AsyncRequestExecutor"]

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from storepipe.callbacks import CallbackManager
from storepipe.classifier import ErrorClassifier
from storepipe.core.config import DEFAULT_USER_AGENT, MAX_ATTEMPTS
from storepipe.exceptions import ApiError, RefreshError
from storepipe.executor_core import (
    build_request_spec,
    build_session,
    finish_response,
    should_refresh,
)
from storepipe.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from collections.abc import Mapping

    from storepipe.callbacks import CallbackConfig
    from storepipe.credential import Credential
    from storepipe.endpoints.contract import EndpointContract
    from storepipe.executor_core import Session
    from storepipe.transport import AsyncTransport, RawResponse

logger: logging.Logger = logging.getLogger(__name__)


class AsyncRequestExecutor:
    r"""Executes endpoint calls asynchronously with one-shot refresh.

    Args:
        transport: The async transport used to send requests.
        credential: The credential authenticating requests.
        callbacks: Optional lifecycle callbacks.
        classifier: Optional response classifier.
        user_agent: Value of the ``User-Agent`` header.

    Example:
        ```pycon
        >>> import asyncio
        >>> import httpx
        >>> from storepipe.credential import StaticCredential
        >>> from storepipe.endpoints import EndpointContract, ErrorShape, HttpMethod, raw_result
        >>> from storepipe.executor_async import AsyncRequestExecutor
        >>> from storepipe.transport import AsyncHttpxTransport
        >>> contract = EndpointContract(
        ...     name="users/get_space_usage",
        ...     method=HttpMethod.POST,
        ...     path="/2/users/get_space_usage",
        ...     result_shape=raw_result,
        ...     error_shape=ErrorShape("SpaceUsageError"),
        ... )
        >>> async def main():
        ...     mock = httpx.MockTransport(lambda request: httpx.Response(200, json={"used": 42}))
        ...     async with httpx.AsyncClient(transport=mock) as client:
        ...         executor = AsyncRequestExecutor(
        ...             AsyncHttpxTransport(client), StaticCredential("token")
        ...         )
        ...         return await executor.execute(contract)
        ...
        >>> asyncio.run(main())
        {'used': 42}

        ```
    """

    def __init__(
        self,
        transport: AsyncTransport,
        credential: Credential,
        *,
        callbacks: CallbackConfig | None = None,
        classifier: ErrorClassifier | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.transport = transport
        self.credential = credential
        self.callbacks: CallbackManager = CallbackManager(callbacks)
        self.classifier: ErrorClassifier = classifier or ErrorClassifier()
        self.user_agent = user_agent
        self.session = build_session(credential, user_agent)
        self._refresh_lock = asyncio.Lock()

    def rebuild_session(self) -> None:
        """Rebuild the authenticated session from the credential."""
        self.session = build_session(self.credential, self.user_agent)

    async def _refresh(self, session: Session) -> None:
        async with self._refresh_lock:
            if self.session.token != session.token:
                logger.debug("Session already rebuilt by a concurrent call")
                return
            await asyncio.to_thread(self.credential.refresh, session.token)
            self.rebuild_session()

    async def execute(
        self,
        contract: EndpointContract,
        params: Mapping[str, Any] | None = None,
        *,
        content: bytes | None = None,
    ) -> Any:
        """Execute one logical endpoint call.

        Args:
            contract: The endpoint contract.
            params: The call parameters.
            content: The bytes to upload, for upload endpoints.

        Returns:
            The result decoded with the contract's result shape.

        Raises:
            ApiError: For every non-success outcome, including
                ``TransportError`` raised by the transport.
            RefreshError: If refreshing the credential fails.
            ValueError: If the parameters do not fit the contract.
        """
        endpoint = contract.name
        start_time = time.time()
        response: RawResponse | None = None
        error: ApiError | None = None

        for attempt in range(MAX_ATTEMPTS):
            session = self.session
            spec = build_request_spec(contract, params, session, content=content)
            self.callbacks.on_request(endpoint, spec.method.value, spec.path, attempt)
            log_structured(
                logger,
                logging.DEBUG,
                f"{spec.method.value} {spec.path} (attempt {attempt + 1}/{MAX_ATTEMPTS})",
                endpoint=endpoint,
                attempt=attempt + 1,
            )

            try:
                response = await self.transport.send(spec)
            except ApiError as exc:
                self._fail(endpoint, attempt, exc, None, start_time)
                raise

            error = self.classifier.classify(response)
            if error is None:
                try:
                    result = finish_response(response, contract)
                except ApiError as exc:
                    self._fail(endpoint, attempt, exc, response.status_code, start_time)
                    raise
                self.callbacks.on_success(endpoint, attempt, response.status_code, start_time)
                log_structured(
                    logger,
                    logging.DEBUG,
                    f"{endpoint} succeeded with status {response.status_code}",
                    endpoint=endpoint,
                    attempt=attempt + 1,
                    status_code=response.status_code,
                )
                return result

            if not should_refresh(error, self.credential, attempt):
                break

            log_structured(
                logger,
                logging.DEBUG,
                f"{endpoint}: access token expired, refreshing credential",
                endpoint=endpoint,
                attempt=attempt + 1,
                status_code=response.status_code,
                error_kind=error.kind.value,
            )
            try:
                await self._refresh(session)
            except RefreshError as exc:
                self._fail(endpoint, attempt, exc, response.status_code, start_time)
                raise
            self.callbacks.on_refresh(endpoint, attempt, error)

        self._fail(endpoint, attempt, error, response.status_code, start_time)
        raise error

    def _fail(
        self,
        endpoint: str,
        attempt: int,
        error: Exception,
        status_code: int | None,
        start_time: float,
    ) -> None:
        log_structured(
            logger,
            logging.DEBUG,
            f"{endpoint} failed: {error}",
            endpoint=endpoint,
            attempt=attempt + 1,
            status_code=status_code,
            error_kind=error.kind.value if isinstance(error, ApiError) else type(error).__name__,
        )
        self.callbacks.on_failure(endpoint, attempt, error, status_code, start_time)
