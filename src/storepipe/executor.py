r"""Synchronous request executor.

This module provides the ``RequestExecutor`` class that runs one logical
endpoint call end-to-end: it builds the wire request, sends it through a
transport, classifies the response and, when the access token has
expired and the credential supports it, refreshes the credential and
retries exactly once.
"""

from __future__ import annotations

__all__ = ["RequestExecutor"]

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
    from storepipe.transport import RawResponse, Transport

logger: logging.Logger = logging.getLogger(__name__)


class RequestExecutor:
    r"""Executes endpoint calls with one-shot credential refresh.

    The executor owns the authenticated session bound to its credential.
    The session is rebuilt after every refresh; this is the only state
    shared between calls.

    Args:
        transport: The transport used to send requests.
        credential: The credential authenticating requests.
        callbacks: Optional lifecycle callbacks.
        classifier: Optional response classifier.
        user_agent: Value of the ``User-Agent`` header.

    Example:
        ```pycon
        >>> import httpx
        >>> from storepipe.credential import StaticCredential
        >>> from storepipe.endpoints import EndpointContract, ErrorShape, HttpMethod, raw_result
        >>> from storepipe.executor import RequestExecutor
        >>> from storepipe.transport import HttpxTransport
        >>> contract = EndpointContract(
        ...     name="users/get_current_account",
        ...     method=HttpMethod.POST,
        ...     path="/2/users/get_current_account",
        ...     result_shape=raw_result,
        ...     error_shape=ErrorShape("GetAccountError"),
        ... )
        >>> mock = httpx.MockTransport(
        ...     lambda request: httpx.Response(200, json={"account_id": "dbid:1"})
        ... )
        >>> with httpx.Client(transport=mock) as client:
        ...     executor = RequestExecutor(HttpxTransport(client), StaticCredential("token"))
        ...     executor.execute(contract)
        ...
        {'account_id': 'dbid:1'}

        ```
    """

    def __init__(
        self,
        transport: Transport,
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

    def rebuild_session(self) -> None:
        """Rebuild the authenticated session from the credential."""
        self.session = build_session(self.credential, self.user_agent)

    def execute(
        self,
        contract: EndpointContract,
        params: Mapping[str, Any] | None = None,
        *,
        content: bytes | None = None,
    ) -> Any:
        """Execute one logical endpoint call.

        At most ``MAX_ATTEMPTS`` requests are sent: the initial attempt and,
        if it is rejected with an expired credential that can be refreshed,
        one retry after the refresh. Any other error ends the call.

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
                response = self.transport.send(spec)
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
                self.credential.refresh(session.token)
            except RefreshError as exc:
                self._fail(endpoint, attempt, exc, response.status_code, start_time)
                raise
            self.rebuild_session()
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
