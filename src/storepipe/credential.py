r"""Credentials used to authenticate endpoint calls.

A credential holds an access token and optionally knows how to obtain a
new one. The executor only relies on the ``Credential`` protocol:

- ``access_token``: the current token
- ``can_refresh()``: whether ``refresh()`` is supported
- ``refresh(stale_token)``: obtain a new token, raising ``RefreshError``
  on failure

``RefreshableCredential`` performs single-flight refreshes: when several
calls observe the same expired token at once, only the first one runs the
refresh function and the others reuse its outcome.
"""

from __future__ import annotations

__all__ = ["Credential", "RefreshableCredential", "StaticCredential"]

import logging
import threading
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from storepipe.exceptions import RefreshError

if TYPE_CHECKING:
    from collections.abc import Callable

logger: logging.Logger = logging.getLogger(__name__)


@runtime_checkable
class Credential(Protocol):
    """Protocol implemented by all credentials."""

    @property
    def access_token(self) -> str: ...

    def can_refresh(self) -> bool: ...

    def refresh(self, stale_token: str | None = None) -> None: ...


class StaticCredential:
    r"""Credential wrapping a long-lived access token.

    Args:
        access_token: The access token.

    Raises:
        ValueError: If the access token is empty.

    Example:
        ```pycon
        >>> from storepipe.credential import StaticCredential
        >>> credential = StaticCredential("sl.abc")
        >>> credential.access_token
        'sl.abc'
        >>> credential.can_refresh()
        False

        ```
    """

    def __init__(self, access_token: str) -> None:
        if not access_token:
            msg = "access_token must not be empty"
            raise ValueError(msg)
        self._access_token = access_token

    def __repr__(self) -> str:
        return f"{type(self).__name__}(access_token='***')"

    @property
    def access_token(self) -> str:
        return self._access_token

    def can_refresh(self) -> bool:
        return False

    def refresh(self, stale_token: str | None = None) -> None:  # noqa: ARG002
        """Always fail: a static token cannot be refreshed.

        Raises:
            RefreshError: Always.
        """
        msg = "StaticCredential cannot refresh its access token"
        raise RefreshError(msg)


class RefreshableCredential:
    r"""Credential whose access token can be refreshed.

    The refresh function performs the actual token exchange (for example
    an OAuth2 refresh-token grant) and returns the new access token. Any
    exception it raises is wrapped in ``RefreshError`` unless it already
    is one.

    Args:
        access_token: The current access token.
        refresh_func: Function returning a new access token.

    Example:
        ```pycon
        >>> from storepipe.credential import RefreshableCredential
        >>> credential = RefreshableCredential("old", refresh_func=lambda: "new")
        >>> credential.can_refresh()
        True
        >>> credential.refresh()
        >>> credential.access_token
        'new'
        >>> credential.refresh_count
        1

        ```
    """

    def __init__(self, access_token: str, refresh_func: Callable[[], str]) -> None:
        if not access_token:
            msg = "access_token must not be empty"
            raise ValueError(msg)
        self._access_token = access_token
        self._refresh_func = refresh_func
        self._refresh_count = 0
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(access_token='***', refresh_count={self._refresh_count})"

    @property
    def access_token(self) -> str:
        with self._lock:
            return self._access_token

    @property
    def refresh_count(self) -> int:
        """Number of refreshes actually performed."""
        return self._refresh_count

    def can_refresh(self) -> bool:
        return True

    def refresh(self, stale_token: str | None = None) -> None:
        """Replace the access token with a fresh one.

        Args:
            stale_token: The token the caller saw rejected. If the current
                token already differs, another caller refreshed it in the
                meantime and no new refresh is performed.

        Raises:
            RefreshError: If the refresh function fails or returns an
                empty token.
        """
        with self._lock:
            if stale_token is not None and stale_token != self._access_token:
                logger.debug("Access token already refreshed by a concurrent call")
                return
            try:
                new_token = self._refresh_func()
            except RefreshError:
                raise
            except Exception as exc:
                msg = f"Failed to refresh access token: {exc}"
                raise RefreshError(msg) from exc
            if not new_token:
                msg = "Refresh function returned an empty access token"
                raise RefreshError(msg)
            self._access_token = new_token
            self._refresh_count += 1
            logger.debug(f"Access token refreshed ({self._refresh_count} refreshes so far)")
