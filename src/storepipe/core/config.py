r"""Configuration dataclass and defaults for StoreClient.

This module provides configuration constants and a dataclass-based
configuration object for the StoreClient and AsyncStoreClient context
manager classes.
"""

from __future__ import annotations

__all__ = [
    "ClientConfig",
    "DEFAULT_BASE_URL",
    "DEFAULT_CONTENT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "MAX_ATTEMPTS",
]

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from storepipe.callbacks import CallbackConfig
from storepipe.core.validation import validate_base_url, validate_timeout

if TYPE_CHECKING:
    from collections.abc import Callable

    from storepipe.callbacks import FailureInfo, RefreshInfo, RequestInfo, ResponseInfo


# Host serving RPC endpoints (JSON in, JSON out)
DEFAULT_BASE_URL = "https://api.dropboxapi.com"

# Host serving upload and download endpoints
DEFAULT_CONTENT_BASE_URL = "https://content.dropboxapi.com"

# Default timeout in seconds for HTTP requests
DEFAULT_TIMEOUT = 60.0

DEFAULT_USER_AGENT = "storepipe"

# Attempts per logical call: the initial attempt plus one retry after a
# credential refresh
MAX_ATTEMPTS = 2


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for StoreClient.

    Args:
        base_url: Base URL of the RPC host.
        content_base_url: Base URL of the content (upload/download) host.
        timeout: Timeout in seconds used when the client creates its own
            httpx client. Must be > 0.
        user_agent: Value of the ``User-Agent`` header.
        on_request: Optional callback called before each attempt.
        on_refresh: Optional callback called after a credential refresh.
        on_success: Optional callback called when a call succeeds.
        on_failure: Optional callback called when a call fails.

    Example:
        ```pycon
        >>> from storepipe.core.config import ClientConfig
        >>> config = ClientConfig()
        >>> config.timeout
        60.0
        >>> merged = config.merge(timeout=5.0)
        >>> merged.timeout
        5.0
        >>> config.timeout
        60.0

        ```
    """

    base_url: str = DEFAULT_BASE_URL
    content_base_url: str = DEFAULT_CONTENT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    on_request: Callable[[RequestInfo], None] | None = None
    on_refresh: Callable[[RefreshInfo], None] | None = None
    on_success: Callable[[ResponseInfo], None] | None = None
    on_failure: Callable[[FailureInfo], None] | None = None

    def __post_init__(self) -> None:
        """Validate configuration parameters after initialization.

        Raises:
            ValueError: If any parameter fails validation.
        """
        validate_base_url("base_url", self.base_url)
        validate_base_url("content_base_url", self.content_base_url)
        validate_timeout(self.timeout)

    def merge(self, **overrides: Any) -> ClientConfig:
        """Create a new config with specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new ClientConfig instance with overrides applied.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def callback_config(self) -> CallbackConfig:
        """Extract the lifecycle callbacks of this configuration."""
        return CallbackConfig(
            on_request=self.on_request,
            on_refresh=self.on_refresh,
            on_success=self.on_success,
            on_failure=self.on_failure,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary format.

        Example:
            ```pycon
            >>> from storepipe.core.config import ClientConfig
            >>> ClientConfig(timeout=5.0).to_dict()["timeout"]
            5.0

            ```
        """
        return {
            "base_url": self.base_url,
            "content_base_url": self.content_base_url,
            "timeout": self.timeout,
            "user_agent": self.user_agent,
            "on_request": self.on_request,
            "on_refresh": self.on_refresh,
            "on_success": self.on_success,
            "on_failure": self.on_failure,
        }
