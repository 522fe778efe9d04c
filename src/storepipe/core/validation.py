r"""Parameter validation utilities for client configuration."""

from __future__ import annotations

__all__ = ["validate_base_url", "validate_timeout"]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


def validate_timeout(timeout: float | httpx.Timeout) -> None:
    """Validate timeout parameter.

    Args:
        timeout: Maximum seconds to wait for server responses.
            Must be > 0 if provided as a numeric value.

    Raises:
        ValueError: If timeout is a numeric value <= 0.

    Example:
        ```pycon
        >>> from storepipe.core.validation import validate_timeout
        >>> validate_timeout(10.0)
        >>> validate_timeout(30)
        >>> validate_timeout(0)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: timeout must be > 0, got 0

        ```
    """
    if isinstance(timeout, (int, float)) and timeout <= 0:
        msg = f"timeout must be > 0, got {timeout}"
        raise ValueError(msg)


def validate_base_url(name: str, url: str) -> None:
    """Validate that a base URL is an absolute http(s) URL.

    Args:
        name: The parameter name, used in error messages.
        url: The URL to validate.

    Raises:
        ValueError: If the URL is empty or does not use http/https.

    Example:
        ```pycon
        >>> from storepipe.core.validation import validate_base_url
        >>> validate_base_url("base_url", "https://api.example.com")
        >>> validate_base_url("base_url", "ftp://example.com")  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: base_url must start with http:// or https://, got 'ftp://example.com'

        ```
    """
    if not url.startswith(("http://", "https://")):
        msg = f"{name} must start with http:// or https://, got {url!r}"
        raise ValueError(msg)
