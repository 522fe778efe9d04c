r"""Retry-After header parsing utilities.

Rate-limited responses carry the number of seconds to wait in the
``Retry-After`` header. The pipeline only surfaces this value; scheduling
the retry is left to the caller.
"""

from __future__ import annotations

__all__ = ["parse_retry_after"]

import logging
from contextlib import suppress

logger: logging.Logger = logging.getLogger(__name__)


def parse_retry_after(retry_after_header: str | None) -> int:
    """Parse the Retry-After header value as whole seconds.

    Args:
        retry_after_header: The value of the Retry-After header as a string,
            or None if the header is not present in the response.

    Returns:
        The number of seconds to wait. ``0`` is returned if the header is
        absent, cannot be parsed as a number, or is negative. Fractional
        values are truncated.

    Example:
        ```pycon
        >>> from storepipe.utils import parse_retry_after
        >>> parse_retry_after("30")
        30
        >>> parse_retry_after(" 2.9 ")
        2
        >>> parse_retry_after(None)
        0
        >>> parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT")
        0

        ```
    """
    if retry_after_header is None:
        return 0

    value = retry_after_header.strip()
    with suppress(ValueError):
        return max(0, int(value))
    with suppress(ValueError, OverflowError):
        return max(0, int(float(value)))

    logger.debug(f"Failed to parse Retry-After header: {retry_after_header!r}")
    return 0
