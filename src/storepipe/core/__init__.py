r"""Core configuration and validation shared by sync and async clients."""

from __future__ import annotations

__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_CONTENT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "MAX_ATTEMPTS",
    "ClientConfig",
    "validate_base_url",
    "validate_timeout",
]

from storepipe.core.config import (
    DEFAULT_BASE_URL,
    DEFAULT_CONTENT_BASE_URL,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    MAX_ATTEMPTS,
    ClientConfig,
)
from storepipe.core.validation import validate_base_url, validate_timeout
