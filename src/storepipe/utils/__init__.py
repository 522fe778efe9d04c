r"""Utility functions for the request-execution pipeline."""

from __future__ import annotations

__all__ = [
    "CALL_FIELDS",
    "StructuredFormatter",
    "log_structured",
    "parse_retry_after",
]

from storepipe.utils.retry_after import parse_retry_after
from storepipe.utils.structured_logging import CALL_FIELDS, StructuredFormatter, log_structured
