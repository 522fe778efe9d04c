r"""Decoding of 200/409 payloads into results or application errors.

A payload is an error envelope when it is a mapping holding the reserved
``error`` key:

    {"error_summary": "path/not_found/..", "error": {".tag": "path", ...}}

Error envelopes are decoded against the endpoint's ``ErrorShape``;
anything else is decoded with its result shape.
"""

from __future__ import annotations

__all__ = ["ERROR_KEY", "ERROR_SUMMARY_KEY", "ResultBuilder", "build_result"]

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from storepipe.exceptions import MalformedResponseError, UnknownApplicationError

if TYPE_CHECKING:
    from storepipe.endpoints.shapes import ErrorShape, ResultShape
    from storepipe.exceptions import ApplicationError

logger: logging.Logger = logging.getLogger(__name__)

ERROR_KEY = "error"
ERROR_SUMMARY_KEY = "error_summary"


class ResultBuilder:
    r"""Wraps one decoded payload and materializes it.

    Args:
        payload: The decoded response body.

    Example:
        ```pycon
        >>> from storepipe.endpoints import ErrorShape
        >>> from storepipe.result_builder import ResultBuilder
        >>> builder = ResultBuilder({"error_summary": "to/conflict/..", "error": {".tag": "to"}})
        >>> builder.has_error()
        True
        >>> error = builder.build_error(ErrorShape("RelocationError", ["from_lookup", "to"]))
        >>> error.kind.value, error.tag
        ('application', 'to')

        ```
    """

    def __init__(self, payload: Any) -> None:
        self.payload = payload

    def has_error(self) -> bool:
        """Return True if the payload is an error envelope."""
        return isinstance(self.payload, Mapping) and ERROR_KEY in self.payload

    @property
    def error_summary(self) -> str:
        summary = self.payload.get(ERROR_SUMMARY_KEY) if self.has_error() else None
        return str(summary) if summary else ""

    def build(self, result_shape: ResultShape) -> Any:
        """Decode the payload with a result shape.

        Raises:
            MalformedResponseError: If the shape cannot decode the payload.
        """
        try:
            return result_shape(self.payload)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.debug(f"Failed to decode result payload: {type(exc).__name__}: {exc}")
            msg = f"Malformed response payload: {exc}"
            raise MalformedResponseError(msg) from exc

    def build_error(self, error_shape: ErrorShape) -> ApplicationError:
        """Decode the error envelope against an error shape.

        Returns:
            An instance of the error type the shape registers for the
            discriminant (``ApplicationError`` by default), or an
            ``UnknownApplicationError`` when a discriminant is not part of
            the shape's vocabulary.
        """
        reason = self.payload[ERROR_KEY]
        tag_path, known = error_shape.resolve(reason)
        if isinstance(reason, Mapping):
            reason_dict = dict(reason)
        elif isinstance(reason, str):
            reason_dict = {".tag": reason}
        else:
            reason_dict = {}

        summary = self.error_summary or "/".join(tag_path) or error_shape.name
        error_cls = error_shape.error_type(tag_path) if known else UnknownApplicationError
        if not known:
            logger.debug(
                f"Unrecognized {error_shape.name} discriminant {'/'.join(tag_path) or '<none>'}"
            )
        return error_cls(summary, reason_dict, error_shape=error_shape.name, tag_path=tag_path)


def build_result(payload: Any, result_shape: ResultShape, error_shape: ErrorShape) -> Any:
    r"""Decide success vs. application error and decode accordingly.

    Args:
        payload: The decoded body of a 200 or 409 response.
        result_shape: Callable decoding success payloads.
        error_shape: Vocabulary of application errors.

    Returns:
        The decoded result.

    Raises:
        ApplicationError: If the payload is an error envelope.
        MalformedResponseError: If the result shape cannot decode the payload.

    Example:
        ```pycon
        >>> from storepipe.endpoints import ErrorShape, raw_result
        >>> from storepipe.result_builder import build_result
        >>> build_result({"name": "a.txt"}, raw_result, ErrorShape("LookupError"))
        {'name': 'a.txt'}

        ```
    """
    builder = ResultBuilder(payload)
    if builder.has_error():
        raise builder.build_error(error_shape)
    return builder.build(result_shape)
