r"""Shape descriptors used to decode success and error payloads.

A result shape is any callable turning a decoded payload into the value
returned to the caller. An error shape describes the closed vocabulary of
discriminant tags an endpoint can answer with, possibly nested:

    ```pycon
    >>> from storepipe.endpoints.shapes import ErrorShape
    >>> lookup = ErrorShape("LookupError", ["not_found", "not_file", "malformed_path"])
    >>> shape = ErrorShape("GetMetadataError", {"path": lookup})
    >>> shape.resolve({".tag": "path", "path": {".tag": "not_found"}})
    (('path', 'not_found'), True)
    >>> shape.resolve({".tag": "quota"})
    (('quota',), False)

    ```
"""

from __future__ import annotations

__all__ = [
    "TAG_KEY",
    "ErrorShape",
    "ResultShape",
    "TaggedResultShape",
    "raw_result",
    "void_result",
]

import copy
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar

from storepipe.exceptions import ApplicationError

if TYPE_CHECKING:
    from collections.abc import Sequence

T = TypeVar("T")

# Key holding the discriminant of a tagged union
TAG_KEY = ".tag"

ResultShape = Callable[[Any], T]


def void_result(payload: Any) -> None:  # noqa: ARG001
    """Result shape of endpoints that return nothing useful."""
    return None


def raw_result(payload: Any) -> Any:
    """Result shape returning a deep copy of the decoded payload."""
    return copy.deepcopy(payload)


@dataclass(frozen=True)
class TaggedResultShape:
    r"""Result shape dispatching on the payload's discriminant tag.

    Args:
        name: Name of the tagged union, used in error messages.
        variants: Mapping from tag to the callable decoding that variant.

    Example:
        ```pycon
        >>> from storepipe.endpoints.shapes import TaggedResultShape
        >>> metadata = TaggedResultShape(
        ...     "Metadata",
        ...     {"file": lambda p: ("file", p["name"]), "folder": lambda p: ("folder", p["name"])},
        ... )
        >>> metadata({".tag": "folder", "name": "Photos"})
        ('folder', 'Photos')

        ```
    """

    name: str
    variants: Mapping[str, Callable[[Any], Any]] = field(hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "variants", MappingProxyType(dict(self.variants)))

    def __call__(self, payload: Any) -> Any:
        """Decode the payload with the variant named by its tag.

        Raises:
            ValueError: If the payload has no tag or an unknown tag.
        """
        if not isinstance(payload, Mapping) or TAG_KEY not in payload:
            msg = f"{self.name} payload has no {TAG_KEY!r} discriminant"
            raise ValueError(msg)
        tag = payload[TAG_KEY]
        decoder = self.variants.get(tag)
        if decoder is None:
            msg = f"Unknown {self.name} variant {tag!r}"
            raise ValueError(msg)
        return decoder(payload)


@dataclass(frozen=True)
class ErrorShape:
    r"""Closed vocabulary of error discriminants for one endpoint.

    Args:
        name: Name of the error union (e.g. ``"GetMetadataError"``).
        variants: Either an iterable of tags, or a mapping from tag to an
            optional nested ``ErrorShape`` describing the value stored
            under that tag.
        errors: Optional mapping from tag to the ``ApplicationError``
            subclass raised for that tag. Tags without an entry raise
            the error type of the enclosing tag, or ``ApplicationError``.

    Raises:
        ValueError: If ``errors`` names a tag that is not a variant.

    Example:
        ```pycon
        >>> from storepipe.endpoints.shapes import ErrorShape
        >>> from storepipe.exceptions import ApplicationError
        >>> class PathError(ApplicationError):
        ...     pass
        ...
        >>> shape = ErrorShape("GetMetadataError", ["path", "other"], errors={"path": PathError})
        >>> shape.error_type(("path",)).__name__
        'PathError'
        >>> shape.error_type(("other",)).__name__
        'ApplicationError'

        ```
    """

    name: str
    variants: Mapping[str, ErrorShape | None] = field(default_factory=dict, hash=False)
    errors: Mapping[str, type[ApplicationError]] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        variants = self.variants
        if not isinstance(variants, Mapping):
            variants = dict.fromkeys(variants)
        object.__setattr__(self, "variants", MappingProxyType(dict(variants)))
        object.__setattr__(self, "errors", MappingProxyType(dict(self.errors)))
        unknown = sorted(set(self.errors) - set(self.variants))
        if unknown:
            msg = f"{self.name}: error types given for unknown tag(s) {', '.join(unknown)}"
            raise ValueError(msg)

    @property
    def tags(self) -> frozenset[str]:
        return frozenset(self.variants)

    def resolve(self, reason: Any) -> tuple[tuple[str, ...], bool]:
        """Walk the discriminant tags of an error reason.

        Args:
            reason: The ``error`` field of an error envelope. A bare string
                is treated as its own discriminant.

        Returns:
            A tuple ``(tag_path, known)``. ``known`` is False as soon as a
            tag at any depth is missing from the vocabulary, in which case
            ``tag_path`` ends with the unrecognized tag.
        """
        tag = _extract_tag(reason)
        if tag is None:
            return (), False
        if tag not in self.variants:
            return (tag,), False

        nested_shape = self.variants[tag]
        nested_reason = reason.get(tag) if isinstance(reason, Mapping) else None
        if nested_shape is None or nested_reason is None:
            return (tag,), True

        nested_path, known = nested_shape.resolve(nested_reason)
        return (tag, *nested_path), known

    def error_type(self, tag_path: Sequence[str]) -> type[ApplicationError]:
        """Return the most specific error type registered along a tag
        path.

        Args:
            tag_path: Discriminant tags as returned by ``resolve``.
        """
        error_type: type[ApplicationError] = ApplicationError
        shape: ErrorShape | None = self
        for tag in tag_path:
            if shape is None:
                break
            error_type = shape.errors.get(tag, error_type)
            shape = shape.variants.get(tag)
        return error_type


def _extract_tag(reason: Any) -> str | None:
    if isinstance(reason, str):
        return reason
    if isinstance(reason, Mapping):
        tag = reason.get(TAG_KEY)
        if isinstance(tag, str):
            return tag
    return None

