from __future__ import annotations

from typing import Any

import pytest

from storepipe.endpoints.shapes import ErrorShape, TaggedResultShape, raw_result, void_result
from storepipe.exceptions import ApplicationError
from tests.helpers import (
    GET_METADATA_ERROR,
    LOOKUP_ERROR,
    TYPED_GET_METADATA_ERROR,
    NotFoundError,
    PathLookupError,
)

################################################
#     Tests for void_result and raw_result     #
################################################


def test_void_result() -> None:
    assert void_result({"ignored": True}) is None


def test_raw_result_returns_copy() -> None:
    payload = {"entries": [{"name": "a"}]}

    result = raw_result(payload)
    result["entries"].append({"name": "b"})

    assert payload == {"entries": [{"name": "a"}]}


#######################################
#     Tests for TaggedResultShape     #
#######################################


@pytest.fixture
def metadata() -> TaggedResultShape:
    return TaggedResultShape(
        "Metadata",
        {"file": lambda payload: payload["size"], "folder": lambda payload: payload["name"]},
    )


def test_tagged_result_shape_dispatch(metadata: TaggedResultShape) -> None:
    assert metadata({".tag": "file", "size": 12}) == 12
    assert metadata({".tag": "folder", "name": "Photos"}) == "Photos"


@pytest.mark.parametrize("payload", [{"size": 12}, None, ["file"]])
def test_tagged_result_shape_missing_tag(metadata: TaggedResultShape, payload: Any) -> None:
    with pytest.raises(ValueError, match=r"Metadata payload has no '.tag' discriminant"):
        metadata(payload)


def test_tagged_result_shape_unknown_tag(metadata: TaggedResultShape) -> None:
    with pytest.raises(ValueError, match=r"Unknown Metadata variant 'deleted'"):
        metadata({".tag": "deleted"})


def test_tagged_result_shape_variants_are_read_only(metadata: TaggedResultShape) -> None:
    with pytest.raises(TypeError):
        metadata.variants["deleted"] = void_result


################################
#     Tests for ErrorShape     #
################################


def test_error_shape_from_iterable() -> None:
    assert LOOKUP_ERROR.tags == frozenset({"not_found", "not_file", "malformed_path"})
    assert LOOKUP_ERROR.variants["not_found"] is None


def test_error_shape_empty() -> None:
    assert ErrorShape("RevokeError").tags == frozenset()
    assert ErrorShape("RevokeError").resolve({".tag": "other"}) == (("other",), False)


@pytest.mark.parametrize(
    ("reason", "expected"),
    [
        ({".tag": "path", "path": {".tag": "not_found"}}, (("path", "not_found"), True)),
        ({".tag": "path", "path": "not_file"}, (("path", "not_file"), True)),
        ({".tag": "path"}, (("path",), True)),
        ("path", (("path",), True)),
        ({".tag": "path", "path": {".tag": "restricted"}}, (("path", "restricted"), False)),
        ({".tag": "quota"}, (("quota",), False)),
        ({"path": "not_found"}, ((), False)),
        (42, ((), False)),
    ],
)
def test_error_shape_resolve(reason: Any, expected: tuple[tuple[str, ...], bool]) -> None:
    assert GET_METADATA_ERROR.resolve(reason) == expected


def test_error_shape_is_frozen() -> None:
    with pytest.raises(AttributeError):
        LOOKUP_ERROR.name = "Other"  # type: ignore[misc]


@pytest.mark.parametrize(
    ("tag_path", "expected"),
    [
        (("path", "not_found"), NotFoundError),
        (("path", "not_file"), PathLookupError),
        (("path",), PathLookupError),
        (("path", "not_found", "deeper"), NotFoundError),
        (("other",), ApplicationError),
        ((), ApplicationError),
    ],
)
def test_error_shape_error_type(tag_path: tuple[str, ...], expected: type) -> None:
    """Test that the most specific type along the tag path is used."""
    assert TYPED_GET_METADATA_ERROR.error_type(tag_path) is expected


def test_error_shape_error_type_default() -> None:
    assert GET_METADATA_ERROR.error_type(("path", "not_found")) is ApplicationError


def test_error_shape_errors_are_read_only() -> None:
    with pytest.raises(TypeError):
        TYPED_GET_METADATA_ERROR.errors["other"] = ApplicationError  # type: ignore[index]


def test_error_shape_errors_unknown_tag() -> None:
    with pytest.raises(
        ValueError, match=r"LookupError: error types given for unknown tag\(s\) gone"
    ):
        ErrorShape("LookupError", ["not_found"], errors={"gone": NotFoundError})
