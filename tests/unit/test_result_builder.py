from __future__ import annotations

from typing import Any

import pytest

from storepipe.endpoints import ErrorShape, TaggedResultShape, raw_result, void_result
from storepipe.exceptions import (
    ApplicationError,
    ErrorKind,
    MalformedResponseError,
    UnknownApplicationError,
)
from storepipe.result_builder import ResultBuilder, build_result
from tests.helpers import (
    GET_METADATA_ERROR,
    TYPED_GET_METADATA_ERROR,
    NotFoundError,
    PathLookupError,
)

###################################
#     Tests for ResultBuilder     #
###################################


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"error": {".tag": "path"}}, True),
        ({"error_summary": "x", "error": "other"}, True),
        ({"name": "a.txt"}, False),
        ({"errors": []}, False),
        (None, False),
        ([{"error": 1}], False),
    ],
)
def test_result_builder_has_error(payload: Any, expected: bool) -> None:
    assert ResultBuilder(payload).has_error() is expected


def test_result_builder_error_summary() -> None:
    builder = ResultBuilder({"error_summary": "path/not_found/..", "error": {".tag": "path"}})
    assert builder.error_summary == "path/not_found/.."


def test_result_builder_build_error_nested() -> None:
    """Test that nested discriminants are walked through nested
    shapes."""
    builder = ResultBuilder(
        {
            "error_summary": "path/malformed_path/.",
            "error": {".tag": "path", "path": {".tag": "malformed_path"}},
        }
    )

    error = builder.build_error(GET_METADATA_ERROR)

    assert type(error) is ApplicationError
    assert error.kind == ErrorKind.APPLICATION
    assert error.summary == "path/malformed_path/."
    assert error.tag == "path"
    assert error.qualified_tag == "path/malformed_path"
    assert error.reason == {".tag": "path", "path": {".tag": "malformed_path"}}


def test_result_builder_build_error_typed() -> None:
    """Test that the error type registered for the tag is raised."""
    error = ResultBuilder(
        {
            "error_summary": "path/not_found/..",
            "error": {".tag": "path", "path": {".tag": "not_found"}},
        }
    ).build_error(TYPED_GET_METADATA_ERROR)

    assert type(error) is NotFoundError
    assert error.kind == ErrorKind.APPLICATION
    assert error.qualified_tag == "path/not_found"
    assert error.error_shape == "GetMetadataError"


def test_result_builder_build_error_typed_enclosing_tag() -> None:
    error = ResultBuilder({"error": {".tag": "path", "path": "not_file"}}).build_error(
        TYPED_GET_METADATA_ERROR
    )

    assert type(error) is PathLookupError


def test_result_builder_build_error_typed_unknown_tag() -> None:
    error = ResultBuilder(
        {"error": {".tag": "path", "path": {".tag": "restricted_content"}}}
    ).build_error(TYPED_GET_METADATA_ERROR)

    assert type(error) is UnknownApplicationError


def test_result_builder_build_error_bare_string() -> None:
    """Test that a bare string error is its own discriminant."""
    error = ResultBuilder({"error": "path"}).build_error(GET_METADATA_ERROR)

    assert error.tag_path == ("path",)
    assert error.reason == {".tag": "path"}
    assert error.summary == "path"


def test_result_builder_build_error_unknown_tag() -> None:
    """Test that an unknown discriminant gives UnknownApplicationError."""
    error = ResultBuilder(
        {"error_summary": "insufficient_space/..", "error": {".tag": "insufficient_space"}}
    ).build_error(GET_METADATA_ERROR)

    assert isinstance(error, UnknownApplicationError)
    assert error.kind == ErrorKind.UNKNOWN_APPLICATION
    assert error.tag == "insufficient_space"


def test_result_builder_build_error_unknown_nested_tag() -> None:
    error = ResultBuilder(
        {"error": {".tag": "path", "path": {".tag": "restricted_content"}}}
    ).build_error(GET_METADATA_ERROR)

    assert isinstance(error, UnknownApplicationError)
    assert error.tag_path == ("path", "restricted_content")


def test_result_builder_build_error_without_tag() -> None:
    error = ResultBuilder({"error": {"unexpected": True}}).build_error(GET_METADATA_ERROR)

    assert isinstance(error, UnknownApplicationError)
    assert error.tag_path == ()
    assert error.summary == "GetMetadataError"


def test_result_builder_build() -> None:
    assert ResultBuilder({"name": "a.txt"}).build(raw_result) == {"name": "a.txt"}


def test_result_builder_build_malformed() -> None:
    with pytest.raises(MalformedResponseError, match=r"Malformed response payload"):
        ResultBuilder({"name": "a.txt"}).build(lambda payload: payload["size"])


def test_result_builder_build_null_payload() -> None:
    """Test that a null payload the shape cannot read is malformed."""
    with pytest.raises(MalformedResponseError, match=r"Malformed response payload") as exc_info:
        ResultBuilder(None).build(lambda payload: payload.get("name"))

    assert isinstance(exc_info.value.__cause__, AttributeError)


#################################
#     Tests for build_result    #
#################################


def test_build_result_success() -> None:
    assert build_result({"used": 10}, raw_result, GET_METADATA_ERROR) == {"used": 10}


def test_build_result_void() -> None:
    assert build_result(None, void_result, ErrorShape("RevokeError")) is None


def test_build_result_error() -> None:
    with pytest.raises(ApplicationError) as exc_info:
        build_result(
            {"error_summary": "path/not_found/..", "error": {".tag": "path", "path": {".tag": "not_found"}}},
            raw_result,
            GET_METADATA_ERROR,
        )
    assert exc_info.value.qualified_tag == "path/not_found"


def test_build_result_tagged_result_shape() -> None:
    metadata = TaggedResultShape(
        "Metadata",
        {
            "file": lambda payload: ("file", payload["size"]),
            "folder": lambda payload: ("folder", payload["name"]),
        },
    )

    assert build_result({".tag": "file", "size": 3}, metadata, GET_METADATA_ERROR) == ("file", 3)
    with pytest.raises(MalformedResponseError, match=r"Unknown Metadata variant 'deleted'"):
        build_result({".tag": "deleted"}, metadata, GET_METADATA_ERROR)
