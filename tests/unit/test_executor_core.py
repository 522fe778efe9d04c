from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from storepipe.endpoints import EndpointStyle, HttpMethod
from storepipe.exceptions import (
    ApplicationError,
    ExpiredCredentialError,
    HttpError,
    TooManyRequestsError,
)
from storepipe.executor_core import (
    API_ARG_HEADER,
    DownloadResult,
    Session,
    build_request_spec,
    build_session,
    encode_api_arg,
    finish_response,
    should_refresh,
)
from tests.helpers import create_raw_response, make_contract

if TYPE_CHECKING:
    from storepipe.credential import RefreshableCredential, StaticCredential


@pytest.fixture
def session() -> Session:
    return Session(token="token", headers={"Authorization": "Bearer token", "User-Agent": "ua"})


###################################
#     Tests for build_session     #
###################################


def test_build_session(static_credential: StaticCredential) -> None:
    session = build_session(static_credential, "my-app/1.0")

    assert session.token == "old-token"
    assert session.headers == {"Authorization": "Bearer old-token", "User-Agent": "my-app/1.0"}
    with pytest.raises(TypeError):
        session.headers["Authorization"] = "Bearer other"


def test_build_session_after_refresh(refreshable_credential: RefreshableCredential) -> None:
    refreshable_credential.refresh()
    assert build_session(refreshable_credential).headers["Authorization"] == "Bearer new-token"


####################################
#     Tests for encode_api_arg     #
####################################


def test_encode_api_arg_ascii() -> None:
    assert encode_api_arg({"path": "/a.txt"}) == '{"path": "/a.txt"}'


def test_encode_api_arg_escapes_non_ascii() -> None:
    encoded = encode_api_arg({"path": "/été\x7f.txt"})

    assert encoded.isascii()
    assert "\x7f" not in encoded
    assert json.loads(encoded) == {"path": "/été\x7f.txt"}


########################################
#     Tests for build_request_spec     #
########################################


def test_build_request_spec_rpc(session: Session) -> None:
    spec = build_request_spec(make_contract(), {"path": "/a.txt"}, session)

    assert spec.method is HttpMethod.POST
    assert spec.path == "/2/files/get_metadata"
    assert spec.style is EndpointStyle.RPC
    assert spec.body == {"path": "/a.txt"}
    assert spec.headers["Content-Type"] == "application/json"
    assert spec.headers["Authorization"] == "Bearer token"


def test_build_request_spec_rpc_without_params(session: Session) -> None:
    spec = build_request_spec(make_contract(), None, session)

    assert spec.body is None
    assert "Content-Type" not in spec.headers


def test_build_request_spec_rpc_empty_params(session: Session) -> None:
    assert build_request_spec(make_contract(), {}, session).body == {}


def test_build_request_spec_rpc_rejects_content(session: Session) -> None:
    with pytest.raises(ValueError, match=r"RPC endpoint and does not accept content"):
        build_request_spec(make_contract(), {"path": "/a"}, session, content=b"x")


def test_build_request_spec_path_parameters(session: Session) -> None:
    contract = make_contract(
        name="sharing/get_link", method=HttpMethod.GET, path="/2/sharing/links/{link_id}"
    )

    spec = build_request_spec(contract, {"link_id": "abc", "direct": True}, session)

    assert spec.method is HttpMethod.GET
    assert spec.path == "/2/sharing/links/abc"
    assert spec.body == {"direct": True}


def test_build_request_spec_missing_path_parameter(session: Session) -> None:
    contract = make_contract(name="sharing/get_link", path="/2/sharing/links/{link_id}")

    with pytest.raises(ValueError, match=r"missing path parameter\(s\) link_id"):
        build_request_spec(contract, {}, session)


def test_build_request_spec_upload(session: Session) -> None:
    contract = make_contract(name="files/upload", path="/2/files/upload", style=EndpointStyle.UPLOAD)

    spec = build_request_spec(contract, {"path": "/b.bin"}, session, content=b"abc")

    assert spec.style is EndpointStyle.UPLOAD
    assert spec.body == b"abc"
    assert spec.headers["Content-Type"] == "application/octet-stream"
    assert json.loads(spec.headers[API_ARG_HEADER]) == {"path": "/b.bin"}


def test_build_request_spec_upload_without_content(session: Session) -> None:
    contract = make_contract(name="files/upload", path="/2/files/upload", style=EndpointStyle.UPLOAD)
    assert build_request_spec(contract, None, session).body == b""


def test_build_request_spec_download(session: Session) -> None:
    contract = make_contract(
        name="files/download", path="/2/files/download", style=EndpointStyle.DOWNLOAD
    )

    spec = build_request_spec(contract, {"path": "/c.txt"}, session)

    assert spec.body is None
    assert spec.headers[API_ARG_HEADER] == '{"path": "/c.txt"}'
    assert "Content-Type" not in spec.headers


def test_build_request_spec_download_rejects_content(session: Session) -> None:
    contract = make_contract(
        name="files/download", path="/2/files/download", style=EndpointStyle.DOWNLOAD
    )

    with pytest.raises(ValueError, match=r"download endpoint"):
        build_request_spec(contract, {"path": "/c.txt"}, session, content=b"x")


####################################
#     Tests for should_refresh     #
####################################


def test_should_refresh_first_attempt(refreshable_credential: RefreshableCredential) -> None:
    assert should_refresh(ExpiredCredentialError("expired"), refreshable_credential, 0)


def test_should_refresh_last_attempt(refreshable_credential: RefreshableCredential) -> None:
    assert not should_refresh(ExpiredCredentialError("expired"), refreshable_credential, 1)


def test_should_refresh_static_credential(static_credential: StaticCredential) -> None:
    assert not should_refresh(ExpiredCredentialError("expired"), static_credential, 0)


@pytest.mark.parametrize(
    "error",
    [
        TooManyRequestsError("slow down"),
        HttpError(403, "forbidden"),
        ApplicationError("x", error_shape="E"),
    ],
)
def test_should_refresh_other_errors(
    error: Exception, refreshable_credential: RefreshableCredential
) -> None:
    assert not should_refresh(error, refreshable_credential, 0)


#####################################
#     Tests for finish_response     #
#####################################


def test_finish_response_rpc() -> None:
    assert finish_response(create_raw_response(200, {"a": 1}), make_contract()) == {"a": 1}


def test_finish_response_download() -> None:
    contract = make_contract(
        name="files/download", path="/2/files/download", style=EndpointStyle.DOWNLOAD
    )

    result = finish_response(
        create_raw_response(200, {"name": "c.txt"}, content=b"hello"), contract
    )

    assert result == DownloadResult(result={"name": "c.txt"}, content=b"hello")


def test_finish_response_error_envelope() -> None:
    with pytest.raises(ApplicationError):
        finish_response(
            create_raw_response(409, {"error": {".tag": "path", "path": "not_found"}}),
            make_contract(),
        )
