# backend/tests/test_errors.py

import pytest

from app.errors import ErrorKind, FailureSource, GatewayError, map_exception, map_failure
from app.notion.client import NotionAuthError, NotionConnectionError, NotionDecodeError, NotionHTTPError


@pytest.mark.parametrize(
    "source, upstream_status, expected_code, expected_kind",
    [
        (FailureSource.VALIDATION, None, 400, ErrorKind.INVALID_REQUEST),
        (FailureSource.UNMATCHED_ROUTE, None, 404, ErrorKind.NOT_FOUND),
        (FailureSource.UPSTREAM_STATUS, 404, 404, ErrorKind.NOT_FOUND),
        (FailureSource.UPSTREAM_STATUS, 400, 400, ErrorKind.UPSTREAM_ERROR),
        (FailureSource.UPSTREAM_STATUS, 429, 429, ErrorKind.UPSTREAM_ERROR),
        (FailureSource.UPSTREAM_STATUS, 500, 502, ErrorKind.UPSTREAM_UNAVAILABLE),
        (FailureSource.UPSTREAM_STATUS, 503, 502, ErrorKind.UPSTREAM_UNAVAILABLE),
        (FailureSource.UPSTREAM_UNREACHABLE, None, 502, ErrorKind.UPSTREAM_UNAVAILABLE),
        (FailureSource.DECODE, None, 500, ErrorKind.INTERNAL_ERROR),
        (FailureSource.INTERNAL, None, 500, ErrorKind.INTERNAL_ERROR),
    ],
)
def test_map_failure_table(source, upstream_status, expected_code, expected_kind):
    code, envelope = map_failure(source, "message", upstream_status=upstream_status)

    assert code == expected_code
    assert envelope.error.kind is expected_kind
    assert envelope.error.status == upstream_status


def test_upstream_status_requires_status_code():
    with pytest.raises(ValueError):
        map_failure(FailureSource.UPSTREAM_STATUS, "message")


def test_envelope_omits_status_when_absent():
    _, envelope = map_failure(FailureSource.VALIDATION, "bad limit")

    assert envelope.to_content() == {"error": {"kind": "invalid_request", "message": "bad limit"}}


def test_envelope_includes_upstream_status():
    _, envelope = map_failure(FailureSource.UPSTREAM_STATUS, "forbidden", upstream_status=403)

    assert envelope.to_content() == {"error": {"kind": "upstream_error", "message": "forbidden", "status": 403}}


def test_map_exception_classifies_client_errors():
    assert map_exception(NotionHTTPError(404))[0] == 404
    assert map_exception(NotionAuthError(401))[1].error.kind is ErrorKind.UPSTREAM_ERROR
    assert map_exception(NotionConnectionError("down"))[1].error.kind is ErrorKind.UPSTREAM_UNAVAILABLE
    assert map_exception(NotionDecodeError("bad json"))[0] == 500
    assert map_exception(GatewayError(FailureSource.VALIDATION, "empty"))[0] == 400


def test_map_exception_hides_unexpected_error_details():
    code, envelope = map_exception(KeyError("secret internals"))

    assert code == 500
    assert envelope.error.kind is ErrorKind.INTERNAL_ERROR
    assert "secret internals" not in envelope.error.message
