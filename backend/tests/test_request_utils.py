"""Tests for credential and client address extraction."""

from starlette.requests import Request

from socialhub.core.request_utils import get_authorization, get_client_ip


def _request(headers=None, query=b"", client=("203.0.113.5", 4000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "query_string": query,
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_authorization_from_header():
    request = _request({"Authorization": "Bearer abc.def.ghi"})
    assert get_authorization(request) == "Bearer abc.def.ghi"


def test_authorization_missing_or_blank():
    assert get_authorization(_request()) is None
    assert get_authorization(_request({"Authorization": "   "})) is None


def test_query_param_only_when_allowed():
    request = _request(query=b"authorization=Bearer%20tok")
    assert get_authorization(request) is None
    assert get_authorization(request, allow_query=True) == "Bearer tok"


def test_header_wins_over_query_param():
    request = _request({"Authorization": "Admin head"}, query=b"authorization=Bearer%20query")
    assert get_authorization(request, allow_query=True) == "Admin head"


def test_client_ip_ignores_headers_from_remote_peer():
    request = _request({"X-Real-IP": "10.0.0.9", "X-Forwarded-For": "10.0.0.8"})
    assert get_client_ip(request) == "203.0.113.5"


def test_client_ip_trusts_real_ip_from_local_proxy():
    request = _request({"X-Real-IP": " 10.0.0.9 "}, client=("127.0.0.1", 5000))
    assert get_client_ip(request) == "10.0.0.9"


def test_client_ip_rejects_invalid_real_ip():
    request = _request({"X-Real-IP": "not-an-ip"}, client=("127.0.0.1", 5000))
    assert get_client_ip(request) == "127.0.0.1"


def test_client_ip_unknown_without_peer():
    assert get_client_ip(_request(client=None)) == "unknown"
