"""Helpers shared by HTTP requests and WebSocket connections.

Both ``Request`` and ``WebSocket`` derive from ``HTTPConnection``, so the
credential and client-address lookups work the same for either.
"""

import ipaddress
import logging

from starlette.requests import HTTPConnection

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
# Browsers cannot set headers on a WebSocket handshake
AUTHORIZATION_QUERY_PARAM = "authorization"

_TRUSTED_PROXY_PEERS = frozenset({"127.0.0.1", "::1", "localhost"})


def get_authorization(connection: HTTPConnection, *, allow_query: bool = False) -> str | None:
    """Raw ``"<label> <token>"`` credential presented on ``connection``.

    The header wins over the query parameter; the query parameter is only
    consulted when ``allow_query`` is set. Surrounding whitespace is dropped
    but the value is otherwise left for the session resolver to judge.
    """
    value = connection.headers.get(AUTHORIZATION_HEADER)
    if not value and allow_query:
        value = connection.query_params.get(AUTHORIZATION_QUERY_PARAM)
    if value is None:
        return None
    return value.strip() or None


def _parse_ip(value: str) -> str | None:
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def get_client_ip(connection: HTTPConnection) -> str:
    """Client address used to key login throttling.

    X-Real-IP is honoured only when the direct peer is a local reverse proxy.
    X-Forwarded-For is ignored; any client can set it.
    """
    peer = connection.client.host if connection.client else None

    if peer in _TRUSTED_PROXY_PEERS:
        real_ip = connection.headers.get("X-Real-IP")
        if real_ip:
            parsed = _parse_ip(real_ip)
            if parsed:
                return parsed
            logger.warning(f"Ignoring invalid X-Real-IP from proxy: {real_ip!r}")

    return peer or "unknown"
