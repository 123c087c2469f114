"""Tests for WebSocket authentication, connection tracking and chat frames."""

import asyncio
import logging
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from starlette.datastructures import Headers, QueryParams
from starlette.websockets import WebSocketDisconnect

from socialhub.api.gateway import authenticate_socket, get_session_factory
from socialhub.core import get_db
from socialhub.services.errors import AccountFrozenError, MalformedCredentialError
from socialhub.services.tokens import issue_credential_pair


def _socket(headers=None, query=None):
    return SimpleNamespace(headers=Headers(headers or {}), query_params=QueryParams(query or {}))


def _authorization(pair) -> str:
    return f"{pair.token_type} {pair.access_token}"


@pytest.mark.asyncio
async def test_authenticate_socket_from_header(session_maker, user_factory):
    user = await user_factory()
    socket = _socket(headers={"authorization": _authorization(issue_credential_pair(user))})
    resolved = await authenticate_socket(socket, session_maker)
    assert resolved.id == user.id


@pytest.mark.asyncio
async def test_authenticate_socket_from_query(session_maker, user_factory):
    user = await user_factory()
    socket = _socket(query={"authorization": _authorization(issue_credential_pair(user))})
    resolved = await authenticate_socket(socket, session_maker)
    assert resolved.id == user.id


@pytest.mark.asyncio
async def test_authenticate_socket_without_credential(session_maker):
    with pytest.raises(MalformedCredentialError):
        await authenticate_socket(_socket(), session_maker)


@pytest.mark.asyncio
async def test_authenticate_socket_rejects_frozen(session_maker, user_factory):
    user = await user_factory(frozen=True)
    socket = _socket(headers={"authorization": _authorization(issue_credential_pair(user))})
    with pytest.raises(AccountFrozenError):
        await authenticate_socket(socket, session_maker)


# --- End to end over the ASGI websocket ---


@pytest.fixture
def socket_app(tmp_path):
    """App wired to a NullPool database usable from the TestClient's loop.

    Yields the app and two seeded users.
    """
    import socialhub.models  # noqa: F401
    from socialhub.core.database import Base, enable_sqlite_foreign_keys
    from socialhub.main import app
    from socialhub.models.user import Provider, User

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ws.db'}", poolclass=NullPool)
    enable_sqlite_foreign_keys(engine)
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def seed() -> list[User]:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with maker() as db:
            users = [
                User(
                    first_name=name,
                    last_name="User",
                    email=f"{name.lower()}@socialhub.app",
                    password_hash="unused",
                    provider=Provider.SYSTEM,
                )
                for name in ("Socket", "Other")
            ]
            db.add_all(users)
            await db.commit()
            return users

    async def override_get_db():
        async with maker() as db:
            yield db

    users = asyncio.run(seed())
    app.dependency_overrides[get_session_factory] = lambda: maker
    app.dependency_overrides[get_db] = override_get_db

    # Entering the TestClient runs the lifespan, which reconfigures logging
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield app, users
    root.handlers = handlers
    root.setLevel(level)

    app.dependency_overrides.clear()
    app.state.connections.clear()
    asyncio.run(engine.dispose())


def test_websocket_registers_connection(socket_app):
    app, (user, _) = socket_app
    client = TestClient(app)
    token = _authorization(issue_credential_pair(user))

    with client.websocket_connect("/ws", headers={"authorization": token}) as websocket:
        hello = websocket.receive_json()
        assert hello["type"] == "connected"
        assert hello["user_id"] == str(user.id)
        assert app.state.connections.is_online(user.id)

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}

    assert not app.state.connections.is_online(user.id)


def test_websocket_rejects_bad_credential(socket_app):
    app, _ = socket_app
    client = TestClient(app)

    with client.websocket_connect("/ws?authorization=Bearer%20nope") as websocket:
        error = websocket.receive_json()
        assert error["type"] == "error"
        assert error["error_code"] == "invalid_credential"
        with pytest.raises(WebSocketDisconnect):
            websocket.receive_json()
    assert app.state.connections.online_users() == []


def test_websocket_survives_non_json_frame(socket_app):
    app, (user, _) = socket_app
    client = TestClient(app)
    token = _authorization(issue_credential_pair(user))

    with client.websocket_connect("/ws", headers={"authorization": token}) as websocket:
        websocket.receive_json()

        websocket.send_text("not json")
        error = websocket.receive_json()
        assert error["type"] == "error"
        assert error["error_code"] == "invalid_json"

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}
        assert app.state.connections.is_online(user.id)


def test_websocket_unsupported_frame_type(socket_app):
    app, (user, _) = socket_app
    client = TestClient(app)
    token = _authorization(issue_credential_pair(user))

    with client.websocket_connect("/ws", headers={"authorization": token}) as websocket:
        websocket.receive_json()

        websocket.send_json({"type": "dance"})
        assert websocket.receive_json()["error_code"] == "unsupported_type"

        websocket.send_json(["ping"])
        assert websocket.receive_json()["error_code"] == "unsupported_type"


def test_send_message_reaches_both_participants(socket_app):
    app, (sender, receiver) = socket_app
    sender_token = _authorization(issue_credential_pair(sender))
    receiver_token = _authorization(issue_credential_pair(receiver))

    with TestClient(app) as client:
        with (
            client.websocket_connect("/ws", headers={"authorization": sender_token}) as alice,
            client.websocket_connect("/ws", headers={"authorization": receiver_token}) as bob,
        ):
            alice.receive_json()
            bob.receive_json()

            alice.send_json({"type": "send_message", "to": str(receiver.id), "content": "hi"})

            sent = alice.receive_json()
            assert sent["type"] == "message_sent"
            assert sent["to"] == str(receiver.id)
            assert sent["content"] == "hi"

            received = bob.receive_json()
            assert received["type"] == "new_message"
            assert received["from"] == str(sender.id)
            assert received["content"] == "hi"
            assert received["chat_id"] == sent["chat_id"]

        response = client.get(f"/chat/{receiver.id}", headers={"authorization": sender_token})
        assert response.status_code == 200
        messages = response.json()["messages"]
        assert [m["content"] for m in messages] == ["hi"]
        assert messages[0]["sender_id"] == str(sender.id)


def test_send_message_frame_errors(socket_app):
    app, (user, _) = socket_app
    client = TestClient(app)
    token = _authorization(issue_credential_pair(user))

    with client.websocket_connect("/ws", headers={"authorization": token}) as websocket:
        websocket.receive_json()

        websocket.send_json({"type": "send_message", "to": "not-a-uuid", "content": "hi"})
        assert websocket.receive_json()["error_code"] == "validation_error"

        websocket.send_json({"type": "send_message", "to": str(user.id), "content": "me"})
        error = websocket.receive_json()
        assert error["type"] == "error"
        assert error["error_code"] == "bad_request"

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}
