"""WebSocket gateway.

Sockets authenticate once on connect with the same access-token rules as
HTTP requests. The credential is read from the ``authorization`` header or,
for browser clients that cannot set headers, the ``authorization`` query
parameter.
"""

import uuid
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from socialhub.core import async_session_maker
from socialhub.core.logging import get_logger, log_context
from socialhub.core.request_utils import get_authorization
from socialhub.models.user import User
from socialhub.schemas.chat import SendMessageFrame
from socialhub.services.chat import ChatService
from socialhub.services.connections import ConnectionRegistry
from socialhub.services.errors import AuthError, ServiceError
from socialhub.services.identity import SqlIdentityStore
from socialhub.services.revocation import SqlRevocationStore
from socialhub.services.session import SessionResolver

logger = get_logger("gateway")

router = APIRouter(tags=["gateway"])


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Sockets outlive a request, so they open short sessions of their own."""
    return async_session_maker


def get_connection_registry(websocket: WebSocket) -> ConnectionRegistry:
    return websocket.app.state.connections


async def authenticate_socket(
    websocket: WebSocket, session_factory: async_sessionmaker[AsyncSession]
) -> User:
    """Resolve the socket's credential to a user. Raises ``AuthError``."""
    authorization = get_authorization(websocket, allow_query=True)
    async with session_factory() as db:
        resolver = SessionResolver(SqlIdentityStore(db), SqlRevocationStore(db))
        session = await resolver.resolve(authorization)
    return session.user


def error_frame(error_code: str, message: str) -> dict[str, Any]:
    return {"type": "error", "error_code": error_code, "message": message}


async def handle_frame(
    websocket: WebSocket,
    data: Any,
    user_id: UUID,
    session_factory: async_sessionmaker[AsyncSession],
    registry: ConnectionRegistry,
) -> None:
    """Dispatch one decoded client frame."""
    frame_type = data.get("type") if isinstance(data, dict) else None

    if frame_type == "ping":
        await websocket.send_json({"type": "pong"})
    elif frame_type == "send_message":
        try:
            frame = SendMessageFrame.model_validate(data)
        except ValidationError as e:
            message = f"Invalid send_message frame ({e.error_count()} errors)"
            await websocket.send_json(error_frame("validation_error", message))
            return
        async with session_factory() as db:
            # Re-read the sender so friendship and block changes apply per message
            sender = await SqlIdentityStore(db).find_by_id(user_id)
            if sender is None:
                await websocket.send_json(error_frame("not_found", "User not found"))
                return
            try:
                await ChatService(db, registry).send_message(sender, frame.to, frame.content)
            except ServiceError as e:
                logger.info(
                    f"send_message rejected: {e.message}",
                    extra=log_context(user_id=user_id, error_code=e.error_code),
                )
                await websocket.send_json(error_frame(e.error_code, e.message))
    else:
        await websocket.send_json(error_frame("unsupported_type", "Unsupported message type"))


@router.websocket("/ws")
async def gateway(
    websocket: WebSocket,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> None:
    """Authenticated WebSocket endpoint.

    Frames are JSON objects with a ``type`` field. Clients may send
    ``{"type": "ping"}`` to keep the connection alive and
    ``{"type": "send_message", "to": ..., "content": ...}`` to chat. A frame
    that is not valid JSON or not understood gets an ``error`` frame back;
    the socket stays open.
    """
    await websocket.accept()

    try:
        user = await authenticate_socket(websocket, session_factory)
    except AuthError as e:
        logger.warning(
            "WebSocket authentication failed",
            extra=log_context(path=websocket.url.path, error_code=e.error_code),
        )
        await websocket.send_json(error_frame(e.error_code, e.message))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    connection_id = uuid.uuid4().hex
    registry.add(user.id, connection_id, websocket)
    logger.info("WebSocket connected", extra=log_context(user_id=user.id))

    try:
        await websocket.send_json(
            {"type": "connected", "user_id": str(user.id), "connection_id": connection_id}
        )
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                await websocket.send_json(
                    error_frame("invalid_json", "Frames must be JSON objects")
                )
                continue
            await handle_frame(websocket, data, user.id, session_factory, registry)
    except WebSocketDisconnect:
        pass
    finally:
        registry.remove(user.id, connection_id)
        logger.info("WebSocket disconnected", extra=log_context(user_id=user.id))
