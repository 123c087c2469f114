"""Registry of live WebSocket connections per user."""

import logging
from collections import defaultdict
from typing import Any, Protocol
from uuid import UUID


logger = logging.getLogger(__name__)


class MessageChannel(Protocol):
    """Anything that can push a JSON frame to a client, e.g. a ``WebSocket``."""

    async def send_json(self, data: Any) -> None: ...


class ConnectionRegistry:
    """Tracks which connection ids each user currently holds.

    Populated when a socket authenticates, pruned when it disconnects. The
    application keeps one instance on ``app.state.connections``. Connections
    registered with a channel can be pushed to through ``send_to``.
    """

    def __init__(self) -> None:
        self._connections: dict[UUID, list[str]] = defaultdict(list)
        self._channels: dict[str, MessageChannel] = {}

    def add(
        self, user_id: UUID, connection_id: str, channel: MessageChannel | None = None
    ) -> None:
        connections = self._connections[user_id]
        if connection_id not in connections:
            connections.append(connection_id)
        if channel is not None:
            self._channels[connection_id] = channel
        logger.debug(f"User {user_id} connected ({len(connections)} open)")

    def remove(self, user_id: UUID, connection_id: str) -> bool:
        """Drop a connection. Returns True when the user has none left."""
        self._channels.pop(connection_id, None)
        connections = self._connections.get(user_id)
        if connections is None:
            return False
        if connection_id in connections:
            connections.remove(connection_id)
        if connections:
            return False
        del self._connections[user_id]
        logger.debug(f"User {user_id} went offline")
        return True

    def connections_for(self, user_id: UUID) -> list[str]:
        return list(self._connections.get(user_id, []))

    def is_online(self, user_id: UUID) -> bool:
        return bool(self._connections.get(user_id))

    def online_users(self) -> list[UUID]:
        return [user_id for user_id, conns in self._connections.items() if conns]

    async def send_to(self, user_id: UUID, message: dict[str, Any]) -> int:
        """Push ``message`` to every open channel of ``user_id``.

        Returns how many channels accepted it. A channel that fails is
        skipped; its socket's own loop will unregister it.
        """
        delivered = 0
        for connection_id in self.connections_for(user_id):
            channel = self._channels.get(connection_id)
            if channel is None:
                continue
            try:
                await channel.send_json(message)
            except (RuntimeError, OSError) as e:
                logger.warning(f"Push to connection {connection_id} failed: {e}")
                continue
            delivered += 1
        return delivered

    def clear(self) -> None:
        self._connections.clear()
        self._channels.clear()
