"""
Connection manager for WebSocket clients.

Tracks connected clients and the player each one controls, and delivers
messages to one connection or to every open connection.

Every connection has its own outbound queue drained by a writer task, so
queueing a message never waits on the network and a slow client only
delays its own deliveries.
"""

import asyncio
import json
import logging
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from square_shared.protocol import Message


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class PlayerConnection:
    """Binds a transport handle to the player it controls."""
    player_id: str
    websocket: ServerConnection
    outbox: asyncio.Queue = field(default_factory=asyncio.Queue)
    writer: asyncio.Task | None = None
    messages_sent: int = 0
    connected_at: datetime = field(default_factory=_utcnow)
    last_activity: datetime = field(default_factory=_utcnow)

    @property
    def is_open(self) -> bool:
        """Whether the transport can currently accept frames."""
        return self.websocket.state is State.OPEN

    def update_activity(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = _utcnow()


class ConnectionManager:
    """
    Manages WebSocket connections and the websocket-to-player side table.

    Provides methods for:
    - Registering and unregistering connections
    - Sending messages to a specific connection
    - Broadcasting messages to all open connections
    """

    def __init__(self):
        # websocket -> PlayerConnection
        self._connections: dict[ServerConnection, PlayerConnection] = {}

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    def register(self, websocket: ServerConnection, player_id: str) -> PlayerConnection:
        """
        Start tracking a connection and its outbound writer.

        Must be called from within a running event loop.
        """
        connection = PlayerConnection(player_id=player_id, websocket=websocket)
        connection.writer = asyncio.create_task(
            self._write_loop(connection),
            name=f"writer-{player_id}",
        )
        self._connections[websocket] = connection
        return connection

    def unregister(self, websocket: ServerConnection) -> PlayerConnection | None:
        """
        Stop tracking a connection. Frames still queued for it are dropped.

        Returns:
            The PlayerConnection if it was tracked, None otherwise
        """
        connection = self._connections.pop(websocket, None)
        if connection:
            self._stop_writer(connection)
        return connection

    async def close_all(self) -> None:
        """Stop every writer task and forget all connections."""
        connections = list(self._connections.values())
        self._connections.clear()

        for conn in connections:
            self._stop_writer(conn)
        writers = [conn.writer for conn in connections if conn.writer]
        await asyncio.gather(*writers, return_exceptions=True)

    @staticmethod
    def _stop_writer(connection: PlayerConnection) -> None:
        """Cancel the writer and discard its backlog so outbox.join() returns."""
        if connection.writer:
            connection.writer.cancel()
        while not connection.outbox.empty():
            connection.outbox.get_nowait()
            connection.outbox.task_done()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_connection(self, websocket: ServerConnection) -> PlayerConnection | None:
        """Get connection info for a websocket."""
        return self._connections.get(websocket)

    def get_player_id(self, websocket: ServerConnection) -> str | None:
        """Get player ID for a websocket."""
        connection = self._connections.get(websocket)
        return connection.player_id if connection else None

    def get_connections(self) -> list[PlayerConnection]:
        """Point-in-time list of all tracked connections."""
        return list(self._connections.values())

    def __len__(self) -> int:
        return len(self._connections)

    # =========================================================================
    # Messaging
    # =========================================================================

    def send_to_connection(
        self,
        websocket: ServerConnection,
        message: Message | dict | str
    ) -> bool:
        """
        Queue a message for a specific websocket connection.

        Returns:
            True if queued, False if the connection is unknown or not open
        """
        connection = self._connections.get(websocket)
        if not connection or not connection.is_open:
            return False

        connection.outbox.put_nowait(self._serialize(message))
        return True

    def broadcast_to_all(
        self,
        message: Message | dict | str,
        exclude: Collection[str] = ()
    ) -> int:
        """
        Queue a message for every open connection.

        Args:
            message: Message object, dict, or JSON string
            exclude: Player IDs that should not receive the message

        Returns:
            Number of connections the message was queued for
        """
        data = self._serialize(message)
        sent_count = 0

        for conn in list(self._connections.values()):
            if conn.player_id in exclude or not conn.is_open:
                continue
            conn.outbox.put_nowait(data)
            sent_count += 1

        return sent_count

    async def flush(self) -> None:
        """Wait until every queued frame has been handed to its transport."""
        await asyncio.gather(*(conn.outbox.join() for conn in self.get_connections()))

    @staticmethod
    def _serialize(message: Message | dict | str) -> str:
        if isinstance(message, Message):
            return message.to_json()
        if isinstance(message, dict):
            return json.dumps(message)
        return message

    async def _write_loop(self, connection: PlayerConnection) -> None:
        """Deliver queued frames in order; failed writes are dropped."""
        while True:
            data = await connection.outbox.get()
            try:
                await connection.websocket.send(data)
                connection.messages_sent += 1
                connection.update_activity()
            except ConnectionClosed:
                logger.debug(f"Dropped message for {connection.player_id}: connection closed")
            except Exception as e:
                logger.debug(f"Failed to send message to {connection.player_id}: {e}")
            finally:
                connection.outbox.task_done()

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> dict[str, Any]:
        """Get connection statistics."""
        connections = self.get_connections()
        return {
            "total_connections": len(connections),
            "open_connections": sum(1 for conn in connections if conn.is_open),
            "queued_messages": sum(conn.outbox.qsize() for conn in connections),
        }
