"""
WebSocket server for Square World.

Main entry point that ties together the player registry, connection
management, and message handling.
"""

import asyncio
import logging
import random
import signal
from typing import Any

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosedError

from square_server.config import settings
from square_server.network.connection_manager import ConnectionManager, PlayerConnection
from square_server.network.message_handler import MessageHandler
from square_server.world import PlayerRegistry, create_player
from square_shared.constants import PLAYER_SIZE, WORLD_SIZE
from square_shared.protocol import (
    CurrentPlayersMessage,
    InitMessage,
    PlayerJoinedMessage,
    PlayerLeftMessage,
)


logger = logging.getLogger(__name__)


class SquareWorldServer:
    """
    WebSocket server for the shared square world.

    Handles client connections, routes messages, and keeps every client's
    view of the registry in sync through broadcasts.
    """

    def __init__(
        self,
        host: str = None,
        port: int = None,
        rng: random.Random | None = None
    ):
        self.host = host or settings.HOST
        self.port = settings.PORT if port is None else port

        # Initialize managers
        self._players = PlayerRegistry()
        self._connections = ConnectionManager()
        self._handler = MessageHandler(self._players)
        self._rng = rng

        # Server state
        self._server: Server | None = None
        self._running = False
        self._ready = asyncio.Event()
        self._shutdown_event = asyncio.Event()

    @property
    def players(self) -> PlayerRegistry:
        return self._players

    @property
    def connections(self) -> ConnectionManager:
        return self._connections

    async def start(self) -> None:
        """Start the WebSocket server and serve until stopped."""
        self._running = True
        self._shutdown_event.clear()

        self._server = await serve(
            self._handle_client,
            self.host,
            self.port,
            ping_interval=settings.PING_INTERVAL,
            ping_timeout=settings.PING_TIMEOUT,
        )

        # Pick up the real port when bound to port 0
        sockets = list(self._server.sockets)
        if sockets:
            self.port = sockets[0].getsockname()[1]

        logger.info(f"WebSocket server started on ws://{self.host}:{self.port}")
        self._ready.set()

        # Wait for shutdown signal
        await self._shutdown_event.wait()

    async def wait_ready(self) -> None:
        """Wait until the server is accepting connections."""
        await self._ready.wait()

    async def stop(self) -> None:
        """Stop the server gracefully."""
        logger.info("Shutting down server...")
        self._running = False

        if self._server:
            self._server.close()
            await self._server.wait_closed()

        await self._connections.close_all()

        self._ready.clear()
        self._shutdown_event.set()
        logger.info("Server stopped")

    def request_shutdown(self) -> None:
        """Request server shutdown (can be called from signal handler)."""
        asyncio.create_task(self.stop())

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """
        Handle a client connection from upgrade to close.

        The player is created as soon as the connection opens; every
        frame after that is routed through the message handler.
        """
        connection = await self._handle_connect(websocket)
        if not connection:
            return

        player_id = connection.player_id
        try:
            async for raw_message in websocket:
                self._handle_message(player_id, raw_message)

        except ConnectionClosedError as e:
            logger.warning(f"WebSocket error for player {player_id}: {e}")
        except Exception as e:
            logger.exception(f"Error handling client {player_id}: {e}")
        finally:
            self._handle_disconnect(websocket, player_id)

    async def _handle_connect(self, websocket: ServerConnection) -> PlayerConnection | None:
        """
        Create the player for a new connection and bring it up to date.

        Registry insertion, the snapshot, and every message queued here
        happen without yielding, so the new client receives init and
        currentPlayers before any other broadcast.

        Returns the PlayerConnection if successful, None otherwise.
        """
        player = create_player(self._players.new_player_id(), self._rng)
        self._players.insert(player)
        players = self._players.snapshot()
        connection = self._connections.register(websocket, player.id)

        logger.info(f"Player {player.id} connected.")

        try:
            self._connections.send_to_connection(
                websocket,
                InitMessage.create(player.id, player.to_dict(), WORLD_SIZE, PLAYER_SIZE),
            )
            self._connections.send_to_connection(
                websocket,
                CurrentPlayersMessage.create(players),
            )
            self._connections.broadcast_to_all(
                PlayerJoinedMessage.create(player.to_dict()),
                exclude={player.id},
            )
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize initial state for {player.id}: {e}")
            self._players.remove(player.id)
            self._connections.unregister(websocket)
            await websocket.close()
            return None

        return connection

    def _handle_message(self, player_id: str, raw_message: str | bytes) -> None:
        """Handle an incoming frame from a connected player."""
        try:
            result = self._handler.handle_message(player_id, raw_message)

            for broadcast in result.broadcasts:
                self._connections.broadcast_to_all(broadcast)

        except Exception as e:
            logger.exception(f"Error handling message from {player_id}: {e}")

    def _handle_disconnect(self, websocket: ServerConnection, player_id: str) -> None:
        """Remove the player, then tell everyone who is left."""
        player = self._players.remove(player_id)
        self._connections.unregister(websocket)

        if player is None:
            return

        logger.info(f"Player {player_id} disconnected.")
        self._connections.broadcast_to_all(PlayerLeftMessage.create(player_id))

    def get_stats(self) -> dict[str, Any]:
        """Get server statistics."""
        return {
            "running": self._running,
            "players": len(self._players),
            "player_ids": self._players.ids(),
            "connections": self._connections.get_stats(),
        }


async def run_server(host: str = None, port: int = None) -> None:
    """
    Run the Square World server.

    Sets up signal handlers for graceful shutdown.
    """
    server = SquareWorldServer(host, port)

    # Set up signal handlers
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, server.request_shutdown)

    try:
        await server.start()
    finally:
        # Clean up signal handlers
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)


def main():
    """Entry point for running the server."""
    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    print(f"Starting Square World server on ws://{settings.HOST}:{settings.PORT}")
    print("Press Ctrl+C to stop")

    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        print("\nServer stopped")


if __name__ == "__main__":
    main()
