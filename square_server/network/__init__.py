"""
Network layer for the Square World server.

Provides WebSocket server, connection management, and message handling.
"""

from square_server.network.connection_manager import ConnectionManager, PlayerConnection
from square_server.network.message_handler import MessageHandler, HandleResult
from square_server.network.server import SquareWorldServer, run_server


__all__ = [
    "ConnectionManager",
    "PlayerConnection",
    "MessageHandler",
    "HandleResult",
    "SquareWorldServer",
    "run_server",
]
