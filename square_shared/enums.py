"""
Enumerations used throughout the server and protocol.
"""
from enum import Enum


class MessageType(str, Enum):
    """Types of messages between client and server."""
    # Session setup (server -> client)
    INIT = "init"
    CURRENT_PLAYERS = "currentPlayers"

    # Presence (server -> clients)
    PLAYER_JOINED = "playerJoined"
    PLAYER_LEFT = "playerLeft"

    # Movement
    MOVEMENT = "movement"
    PLAYER_MOVED = "playerMoved"

    # Chat (both directions share the type)
    CHAT = "chat"


class Direction(str, Enum):
    """Directions a player can move in."""
    UP = "up"
    LEFT = "left"
    DOWN = "down"
    RIGHT = "right"

    @classmethod
    def parse(cls, value) -> "Direction | None":
        """
        Map a wire value to a Direction.

        Accepts the canonical names as well as the WASD key aliases.
        Returns None for anything else.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return _KEY_ALIASES.get(value)


_KEY_ALIASES = {
    "w": Direction.UP,
    "a": Direction.LEFT,
    "s": Direction.DOWN,
    "d": Direction.RIGHT,
}
