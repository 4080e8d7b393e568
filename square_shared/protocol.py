"""
Message protocol for client-server communication.

All messages are flat JSON objects with a "type" field; every other key
is a field of that message type. For example:

    {"type": "playerMoved", "playerId": "player-1", "x": 245, "y": 240}
"""

from dataclasses import dataclass, field
from typing import Any
import json

from square_shared.enums import MessageType


class ProtocolError(ValueError):
    """Raised when a payload cannot be parsed into a Message."""


class UnknownMessageTypeError(ProtocolError):
    """Raised when a well-formed envelope carries an unrecognized type."""

    def __init__(self, type_name: str):
        super().__init__(f"Unknown message type: {type_name!r}")
        self.type_name = type_name


@dataclass
class Message:
    """Base message structure for all client-server communication."""
    type: MessageType
    data: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize message to JSON string."""
        return json.dumps(self.to_dict())

    def to_dict(self) -> dict:
        """Convert to the flat wire dictionary."""
        if "type" in self.data:
            raise ProtocolError("'type' is reserved and cannot be a message field")
        return {"type": self.type.value, **self.data}

    @classmethod
    def from_json(cls, json_str: str | bytes) -> "Message":
        """Deserialize message from JSON string."""
        try:
            raw = json.loads(json_str)
        except (ValueError, RecursionError) as e:
            raise ProtocolError(f"Invalid JSON: {e}") from e
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: Any) -> "Message":
        """Create message from a flat wire dictionary."""
        if not isinstance(raw, dict):
            raise ProtocolError(f"Envelope must be an object, got {type(raw).__name__}")

        type_name = raw.get("type")
        if not isinstance(type_name, str):
            raise ProtocolError("Envelope is missing a string 'type' field")

        try:
            message_type = MessageType(type_name)
        except ValueError:
            raise UnknownMessageTypeError(type_name) from None

        data = {key: value for key, value in raw.items() if key != "type"}
        return cls(type=message_type, data=data)


# =============================================================================
# Session Messages (Server -> Client)
# =============================================================================

@dataclass
class InitMessage(Message):
    """Sent once to a new client with its identity and the world dimensions."""
    type: MessageType = MessageType.INIT

    @classmethod
    def create(
        cls,
        player_id: str,
        player_state: dict,
        world_size: int,
        player_size: int
    ) -> "InitMessage":
        return cls(data={
            "playerId": player_id,
            "playerState": player_state,
            "worldSize": world_size,
            "playerSize": player_size,
        })


@dataclass
class CurrentPlayersMessage(Message):
    """Sent once to a new client with every connected player's state."""
    type: MessageType = MessageType.CURRENT_PLAYERS

    @classmethod
    def create(cls, players: dict[str, dict]) -> "CurrentPlayersMessage":
        return cls(data={"players": players})


# =============================================================================
# Broadcast Messages (Server -> Clients)
# =============================================================================

@dataclass
class PlayerJoinedMessage(Message):
    """Broadcast to existing clients when a player connects."""
    type: MessageType = MessageType.PLAYER_JOINED

    @classmethod
    def create(cls, player_state: dict) -> "PlayerJoinedMessage":
        return cls(data={"player": player_state})


@dataclass
class PlayerMovedMessage(Message):
    """Broadcast to every client when a player's position changes."""
    type: MessageType = MessageType.PLAYER_MOVED

    @classmethod
    def create(cls, player_id: str, x: float, y: float) -> "PlayerMovedMessage":
        return cls(data={
            "playerId": player_id,
            "x": x,
            "y": y,
        })


@dataclass
class ChatBroadcastMessage(Message):
    """Broadcast to every client when a player sends a chat line."""
    type: MessageType = MessageType.CHAT

    @classmethod
    def create(cls, sender: str, message: str) -> "ChatBroadcastMessage":
        return cls(data={
            "sender": sender,
            "message": message,
        })


@dataclass
class PlayerLeftMessage(Message):
    """Broadcast to remaining clients when a player disconnects."""
    type: MessageType = MessageType.PLAYER_LEFT

    @classmethod
    def create(cls, player_id: str) -> "PlayerLeftMessage":
        return cls(data={"playerId": player_id})


# =============================================================================
# Requests (Client -> Server)
# =============================================================================

@dataclass
class MovementRequest(Message):
    """Request to move one step in a direction."""
    type: MessageType = MessageType.MOVEMENT

    @classmethod
    def create(cls, direction: str) -> "MovementRequest":
        return cls(data={"direction": str(getattr(direction, "value", direction))})


@dataclass
class ChatRequest(Message):
    """Request to send a chat line to everyone."""
    type: MessageType = MessageType.CHAT

    @classmethod
    def create(cls, message: str) -> "ChatRequest":
        return cls(data={"message": message})


# =============================================================================
# Helper function for parsing incoming messages
# =============================================================================

def parse_message(payload: str | bytes) -> Message:
    """
    Parse a raw frame into a Message.

    Raises:
        ProtocolError: if the payload is not a JSON object with a string type
        UnknownMessageTypeError: if the type is not one we know about
    """
    return Message.from_json(payload)
