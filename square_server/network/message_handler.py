"""
Message handler for routing client messages to world actions.

Parses incoming frames, applies them to the player registry, and
returns the broadcasts they produce. Nothing is ever sent back to the
client as an error: bad input is logged and dropped.
"""

import logging
from dataclasses import dataclass, field

from square_server.world import PlayerRegistry, resolve_movement
from square_shared.enums import Direction, MessageType
from square_shared.protocol import (
    Message,
    ChatBroadcastMessage,
    PlayerMovedMessage,
    ProtocolError,
    UnknownMessageTypeError,
    parse_message,
)


logger = logging.getLogger(__name__)


@dataclass
class HandleResult:
    """Result of handling a message."""
    # Messages to broadcast to every open connection, sender included
    broadcasts: list[Message] = field(default_factory=list)


class MessageHandler:
    """
    Routes incoming messages to the appropriate world action.

    Handlers run synchronously: the registry update and the broadcast it
    produces are computed without yielding to the event loop.
    """

    def __init__(self, registry: PlayerRegistry):
        self._players = registry

    def handle_message(
        self,
        player_id: str,
        message: Message | str | bytes | dict
    ) -> HandleResult:
        """
        Handle an incoming message from a player.

        Args:
            player_id: ID of the player sending the message
            message: The message (Message object, raw frame, or dict)

        Returns:
            HandleResult with the broadcasts to send
        """
        try:
            if isinstance(message, (str, bytes)):
                message = parse_message(message)
            elif isinstance(message, dict):
                message = Message.from_dict(message)
        except UnknownMessageTypeError as e:
            logger.warning(f"Unknown message type received from {player_id}: {e.type_name}")
            return HandleResult()
        except ProtocolError as e:
            logger.warning(f"Invalid message received from {player_id}: {e}")
            return HandleResult()

        handler = self._get_handler(message.type)
        if not handler:
            logger.warning(f"Unknown message type received from {player_id}: {message.type.value}")
            return HandleResult()

        try:
            return handler(player_id, message)
        except Exception as e:
            logger.exception(f"Error handling message {message.type.value} from {player_id}: {e}")
            return HandleResult()

    def _get_handler(self, message_type: MessageType):
        """Get the handler method for a client message type."""
        handlers = {
            MessageType.MOVEMENT: self._handle_movement,
            MessageType.CHAT: self._handle_chat,
        }
        return handlers.get(message_type)

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handle_movement(self, player_id: str, message: Message) -> HandleResult:
        """Move the sender one step and broadcast the new position if it changed."""
        player = self._players.get(player_id)
        if player is None:
            # Frame arrived after the player was removed
            return HandleResult()

        direction = Direction.parse(message.data.get("direction"))
        if direction is None:
            logger.debug(f"Ignoring movement with unknown direction from {player_id}: "
                         f"{message.data.get('direction')!r}")

        new_x, new_y = resolve_movement(player.x, player.y, direction)
        if (new_x, new_y) == player.position:
            return HandleResult()

        self._players.move(player_id, new_x, new_y)
        return HandleResult(broadcasts=[
            PlayerMovedMessage.create(player_id, new_x, new_y),
        ])

    def _handle_chat(self, player_id: str, message: Message) -> HandleResult:
        """Relay a chat line to everyone under the sender's display name."""
        player = self._players.get(player_id)
        if player is None:
            return HandleResult()

        text = message.data.get("message")
        if not isinstance(text, str):
            logger.warning(f"Chat from {player_id} has no text: {text!r}")
            return HandleResult()

        logger.info(f"Chat from {player.name}: {text}")
        return HandleResult(broadcasts=[
            ChatBroadcastMessage.create(player.name, text),
        ])
