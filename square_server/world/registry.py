"""
Authoritative in-memory table of connected players.

All reads and writes of player state go through PlayerRegistry. Its
methods never await, so on a single event loop each call is atomic with
respect to every other handler and broadcast.
"""

import itertools
import logging
from square_server.world.player import Player
from square_shared.constants import PLAYER_ID_PREFIX


logger = logging.getLogger(__name__)


class DuplicatePlayerError(RuntimeError):
    """Raised when a player id is inserted twice. Indicates a bug in id allocation."""


class PlayerRegistry:
    """
    Maps player ids to Player objects.

    Provides methods for:
    - Allocating monotonically increasing player ids
    - Inserting, looking up, moving and removing players
    - Taking point-in-time snapshots for broadcasting
    """

    def __init__(self):
        # player_id -> Player
        self._players: dict[str, Player] = {}

        # Never rewound, so ids are not reused within the process
        self._id_counter = itertools.count(1)

    # =========================================================================
    # Mutation
    # =========================================================================

    def new_player_id(self) -> str:
        """Allocate the next unused player id."""
        return f"{PLAYER_ID_PREFIX}{next(self._id_counter)}"

    def insert(self, player: Player) -> None:
        """
        Add a player.

        Raises:
            DuplicatePlayerError: if a player with the same id is present
        """
        if player.id in self._players:
            logger.critical(f"Duplicate player id inserted into registry: {player.id}")
            raise DuplicatePlayerError(player.id)
        self._players[player.id] = player

    def remove(self, player_id: str) -> Player | None:
        """
        Remove a player.

        Returns:
            The removed Player, or None if it was already gone
        """
        return self._players.pop(player_id, None)

    def move(self, player_id: str, x: float, y: float) -> Player | None:
        """
        Update a player's position in place.

        Returns:
            The updated Player, or None if the player is not registered
        """
        player = self._players.get(player_id)
        if player is None:
            return None
        player.x = x
        player.y = y
        return player

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, player_id: str) -> Player | None:
        """Get a player by id, or None if not registered."""
        return self._players.get(player_id)

    def snapshot(self) -> dict[str, dict]:
        """
        Copy every player's state.

        The returned mapping shares nothing with the registry, so later
        mutations cannot change it while it is being serialized.
        """
        return {player_id: player.to_dict() for player_id, player in self._players.items()}

    def ids(self) -> list[str]:
        """Ids of all registered players."""
        return list(self._players)

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._players
