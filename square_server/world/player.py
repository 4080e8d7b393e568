"""
Player state.
"""
import random
from dataclasses import dataclass, asdict

from square_shared.constants import (
    PLAYER_ID_PREFIX,
    PLAYER_NAME_PREFIX,
    SPAWN_POSITION,
)


@dataclass
class Player:
    """Represents one connected participant."""

    id: str
    x: float
    y: float
    color: str
    name: str

    @property
    def position(self) -> tuple[float, float]:
        """Current (x, y) position."""
        return (self.x, self.y)

    def to_dict(self) -> dict:
        """Serialize the player's state for the wire."""
        return asdict(self)


def random_color(rng: random.Random | None = None) -> str:
    """Pick a color uniformly from the 24-bit RGB space, as #RRGGBB."""
    rng = rng or random
    return f"#{rng.randrange(16 ** 6):06X}"


def default_name(player_id: str) -> str:
    """
    Derive a display name from a player id.

    "player-7" becomes "Player 7".
    """
    number = player_id[len(PLAYER_ID_PREFIX):] if player_id.startswith(PLAYER_ID_PREFIX) else player_id
    return f"{PLAYER_NAME_PREFIX}{number}"


def create_player(player_id: str, rng: random.Random | None = None) -> Player:
    """
    Create a freshly spawned player.

    Args:
        player_id: Id allocated by the registry
        rng: Optional random source for the color (useful for testing)

    Returns:
        Player at the center of the world with a random color
    """
    return Player(
        id=player_id,
        x=SPAWN_POSITION,
        y=SPAWN_POSITION,
        color=random_color(rng),
        name=default_name(player_id),
    )
