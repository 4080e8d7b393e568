"""
World state package.
"""
from .player import Player, create_player, default_name, random_color
from .movement import resolve_movement
from .registry import PlayerRegistry, DuplicatePlayerError

__all__ = [
    "Player",
    "create_player",
    "default_name",
    "random_color",
    "resolve_movement",
    "PlayerRegistry",
    "DuplicatePlayerError",
]
