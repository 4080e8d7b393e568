"""
Tests for the world layer: players, movement, and the player registry.

Run with: python3 tests/test_world/test_world.py
"""

import random
import re
import sys
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from square_server.world import (
    DuplicatePlayerError,
    Player,
    PlayerRegistry,
    create_player,
    default_name,
    random_color,
    resolve_movement,
)
from square_shared.constants import MAX_POSITION, MOVEMENT_SPEED, SPAWN_POSITION
from square_shared.enums import Direction


COLOR_PATTERN = re.compile(r"^#[0-9A-F]{6}$")


class TestPlayer(unittest.TestCase):
    """Test player creation."""

    def test_spawn_at_center(self):
        """New players start at the center of the world, adjusted for size."""
        player = create_player("player-1")
        self.assertEqual(player.x, 240)
        self.assertEqual(player.y, 240)
        self.assertEqual(player.position, (SPAWN_POSITION, SPAWN_POSITION))

    def test_name_derived_from_id(self):
        """Display name uses the numeric suffix of the id."""
        self.assertEqual(create_player("player-7").name, "Player 7")
        self.assertEqual(default_name("player-123"), "Player 123")

    def test_color_format(self):
        """Colors are six uppercase hex digits."""
        for _ in range(50):
            self.assertRegex(random_color(), COLOR_PATTERN)

    def test_color_seeded(self):
        """A seeded random source gives reproducible colors."""
        first = create_player("player-1", random.Random(3)).color
        second = create_player("player-1", random.Random(3)).color
        self.assertEqual(first, second)

    def test_to_dict(self):
        """Player state serializes to the wire shape."""
        player = Player(id="player-2", x=10, y=20, color="#00FF00", name="Player 2")
        self.assertEqual(player.to_dict(), {
            "id": "player-2",
            "x": 10,
            "y": 20,
            "color": "#00FF00",
            "name": "Player 2",
        })


class TestMovement(unittest.TestCase):
    """Test the movement resolver."""

    def test_each_direction(self):
        """Each direction moves one step along a single axis."""
        self.assertEqual(resolve_movement(100, 100, "up"), (100, 100 - MOVEMENT_SPEED))
        self.assertEqual(resolve_movement(100, 100, "down"), (100, 100 + MOVEMENT_SPEED))
        self.assertEqual(resolve_movement(100, 100, "left"), (100 - MOVEMENT_SPEED, 100))
        self.assertEqual(resolve_movement(100, 100, "right"), (100 + MOVEMENT_SPEED, 100))

    def test_enum_and_key_aliases(self):
        """Direction members and WASD aliases resolve the same as names."""
        self.assertEqual(resolve_movement(100, 100, Direction.UP), resolve_movement(100, 100, "w"))
        self.assertEqual(resolve_movement(100, 100, Direction.LEFT), resolve_movement(100, 100, "a"))
        self.assertEqual(resolve_movement(100, 100, Direction.DOWN), resolve_movement(100, 100, "s"))
        self.assertEqual(resolve_movement(100, 100, Direction.RIGHT), resolve_movement(100, 100, "d"))

    def test_clamped_at_lower_bound(self):
        """Moving past zero stops at zero."""
        self.assertEqual(resolve_movement(0, 50, "left"), (0, 50))
        self.assertEqual(resolve_movement(3, 50, "left"), (0, 50))
        self.assertEqual(resolve_movement(50, 2, "up"), (50, 0))

    def test_clamped_at_upper_bound(self):
        """Moving past the far edge stops at WORLD_SIZE - PLAYER_SIZE."""
        self.assertEqual(resolve_movement(MAX_POSITION, 50, "right"), (MAX_POSITION, 50))
        self.assertEqual(resolve_movement(MAX_POSITION - 1, 50, "right"), (MAX_POSITION, 50))
        self.assertEqual(resolve_movement(50, MAX_POSITION - 2, "down"), (50, MAX_POSITION))

    def test_unknown_direction_is_identity(self):
        """Unknown directions leave the position unchanged."""
        for direction in ("north", "", None, 42, "UP"):
            self.assertEqual(resolve_movement(120, 130, direction), (120, 130))

    def test_random_walk_stays_in_bounds(self):
        """No sequence of moves leaves the world."""
        rng = random.Random(1234)
        directions = ["up", "down", "left", "right", "w", "a", "s", "d", "jump"]
        x = y = SPAWN_POSITION
        for _ in range(5000):
            x, y = resolve_movement(x, y, rng.choice(directions))
            self.assertTrue(0 <= x <= MAX_POSITION)
            self.assertTrue(0 <= y <= MAX_POSITION)


class TestPlayerRegistry(unittest.TestCase):
    """Test the player registry contract."""

    def setUp(self):
        self.registry = PlayerRegistry()

    def add_player(self) -> Player:
        player = create_player(self.registry.new_player_id())
        self.registry.insert(player)
        return player

    def test_ids_unique_and_increasing(self):
        """Allocated ids start at 1 and strictly increase."""
        ids = [self.registry.new_player_id() for _ in range(20)]
        numbers = [int(player_id.split("-")[1]) for player_id in ids]
        self.assertEqual(numbers[0], 1)
        self.assertEqual(numbers, sorted(set(numbers)))

    def test_ids_not_reused_after_removal(self):
        """Removing a player does not free its id."""
        first = self.add_player()
        self.registry.remove(first.id)
        second = self.add_player()
        self.assertNotEqual(first.id, second.id)
        self.assertEqual(second.id, "player-2")

    def test_insert_and_get(self):
        """Inserted players can be looked up by id."""
        player = self.add_player()
        self.assertIs(self.registry.get(player.id), player)
        self.assertIn(player.id, self.registry)
        self.assertEqual(len(self.registry), 1)

    def test_duplicate_insert_raises(self):
        """Inserting the same id twice is an invariant violation."""
        player = self.add_player()
        with self.assertRaises(DuplicatePlayerError):
            self.registry.insert(create_player(player.id))
        self.assertEqual(len(self.registry), 1)

    def test_get_missing(self):
        """Looking up an unknown id returns None."""
        self.assertIsNone(self.registry.get("player-99"))

    def test_remove_is_idempotent(self):
        """Removing twice is a no-op the second time."""
        player = self.add_player()
        other = self.add_player()

        self.assertIs(self.registry.remove(player.id), player)
        self.assertIsNone(self.registry.remove(player.id))
        self.assertEqual(self.registry.ids(), [other.id])

    def test_move(self):
        """Moving updates the stored player in place."""
        player = self.add_player()
        moved = self.registry.move(player.id, 10, 20)
        self.assertIs(moved, player)
        self.assertEqual(self.registry.get(player.id).position, (10, 20))

    def test_move_missing(self):
        """Moving an unknown player does nothing."""
        self.assertIsNone(self.registry.move("player-5", 10, 20))
        self.assertEqual(len(self.registry), 0)

    def test_snapshot_contents(self):
        """Snapshots contain every player's serialized state."""
        first = self.add_player()
        second = self.add_player()
        snapshot = self.registry.snapshot()
        self.assertEqual(set(snapshot), {first.id, second.id})
        self.assertEqual(snapshot[first.id], first.to_dict())

    def test_snapshot_is_isolated(self):
        """Later mutations do not leak into an earlier snapshot."""
        player = self.add_player()
        snapshot = self.registry.snapshot()

        self.registry.move(player.id, 0, 0)
        self.add_player()
        self.registry.remove(player.id)

        self.assertEqual(list(snapshot), [player.id])
        self.assertEqual(snapshot[player.id]["x"], SPAWN_POSITION)


def run_tests():
    """Run all world tests."""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    test_classes = [
        TestPlayer,
        TestMovement,
        TestPlayerRegistry,
    ]

    for test_class in test_classes:
        suite.addTests(loader.loadTestsFromTestCase(test_class))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_tests()
    sys.exit(0 if success else 1)
