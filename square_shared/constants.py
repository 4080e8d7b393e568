"""
World constants for Square World.
All distances are in pixels.
"""

# World geometry
WORLD_SIZE = 500  # Side of the square world
PLAYER_SIZE = 20  # Side of each player square
MOVEMENT_SPEED = 5  # Distance moved per movement event

# Furthest coordinate a player may occupy on either axis
MAX_POSITION = WORLD_SIZE - PLAYER_SIZE

# Spawn point: the center of the world, adjusted for the player's size
SPAWN_POSITION = (WORLD_SIZE / 2) - (PLAYER_SIZE / 2)

# Identity
PLAYER_ID_PREFIX = "player-"
PLAYER_NAME_PREFIX = "Player "
