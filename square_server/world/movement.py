"""
Movement mechanics.
"""
from square_shared.constants import MAX_POSITION, MOVEMENT_SPEED
from square_shared.enums import Direction


# Unit step per direction as (dx, dy); y grows downwards
_STEPS = {
    Direction.UP: (0, -1),
    Direction.LEFT: (-1, 0),
    Direction.DOWN: (0, 1),
    Direction.RIGHT: (1, 0),
}


def _clamp(value: float, upper: float) -> float:
    return max(0, min(upper, value))


def resolve_movement(
    x: float,
    y: float,
    direction: Direction | str | None,
    speed: float = MOVEMENT_SPEED,
    max_position: float = MAX_POSITION
) -> tuple[float, float]:
    """
    Compute a player's position after one movement step.

    Only the axis of travel is clamped to [0, max_position]; the other
    axis is returned untouched. Unrecognized directions leave the
    position unchanged.

    Args:
        x: Current x coordinate
        y: Current y coordinate
        direction: Direction, wire value or WASD alias
        speed: Step length
        max_position: Largest coordinate allowed on either axis

    Returns:
        New (x, y)
    """
    step = _STEPS.get(Direction.parse(direction))
    if step is None:
        return (x, y)

    dx, dy = step
    if dx:
        x = _clamp(x + dx * speed, max_position)
    if dy:
        y = _clamp(y + dy * speed, max_position)
    return (x, y)
