"""Movement policies for foragers.

Two mutually exclusive policies share the same contract: given a
forager and the landscape, return the cell it steps onto this tick, or
None to stay put.

- **Random walk**: a uniform choice among the land cells of the Moore
  neighbourhood.
- **Target walk**: while low on supply, face the nearest quarry and
  step onto the cell ahead.  If that cell is water the forager falls
  back to a random step for this tick.  Nothing guarantees the quarry
  is ever reached; a forager facing a lake can fall back forever.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.random import Generator

    from lithicdrift.foragers.forager import Forager
    from lithicdrift.world.cell import Cell
    from lithicdrift.world.quarries import QuarryRegistry
    from lithicdrift.world.terrain import TerrainGrid

LOW_SUPPLY_FRACTION = 0.10


class MovementPolicy(Enum):
    """How foragers choose where to step."""

    RANDOM_WALK = "random_walk"
    TARGET_WALK = "target_walk"


def random_step(
    forager: Forager,
    terrain: TerrainGrid,
    rng: Generator,
) -> Cell | None:
    """Pick a uniformly random land neighbour.

    Returns:
        The chosen cell, or None if the forager is surrounded by water
        or the grid edge.
    """
    options = terrain.traversable_neighbours(forager.x, forager.y)
    if not options:
        return None
    return options[int(rng.integers(len(options)))]


def heading_offset(x: int, y: int, target_x: int, target_y: int) -> tuple[int, int]:
    """Return the one-cell step along the heading from ``(x, y)`` to a target.

    The unit heading vector is rounded half-up on each axis, so every
    heading maps onto one of the eight Moore offsets.
    """
    angle = math.atan2(target_y - y, target_x - x)
    return math.floor(math.cos(angle) + 0.5), math.floor(math.sin(angle) + 0.5)


def target_step(
    forager: Forager,
    terrain: TerrainGrid,
    quarries: QuarryRegistry,
    rng: Generator,
    *,
    low_supply_fraction: float = LOW_SUPPLY_FRACTION,
) -> Cell | None:
    """Step toward the nearest quarry when low on supply.

    Falls back to :func:`random_step` when the forager is not low on
    supply, when no quarry exists, when it already stands on its
    nearest quarry, or when the cell ahead is water or off the grid.
    """
    if not forager.is_low_on_supply(low_supply_fraction):
        return random_step(forager, terrain, rng)

    target = quarries.nearest_quarry_cell(forager.x, forager.y, terrain)
    if target is None or (target.x, target.y) == (forager.x, forager.y):
        return random_step(forager, terrain, rng)

    dx, dy = heading_offset(forager.x, forager.y, target.x, target.y)
    ahead_x, ahead_y = forager.x + dx, forager.y + dy
    if not terrain.is_traversable(ahead_x, ahead_y):
        return random_step(forager, terrain, rng)
    return terrain.cell_at(ahead_x, ahead_y)


def next_position(
    policy: MovementPolicy,
    forager: Forager,
    terrain: TerrainGrid,
    quarries: QuarryRegistry,
    rng: Generator,
    *,
    low_supply_fraction: float = LOW_SUPPLY_FRACTION,
) -> Cell | None:
    """Dispatch to the configured movement policy."""
    match policy:
        case MovementPolicy.RANDOM_WALK:
            return random_step(forager, terrain, rng)
        case MovementPolicy.TARGET_WALK:
            return target_step(
                forager,
                terrain,
                quarries,
                rng,
                low_supply_fraction=low_supply_fraction,
            )
    msg = f"unknown movement policy: {policy!r}"
    raise ValueError(msg)
