"""Forager — a mobile toolmaker carrying a bounded toolkit.

A forager's per-tick behaviour is a fixed sequence:

1. **Move** using the configured movement policy.
2. **Reprovision**: on a quarry cell, refill the toolkit to capacity
   with that quarry's source ID.
3. **Exchange**: hand one random item to the nearest forager in range
   (driven globally by ``lithicdrift.foragers.exchange``).
4. **Discard**: drop one random item on the current cell.

Exchange and discard only happen for foragers holding at least one
item.  The toolkit never exceeds ``max_carry``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lithicdrift.errors import CapacityOverflow, EmptyToolkitAccess
from lithicdrift.foragers.movement import LOW_SUPPLY_FRACTION, next_position

if TYPE_CHECKING:
    from numpy.random import Generator

    from lithicdrift.foragers.movement import MovementPolicy
    from lithicdrift.world.cell import Cell, SourceID
    from lithicdrift.world.quarries import QuarryRegistry
    from lithicdrift.world.terrain import TerrainGrid


@dataclass
class Forager:
    """A single forager agent.

    Attributes:
        forager_id: Stable identifier, also the exchange tie-breaker.
        x: Current column position in the terrain grid.
        y: Current row position in the terrain grid.
        max_carry: Toolkit capacity.
        toolkit: Source IDs currently carried (a multiset).
        collected: Items ever taken from quarries.
        discarded: Items ever dropped on the landscape.
    """

    forager_id: int
    x: int
    y: int
    max_carry: int
    toolkit: list[SourceID] = field(default_factory=list)
    collected: int = 0
    discarded: int = 0

    def __post_init__(self) -> None:
        """Reject a starting toolkit larger than ``max_carry``.

        Raises:
            CapacityOverflow: If the toolkit is over capacity.
        """
        if len(self.toolkit) > self.max_carry:
            msg = (
                f"forager {self.forager_id} starts with "
                f"{len(self.toolkit)} items but carries at most {self.max_carry}"
            )
            raise CapacityOverflow(msg)

    @property
    def has_items(self) -> bool:
        """Return True if the toolkit is non-empty."""
        return len(self.toolkit) > 0

    @property
    def has_capacity(self) -> bool:
        """Return True if the toolkit can take another item."""
        return len(self.toolkit) < self.max_carry

    def is_low_on_supply(self, fraction: float = LOW_SUPPLY_FRACTION) -> bool:
        """Return True if the toolkit is below ``fraction`` of capacity."""
        return len(self.toolkit) < fraction * self.max_carry

    def move_to(self, cell: Cell) -> None:
        """Place the forager on ``cell``."""
        self.x, self.y = cell.x, cell.y

    def move(
        self,
        policy: MovementPolicy,
        terrain: TerrainGrid,
        quarries: QuarryRegistry,
        rng: Generator,
        *,
        low_supply_fraction: float = LOW_SUPPLY_FRACTION,
    ) -> bool:
        """Take one step according to ``policy``.

        Returns:
            True if the forager changed cell, False if it stayed put.
        """
        cell = next_position(
            policy,
            self,
            terrain,
            quarries,
            rng,
            low_supply_fraction=low_supply_fraction,
        )
        if cell is None:
            return False
        self.move_to(cell)
        return True

    def reprovision(self, terrain: TerrainGrid, quarries: QuarryRegistry) -> int:
        """Refill the toolkit to capacity if standing on a quarry.

        Returns:
            Number of items added (0 off-quarry or when already full).
        """
        if not terrain.is_quarry(self.x, self.y):
            return 0
        source_id = quarries.quarry_id_at(self.x, self.y)
        added = 0
        while self.has_capacity:
            self.toolkit.append(source_id)
            added += 1
        self.collected += added
        return added

    def receive(self, source_id: SourceID) -> None:
        """Add one item handed over by another forager.

        Raises:
            CapacityOverflow: If the toolkit is already full.
        """
        if not self.has_capacity:
            msg = (
                f"forager {self.forager_id} is full "
                f"({len(self.toolkit)}/{self.max_carry})"
            )
            raise CapacityOverflow(msg)
        self.toolkit.append(source_id)

    def give_random_item(self, target: Forager, rng: Generator) -> SourceID | None:
        """Hand one uniformly random item to ``target`` if it has room.

        Returns:
            The transferred source ID, or None if ``target`` was full.

        Raises:
            EmptyToolkitAccess: If this forager has nothing to give.
        """
        if not self.has_items:
            msg = f"forager {self.forager_id} has nothing to give"
            raise EmptyToolkitAccess(msg)
        if not target.has_capacity:
            return None
        source_id = self._take_random_item(rng)
        target.receive(source_id)
        return source_id

    def discard(self, terrain: TerrainGrid, rng: Generator) -> SourceID:
        """Drop one uniformly random item on the current cell.

        Returns:
            The discarded source ID.

        Raises:
            EmptyToolkitAccess: If the toolkit is empty.
        """
        source_id = self._take_random_item(rng)
        terrain.deposit(self.x, self.y, source_id)
        self.discarded += 1
        return source_id

    def _take_random_item(self, rng: Generator) -> SourceID:
        """Remove and return one uniformly random toolkit item."""
        if not self.toolkit:
            msg = f"forager {self.forager_id} has an empty toolkit"
            raise EmptyToolkitAccess(msg)
        return self.toolkit.pop(int(rng.integers(len(self.toolkit))))
