"""Quarry registry — the raw material sources on the landscape.

Quarries arrive as point features already expressed in grid space
(continuous column/row coordinates).  Each feature is snapped to the
cell that contains it and that cell is flagged as a quarry.  The
registry is built once at setup and only read afterwards.

When several features land on the same cell, the first one in input
order supplies the cell's source ID.  Nearest-quarry ties are broken
the same way: the earliest registered quarry wins.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lithicdrift.errors import NoQuarryAtCell

if TYPE_CHECKING:
    from collections.abc import Iterable

    from lithicdrift.world.cell import Cell, SourceID
    from lithicdrift.world.terrain import TerrainGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuarryFeature:
    """An input point feature in grid space.

    Attributes:
        id: Source identifier from the dataset's ID field.
        name: Descriptive name.
        x: Continuous column coordinate.
        y: Continuous row coordinate.
    """

    id: SourceID
    name: str
    x: float
    y: float


@dataclass(frozen=True)
class Quarry:
    """A registered quarry snapped to a grid cell."""

    id: SourceID
    name: str
    x: int
    y: int


@dataclass
class QuarryRegistry:
    """All quarries on the landscape, in input order.

    Attributes:
        quarries: Registered quarries, in the order they were supplied.
    """

    quarries: list[Quarry] = field(default_factory=list)
    _by_cell: dict[tuple[int, int], Quarry] = field(
        init=False,
        default_factory=dict,
        repr=False,
    )

    def __post_init__(self) -> None:
        for quarry in self.quarries:
            self._by_cell.setdefault((quarry.x, quarry.y), quarry)

    @classmethod
    def from_features(
        cls,
        features: Iterable[QuarryFeature],
        terrain: TerrainGrid,
    ) -> QuarryRegistry:
        """Snap point features to cells and flag those cells as quarries.

        Features outside the grid are skipped.  Features on water are
        kept; they are valid sources that no forager can reach.

        Args:
            features: Point features in grid space, in dataset order.
            terrain: The grid to register against (mutated).

        Returns:
            The populated registry.
        """
        registry = cls()
        for feature in features:
            x, y = math.floor(feature.x), math.floor(feature.y)
            if not terrain.in_bounds(x, y):
                logger.warning(
                    "Quarry %s (%s) at (%.2f, %.2f) lies outside the grid; skipped",
                    feature.id,
                    feature.name,
                    feature.x,
                    feature.y,
                )
                continue
            if not terrain.is_traversable(x, y):
                logger.warning(
                    "Quarry %s (%s) sits on water at cell (%d, %d)",
                    feature.id,
                    feature.name,
                    x,
                    y,
                )
            registry.add(Quarry(id=feature.id, name=feature.name, x=x, y=y))
            terrain.mark_quarry(x, y)

        logger.debug("Registered %d quarries", len(registry.quarries))
        return registry

    def add(self, quarry: Quarry) -> None:
        """Register a quarry.  An occupied cell keeps its first quarry."""
        existing = self._by_cell.get((quarry.x, quarry.y))
        if existing is not None:
            logger.debug(
                "Quarry %s shares cell (%d, %d) with %s; %s supplies the cell",
                quarry.id,
                quarry.x,
                quarry.y,
                existing.id,
                existing.id,
            )
        self.quarries.append(quarry)
        self._by_cell.setdefault((quarry.x, quarry.y), quarry)

    @property
    def ids(self) -> list[SourceID]:
        """Registered source IDs in input order."""
        return [q.id for q in self.quarries]

    def __len__(self) -> int:
        return len(self.quarries)

    def quarry_id_at(self, x: int, y: int) -> SourceID:
        """Return the source ID supplied by the quarry at ``(x, y)``.

        Raises:
            NoQuarryAtCell: If no quarry is registered at that cell.
        """
        quarry = self._by_cell.get((x, y))
        if quarry is None:
            raise NoQuarryAtCell(x, y)
        return quarry.id

    def nearest_quarry_cell(
        self,
        x: int,
        y: int,
        terrain: TerrainGrid,
    ) -> Cell | None:
        """Return the quarry cell closest to ``(x, y)``.

        Distance is Euclidean between cell coordinates.  Equidistant
        quarries resolve to the one registered first.

        Returns:
            The nearest quarry cell, or None if no quarries exist.
        """
        best: Quarry | None = None
        best_dist = math.inf
        for quarry in self.quarries:
            dist = math.hypot(quarry.x - x, quarry.y - y)
            if dist < best_dist:
                best, best_dist = quarry, dist
        if best is None:
            return None
        return terrain.cell_at(best.x, best.y)
