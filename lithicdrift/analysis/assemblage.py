"""Assemblage analysis — per-cell count and diversity summaries.

Snapshots read the terrain grid without touching it, so they can be
taken at any tick and as often as needed.  Arrays share the grid's
``[row, col]`` layout so they can be handed straight to a raster
writer.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from lithicdrift.world.cell import SourceID
    from lithicdrift.world.terrain import TerrainGrid


class Layer(Enum):
    """Summary statistic shown or exported for each cell."""

    COUNT = "count"
    DIVERSITY = "diversity"


@dataclass(frozen=True)
class AssemblageSnapshot:
    """Per-cell assemblage statistics at one tick.

    Attributes:
        tick: Tick at which the snapshot was taken.
        counts: Artefacts per cell, shape ``(height, width)``.
        diversity: Distinct sources per cell, same shape.
    """

    tick: int
    counts: NDArray[np.int64]
    diversity: NDArray[np.int64]

    @property
    def total(self) -> int:
        """Total artefacts on the landscape."""
        return int(self.counts.sum())

    def layer(self, layer: Layer) -> NDArray[np.int64]:
        """Return the raster for ``layer``."""
        match layer:
            case Layer.COUNT:
                return self.counts
            case Layer.DIVERSITY:
                return self.diversity
        msg = f"unknown layer: {layer!r}"
        raise ValueError(msg)

    def rasters(self) -> dict[str, NDArray[np.int64]]:
        """Return the count and diversity rasters keyed by layer name."""
        return {layer.value: self.layer(layer).copy() for layer in Layer}

    def as_mapping(self) -> dict[tuple[int, int], tuple[int, int]]:
        """Map ``(x, y)`` to ``(count, diversity)`` in row-major order."""
        height, width = self.counts.shape
        return {
            (x, y): (int(self.counts[y, x]), int(self.diversity[y, x]))
            for y in range(height)
            for x in range(width)
        }

    def intensity(
        self,
        layer: Layer = Layer.COUNT,
        peak: int | None = None,
    ) -> NDArray[np.float64]:
        """Scale a layer to display intensities in ``[0, 1]``.

        Assemblages only grow, so the largest value in the latest
        snapshot is also the largest seen so far in the run.

        Args:
            layer: Which statistic to scale.
            peak: Value mapped to 1.0.  Defaults to the layer maximum.

        Returns:
            Float array of the grid's shape; all zeros when empty.
        """
        values = self.layer(layer).astype(np.float64)
        top = float(values.max()) if peak is None else float(peak)
        if top <= 0:
            return np.zeros_like(values)
        return np.clip(values / top, 0.0, 1.0)


def take_snapshot(terrain: TerrainGrid, tick: int) -> AssemblageSnapshot:
    """Summarise every cell's assemblage.

    Args:
        terrain: The grid to read.
        tick: Tick label for the snapshot.

    Returns:
        A new, independent snapshot.
    """
    counts = np.zeros(terrain.shape, dtype=np.int64)
    diversity = np.zeros(terrain.shape, dtype=np.int64)
    for y, row in enumerate(terrain.cells):
        for x, cell in enumerate(row):
            if cell.assemblage:
                counts[y, x] = cell.count
                diversity[y, x] = cell.diversity
    return AssemblageSnapshot(tick=tick, counts=counts, diversity=diversity)


def source_composition(terrain: TerrainGrid) -> dict[SourceID, NDArray[np.int64]]:
    """Count artefacts per source for every cell.

    Returns:
        Mapping from source ID to a ``(height, width)`` count raster,
        ordered by first appearance in row-major scan.
    """
    composition: dict[SourceID, NDArray[np.int64]] = {}
    for y, row in enumerate(terrain.cells):
        for x, cell in enumerate(row):
            for source_id, n in Counter(cell.assemblage).items():
                if source_id not in composition:
                    composition[source_id] = np.zeros(terrain.shape, dtype=np.int64)
                composition[source_id][y, x] = n
    return composition
