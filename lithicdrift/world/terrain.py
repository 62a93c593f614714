"""Terrain grid — the spatial container for the simulation.

The grid owns cells arranged in rows and columns and provides the
spatial queries foragers need (neighbours, traversability, quarry
flags) along with the single mutation the simulation makes to the
landscape: depositing an artefact on a cell.

The world is bounded and does not wrap.  Diagonal and cardinal steps
both count as one move.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

from lithicdrift.world.cell import Cell, SourceID

_CARDINAL = [(-1, 0), (1, 0), (0, -1), (0, 1)]
_DIAGONAL = [(-1, -1), (-1, 1), (1, -1), (1, 1)]


@dataclass
class TerrainGrid:
    """A 2D grid of terrain cells.

    Attributes:
        width: Number of columns in the grid.
        height: Number of rows in the grid.
        cells: 2D list of Cell objects indexed as ``cells[y][x]``.
    """

    width: int
    height: int
    cells: list[list[Cell]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialise the grid with flat dry land."""
        self.cells = [
            [Cell(x=x, y=y) for x in range(self.width)] for y in range(self.height)
        ]

    @classmethod
    def from_elevation(cls, elevation: ArrayLike) -> TerrainGrid:
        """Build a grid from an elevation raster.

        Row 0 of the raster becomes ``y == 0``.  No-data samples (NaN)
        are treated as water.

        Args:
            elevation: 2D array of elevation samples indexed ``[row, col]``.

        Returns:
            A grid with one cell per raster sample.

        Raises:
            ValueError: If the raster is not two-dimensional.
        """
        raster = np.nan_to_num(
            np.asarray(elevation, dtype=np.float64),
            nan=0.0,
        )
        if raster.ndim != 2:
            msg = f"elevation raster must be 2D, got shape {raster.shape}"
            raise ValueError(msg)

        height, width = raster.shape
        grid = cls(width=width, height=height)
        for y, row in enumerate(grid.cells):
            for x, cell in enumerate(row):
                cell.elevation = float(raster[y, x])
        return grid

    @property
    def shape(self) -> tuple[int, int]:
        """Raster shape ``(rows, cols)`` of the grid."""
        return self.height, self.width

    def in_bounds(self, x: int, y: int) -> bool:
        """Return True if ``(x, y)`` lies inside the grid."""
        return 0 <= x < self.width and 0 <= y < self.height

    def cell_at(self, x: int, y: int) -> Cell:
        """Return the cell at grid coordinates ``(x, y)``.

        Args:
            x: Column index.
            y: Row index.

        Raises:
            IndexError: If coordinates are out of bounds.
        """
        if not self.in_bounds(x, y):
            msg = f"({x}, {y}) out of bounds for {self.width}x{self.height}"
            raise IndexError(msg)
        return self.cells[y][x]

    def elevation(self, x: int, y: int) -> float:
        """Return the elevation at ``(x, y)``."""
        return self.cell_at(x, y).elevation

    def is_traversable(self, x: int, y: int) -> bool:
        """Return True if ``(x, y)`` is in bounds and on land."""
        return self.in_bounds(x, y) and self.cells[y][x].is_traversable

    def is_quarry(self, x: int, y: int) -> bool:
        """Return True if a quarry sits on ``(x, y)``."""
        return self.cell_at(x, y).is_quarry

    def mark_quarry(self, x: int, y: int) -> None:
        """Flag ``(x, y)`` as a quarry cell."""
        self.cell_at(x, y).is_quarry = True

    def deposit(self, x: int, y: int, source_id: SourceID) -> None:
        """Append an artefact to the assemblage at ``(x, y)``.

        Args:
            x: Column index.
            y: Row index.
            source_id: Quarry the artefact came from.
        """
        self.cell_at(x, y).assemblage.append(source_id)

    def assemblage_count(self, x: int, y: int) -> int:
        """Number of artefacts deposited at ``(x, y)``."""
        return self.cell_at(x, y).count

    def assemblage_diversity(self, x: int, y: int) -> int:
        """Number of distinct sources deposited at ``(x, y)``."""
        return self.cell_at(x, y).diversity

    def neighbours(
        self,
        x: int,
        y: int,
        *,
        include_diagonals: bool = True,
    ) -> list[Cell]:
        """Return adjacent cells for the given position.

        Args:
            x: Column index.
            y: Row index.
            include_diagonals: If True, return up to 8 neighbours; otherwise 4.

        Returns:
            List of neighbouring Cell objects (excludes out-of-bounds).
        """
        offsets = _CARDINAL + _DIAGONAL if include_diagonals else _CARDINAL

        result: list[Cell] = []
        for dx, dy in offsets:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                result.append(self.cells[ny][nx])
        return result

    def traversable_neighbours(self, x: int, y: int) -> list[Cell]:
        """Return the Moore neighbours of ``(x, y)`` that are on land."""
        return [c for c in self.neighbours(x, y) if c.is_traversable]

    def traversable_cells(self) -> list[Cell]:
        """Return every land cell in row-major order."""
        return [cell for row in self.cells for cell in row if cell.is_traversable]

    def elevation_raster(self) -> np.ndarray:
        """Return elevation as a ``(height, width)`` array."""
        return np.array(
            [[cell.elevation for cell in row] for row in self.cells],
            dtype=np.float64,
        )

    def total_deposited(self) -> int:
        """Total number of artefacts across all assemblages."""
        return sum(cell.count for row in self.cells for cell in row)
