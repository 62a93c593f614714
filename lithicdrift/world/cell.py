"""Cell — a single tile in the terrain grid.

Each cell holds its elevation, a quarry marker, and the assemblage of
artefacts dropped on it.  Count and diversity are derived from the
assemblage on demand rather than stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field

SourceID = str


@dataclass
class Cell:
    """A single tile in the terrain grid.

    Attributes:
        x: Column position.
        y: Row position.
        elevation: Terrain height.  Values ``<= 0`` are water.
        is_quarry: Whether a quarry feature falls inside this cell.
        assemblage: Every source ID deposited here, with multiplicity.
    """

    x: int
    y: int
    elevation: float = 1.0
    is_quarry: bool = False
    assemblage: list[SourceID] = field(default_factory=list, repr=False)

    @property
    def is_traversable(self) -> bool:
        """Return True if foragers may stand on this cell."""
        return self.elevation > 0

    @property
    def count(self) -> int:
        """Number of artefacts deposited here."""
        return len(self.assemblage)

    @property
    def diversity(self) -> int:
        """Number of distinct sources in the assemblage."""
        return len(set(self.assemblage))
