"""Synthetic landscapes for runs without a real elevation raster.

Builds an archipelago of rounded hills rising out of a flat sea floor,
plus a handful of quarry features scattered over the land.  Used by the
CLI demo and by tests that need water and land in the same grid.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from lithicdrift.world.quarries import QuarryFeature

if TYPE_CHECKING:
    from numpy.random import Generator

    from lithicdrift.world.terrain import TerrainGrid


def synthetic_elevation(
    width: int,
    height: int,
    rng: Generator,
    *,
    num_hills: int = 8,
    hill_radius: int = 10,
    peak_range: tuple[float, float] = (40.0, 120.0),
    sea_level: float = 15.0,
) -> np.ndarray:
    """Generate an elevation raster made of overlapping circular hills.

    Each hill contributes height with a circular falloff from its
    centre.  Anything at or below ``sea_level`` becomes water (0.0);
    land is shifted down so the coastline sits just above zero.

    Args:
        width: Number of columns.
        height: Number of rows.
        rng: Seeded random generator.
        num_hills: Number of hills to place.
        hill_radius: Radius of each hill in cells.
        peak_range: (min, max) height at a hill's centre.
        sea_level: Height below which terrain is flooded.

    Returns:
        A ``(height, width)`` float array.
    """
    raster = np.zeros((height, width), dtype=np.float64)
    lo, hi = peak_range
    ys, xs = np.mgrid[0:height, 0:width]
    for _ in range(num_hills):
        cx = int(rng.integers(0, width))
        cy = int(rng.integers(0, height))
        peak = float(rng.uniform(lo, hi))
        dist = np.hypot(xs - cx, ys - cy)
        # Circular falloff: full height at the centre, zero at the rim
        falloff = np.clip(1.0 - dist / (hill_radius + 1), 0.0, None)
        raster += peak * falloff

    return np.where(raster > sea_level, raster - sea_level, 0.0)


def synthetic_quarry_features(
    terrain: TerrainGrid,
    rng: Generator,
    count: int = 4,
) -> list[QuarryFeature]:
    """Scatter ``count`` quarry features over distinct land cells.

    Features are placed at cell centres and named ``Q1``..``Qn``.  If
    the terrain has fewer land cells than ``count``, every land cell
    gets one.

    Args:
        terrain: Grid to sample land cells from.
        rng: Seeded random generator.
        count: Number of quarries wanted.

    Returns:
        Point features in grid space.
    """
    land = terrain.traversable_cells()
    if not land:
        return []
    picks = rng.choice(len(land), size=min(count, len(land)), replace=False)
    features = []
    for n, idx in enumerate(picks, start=1):
        cell = land[int(idx)]
        features.append(
            QuarryFeature(
                id=f"Q{n}",
                name=f"Quarry {n}",
                x=cell.x + 0.5,
                y=cell.y + 0.5,
            ),
        )
    return features
