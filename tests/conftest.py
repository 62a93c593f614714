"""Shared fixtures for the Lithicdrift test suite."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.random import Generator

from lithicdrift.simulation.config import SimulationConfig
from lithicdrift.world.quarries import QuarryFeature, QuarryRegistry
from lithicdrift.world.terrain import TerrainGrid


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def small_terrain() -> TerrainGrid:
    """A small 8x8 all-land grid for fast tests."""
    return TerrainGrid(width=8, height=8)


@pytest.fixture
def island_terrain() -> TerrainGrid:
    """A 10x10 grid: a 6x6 island in the middle of the sea."""
    elevation = np.zeros((10, 10))
    elevation[2:8, 2:8] = 5.0
    return TerrainGrid.from_elevation(elevation)


@pytest.fixture
def empty_registry() -> QuarryRegistry:
    """A registry with no quarries."""
    return QuarryRegistry()


@pytest.fixture
def one_quarry(small_terrain: TerrainGrid) -> QuarryRegistry:
    """Quarry ``Q1`` at cell (5, 5) of ``small_terrain``."""
    return QuarryRegistry.from_features(
        [QuarryFeature(id="Q1", name="Ridge chert", x=5.5, y=5.5)],
        small_terrain,
    )


@pytest.fixture
def default_config() -> SimulationConfig:
    """Default simulation config (no YAML file needed)."""
    return SimulationConfig()
