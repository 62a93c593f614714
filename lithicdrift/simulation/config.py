"""Config — load simulation parameters from YAML files.

All tunable constants (population size, toolkit capacity, run length,
movement and exchange behaviour) live in YAML and are parsed into a
typed dataclass here.  Values are validated on construction so a bad
file fails before any agent is created.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from lithicdrift.errors import ConfigError
from lithicdrift.foragers.exchange import EXCHANGE_RADIUS, ExchangeMode
from lithicdrift.foragers.movement import LOW_SUPPLY_FRACTION, MovementPolicy


@dataclass
class SimulationConfig:
    """Top-level simulation configuration.

    Attributes:
        seed: RNG seed for deterministic replay.
        num_foragers: Number of foragers spawned at setup.
        max_carry: Toolkit capacity of every forager.
        time_limit: Tick at which the run halts.
        random_walk: Use the random-walk policy; otherwise target walk.
        visualize_each_tick: Fire the engine's ``on_tick`` callback
            after every tick.
        exchange_radius: Maximum distance for tool exchange.
        low_supply_fraction: Fraction of ``max_carry`` below which a
            target-walking forager heads for a quarry.
        exchange_mode: When exchange passes run within a tick.
        snapshot_interval: Take an assemblage snapshot every N ticks
            (0 keeps only the terminal snapshot).
        world_width: Columns of the synthetic landscape.
        world_height: Rows of the synthetic landscape.
        num_quarries: Quarries placed on the synthetic landscape.
    """

    seed: int = 42
    num_foragers: int = 10
    max_carry: int = 20
    time_limit: int = 1000
    random_walk: bool = True
    visualize_each_tick: bool = True

    # Interaction
    exchange_radius: float = EXCHANGE_RADIUS
    low_supply_fraction: float = LOW_SUPPLY_FRACTION
    exchange_mode: ExchangeMode = ExchangeMode.PER_TICK

    # Output
    snapshot_interval: int = 0

    # Synthetic landscape (ignored when a raster is supplied)
    world_width: int = 64
    world_height: int = 64
    num_quarries: int = 4

    def __post_init__(self) -> None:
        """Coerce enum fields and validate ranges."""
        if not isinstance(self.exchange_mode, ExchangeMode):
            try:
                self.exchange_mode = ExchangeMode(self.exchange_mode)
            except ValueError as exc:
                msg = f"unknown exchange_mode: {self.exchange_mode!r}"
                raise ConfigError(msg) from exc
        self.validate()

    @property
    def movement_policy(self) -> MovementPolicy:
        """The movement policy selected by ``random_walk``."""
        if self.random_walk:
            return MovementPolicy.RANDOM_WALK
        return MovementPolicy.TARGET_WALK

    def validate(self) -> None:
        """Check every option is in range.

        Raises:
            ConfigError: On the first invalid value found.
        """
        checks = [
            (self.num_foragers >= 1, "num_foragers must be >= 1"),
            (self.max_carry >= 0, "max_carry must be >= 0"),
            (self.time_limit >= 1, "time_limit must be >= 1"),
            (self.exchange_radius >= 0, "exchange_radius must be >= 0"),
            (
                0.0 <= self.low_supply_fraction <= 1.0,
                "low_supply_fraction must be within [0, 1]",
            ),
            (self.snapshot_interval >= 0, "snapshot_interval must be >= 0"),
            (
                self.world_width >= 1 and self.world_height >= 1,
                "world dimensions must be >= 1",
            ),
            (self.num_quarries >= 0, "num_quarries must be >= 0"),
        ]
        for ok, msg in checks:
            if not ok:
                raise ConfigError(msg)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ConfigError: If a value is out of range.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        return cls(
            seed=data.get("seed", cls.seed),
            num_foragers=data.get("num_foragers", cls.num_foragers),
            max_carry=data.get("max_carry", cls.max_carry),
            time_limit=data.get("time_limit", cls.time_limit),
            random_walk=data.get("random_walk", cls.random_walk),
            visualize_each_tick=data.get(
                "visualize_each_tick",
                cls.visualize_each_tick,
            ),
            exchange_radius=data.get("exchange_radius", cls.exchange_radius),
            low_supply_fraction=data.get(
                "low_supply_fraction",
                cls.low_supply_fraction,
            ),
            exchange_mode=data.get("exchange_mode", cls.exchange_mode),
            snapshot_interval=data.get(
                "snapshot_interval",
                cls.snapshot_interval,
            ),
            world_width=data.get("world_width", cls.world_width),
            world_height=data.get("world_height", cls.world_height),
            num_quarries=data.get("num_quarries", cls.num_quarries),
        )
