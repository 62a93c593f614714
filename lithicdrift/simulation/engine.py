"""SimulationEngine — the main tick loop.

Owns all simulation state (terrain, quarries, foragers, RNG) and
advances it one tick at a time.  Every tick is a complete pass over
the foragers in a freshly shuffled order, and each forager goes
through the canonical sequence:

1. Move
2. Reprovision
3. Exchange (only if it holds items after reprovisioning)
4. Discard (only if it still holds items)

How exchange passes are scheduled is set by ``config.exchange_mode``:
``per_turn`` runs a global pass inside each discarding forager's turn,
``per_tick`` runs one pass after everyone has moved and reprovisioned.

The run halts when the tick counter reaches ``config.time_limit`` (a
terminal snapshot is always taken) or when ``stop()`` is called.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.random import Generator

from lithicdrift.analysis.assemblage import AssemblageSnapshot, take_snapshot
from lithicdrift.errors import SimulationError
from lithicdrift.foragers.exchange import ExchangeMode, exchange_pass
from lithicdrift.foragers.forager import Forager
from lithicdrift.world.quarries import QuarryRegistry
from lithicdrift.world.terrain import TerrainGrid

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from numpy.typing import ArrayLike

    from lithicdrift.simulation.config import SimulationConfig
    from lithicdrift.world.quarries import QuarryFeature

logger = logging.getLogger(__name__)


@dataclass
class SimulationEngine:
    """Drives the simulation forward tick by tick.

    Attributes:
        config: Loaded simulation configuration.
        terrain: The landscape grid.
        quarries: Registered raw material sources.
        foragers: All foragers.  Spawned from config when left empty.
        on_tick: Called with the engine after each tick when
            ``config.visualize_each_tick`` is set.
        rng: Master seeded random generator.
        tick: Completed ticks.
        snapshots: Periodic and terminal assemblage snapshots.
        stopped: Set by ``stop()`` to end the run early.
    """

    config: SimulationConfig
    terrain: TerrainGrid
    quarries: QuarryRegistry
    foragers: list[Forager] = field(default_factory=list)
    on_tick: Callable[[SimulationEngine], None] | None = None
    rng: Generator = field(init=False)
    tick: int = 0
    snapshots: list[AssemblageSnapshot] = field(init=False, default_factory=list)
    stopped: bool = False

    def __post_init__(self) -> None:
        """Seed the RNG and spawn foragers if none were supplied."""
        self.rng = np.random.default_rng(self.config.seed)
        if not self.foragers:
            self._spawn_foragers()

    @classmethod
    def from_inputs(
        cls,
        config: SimulationConfig,
        elevation: ArrayLike,
        features: Iterable[QuarryFeature],
    ) -> SimulationEngine:
        """Build an engine from an elevation raster and quarry features.

        Args:
            config: Simulation configuration.
            elevation: 2D elevation raster indexed ``[row, col]``.
            features: Quarry point features in grid space.

        Returns:
            A ready-to-run engine with foragers spawned.
        """
        terrain = TerrainGrid.from_elevation(elevation)
        quarries = QuarryRegistry.from_features(features, terrain)
        return cls(config=config, terrain=terrain, quarries=quarries)

    @property
    def finished(self) -> bool:
        """Return True once the run has halted."""
        return self.stopped or self.tick >= self.config.time_limit

    def step(self) -> None:
        """Advance the simulation by one tick.

        Does nothing once the run has halted.
        """
        if self.finished:
            return

        order = [int(i) for i in self.rng.permutation(len(self.foragers))]
        match self.config.exchange_mode:
            case ExchangeMode.PER_TURN:
                self._step_per_turn(order)
            case ExchangeMode.PER_TICK:
                self._step_per_tick(order)

        self.tick += 1

        if self.tick >= self.config.time_limit:
            self.take_snapshot()
            logger.info(
                "Time limit reached at tick %d: %d artefacts on %d cells",
                self.tick,
                self.snapshots[-1].total,
                int(np.count_nonzero(self.snapshots[-1].counts)),
            )
        elif (
            self.config.snapshot_interval
            and self.tick % self.config.snapshot_interval == 0
        ):
            self.take_snapshot()

        if self.config.visualize_each_tick and self.on_tick is not None:
            self.on_tick(self)

    def run(self) -> AssemblageSnapshot:
        """Run until the time limit or an explicit stop.

        Returns:
            The terminal snapshot (taken now if the run was stopped
            before the time limit).
        """
        logger.info(
            "Starting run: %d foragers, %d quarries, %dx%d grid, %d ticks",
            len(self.foragers),
            len(self.quarries),
            self.terrain.width,
            self.terrain.height,
            self.config.time_limit,
        )
        while not self.finished:
            self.step()
        if not self.snapshots or self.snapshots[-1].tick != self.tick:
            self.take_snapshot()
        return self.snapshots[-1]

    def stop(self) -> None:
        """Halt the run after the current tick."""
        logger.info("Run stopped at tick %d", self.tick)
        self.stopped = True

    def snapshot(self) -> AssemblageSnapshot:
        """Summarise assemblages at the current tick without recording it."""
        return take_snapshot(self.terrain, self.tick)

    def take_snapshot(self) -> AssemblageSnapshot:
        """Summarise assemblages and keep the result in ``snapshots``."""
        snap = self.snapshot()
        self.snapshots.append(snap)
        logger.debug("Snapshot at tick %d: %d artefacts", snap.tick, snap.total)
        return snap

    # -- Conservation totals --

    @property
    def total_collected(self) -> int:
        """Items ever taken from quarries."""
        return sum(f.collected for f in self.foragers)

    @property
    def total_discarded(self) -> int:
        """Items ever dropped by foragers."""
        return sum(f.discarded for f in self.foragers)

    @property
    def total_held(self) -> int:
        """Items currently in toolkits."""
        return sum(len(f.toolkit) for f in self.foragers)

    @property
    def total_deposited(self) -> int:
        """Items currently lying on the landscape."""
        return self.terrain.total_deposited()

    # -- Tick phases --

    def _forage(self, forager: Forager) -> bool:
        """Move and reprovision one forager.

        Returns:
            True if the forager holds items afterwards (discard gate).
        """
        forager.move(
            self.config.movement_policy,
            self.terrain,
            self.quarries,
            self.rng,
            low_supply_fraction=self.config.low_supply_fraction,
        )
        forager.reprovision(self.terrain, self.quarries)
        return forager.has_items

    def _exchange(self, order: list[int]) -> None:
        exchange_pass(
            self.foragers,
            self.rng,
            self.config.exchange_radius,
            order=order,
        )

    def _discard(self, forager: Forager) -> None:
        # An exchange may have taken the forager's last item
        if forager.has_items:
            forager.discard(self.terrain, self.rng)

    def _step_per_turn(self, order: list[int]) -> None:
        for i in order:
            forager = self.foragers[i]
            if self._forage(forager):
                self._exchange(order)
                self._discard(forager)

    def _step_per_tick(self, order: list[int]) -> None:
        gated = [i for i in order if self._forage(self.foragers[i])]
        self._exchange(order)
        for i in gated:
            self._discard(self.foragers[i])

    def _spawn_foragers(self) -> None:
        """Place ``num_foragers`` empty-handed foragers on random land cells.

        Raises:
            SimulationError: If the terrain has no land.
        """
        land = self.terrain.traversable_cells()
        if not land:
            msg = "terrain has no traversable cells to place foragers on"
            raise SimulationError(msg)
        for n in range(self.config.num_foragers):
            cell = land[int(self.rng.integers(len(land)))]
            self.foragers.append(
                Forager(
                    forager_id=n,
                    x=cell.x,
                    y=cell.y,
                    max_carry=self.config.max_carry,
                ),
            )
        logger.debug("Spawned %d foragers", len(self.foragers))
