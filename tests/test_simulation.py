"""Tests for lithicdrift.simulation — engine and config loading."""

from pathlib import Path

import numpy as np
import pytest

from lithicdrift.errors import ConfigError, SimulationError
from lithicdrift.foragers.exchange import ExchangeMode
from lithicdrift.foragers.forager import Forager
from lithicdrift.foragers.movement import MovementPolicy
from lithicdrift.simulation.config import SimulationConfig
from lithicdrift.simulation.engine import SimulationEngine
from lithicdrift.world.quarries import QuarryFeature, QuarryRegistry
from lithicdrift.world.terrain import TerrainGrid

MODES = [ExchangeMode.PER_TICK, ExchangeMode.PER_TURN]


def _island_engine(**overrides: object) -> SimulationEngine:
    """A 12x12 island with two quarries and config overrides."""
    elevation = np.zeros((12, 12))
    elevation[1:11, 1:11] = 3.0
    elevation[5:7, 5:7] = 0.0  # a small lake in the middle
    features = [
        QuarryFeature(id="Q1", name="North chert", x=2.5, y=2.5),
        QuarryFeature(id="Q2", name="South basalt", x=9.5, y=9.5),
    ]
    params = {
        "seed": 3,
        "num_foragers": 6,
        "max_carry": 8,
        "time_limit": 150,
        "visualize_each_tick": True,
    }
    params.update(overrides)
    return SimulationEngine.from_inputs(
        SimulationConfig(**params),
        elevation,
        features,
    )


class TestSimulationConfig:
    """Tests for config defaults, validation and YAML loading."""

    def test_defaults(self) -> None:
        cfg = SimulationConfig()
        assert cfg.seed == 42
        assert cfg.exchange_radius == 3.0
        assert cfg.low_supply_fraction == 0.10
        assert cfg.exchange_mode is ExchangeMode.PER_TICK
        assert cfg.movement_policy is MovementPolicy.RANDOM_WALK

    def test_target_walk_policy(self) -> None:
        cfg = SimulationConfig(random_walk=False)
        assert cfg.movement_policy is MovementPolicy.TARGET_WALK

    def test_exchange_mode_from_string(self) -> None:
        cfg = SimulationConfig(exchange_mode="per_turn")
        assert cfg.exchange_mode is ExchangeMode.PER_TURN

    def test_unknown_exchange_mode(self) -> None:
        with pytest.raises(ConfigError, match="exchange_mode"):
            SimulationConfig(exchange_mode="sometimes")

    @pytest.mark.parametrize(
        "field",
        [
            {"num_foragers": 0},
            {"max_carry": -1},
            {"time_limit": 0},
            {"low_supply_fraction": 1.5},
            {"snapshot_interval": -2},
        ],
    )
    def test_out_of_range_rejected(self, field: dict[str, int]) -> None:
        with pytest.raises(ConfigError):
            SimulationConfig(**field)

    def test_zero_capacity_allowed(self) -> None:
        assert SimulationConfig(max_carry=0).max_carry == 0

    def test_from_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "test.yaml"
        yaml_file.write_text(
            "seed: 99\n"
            "num_foragers: 3\n"
            "max_carry: 5\n"
            "random_walk: false\n"
            "exchange_mode: per_turn\n",
        )
        cfg = SimulationConfig.from_yaml(yaml_file)
        assert cfg.seed == 99
        assert cfg.num_foragers == 3
        assert cfg.max_carry == 5
        assert cfg.movement_policy is MovementPolicy.TARGET_WALK
        assert cfg.exchange_mode is ExchangeMode.PER_TURN
        assert cfg.time_limit == SimulationConfig.time_limit

    def test_from_yaml_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert SimulationConfig.from_yaml(yaml_file) == SimulationConfig()

    def test_from_yaml_invalid_value(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "bad.yaml"
        yaml_file.write_text("time_limit: 0\n")
        with pytest.raises(ConfigError):
            SimulationConfig.from_yaml(yaml_file)


class TestEngineSetup:
    """Tests for engine construction."""

    def test_spawns_foragers_on_land(self) -> None:
        engine = _island_engine(num_foragers=20)
        assert len(engine.foragers) == 20
        assert [f.forager_id for f in engine.foragers] == list(range(20))
        for forager in engine.foragers:
            assert engine.terrain.is_traversable(forager.x, forager.y)
            assert forager.toolkit == []
            assert forager.max_carry == 8

    def test_supplied_foragers_are_kept(
        self,
        small_terrain: TerrainGrid,
        empty_registry: QuarryRegistry,
    ) -> None:
        forager = Forager(forager_id=0, x=1, y=1, max_carry=3)
        engine = SimulationEngine(
            config=SimulationConfig(num_foragers=5),
            terrain=small_terrain,
            quarries=empty_registry,
            foragers=[forager],
        )
        assert engine.foragers == [forager]

    def test_no_land_raises(self, empty_registry: QuarryRegistry) -> None:
        terrain = TerrainGrid.from_elevation(np.zeros((4, 4)))
        with pytest.raises(SimulationError):
            SimulationEngine(
                config=SimulationConfig(),
                terrain=terrain,
                quarries=empty_registry,
            )

    def test_from_inputs_registers_quarries(self) -> None:
        engine = _island_engine()
        assert engine.quarries.ids == ["Q1", "Q2"]
        assert engine.terrain.is_quarry(2, 2)
        assert engine.terrain.is_quarry(9, 9)


class TestScenarios:
    """End-to-end behaviour of single ticks."""

    def test_single_random_step_from_corner(self) -> None:
        terrain = TerrainGrid(width=10, height=10)
        quarries = QuarryRegistry.from_features(
            [QuarryFeature(id="Q1", name="Q1", x=5.5, y=5.5)],
            terrain,
        )
        forager = Forager(forager_id=0, x=0, y=0, max_carry=10)
        engine = SimulationEngine(
            config=SimulationConfig(max_carry=10, time_limit=1, random_walk=True),
            terrain=terrain,
            quarries=quarries,
            foragers=[forager],
        )
        engine.run()
        assert engine.tick == 1
        assert len(forager.toolkit) <= 10
        assert (forager.x, forager.y) != (0, 0)

    @pytest.mark.parametrize("mode", MODES)
    def test_last_item_is_discarded_where_forager_lands(
        self,
        small_terrain: TerrainGrid,
        empty_registry: QuarryRegistry,
        mode: ExchangeMode,
    ) -> None:
        forager = Forager(forager_id=0, x=3, y=3, max_carry=5, toolkit=["Q1"])
        engine = SimulationEngine(
            config=SimulationConfig(max_carry=5, time_limit=5, exchange_mode=mode),
            terrain=small_terrain,
            quarries=empty_registry,
            foragers=[forager],
        )
        engine.step()
        assert forager.toolkit == []
        assert (forager.x, forager.y) != (3, 3)
        assert small_terrain.cell_at(forager.x, forager.y).assemblage == ["Q1"]
        assert small_terrain.total_deposited() == 1

    @pytest.mark.parametrize("mode", MODES)
    def test_item_given_away_is_not_discarded(
        self,
        empty_registry: QuarryRegistry,
        mode: ExchangeMode,
    ) -> None:
        terrain = TerrainGrid(width=2, height=2)
        giver = Forager(forager_id=0, x=0, y=0, max_carry=3, toolkit=["Q1"])
        taker = Forager(forager_id=1, x=1, y=1, max_carry=3)
        engine = SimulationEngine(
            config=SimulationConfig(max_carry=3, time_limit=5, exchange_mode=mode),
            terrain=terrain,
            quarries=empty_registry,
            foragers=[giver, taker],
        )
        engine.step()
        assert engine.total_deposited == 0
        assert engine.total_held == 1

    def test_reprovision_then_discard_in_same_tick(self) -> None:
        # A single land strip: the forager can only step onto the quarry
        elevation = np.zeros((3, 3))
        elevation[1, 0] = 1.0
        elevation[1, 1] = 1.0
        terrain = TerrainGrid.from_elevation(elevation)
        quarries = QuarryRegistry.from_features(
            [QuarryFeature(id="Q1", name="Q1", x=1.5, y=1.5)],
            terrain,
        )
        forager = Forager(forager_id=0, x=0, y=1, max_carry=4)
        engine = SimulationEngine(
            config=SimulationConfig(max_carry=4, time_limit=1),
            terrain=terrain,
            quarries=quarries,
            foragers=[forager],
        )
        engine.step()
        assert (forager.x, forager.y) == (1, 1)
        assert forager.collected == 4
        assert len(forager.toolkit) == 3
        assert terrain.cell_at(1, 1).assemblage == ["Q1"]

    def test_stationary_forager_without_land_neighbours(
        self,
        empty_registry: QuarryRegistry,
    ) -> None:
        elevation = np.zeros((3, 3))
        elevation[1, 1] = 1.0
        terrain = TerrainGrid.from_elevation(elevation)
        forager = Forager(forager_id=0, x=1, y=1, max_carry=2, toolkit=["Q1", "Q2"])
        engine = SimulationEngine(
            config=SimulationConfig(max_carry=2, time_limit=3),
            terrain=terrain,
            quarries=empty_registry,
            foragers=[forager],
        )
        engine.step()
        assert (forager.x, forager.y) == (1, 1)
        assert terrain.assemblage_count(1, 1) == 1


class TestInvariants:
    """Properties that hold at every tick of a full run."""

    @pytest.mark.parametrize("mode", MODES)
    @pytest.mark.parametrize("random_walk", [True, False])
    def test_bounds_land_and_conservation(
        self,
        mode: ExchangeMode,
        random_walk: bool,
    ) -> None:
        engine = _island_engine(exchange_mode=mode, random_walk=random_walk)
        checked = []

        def check(eng: SimulationEngine) -> None:
            for forager in eng.foragers:
                assert 0 <= len(forager.toolkit) <= forager.max_carry
                assert eng.terrain.is_traversable(forager.x, forager.y)
            assert eng.total_deposited == eng.total_discarded
            assert eng.total_collected == eng.total_deposited + eng.total_held
            checked.append(eng.tick)

        engine.on_tick = check
        engine.run()
        assert checked == list(range(1, 151))
        assert engine.total_collected > 0

    def test_zero_capacity_never_discards(self) -> None:
        engine = _island_engine(max_carry=0)
        snapshot = engine.run()
        assert snapshot.total == 0
        assert engine.total_collected == 0
        assert all(f.toolkit == [] for f in engine.foragers)

    def test_target_walk_reaches_quarries(self) -> None:
        engine = _island_engine(random_walk=False, time_limit=60)
        engine.run()
        assert engine.total_collected > 0

    def test_single_item_forager_leaves_quarry(self) -> None:
        """A forager that empties every tick must not be pinned to its quarry."""
        terrain = TerrainGrid(width=10, height=10)
        quarries = QuarryRegistry.from_features(
            [QuarryFeature(id="Q1", name="Ridge chert", x=5.5, y=5.5)],
            terrain,
        )
        forager = Forager(forager_id=0, x=5, y=5, max_carry=1)
        engine = SimulationEngine(
            config=SimulationConfig(
                num_foragers=1,
                max_carry=1,
                random_walk=False,
                time_limit=200,
            ),
            terrain=terrain,
            quarries=quarries,
            foragers=[forager],
        )
        positions = set()
        while not engine.finished:
            engine.step()
            positions.add((forager.x, forager.y))
        assert len(positions) > 1

    def test_determinism(self) -> None:
        """Same seed must produce identical state after N ticks."""
        engine_a = _island_engine(seed=777)
        engine_b = _island_engine(seed=777)
        snap_a = engine_a.run()
        snap_b = engine_b.run()

        assert np.array_equal(snap_a.counts, snap_b.counts)
        assert np.array_equal(snap_a.diversity, snap_b.diversity)
        for forager_a, forager_b in zip(
            engine_a.foragers,
            engine_b.foragers,
            strict=True,
        ):
            assert (forager_a.x, forager_a.y) == (forager_b.x, forager_b.y)
            assert forager_a.toolkit == forager_b.toolkit


class TestClock:
    """Tests for tick counting, termination and snapshots."""

    def test_step_advances_tick(self) -> None:
        engine = _island_engine()
        engine.step()
        assert engine.tick == 1

    def test_run_stops_at_time_limit(self) -> None:
        engine = _island_engine(time_limit=12)
        snapshot = engine.run()
        assert engine.tick == 12
        assert engine.finished
        assert snapshot.tick == 12
        assert [s.tick for s in engine.snapshots] == [12]

    def test_step_after_halt_is_noop(self) -> None:
        engine = _island_engine(time_limit=2)
        engine.run()
        engine.step()
        assert engine.tick == 2

    def test_periodic_snapshots(self) -> None:
        engine = _island_engine(time_limit=10, snapshot_interval=3)
        engine.run()
        assert [s.tick for s in engine.snapshots] == [3, 6, 9, 10]

    def test_manual_stop(self) -> None:
        engine = _island_engine()

        def stop_at_three(eng: SimulationEngine) -> None:
            if eng.tick == 3:
                eng.stop()

        engine.on_tick = stop_at_three
        snapshot = engine.run()
        assert engine.tick == 3
        assert snapshot.tick == 3
        assert engine.stopped

    def test_on_tick_skipped_without_visualization(self) -> None:
        engine = _island_engine(visualize_each_tick=False, time_limit=5)
        calls = []
        engine.on_tick = calls.append
        engine.run()
        assert calls == []

    def test_snapshot_does_not_record(self) -> None:
        engine = _island_engine(time_limit=5)
        engine.step()
        engine.snapshot()
        assert engine.snapshots == []
