"""Entry point for ``python -m lithicdrift``.

Loads the YAML config, builds the landscape (from an elevation raster
and quarry file when given, otherwise a synthetic archipelago), and
either opens a Pygame window or runs headless to the time limit and
writes the count and diversity rasters.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

import numpy as np

from lithicdrift.data.ascii_grid import (
    AsciiGridHeader,
    read_ascii_grid,
    write_ascii_grid,
)
from lithicdrift.data.quarry_features import load_quarry_features
from lithicdrift.errors import LithicdriftError
from lithicdrift.logging_config import setup_logging
from lithicdrift.simulation.config import SimulationConfig
from lithicdrift.simulation.engine import SimulationEngine
from lithicdrift.world.landscape import synthetic_elevation, synthetic_quarry_features
from lithicdrift.world.quarries import QuarryRegistry
from lithicdrift.world.terrain import TerrainGrid

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)


def build_parser() -> argparse.ArgumentParser:
    """Return the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="lithicdrift",
        description="Lithicdrift - lithic raw material dispersal simulator",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--elevation",
        type=pathlib.Path,
        help="Elevation raster as an ESRI ASCII grid (default: synthetic)",
    )
    parser.add_argument(
        "--quarries",
        type=pathlib.Path,
        help="YAML quarry point features (default: synthetic)",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=pathlib.Path,
        help="Directory for count.asc and diversity.asc at the end of the run",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run to the time limit without opening a window",
    )
    parser.add_argument(
        "--cell-size",
        type=int,
        default=10,
        help="Pixel size per grid cell (default: 10)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=30,
        help="Target frames per second (default: 30)",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=10.0,
        help="Simulation ticks per second (default: 10)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    return parser


def landscape_rng(seed: int) -> np.random.Generator:
    """Return a generator for the synthetic landscape, independent of the engine's."""
    return np.random.default_rng(np.random.SeedSequence(seed).spawn(1)[0])


def build_engine(
    config: SimulationConfig,
    elevation_path: pathlib.Path | None = None,
    quarries_path: pathlib.Path | None = None,
) -> tuple[SimulationEngine, AsciiGridHeader]:
    """Assemble an engine from files or a synthetic landscape.

    Returns:
        The engine and the grid header used for exporting rasters.
    """
    # The engine seeds its own generator from config.seed; use a child stream.
    rng = landscape_rng(config.seed)
    if elevation_path is not None:
        header, elevation = read_ascii_grid(elevation_path)
    else:
        elevation = synthetic_elevation(config.world_width, config.world_height, rng)
        header = AsciiGridHeader(ncols=config.world_width, nrows=config.world_height)

    terrain = TerrainGrid.from_elevation(elevation)
    if quarries_path is not None:
        features = load_quarry_features(
            quarries_path,
            header if elevation_path is not None else None,
        )
    else:
        features = synthetic_quarry_features(terrain, rng, config.num_quarries)
    quarries = QuarryRegistry.from_features(features, terrain)
    return SimulationEngine(config=config, terrain=terrain, quarries=quarries), header


def export_rasters(
    engine: SimulationEngine,
    output_dir: pathlib.Path,
    header: AsciiGridHeader,
) -> None:
    """Write the latest count and diversity rasters to ``output_dir``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    snapshot = engine.snapshots[-1] if engine.snapshots else engine.snapshot()
    for name, raster in snapshot.rasters().items():
        path = output_dir / f"{name}.asc"
        write_ascii_grid(path, raster, header)
        logger.info("Wrote %s raster to %s", name, path)


def main(argv: list[str] | None = None) -> int:
    """Parse CLI args, create engine, run headless or launch renderer."""
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        config = SimulationConfig.from_yaml(args.config)
        engine, header = build_engine(config, args.elevation, args.quarries)
    except (OSError, ValueError, LithicdriftError) as exc:
        logger.error("Setup failed: %s", exc)
        return 1

    if args.headless:
        engine.run()
    else:
        from lithicdrift.ui.pygame_client import PygameRenderer

        renderer = PygameRenderer(
            engine=engine,
            cell_size=args.cell_size,
            ticks_per_second=args.speed,
        )
        renderer.run(fps=args.fps)

    if args.output_dir is not None:
        export_rasters(engine, args.output_dir, header)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
