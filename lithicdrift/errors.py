"""Exception hierarchy for Lithicdrift.

Recoverable per-tick conditions (a forager at the world edge, a forager
boxed in by water, no exchange partner in range) are silent no-ops and
never reach this module.  Everything here is either a bad input caught
at setup or a broken invariant that should stop the run.
"""

from __future__ import annotations


class LithicdriftError(Exception):
    """Base class for all Lithicdrift errors."""


class ConfigError(LithicdriftError):
    """A configuration value is missing or out of range."""


class SimulationError(LithicdriftError):
    """The simulation cannot be set up from the given inputs."""


class NoQuarryAtCell(LithicdriftError):
    """A quarry lookup was made on a cell without a quarry."""

    def __init__(self, x: int, y: int) -> None:
        super().__init__(f"no quarry registered at cell ({x}, {y})")
        self.x = x
        self.y = y


class EmptyToolkitAccess(LithicdriftError):
    """An item was drawn from an empty toolkit."""


class CapacityOverflow(LithicdriftError):
    """A toolkit would grow beyond its ``max_carry``."""
