"""Exchange — tool sharing between nearby foragers.

An exchange pass walks over the foragers that hold items when the pass
starts.  Each of them looks for its nearest other forager within the
exchange radius and, if that partner has room, hands over one random
item.  Toolkits are read as they stand mid-pass: a partner that was
topped up earlier in the pass may already be full.  Foragers that
started the pass empty only receive.

Positions do not change during a pass, so distances are computed once
with NumPy.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.random import Generator

    from lithicdrift.foragers.forager import Forager

EXCHANGE_RADIUS = 3.0


class ExchangeMode(Enum):
    """When exchange passes run within a tick.

    ``PER_TURN`` runs a full pass inside every discarding forager's
    turn.  ``PER_TICK`` runs one pass after every forager has moved and
    reprovisioned.
    """

    PER_TURN = "per_turn"
    PER_TICK = "per_tick"


def _positions(foragers: Sequence[Forager]) -> np.ndarray:
    return np.array([[f.x, f.y] for f in foragers], dtype=np.float64).reshape(-1, 2)


def nearest_partner(
    initiator: Forager,
    foragers: Sequence[Forager],
    radius: float = EXCHANGE_RADIUS,
    *,
    positions: np.ndarray | None = None,
) -> Forager | None:
    """Return the nearest other forager within ``radius`` (inclusive).

    Equidistant candidates resolve to the lowest ``forager_id``.

    Args:
        initiator: The forager looking for a partner.
        foragers: All foragers, including ``initiator``.
        radius: Search radius in grid units.
        positions: Precomputed ``(n, 2)`` positions aligned with
            ``foragers``.

    Returns:
        The partner, or None if nobody is in range.
    """
    if positions is None:
        positions = _positions(foragers)
    if len(foragers) < 2:
        return None

    dist = np.hypot(
        positions[:, 0] - initiator.x,
        positions[:, 1] - initiator.y,
    )
    best: Forager | None = None
    best_key: tuple[float, int] | None = None
    for i in np.flatnonzero(dist <= radius):
        candidate = foragers[int(i)]
        if candidate is initiator:
            continue
        key = (float(dist[i]), candidate.forager_id)
        if best_key is None or key < best_key:
            best, best_key = candidate, key
    return best


def exchange_pass(
    foragers: Sequence[Forager],
    rng: Generator,
    radius: float = EXCHANGE_RADIUS,
    *,
    order: Sequence[int] | None = None,
) -> int:
    """Run one global exchange pass.

    Args:
        foragers: All foragers in the simulation.
        rng: Seeded random generator used to pick the item handed over.
        radius: Exchange radius in grid units.
        order: Indices into ``foragers`` giving the initiation order.
            Defaults to list order.

    Returns:
        Number of items transferred.
    """
    if order is None:
        order = range(len(foragers))
    positions = _positions(foragers)
    initiators = [foragers[i] for i in order if foragers[i].has_items]

    transfers = 0
    for initiator in initiators:
        partner = nearest_partner(initiator, foragers, radius, positions=positions)
        if partner is None:
            continue
        if initiator.give_random_item(partner, rng) is not None:
            transfers += 1
    return transfers
