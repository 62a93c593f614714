"""Load quarry point features from YAML.

The file holds a list of features, each with the ``ID`` and ``Name``
attributes of the source dataset and an ``x``/``y`` point::

    - {ID: Q1, Name: Ridge chert, x: 512340.0, y: 4179820.0}
    - {ID: Q2, Name: River cobbles, x: 515010.0, y: 4176455.0}

Coordinates are map coordinates when a grid header is supplied, and
grid-space ``(col, row)`` coordinates otherwise.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import yaml

from lithicdrift.world.quarries import QuarryFeature

if TYPE_CHECKING:
    from lithicdrift.data.ascii_grid import AsciiGridHeader


def load_quarry_features(
    path: str | Path,
    header: AsciiGridHeader | None = None,
) -> list[QuarryFeature]:
    """Read quarry features in file order.

    Args:
        path: YAML file with a list of features.
        header: Grid georeferencing used to convert map coordinates.

    Returns:
        Features in grid space.

    Raises:
        ValueError: If the file is not a list or a feature lacks a
            required attribute.
    """
    path = Path(path)
    with path.open("r") as f:
        data = yaml.safe_load(f) or []
    if not isinstance(data, list):
        msg = f"{path}: expected a list of quarry features"
        raise ValueError(msg)

    features = []
    for n, entry in enumerate(data):
        try:
            x, y = float(entry["x"]), float(entry["y"])
            source_id = str(entry["ID"])
        except (KeyError, TypeError) as exc:
            msg = f"{path}: feature {n} needs ID, x and y"
            raise ValueError(msg) from exc
        if header is not None:
            x, y = header.to_grid_space(x, y)
        features.append(
            QuarryFeature(
                id=source_id,
                name=str(entry.get("Name", source_id)),
                x=x,
                y=y,
            ),
        )
    return features
