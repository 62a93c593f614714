"""ESRI ASCII grid reading and writing.

The plain-text ``.asc`` raster format: a six-line header followed by
rows of samples, north row first.  Elevation comes in through this
format and the count and diversity rasters go out through it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)

_HEADER_KEYS = ("ncols", "nrows", "xllcorner", "yllcorner", "cellsize")


@dataclass(frozen=True)
class AsciiGridHeader:
    """Georeferencing for an ASCII grid.

    Attributes:
        ncols: Number of columns.
        nrows: Number of rows.
        xllcorner: Map x of the lower-left corner.
        yllcorner: Map y of the lower-left corner.
        cellsize: Cell edge length in map units.
        nodata: Sample value meaning "no data".
    """

    ncols: int
    nrows: int
    xllcorner: float = 0.0
    yllcorner: float = 0.0
    cellsize: float = 1.0
    nodata: float = -9999.0

    def to_grid_space(self, x: float, y: float) -> tuple[float, float]:
        """Convert map coordinates to continuous ``(col, row)`` coordinates.

        Row 0 is the northern edge, so map y grows as row shrinks.
        """
        col = (x - self.xllcorner) / self.cellsize
        row = self.nrows - (y - self.yllcorner) / self.cellsize
        return col, row


def read_ascii_grid(path: str | Path) -> tuple[AsciiGridHeader, NDArray[np.float64]]:
    """Read an ASCII grid.

    No-data samples are returned as NaN.

    Args:
        path: File to read.

    Returns:
        The header and a ``(nrows, ncols)`` float array.

    Raises:
        ValueError: If the header is incomplete or the data has the
            wrong shape.
    """
    path = Path(path)
    fields: dict[str, str] = {}
    with path.open("r") as f:
        while len(fields) < 6:
            pos = f.tell()
            line = f.readline()
            parts = line.split()
            if len(parts) != 2 or not parts[0][0].isalpha():
                f.seek(pos)
                break
            fields[parts[0].lower()] = parts[1]
        data = np.loadtxt(f, dtype=np.float64, ndmin=2)

    missing = [k for k in _HEADER_KEYS if k not in fields]
    if missing:
        msg = f"{path}: missing header fields {', '.join(missing)}"
        raise ValueError(msg)

    header = AsciiGridHeader(
        ncols=int(fields["ncols"]),
        nrows=int(fields["nrows"]),
        xllcorner=float(fields["xllcorner"]),
        yllcorner=float(fields["yllcorner"]),
        cellsize=float(fields["cellsize"]),
        nodata=float(fields.get("nodata_value", AsciiGridHeader.nodata)),
    )
    if data.shape != (header.nrows, header.ncols):
        msg = (
            f"{path}: header says {header.nrows}x{header.ncols}, "
            f"data is {data.shape[0]}x{data.shape[1]}"
        )
        raise ValueError(msg)

    data[np.isclose(data, header.nodata)] = math.nan
    logger.debug("Read %dx%d grid from %s", header.nrows, header.ncols, path)
    return header, data


def write_ascii_grid(
    path: str | Path,
    raster: ArrayLike,
    header: AsciiGridHeader | None = None,
) -> None:
    """Write a raster as an ASCII grid.

    Args:
        path: Destination file.
        raster: 2D array indexed ``[row, col]``.
        header: Georeferencing; defaults to unit cells at the origin.
            Its dimensions are replaced by the raster's own.
    """
    data = np.asarray(raster)
    nrows, ncols = data.shape
    if header is None:
        header = AsciiGridHeader(ncols=ncols, nrows=nrows)

    fmt = "%d" if np.issubdtype(data.dtype, np.integer) else "%.6g"
    lines = [
        f"ncols {ncols}",
        f"nrows {nrows}",
        f"xllcorner {header.xllcorner}",
        f"yllcorner {header.yllcorner}",
        f"cellsize {header.cellsize}",
        f"NODATA_value {header.nodata:g}",
    ]
    np.savetxt(path, data, fmt=fmt, header="\n".join(lines), comments="")
    logger.debug("Wrote %dx%d grid to %s", nrows, ncols, path)
