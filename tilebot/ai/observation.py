"""
Observation Adapter
===================

Turns a game grid into the flat numeric vector fed to the model.

    grid (rows of cells)  ->  [c00, c01, ..., c0n, c10, ..., cnn]

Empty cells (None, 0, or a tile object without a value) become 0.
Occupied cells become their numeric tile value. The result is always a
fresh array, so callers may keep pre- and post-move observations side by
side without aliasing.
"""

from typing import Any, Sequence, Union

import numpy as np

from ..errors import InvalidGridError


GridLike = Sequence[Sequence[Any]]


def _cell_value(cell: Any) -> float:
    """Numeric value of a single cell."""
    if cell is None:
        return 0.0
    # Tile objects carry their value as an attribute
    value = getattr(cell, 'value', cell)
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidGridError(f"Cell {cell!r} has no numeric value") from exc


def to_observation(grid: GridLike) -> np.ndarray:
    """
    Flatten a square grid into a row-major observation vector.

    Args:
        grid: Rows of cells (lists, tuples or a 2-D array)

    Returns:
        float32 array of length size * size

    Raises:
        InvalidGridError: If the grid is empty, ragged or not square
    """
    size = len(grid)
    if size == 0:
        raise InvalidGridError("Grid has no rows")

    observation = np.empty(size * size, dtype=np.float32)
    for r, row in enumerate(grid):
        if len(row) != size:
            raise InvalidGridError(
                f"Row {r} has {len(row)} cells, expected {size} (grid must be square)"
            )
        for c, cell in enumerate(row):
            observation[r * size + c] = _cell_value(cell)
    return observation


def count_occupied(observation_or_grid: Union[GridLike, np.ndarray]) -> int:
    """
    Count non-empty tiles.

    Accepts either a flat observation or a grid; grids are flattened first.
    """
    arr = observation_or_grid
    if isinstance(arr, np.ndarray):
        if arr.ndim == 2:
            arr = to_observation(arr)
        elif arr.ndim != 1:
            raise InvalidGridError(f"Expected 1-D or 2-D input, got {arr.ndim}-D")
    elif len(arr) > 0 and isinstance(arr[0], (list, tuple, np.ndarray)):
        arr = to_observation(arr)
    else:
        arr = np.asarray([_cell_value(v) for v in arr], dtype=np.float32)
    return int(np.count_nonzero(arr))


def largest_tile(observation: np.ndarray) -> int:
    """Largest tile value in an observation (0 for an empty board)."""
    if len(observation) == 0:
        return 0
    return int(np.max(observation))
