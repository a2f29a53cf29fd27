"""
Tests for the Observation Adapter.

These tests verify:
    - Row-major flattening
    - Empty cells become 0
    - Tile objects are read through their value
    - Malformed grids are rejected
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tilebot.ai.observation import count_occupied, largest_tile, to_observation
from tilebot.errors import InvalidGridError, TileBotError


class Tile:
    def __init__(self, value):
        self.value = value


class TestToObservation:
    """Flattening grids."""

    def test_row_major_order(self):
        grid = [[2, None], [None, 4]]
        assert to_observation(grid).tolist() == [2.0, 0.0, 0.0, 4.0]

    def test_length_is_size_squared(self):
        grid = [[None] * 4 for _ in range(4)]
        obs = to_observation(grid)
        assert obs.shape == (16,)
        assert obs.dtype == np.float32
        assert not obs.any()

    def test_zero_counts_as_empty(self):
        assert to_observation([[0, 2], [0, 0]]).tolist() == [0.0, 2.0, 0.0, 0.0]

    def test_tile_objects(self):
        grid = [[Tile(8), None], [Tile(2), Tile(None)]]
        assert to_observation(grid).tolist() == [8.0, 0.0, 2.0, 0.0]

    def test_numpy_grid(self):
        grid = np.array([[2, 0], [0, 16]])
        assert to_observation(grid).tolist() == [2.0, 0.0, 0.0, 16.0]

    def test_returns_fresh_array(self):
        grid = [[2, None], [None, None]]
        first = to_observation(grid)
        second = to_observation(grid)
        first[0] = 99
        assert second[0] == 2.0

    def test_ragged_grid_rejected(self):
        with pytest.raises(InvalidGridError):
            to_observation([[2, None], [None]])

    def test_non_square_grid_rejected(self):
        with pytest.raises(InvalidGridError):
            to_observation([[2, None, None], [None, None, None]])

    def test_empty_grid_rejected(self):
        with pytest.raises(InvalidGridError):
            to_observation([])

    def test_non_numeric_cell_rejected(self):
        with pytest.raises(InvalidGridError):
            to_observation([["two", None], [None, None]])

    def test_invalid_grid_is_project_error(self):
        assert issubclass(InvalidGridError, TileBotError)
        assert issubclass(InvalidGridError, ValueError)


class TestHelpers:
    """count_occupied and largest_tile."""

    def test_count_occupied_observation(self):
        assert count_occupied(np.array([2, 0, 4, 0], dtype=np.float32)) == 2

    def test_count_occupied_grid(self):
        assert count_occupied([[2, None], [None, 8]]) == 2

    def test_count_occupied_2d_array(self):
        assert count_occupied(np.array([[2, 2], [0, 0]])) == 2

    def test_count_occupied_flat_list(self):
        assert count_occupied([2, None, 0, 4]) == 2

    def test_largest_tile(self):
        assert largest_tile(np.array([2, 0, 512, 4], dtype=np.float32)) == 512

    def test_largest_tile_empty_board(self):
        assert largest_tile(np.zeros(4, dtype=np.float32)) == 0
