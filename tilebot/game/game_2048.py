"""
2048 Game Implementation
========================

Headless 2048 designed to be driven by the agent loop.

Game Rules:
- Slide all tiles up, right, down or left
- Two equal tiles that collide merge into one tile of their sum
- A tile merges at most once per move
- After every move that changes the board, a new tile (2 or 4) spawns
- Reaching the winning tile wins; running out of legal moves loses
"""

import random
from typing import List, Optional, Tuple

from config import Config

from .base_game import BaseGame


Cell = Optional[int]


class Game2048(BaseGame):
    """
    2048 with a row-major grid of tile values.

    Grid representation:
        grid[row][col] is None for an empty cell or the tile value (2, 4, 8, ...)

    Actions:
        0 = UP
        1 = RIGHT
        2 = DOWN
        3 = LEFT
    """

    # Direction constants
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    # Direction vectors (drow, dcol)
    DIRECTION_VECTORS = {
        0: (-1, 0),   # UP
        1: (0, 1),    # RIGHT
        2: (1, 0),    # DOWN
        3: (0, -1),   # LEFT
    }

    # Probability that a spawned tile is a 2 (otherwise 4)
    SPAWN_TWO_PROBABILITY = 0.9

    def __init__(self, config: Optional[Config] = None, seed: Optional[int] = None):
        """
        Initialize the game.

        Args:
            config: Configuration object (uses default if None)
            seed: Optional seed for tile spawning
        """
        self.config = config or Config()
        self._size = self.config.GRID_SIZE
        self._rng = random.Random(seed if seed is not None else self.config.SEED)

        self._cells: List[List[Cell]] = []
        self._score = 0
        self._won = False
        self.over = False
        self.keep_playing = self.config.KEEP_PLAYING
        self.moves = 0

        self.restart()

    @property
    def grid(self) -> List[List[Cell]]:
        """Copy of the board, one list per row."""
        return [row[:] for row in self._cells]

    @property
    def score(self) -> int:
        return self._score

    @property
    def won(self) -> bool:
        return self._won

    @property
    def size(self) -> int:
        return self._size

    def restart(self) -> None:
        """Start a new game with START_TILES random tiles."""
        self._cells = [[None] * self._size for _ in range(self._size)]
        self._score = 0
        self._won = False
        self.over = False
        self.moves = 0
        for _ in range(self.config.START_TILES):
            self._add_random_tile()

    def set_grid(self, cells: List[List[Cell]]) -> None:
        """Load a specific board (used by tests and replays)."""
        if len(cells) != self._size or any(len(row) != self._size for row in cells):
            raise ValueError(f"Grid must be {self._size}x{self._size}")
        self._cells = [[value or None for value in row] for row in cells]
        self.over = not self._moves_available()

    def is_terminated(self) -> bool:
        """Episode ends on game over, or on a win unless keep_playing is set."""
        return self.over or (self._won and not self.keep_playing)

    def apply_action(self, action: int) -> None:
        """
        Slide tiles in the given direction.

        A move that changes nothing is a no-op: no tile spawns and the
        score is unchanged.

        Raises:
            ValueError: If action is not in [0, 3]
        """
        if action not in self.DIRECTION_VECTORS:
            raise ValueError(f"Invalid action {action!r}, expected 0-3")
        if self.is_terminated():
            return

        moved, gained = self._slide(action)
        if not moved:
            return

        self._score += gained
        self.moves += 1
        self._add_random_tile()

        if not self._moves_available():
            self.over = True

    def legal_actions(self) -> List[int]:
        """Actions that would change the board."""
        return [a for a in self.DIRECTION_VECTORS if self._can_move(a)]

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _empty_cells(self) -> List[Tuple[int, int]]:
        return [
            (r, c)
            for r in range(self._size)
            for c in range(self._size)
            if self._cells[r][c] is None
        ]

    def _add_random_tile(self) -> bool:
        empty = self._empty_cells()
        if not empty:
            return False
        r, c = self._rng.choice(empty)
        self._cells[r][c] = 2 if self._rng.random() < self.SPAWN_TWO_PROBABILITY else 4
        return True

    def _lines(self, action: int) -> List[List[Tuple[int, int]]]:
        """
        Cell coordinates for every line, ordered from the edge tiles slide
        toward to the opposite edge.
        """
        n = self._size
        if action == self.UP:
            return [[(r, c) for r in range(n)] for c in range(n)]
        if action == self.DOWN:
            return [[(r, c) for r in reversed(range(n))] for c in range(n)]
        if action == self.LEFT:
            return [[(r, c) for c in range(n)] for r in range(n)]
        return [[(r, c) for c in reversed(range(n))] for r in range(n)]

    @staticmethod
    def _merge_line(values: List[Cell]) -> Tuple[List[Cell], int]:
        """
        Compress a line toward index 0, merging equal neighbours once.

        Returns:
            (new_line, points gained from merges)
        """
        tiles = [v for v in values if v is not None]
        merged: List[Cell] = []
        gained = 0
        i = 0
        while i < len(tiles):
            if i + 1 < len(tiles) and tiles[i] == tiles[i + 1]:
                value = tiles[i] * 2
                merged.append(value)
                gained += value
                i += 2
            else:
                merged.append(tiles[i])
                i += 1
        merged.extend([None] * (len(values) - len(merged)))
        return merged, gained

    def _slide(self, action: int) -> Tuple[bool, int]:
        moved = False
        gained = 0
        for line in self._lines(action):
            before = [self._cells[r][c] for r, c in line]
            after, points = self._merge_line(before)
            if after != before:
                moved = True
                for (r, c), value in zip(line, after):
                    self._cells[r][c] = value
                    if value is not None and value >= self.config.WINNING_TILE:
                        self._won = True
            gained += points
        return moved, gained

    def _can_move(self, action: int) -> bool:
        for line in self._lines(action):
            before = [self._cells[r][c] for r, c in line]
            if self._merge_line(before)[0] != before:
                return True
        return False

    def _moves_available(self) -> bool:
        if self._empty_cells():
            return True
        return any(self._can_move(a) for a in self.DIRECTION_VECTORS)


# Testing
if __name__ == "__main__":
    game = Game2048(seed=0)
    for row in game.grid:
        print(row)
