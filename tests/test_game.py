"""
Tests for the 2048 game implementation.

These tests verify:
    - Game initialization
    - Sliding and merging rules
    - No-op moves
    - Tile spawning
    - Win and game-over detection
    - Game registry
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from tilebot.game import GAME_REGISTRY, get_game, list_games
from tilebot.game.game_2048 import Game2048


@pytest.fixture
def config():
    """Create a test configuration."""
    return Config(SEED=7)


@pytest.fixture
def game(config):
    """Create a game instance."""
    return Game2048(config)


def occupied(grid):
    return sum(1 for row in grid for cell in row if cell is not None)


class TestInitialization:
    """Test game initialization."""

    def test_starts_with_start_tiles(self, game, config):
        assert occupied(game.grid) == config.START_TILES

    def test_start_tiles_are_two_or_four(self, game):
        values = {cell for row in game.grid for cell in row if cell is not None}
        assert values <= {2, 4}

    def test_grid_size(self):
        game = Game2048(Config(GRID_SIZE=5))
        assert game.size == 5
        assert len(game.grid) == 5
        assert all(len(row) == 5 for row in game.grid)

    def test_grid_is_a_copy(self, game):
        grid = game.grid
        grid[0][0] = 1024
        assert game.grid[0][0] != 1024

    def test_seeded_games_match(self, config):
        assert Game2048(config).grid == Game2048(config).grid

    def test_not_terminated_at_start(self, game):
        assert not game.is_terminated()
        assert game.score == 0


class TestMergeLine:
    """Compression toward the leading edge."""

    @pytest.mark.parametrize("line, expected, gained", [
        ([2, 2, None, None], [4, None, None, None], 4),
        ([2, 2, 2, 2], [4, 4, None, None], 8),
        ([2, 2, 2, None], [4, 2, None, None], 4),
        ([None, 2, None, 2], [4, None, None, None], 4),
        ([4, 2, 2, None], [4, 4, None, None], 4),
        ([2, 4, 8, 16], [2, 4, 8, 16], 0),
    ])
    def test_merge_line(self, line, expected, gained):
        assert Game2048._merge_line(line) == (expected, gained)


class TestMoves:
    """Applying actions."""

    def test_left_merges_and_scores(self, game):
        game.set_grid([
            [2, 2, None, None],
            [None] * 4,
            [None] * 4,
            [None] * 4,
        ])
        game.apply_action(Game2048.LEFT)
        assert game.grid[0][0] == 4
        assert game.score == 4

    def test_up_slides_column(self, game):
        game.set_grid([
            [None] * 4,
            [None] * 4,
            [None] * 4,
            [8, None, None, None],
        ])
        game.apply_action(Game2048.UP)
        assert game.grid[0][0] == 8

    def test_move_spawns_one_tile(self, game):
        game.set_grid([
            [None, None, None, 2],
            [None] * 4,
            [None] * 4,
            [None] * 4,
        ])
        game.apply_action(Game2048.LEFT)
        assert occupied(game.grid) == 2
        assert game.moves == 1

    def test_no_op_move_changes_nothing(self, game):
        board = [
            [2, None, None, None],
            [None] * 4,
            [None] * 4,
            [None] * 4,
        ]
        game.set_grid(board)
        game.apply_action(Game2048.LEFT)
        assert game.grid == board
        assert game.score == 0
        assert game.moves == 0

    def test_zero_cells_load_as_empty(self, game):
        game.set_grid([[2, 0, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        assert game.grid[0][1] is None

    def test_invalid_action_rejected(self, game):
        with pytest.raises(ValueError):
            game.apply_action(4)

    def test_wrong_size_grid_rejected(self, game):
        with pytest.raises(ValueError):
            game.set_grid([[2, None], [None, None]])

    def test_legal_actions(self, game):
        game.set_grid([
            [2, None, None, None],
            [None] * 4,
            [None] * 4,
            [None] * 4,
        ])
        assert sorted(game.legal_actions()) == [Game2048.RIGHT, Game2048.DOWN]


class TestEpisodeEnd:
    """Win and game over."""

    def test_full_board_without_merges_is_over(self, game):
        game.set_grid([
            [2, 4, 2, 4],
            [4, 2, 4, 2],
            [2, 4, 2, 4],
            [4, 2, 4, 2],
        ])
        assert game.over
        assert game.is_terminated()
        assert game.legal_actions() == []

    def test_full_board_with_merge_is_not_over(self, game):
        game.set_grid([
            [2, 2, 4, 8],
            [4, 8, 16, 32],
            [8, 16, 32, 64],
            [16, 32, 64, 128],
        ])
        assert not game.over

    def test_reaching_winning_tile_wins(self):
        game = Game2048(Config(WINNING_TILE=16, SEED=1))
        game.set_grid([
            [8, 8, None, None],
            [None] * 4,
            [None] * 4,
            [None] * 4,
        ])
        game.apply_action(Game2048.LEFT)
        assert game.won
        assert game.is_terminated()

    def test_keep_playing_after_win(self):
        game = Game2048(Config(WINNING_TILE=16, KEEP_PLAYING=True, SEED=1))
        game.set_grid([
            [8, 8, None, None],
            [None] * 4,
            [None] * 4,
            [None] * 4,
        ])
        game.apply_action(Game2048.LEFT)
        assert game.won
        assert not game.is_terminated()

    def test_terminated_game_ignores_moves(self, game):
        board = [
            [2, 4, 2, 4],
            [4, 2, 4, 2],
            [2, 4, 2, 4],
            [4, 2, 4, 2],
        ]
        game.set_grid(board)
        game.apply_action(Game2048.LEFT)
        assert game.grid == board

    def test_restart_clears_board_and_score(self, game, config):
        game.set_grid([[2, 2, None, None]] + [[None] * 4] * 3)
        game.apply_action(Game2048.LEFT)
        game.restart()
        assert game.score == 0
        assert not game.over
        assert occupied(game.grid) == config.START_TILES


class TestRegistry:
    """Game registry."""

    def test_2048_registered(self):
        assert '2048' in list_games()
        assert get_game('2048') is Game2048
        assert GAME_REGISTRY['2048']['actions'] == ['UP', 'RIGHT', 'DOWN', 'LEFT']

    def test_unknown_game(self):
        assert get_game('tetris') is None
