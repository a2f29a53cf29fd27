"""
Pytest configuration for the test suite.

Shared test doubles for the agent loop: a game whose boards are scripted
and a model that records what it was given.
"""

import os
import sys
from typing import List, Optional

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import BrainConfig, Config
from tilebot.game.base_game import BaseGame


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


class ScriptedGame(BaseGame):
    """
    Game double with a hand-set board.

    apply_action() swaps in `next_cells` when set (otherwise the board is
    unchanged), and failures can be switched on per call type.
    """

    def __init__(self, cells: Optional[List[List[Optional[int]]]] = None):
        self.start_cells = cells or [[2, None], [None, None]]
        self.cells = [row[:] for row in self.start_cells]
        self.next_cells: Optional[List[List[Optional[int]]]] = None
        self.terminated = False
        self.final_score = 0
        self.won_flag = False
        self.actions: List[int] = []
        self.restarts = 0
        self.fail_on_action = False
        self.fail_on_restart = False

    @property
    def grid(self):
        return [row[:] for row in self.cells]

    @property
    def score(self) -> int:
        return self.final_score

    @property
    def won(self) -> bool:
        return self.won_flag

    @property
    def size(self) -> int:
        return len(self.start_cells)

    def restart(self) -> None:
        if self.fail_on_restart:
            raise RuntimeError("restart exploded")
        self.restarts += 1
        self.terminated = False
        self.cells = [row[:] for row in self.start_cells]

    def apply_action(self, action: int) -> None:
        if self.fail_on_action:
            raise RuntimeError("apply_action exploded")
        self.actions.append(action)
        if self.next_cells is not None:
            self.cells = [row[:] for row in self.next_cells]
            self.next_cells = None

    def is_terminated(self) -> bool:
        return self.terminated


class RecordingModel:
    """Model double: returns a fixed action and records its inputs."""

    def __init__(self, action: int = 0):
        self.action = action
        self.observations = []
        self.rewards: List[float] = []
        self.fail_on_forward = False
        self.fail_on_backward = False

    def forward(self, observation):
        if self.fail_on_forward:
            raise RuntimeError("forward exploded")
        self.observations.append(list(observation))
        return self.action

    def backward(self, reward):
        if self.fail_on_backward:
            raise RuntimeError("backward exploded")
        self.rewards.append(reward)


@pytest.fixture
def config():
    """Small, fast configuration."""
    return Config(GRID_SIZE=2, PLAY_SPEED_MS=20, LONG_RUN_EVERY=5, LOG_TO_FILE=False)


@pytest.fixture
def small_brain_config():
    """Brain that starts learning after a handful of moves."""
    return BrainConfig(
        HIDDEN_LAYERS=[16],
        BATCH_SIZE=8,
        EXPERIENCE_ADD_EVERY=1,
        EXPERIENCE_SIZE=200,
        START_LEARN_THRESHOLD=20,
        LEARNING_STEPS_TOTAL=500,
        LEARNING_STEPS_BURNIN=10,
    )


@pytest.fixture
def game():
    return ScriptedGame()


@pytest.fixture
def models():
    """Every model built by `model_factory`, in creation order."""
    return []


@pytest.fixture
def model_factory(models):
    def _factory(num_states, num_actions, brain_config):
        model = RecordingModel()
        models.append(model)
        return model
    return _factory
