"""
Reward Function
===============

Scores a single move from the board before and after it.

Policy (applied in this order):
    1. Tile count held steady or shrank (tiles merged)  -> REWARD_MERGE  (+1)
    2. Tile count grew (a tile spawned, nothing merged) -> REWARD_SPAWN  (-1)
    3. Board did not change at all                      -> REWARD_NO_MOVE (-5),
       overriding whatever step 1/2 produced

A no-op keeps the tile count steady, so step 1 alone would reward it.
The override in step 3 is what makes wasted moves the worst outcome.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from config import Config

from .observation import count_occupied


@dataclass(frozen=True)
class Transition:
    """Observation before a move, the move, and the observation after it."""
    pre_observation: np.ndarray
    action: int
    post_observation: np.ndarray

    @property
    def did_move(self) -> bool:
        return not np.array_equal(self.pre_observation, self.post_observation)


def compute_reward(
    pre_count: int,
    cur_count: int,
    did_move: bool,
    config: Optional[Config] = None
) -> float:
    """
    Reward from tile counts and whether the board changed.

    Args:
        pre_count: Occupied tiles before the move
        cur_count: Occupied tiles after the move
        did_move: Whether the move changed the board
        config: Supplies the reward values (defaults if None)
    """
    cfg = config or Config()

    if cur_count <= pre_count:
        reward = cfg.REWARD_MERGE
    else:
        reward = cfg.REWARD_SPAWN

    if not did_move:
        reward = cfg.REWARD_NO_MOVE

    return reward


class RewardFunction:
    """
    Deterministic reward for a Transition.

    Example:
        >>> reward_fn = RewardFunction(config)
        >>> reward = reward_fn(Transition(pre, action, post))
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()

    def __call__(self, transition: Transition) -> float:
        return compute_reward(
            pre_count=count_occupied(transition.pre_observation),
            cur_count=count_occupied(transition.post_observation),
            did_move=transition.did_move,
            config=self.config,
        )
