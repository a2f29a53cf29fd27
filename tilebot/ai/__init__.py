"""
AI Module
=========

The agent loop and everything it drives.

Classes:
    AgentLoop       - Observe/decide/act/reward/learn/record cycle on a timer
    Brain           - Deep-Q decision model (forward/backward contract)
    QNetwork        - Value network used by the brain
    ReplayBuffer    - Experience replay memory
    EpisodeTracker  - Running/terminated state and per-episode counters
    RewardFunction  - Tile-count reward with the no-move penalty
    StatsAggregator - Running statistics and display sinks
"""

from .agent_loop import AgentLoop, TickOutcome
from .brain import Brain
from .episode import EpisodeState, EpisodeTracker
from .network import QNetwork
from .observation import count_occupied, largest_tile, to_observation
from .replay_buffer import ReplayBuffer
from .reward import RewardFunction, Transition, compute_reward
from .stats import (
    ConsoleSink,
    DisplaySink,
    EpisodeSummary,
    LongRunPoint,
    MoveReadout,
    RecentScorePoint,
    StatsAggregator,
)

__all__ = [
    'AgentLoop', 'TickOutcome', 'Brain', 'EpisodeState', 'EpisodeTracker',
    'QNetwork', 'ReplayBuffer', 'RewardFunction', 'Transition', 'compute_reward',
    'count_occupied', 'largest_tile', 'to_observation',
    'ConsoleSink', 'DisplaySink', 'EpisodeSummary', 'LongRunPoint', 'MoveReadout',
    'RecentScorePoint', 'StatsAggregator',
]
