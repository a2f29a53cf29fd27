"""
Episode Tracker
===============

Small state machine that notices when the game has ended and carries the
per-episode counters the agent loop needs to summarize it.

    RUNNING --(game reports terminated)--> TERMINATED
    TERMINATED --(summary recorded, game restarted)--> RUNNING
"""

from enum import Enum, auto

from ..game.base_game import BaseGame


class EpisodeState(Enum):
    """Episode lifecycle."""
    RUNNING = auto()
    TERMINATED = auto()


class EpisodeTracker:
    """
    Tracks the current episode.

    Attributes:
        state: RUNNING or TERMINATED
        episode_index: Zero-based index of the current episode
        moves: Moves applied in the current episode
        total_reward: Reward collected in the current episode
        summary_recorded: Whether the ended episode has already been summarized.
            Guards against a second summary when restarting the game failed
            and the termination sequence is retried on the next tick.
    """

    def __init__(self):
        self.state = EpisodeState.RUNNING
        self.episode_index = 0
        self.moves = 0
        self.total_reward = 0.0
        self.summary_recorded = False

    @property
    def is_terminated(self) -> bool:
        return self.state is EpisodeState.TERMINATED

    def check(self, game: BaseGame) -> EpisodeState:
        """Move to TERMINATED if the game reports the episode is over."""
        if self.state is EpisodeState.RUNNING and game.is_terminated():
            self.state = EpisodeState.TERMINATED
            self.summary_recorded = False
        return self.state

    def record_move(self, reward: float) -> None:
        self.moves += 1
        self.total_reward += reward

    def mark_recorded(self) -> None:
        self.summary_recorded = True

    def begin_next_episode(self) -> None:
        """Reset per-episode counters and return to RUNNING."""
        self.episode_index += 1
        self.moves = 0
        self.total_reward = 0.0
        self.summary_recorded = False
        self.state = EpisodeState.RUNNING

    def reset(self) -> None:
        """Forget everything, including the episode index."""
        self.begin_next_episode()
        self.episode_index = 0
