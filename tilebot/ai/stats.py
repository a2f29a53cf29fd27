"""
Stats Aggregator
================

Running statistics for the agent loop and the sinks that display them.

Tracked:
    - Per move: total moves, reward sum, running average reward, move readout
    - Per episode: episode summaries, cumulative score, best score, wins
    - Recent-score window: (episode, score, running average score), capped
    - Long-run series: (move, average reward), one point every LONG_RUN_EVERY moves

All averages are derived from the running sums when read and are never
stored independently. Every collection is bounded, so memory stays flat
no matter how long the agent plays.

Reset policy: reset() is a full reset. Move totals, episode history,
the recent-score window and the long-run series are all cleared, and every
attached sink is told to clear. Episode boundaries only reset the
per-episode counters, which live in the EpisodeTracker.
"""

import threading
from collections import deque
from dataclasses import dataclass, asdict
from typing import Any, Deque, Dict, Iterable, List, NamedTuple, Optional

from config import Config

from ..utils.logger import get_logger, log_episode_summary


logger = get_logger(__name__)


@dataclass(frozen=True)
class EpisodeSummary:
    """Outcome of one finished episode."""
    episode_index: int
    total_moves: int
    final_score: int
    largest_tile_value: int
    won: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MoveReadout:
    """One line of the per-move display."""
    action_label: str
    move_count: int
    last_reward: float
    avg_reward: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RecentScorePoint(NamedTuple):
    x: int
    score: int
    avg: float


class LongRunPoint(NamedTuple):
    x: int
    avg: float


class DisplaySink:
    """
    Receives stats as they change. All hooks are no-ops; override the
    ones a display cares about.
    """

    def show_move(self, readout: MoveReadout) -> None:
        pass

    def show_episode(self, summary: EpisodeSummary) -> None:
        pass

    def add_recent_score(self, point: RecentScorePoint) -> None:
        pass

    def add_long_run(self, point: LongRunPoint) -> None:
        pass

    def clear(self) -> None:
        pass


class ConsoleSink(DisplaySink):
    """Logs a move readout every N moves and every finished episode."""

    def __init__(self, log_moves_every: int = 500):
        self.log_moves_every = log_moves_every
        self._last_avg_score: Optional[float] = None

    def show_move(self, readout: MoveReadout) -> None:
        if self.log_moves_every and readout.move_count % self.log_moves_every == 0:
            logger.info(
                f"move={readout.move_count} | action={readout.action_label} | "
                f"reward={readout.last_reward:+.0f} | avg_reward={readout.avg_reward:.2f}"
            )

    def add_recent_score(self, point: RecentScorePoint) -> None:
        self._last_avg_score = point.avg

    def show_episode(self, summary: EpisodeSummary) -> None:
        log_episode_summary(
            episode=summary.episode_index,
            score=summary.final_score,
            moves=summary.total_moves,
            largest_tile=summary.largest_tile_value,
            won=summary.won,
            avg_score=self._last_avg_score,
        )

    def add_long_run(self, point: LongRunPoint) -> None:
        logger.info(f"Long-run average reward at move {point.x:,}: {point.avg:.3f}")


class StatsAggregator:
    """
    Owns all running statistics.

    Example:
        >>> stats = StatsAggregator(config, sinks=[ConsoleSink()])
        >>> stats.record_move('up', 1.0)
        >>> stats.record_episode(summary)
        >>> stats.average_reward
        1.0
    """

    def __init__(self, config: Optional[Config] = None, sinks: Optional[Iterable[DisplaySink]] = None):
        """
        Initialize the aggregator.

        Args:
            config: Supplies window capacities and the long-run interval
            sinks: Displays notified on every change
        """
        self.config = config or Config()
        self.sinks: List[DisplaySink] = list(sinks or [])

        # Guards counters against concurrent snapshot() reads from the web thread
        self._lock = threading.Lock()

        self.recent_scores: Deque[RecentScorePoint] = deque(maxlen=self.config.RECENT_SCORE_WINDOW)
        self.long_run: Deque[LongRunPoint] = deque(maxlen=self.config.LONG_RUN_HISTORY_LENGTH)
        self.episodes: Deque[EpisodeSummary] = deque(maxlen=self.config.EPISODE_HISTORY_LENGTH)
        self.move_log: Deque[MoveReadout] = deque(maxlen=self.config.MOVE_LOG_LENGTH)
        self._init_counters()

    def _init_counters(self) -> None:
        self.total_moves = 0
        self.total_reward_sum = 0.0
        self.last_action = ''
        self.last_reward = 0.0
        self.episode_count = 0
        self.cumulative_score_sum = 0
        self.best_score = 0
        self.largest_tile_seen = 0
        self.win_count = 0
        self._long_run_counter = 0

    def add_sink(self, sink: DisplaySink) -> None:
        self.sinks.append(sink)

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def average_reward(self) -> Optional[float]:
        """Mean reward per move, or None before the first move."""
        if self.total_moves == 0:
            return None
        return self.total_reward_sum / self.total_moves

    @property
    def average_score(self) -> Optional[float]:
        """Mean final score per episode, or None before the first episode."""
        if self.episode_count == 0:
            return None
        return self.cumulative_score_sum / self.episode_count

    @property
    def long_run_counter(self) -> int:
        """Moves since the last long-run point."""
        return self._long_run_counter

    def win_rate(self, n: int = 100) -> float:
        """Fraction of the last n recorded episodes that were won."""
        recent = list(self.episodes)[-n:]
        if not recent:
            return 0.0
        return sum(1 for ep in recent if ep.won) / len(recent)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_move(self, action_label: str, reward: float) -> MoveReadout:
        """
        Count one move and its reward.

        Also advances the long-run counter; when it reaches LONG_RUN_EVERY a
        point is appended to the long-run series and the counter restarts at 0.

        Returns:
            The readout appended to the move log
        """
        long_run_point = None
        with self._lock:
            self.total_moves += 1
            self.total_reward_sum += reward
            self.last_action = action_label
            self.last_reward = reward

            readout = MoveReadout(
                action_label=action_label,
                move_count=self.total_moves,
                last_reward=reward,
                avg_reward=round(self.average_reward, 2),
            )
            self.move_log.appendleft(readout)

            self._long_run_counter += 1
            if self._long_run_counter >= self.config.LONG_RUN_EVERY:
                long_run_point = LongRunPoint(self.total_moves, self.average_reward)
                self.long_run.append(long_run_point)
                self._long_run_counter = 0

        for sink in self.sinks:
            sink.show_move(readout)
            if long_run_point is not None:
                sink.add_long_run(long_run_point)
        return readout

    def record_episode(self, summary: EpisodeSummary) -> RecentScorePoint:
        """
        Count one finished episode.

        Returns:
            The point pushed into the recent-score window
        """
        with self._lock:
            self.episode_count += 1
            self.cumulative_score_sum += summary.final_score
            self.best_score = max(self.best_score, summary.final_score)
            self.largest_tile_seen = max(self.largest_tile_seen, summary.largest_tile_value)
            if summary.won:
                self.win_count += 1
            self.episodes.append(summary)

            point = RecentScorePoint(summary.episode_index, summary.final_score, self.average_score)
            self.recent_scores.append(point)

        for sink in self.sinks:
            sink.add_recent_score(point)
            sink.show_episode(summary)
        return point

    def reset(self) -> None:
        """Full reset: counters, history and series. Sinks are cleared too."""
        with self._lock:
            self._init_counters()
            self.recent_scores.clear()
            self.long_run.clear()
            self.episodes.clear()
            self.move_log.clear()

        for sink in self.sinks:
            sink.clear()

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """JSON-friendly copy of the current statistics."""
        with self._lock:
            avg_reward = self.average_reward
            avg_score = self.average_score
            return {
                'totals': {
                    'total_moves': self.total_moves,
                    'total_reward': self.total_reward_sum,
                    'avg_reward': round(avg_reward, 2) if avg_reward is not None else None,
                    'last_action': self.last_action,
                    'last_reward': self.last_reward,
                    'episode_count': self.episode_count,
                    'avg_score': round(avg_score, 2) if avg_score is not None else None,
                    'best_score': self.best_score,
                    'largest_tile': self.largest_tile_seen,
                    'wins': self.win_count,
                    'long_run_counter': self._long_run_counter,
                },
                'move_log': [r.to_dict() for r in self.move_log],
                'episodes': [e.to_dict() for e in list(self.episodes)[-20:]],
                'recent_scores': [list(p) for p in self.recent_scores],
                'long_run': [list(p) for p in self.long_run],
            }
