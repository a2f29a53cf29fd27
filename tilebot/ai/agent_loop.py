"""
Agent Loop
==========

Drives the observe → decide → act → reward → learn → record cycle.

Each tick:
    1. Observe the board (pre-move observation)
    2. If the episode has ended: record its summary, restart the game,
       reset per-episode counters and stop (no move this tick)
    3. action = model.forward(observation)
    4. Apply the action to the game
    5. Observe the board again (post-move observation)
    6. reward = RewardFunction(pre, action, post)
    7. model.backward(reward)
    8. Record the move in the stats

Scheduling:
    start() runs tick() every play_speed_ms on one timer thread, so ticks
    never overlap. pause(), set_speed() and reset() stop the timer first and
    wait for an in-flight tick to finish before changing anything.

Failures:
    Errors raised by the game or the model inside a tick are wrapped,
    logged, and the tick is abandoned before any stats are written. The
    timer keeps running. Errors raised by start/pause/set_speed/reset
    propagate to the caller.
"""

import threading
from enum import Enum, auto
from typing import Callable, Iterable, Optional, Protocol, Sequence

import numpy as np

from config import BrainConfig, Config

from .brain import Brain
from .episode import EpisodeState, EpisodeTracker
from .observation import largest_tile, to_observation
from .reward import RewardFunction, Transition
from .stats import DisplaySink, EpisodeSummary, StatsAggregator
from ..errors import GameEnvironmentError, ModelError, TileBotError
from ..game.base_game import BaseGame
from ..utils.logger import get_logger
from ..utils.scheduler import IntervalTimer


logger = get_logger(__name__)


class DecisionModel(Protocol):
    """Anything with the forward/backward contract."""

    def forward(self, observation: Sequence[float]) -> int:
        ...

    def backward(self, reward: float) -> object:
        ...


ModelFactory = Callable[[int, int, BrainConfig], DecisionModel]


class TickOutcome(Enum):
    """What a tick did."""
    MOVED = auto()
    EPISODE_ENDED = auto()
    FAILED = auto()


class AgentLoop:
    """
    The only active component: owns the clock and orders every tick.

    Example:
        >>> game = Game2048(config)
        >>> loop = AgentLoop(game, config, sinks=[ConsoleSink()])
        >>> loop.start()
        >>> loop.set_speed(50)
        >>> loop.pause()
    """

    def __init__(
        self,
        game: BaseGame,
        config: Optional[Config] = None,
        brain_config: Optional[BrainConfig] = None,
        stats: Optional[StatsAggregator] = None,
        sinks: Optional[Iterable[DisplaySink]] = None,
        model_factory: Optional[ModelFactory] = None
    ):
        """
        Initialize the loop.

        Args:
            game: Environment to play
            config: Loop, reward and stats configuration
            brain_config: Model hyperparameters (defaults to config.brain)
            stats: Stats aggregator (created from config and sinks if None)
            sinks: Display sinks for a newly created aggregator
            model_factory: Builds a model from (num_states, num_actions, brain_config).
                Called once here and again on every reset().
        """
        self.game = game
        self.config = config or Config()
        self.brain_config = brain_config or self.config.brain
        self.stats = stats or StatsAggregator(self.config, sinks)
        self.model_factory = model_factory or self._default_model_factory

        self.action_labels = list(self.config.ACTION_LABELS)
        self.num_states = self.game.size ** 2
        self.num_actions = len(self.action_labels)

        self.reward_fn = RewardFunction(self.config)
        self.tracker = EpisodeTracker()
        self.model: DecisionModel = self._create_model()

        self.play_speed_ms = self.config.PLAY_SPEED_MS
        self.tick_count = 0
        self.failed_ticks = 0

        self._timer: Optional[IntervalTimer] = None
        # Serializes control operations against each other
        self._control_lock = threading.RLock()
        # Serializes ticks against each other and against reset()
        self._tick_lock = threading.RLock()

    def _default_model_factory(self, num_states: int, num_actions: int, brain_config: BrainConfig) -> Brain:
        return Brain(num_states, num_actions, brain_config,
                     device=self.config.DEVICE, seed=self.config.SEED)

    def _create_model(self) -> DecisionModel:
        return self.model_factory(self.num_states, self.num_actions, self.brain_config)

    # -------------------------------------------------------------------------
    # Controls
    # -------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        """Begin ticking. Does nothing if already running."""
        with self._control_lock:
            if self._timer is not None:
                return
            self._timer = IntervalTimer(self.play_speed_ms / 1000.0, self.tick, name='agent-loop')
            self._timer.start()
            logger.info(f"Agent started (interval={self.play_speed_ms} ms)")

    def pause(self) -> None:
        """Stop ticking after any in-flight tick completes. Safe when paused."""
        with self._control_lock:
            timer, self._timer = self._timer, None
            if timer is None:
                return
            timer.cancel(wait=True)
            logger.info(f"Agent paused after {self.tick_count} ticks")

    def set_speed(self, interval_ms: int) -> None:
        """
        Change the tick interval: pause, update, start again.

        Raises:
            ValueError: If interval_ms is not positive
        """
        if interval_ms <= 0:
            raise ValueError(f"Interval must be positive, got {interval_ms}")
        with self._control_lock:
            self.pause()
            self.play_speed_ms = interval_ms
            logger.info(f"Play speed set to {interval_ms} ms")
            self.start()

    def reset(self) -> None:
        """
        Full restart: pause, clear stats, restart the game and replace the
        model with a fresh one built from the same configuration. All learned
        state is discarded. The loop stays paused.

        Raises:
            GameEnvironmentError: If the game fails to restart
            ModelError: If the model cannot be created
        """
        with self._control_lock:
            self.pause()
            with self._tick_lock:
                self.stats.reset()
                try:
                    self.game.restart()
                except Exception as exc:
                    raise GameEnvironmentError(f"restart failed: {exc}") from exc
                self.tracker.reset()
                try:
                    self.model = self._create_model()
                except Exception as exc:
                    raise ModelError(f"could not create model: {exc}") from exc
                self.tick_count = 0
                self.failed_ticks = 0
            logger.info("Agent reset (stats cleared, fresh model)")

    def step(self, ticks: int = 1) -> None:
        """Run ticks synchronously on the caller's thread (for headless runs)."""
        for _ in range(ticks):
            self.tick()

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def tick(self) -> TickOutcome:
        """
        Run one tick. Never raises for game or model failures; those are
        logged and reported as TickOutcome.FAILED.
        """
        with self._tick_lock:
            self.tick_count += 1
            try:
                return self._run_tick()
            except TileBotError as exc:
                self.failed_ticks += 1
                logger.error(f"Tick {self.tick_count} abandoned: {type(exc).__name__}: {exc}")
                return TickOutcome.FAILED

    def _run_tick(self) -> TickOutcome:
        pre_observation = self._observe()

        if self._check_episode() is EpisodeState.TERMINATED:
            self._finish_episode(pre_observation)
            return TickOutcome.EPISODE_ENDED

        action = self._decide(pre_observation)
        self._game_call(self.game.apply_action, action)
        post_observation = self._observe()

        reward = self.reward_fn(Transition(pre_observation, action, post_observation))
        self._model_call(self.model.backward, reward)

        self.tracker.record_move(reward)
        self.stats.record_move(self.action_labels[action], reward)
        return TickOutcome.MOVED

    def _finish_episode(self, final_observation: np.ndarray) -> None:
        """Summarize, record, restart the game, reset per-episode counters."""
        if not self.tracker.summary_recorded:
            summary = EpisodeSummary(
                episode_index=self.tracker.episode_index,
                total_moves=self.tracker.moves,
                final_score=int(self._game_call(lambda: self.game.score)),
                largest_tile_value=largest_tile(final_observation),
                won=bool(self._game_call(lambda: self.game.won)),
            )
            self.stats.record_episode(summary)
            self.tracker.mark_recorded()
            logger.debug(
                f"Episode {summary.episode_index} ended: score={summary.final_score} "
                f"moves={summary.total_moves} reward={self.tracker.total_reward:.1f}"
            )

        self._game_call(self.game.restart)
        self.tracker.begin_next_episode()

    def _observe(self) -> np.ndarray:
        grid = self._game_call(lambda: self.game.grid)
        return to_observation(grid)

    def _check_episode(self) -> EpisodeState:
        try:
            return self.tracker.check(self.game)
        except Exception as exc:
            raise GameEnvironmentError(f"is_terminated failed: {exc}") from exc

    def _decide(self, observation: np.ndarray) -> int:
        action = self._model_call(self.model.forward, observation)
        if isinstance(action, bool) or not isinstance(action, (int, np.integer)) \
                or not 0 <= action < self.num_actions:
            raise ModelError(f"forward returned {action!r}, expected an int in [0, {self.num_actions})")
        return int(action)

    @staticmethod
    def _game_call(fn, *args):
        try:
            return fn(*args)
        except TileBotError:
            raise
        except Exception as exc:
            raise GameEnvironmentError(f"{type(exc).__name__}: {exc}") from exc

    @staticmethod
    def _model_call(fn, *args):
        try:
            return fn(*args)
        except TileBotError:
            raise
        except Exception as exc:
            raise ModelError(f"{type(exc).__name__}: {exc}") from exc
