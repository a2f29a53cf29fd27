"""
Configuration file for tilebot
==============================

All loop timing, reward shaping, statistics windows and model
hyperparameters are centralized here.
Modify these values to experiment with different training configurations.

Usage:
    from config import Config
    cfg = Config()
    print(cfg.PLAY_SPEED_MS)
"""

from dataclasses import dataclass, field
from typing import List, Optional
import torch


@dataclass
class BrainConfig:
    """
    Hyperparameter bundle for the deep-Q brain.

    Passed into the agent loop as a value object so the loop can
    re-create an identical, untrained brain on reset.
    """

    # Amount of temporal memory. 0 = agent lives in-the-moment
    TEMPORAL_WINDOW: int = 1

    # Value network hidden layers
    HIDDEN_LAYERS: List[int] = field(default_factory=lambda: [50, 50])
    ACTIVATION: str = 'relu'

    # TD trainer options
    LEARNING_RATE: float = 0.001
    MOMENTUM: float = 0.0
    BATCH_SIZE: int = 64
    L2_DECAY: float = 0.01

    # Epsilon-greedy policy
    # Epsilon anneals linearly from 1.0 to EPSILON_MIN over LEARNING_STEPS_TOTAL
    EPSILON_MIN: float = 0.05
    EPSILON_TEST_TIME: float = 0.05   # Used when learning is switched off

    # Experience replay
    EXPERIENCE_ADD_EVERY: int = 5     # Backward calls between stored experiences
    EXPERIENCE_SIZE: int = 10_000
    START_LEARN_THRESHOLD: int = 1000

    # Discount factor, [0, 1)
    GAMMA: float = 0.9

    LEARNING_STEPS_TOTAL: int = 200_000
    LEARNING_STEPS_BURNIN: int = 3000

    # Huber loss threshold (clamps the TD error gradient)
    TDERROR_CLAMP: float = 1.0

    def __post_init__(self):
        """Validation."""
        assert self.TEMPORAL_WINDOW >= 0, "Temporal window must be >= 0"
        assert self.LEARNING_RATE > 0, "Learning rate must be positive"
        assert 0 <= self.GAMMA < 1, "Gamma must be in [0, 1)"
        assert self.BATCH_SIZE > 0, "Batch size must be positive"
        assert self.EXPERIENCE_ADD_EVERY > 0, "Experience add interval must be positive"
        assert self.EXPERIENCE_SIZE >= self.BATCH_SIZE, "Experience size must hold a batch"
        assert 0 <= self.EPSILON_MIN <= 1, "Epsilon min must be in [0, 1]"
        assert self.LEARNING_STEPS_TOTAL > self.LEARNING_STEPS_BURNIN, \
            "Learning steps total must exceed burn-in"


@dataclass
class Config:
    """
    Central configuration for the entire project.

    Sections:
    1. Grid - Puzzle board settings
    2. Agent Loop - Tick scheduling
    3. Reward Shaping - Per-move reward values
    4. Statistics - Windows and sampling intervals
    5. Web Dashboard - Server settings
    6. System - Hardware, paths and logging
    """

    # =========================================================================
    # GRID SETTINGS
    # =========================================================================

    # Game to play (see tilebot.game.GAME_REGISTRY)
    GAME_NAME: str = '2048'

    # Board is GRID_SIZE x GRID_SIZE, one observation input per cell
    GRID_SIZE: int = 4
    START_TILES: int = 2
    WINNING_TILE: int = 2048

    # Keep playing after reaching WINNING_TILE instead of ending the episode
    KEEP_PLAYING: bool = False

    # =========================================================================
    # AGENT LOOP
    # =========================================================================

    # Milliseconds between ticks
    PLAY_SPEED_MS: int = 200

    # Action index -> label. Index order is a contract with the game.
    ACTION_LABELS: List[str] = field(default_factory=lambda: ['up', 'right', 'down', 'left'])

    # =========================================================================
    # REWARD SHAPING
    # =========================================================================

    REWARD_MERGE: float = 1.0       # Tile count held steady or shrank
    REWARD_SPAWN: float = -1.0      # Tile count grew (no merge)
    REWARD_NO_MOVE: float = -5.0    # Move left the board unchanged

    # =========================================================================
    # STATISTICS
    # =========================================================================

    # Recent-score chart window (oldest evicted)
    RECENT_SCORE_WINDOW: int = 200

    # One long-run average point every N moves
    LONG_RUN_EVERY: int = 10_000

    # Episode summaries kept in memory
    EPISODE_HISTORY_LENGTH: int = 1000

    # Long-run average points kept in memory
    LONG_RUN_HISTORY_LENGTH: int = 1000

    # Move readout entries kept for display (newest first)
    MOVE_LOG_LENGTH: int = 100

    # Console sink: log a move readout every N moves (0 = never)
    LOG_MOVES_EVERY: int = 500

    # =========================================================================
    # WEB DASHBOARD
    # =========================================================================

    WEB_HOST: str = '0.0.0.0'
    WEB_PORT: int = 5000

    # =========================================================================
    # SYSTEM SETTINGS
    # =========================================================================

    # Force CPU device (small networks gain nothing from a GPU)
    FORCE_CPU: bool = True

    @property
    def DEVICE(self) -> torch.device:
        """Auto-detect CUDA/MPS/CPU, or force CPU if configured."""
        if self.FORCE_CPU:
            return torch.device('cpu')
        if torch.cuda.is_available():
            return torch.device('cuda')
        elif hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
            return torch.device('mps')
        return torch.device('cpu')

    @property
    def STATE_SIZE(self) -> int:
        """One input per grid cell."""
        return self.GRID_SIZE * self.GRID_SIZE

    @property
    def ACTION_SIZE(self) -> int:
        return len(self.ACTION_LABELS)

    # Paths and logging
    LOG_DIR: str = 'logs'
    LOG_LEVEL: str = 'INFO'
    LOG_TO_FILE: bool = True

    # Random seed for reproducibility (None for random)
    SEED: Optional[int] = None

    # Model hyperparameters
    brain: BrainConfig = field(default_factory=BrainConfig)

    def __post_init__(self):
        """Validation and derived calculations."""
        assert self.GRID_SIZE >= 2, "Grid size must be at least 2"
        assert 0 < self.START_TILES <= self.GRID_SIZE ** 2, "Start tiles must fit on the grid"
        assert self.PLAY_SPEED_MS > 0, "Play speed must be positive"
        assert len(self.ACTION_LABELS) == 4, "Exactly four directional actions"
        assert self.RECENT_SCORE_WINDOW > 0, "Recent score window must be positive"
        assert self.LONG_RUN_EVERY > 0, "Long-run interval must be positive"
        assert self.REWARD_NO_MOVE < self.REWARD_SPAWN, \
            "No-move penalty must be harsher than the spawn penalty"
        assert self.LOG_LEVEL in ("DEBUG", "INFO", "WARNING", "ERROR"), \
            f"Unknown log level: {self.LOG_LEVEL}"


# Global config instance for easy importing
config = Config()


if __name__ == "__main__":
    # Print configuration summary
    cfg = Config()
    print("=" * 60)
    print("tilebot - Configuration Summary")
    print("=" * 60)
    print(f"\nGrid: {cfg.GRID_SIZE}x{cfg.GRID_SIZE} ({cfg.STATE_SIZE} inputs)")
    print(f"Actions: {cfg.ACTION_LABELS}")
    print(f"Tick interval: {cfg.PLAY_SPEED_MS} ms")
    print(f"\nRewards: merge={cfg.REWARD_MERGE} spawn={cfg.REWARD_SPAWN} "
          f"no-move={cfg.REWARD_NO_MOVE}")
    print(f"\nBrain:")
    print(f"   Hidden layers: {cfg.brain.HIDDEN_LAYERS}")
    print(f"   Learning rate: {cfg.brain.LEARNING_RATE}")
    print(f"   Gamma: {cfg.brain.GAMMA}")
    print(f"   Epsilon min: {cfg.brain.EPSILON_MIN}")
    print(f"\nDevice: {cfg.DEVICE}")
    print("=" * 60)
