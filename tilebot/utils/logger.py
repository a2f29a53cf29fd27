"""
Logging for tilebot.

Every module logs through a child of the ``tilebot`` logger:

    logger = get_logger(__name__)      # tilebot.ai.agent_loop
    logger.info("Agent started (interval=200 ms)")

Importing any module gives console output at INFO. The entry point calls
setup_logging(..., force=True) once with the configured LOG_LEVEL to add the
per-run log file under LOG_DIR.
"""

import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class LogLevel(Enum):
    """Levels accepted by setup_logging()."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


ROOT_LOGGER_NAME = 'tilebot'
LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'

_initialized = False
_file_handler: Optional[logging.FileHandler] = None


class ColoredFormatter(logging.Formatter):
    """Colours the level name when writing to a terminal."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str = LOG_FORMAT, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)
        # Copy so the file handler still sees the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _open_log_file(log_dir: str, log_filename: Optional[str]) -> logging.FileHandler:
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    if log_filename is None:
        log_filename = f"tilebot_{datetime.now():%Y%m%d_%H%M%S}.log"
    handler = logging.FileHandler(directory / log_filename, mode='a', encoding='utf-8')
    # The file keeps per-tick detail whatever the console level is
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(
    log_dir: str = 'logs',
    level: LogLevel = LogLevel.INFO,
    console_output: bool = True,
    file_output: bool = True,
    log_filename: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Attach console and file handlers to the ``tilebot`` logger.

    Stream and file handlers from an earlier call are replaced. Other
    handlers, such as the dashboard console, stay attached.

    Args:
        log_dir: Directory for the log file
        level: Minimum level for the logger and the console
        console_output: Write to stdout
        file_output: Write to a file in log_dir
        log_filename: File name (default: tilebot_YYYYMMDD_HHMMSS.log)
        force: Reconfigure even if logging was already set up
    """
    global _initialized, _file_handler

    if _initialized and not force:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.value)
    for handler in list(root_logger.handlers):
        if isinstance(handler, logging.StreamHandler):
            root_logger.removeHandler(handler)
            handler.close()
    _file_handler = None

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level.value)
        console_handler.setFormatter(ColoredFormatter())
        root_logger.addHandler(console_handler)

    if file_output:
        _file_handler = _open_log_file(log_dir, log_filename)
        root_logger.addHandler(_file_handler)

    _initialized = True
    root_logger.info(f"Logging initialized (level={level.name}, file={get_log_path()})")


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, under the ``tilebot`` namespace."""
    if not _initialized:
        setup_logging(file_output=False)

    prefix = ROOT_LOGGER_NAME + '.'
    if name.startswith(prefix):
        name = name[len(prefix):]
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def get_log_path() -> Optional[Path]:
    """Path of the current log file, or None when logging to console only."""
    if _file_handler is not None:
        return Path(_file_handler.baseFilename)
    return None


def log_episode_summary(
    episode: int,
    score: int,
    moves: int,
    largest_tile: int,
    won: bool,
    total_reward: Optional[float] = None,
    avg_score: Optional[float] = None,
) -> None:
    """
    Log a finished episode in a consistent format.

    Args:
        episode: Episode index
        score: Final game score
        moves: Moves played in the episode
        largest_tile: Largest tile on the final board
        won: Whether the winning tile was reached
        total_reward: Reward collected during the episode (if available)
        avg_score: Running average score (if available)
    """
    logger = get_logger('episodes')

    metrics = [
        f"ep={episode}",
        f"score={score}",
        f"moves={moves}",
        f"max_tile={largest_tile}",
        f"won={won}",
    ]

    if total_reward is not None:
        metrics.append(f"reward={total_reward:.1f}")
    if avg_score is not None:
        metrics.append(f"avg_score={avg_score:.1f}")

    logger.info(" | ".join(metrics))
