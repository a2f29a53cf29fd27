#!/usr/bin/env python3
"""
tilebot - Main Entry Point
==========================

Runs the self-playing 2048 agent, either headless with console output or
behind the web dashboard.

Usage:
    # Play on the default 200 ms timer, logging to the console
    python main.py

    # Run 50,000 ticks as fast as possible, then save the brain
    python main.py --fast --ticks 50000 --save models/brain.pth

    # Watch and control the agent in the browser
    python main.py --web --port 5001

    # Continue from a saved brain on a 5x5 board
    python main.py --model models/brain.pth --grid-size 5

Press Ctrl+C to stop. Stats are summarized on exit.
"""

import argparse
import sys
import time
from typing import Any, Dict, Optional

from config import Config
from tilebot.ai import AgentLoop, Brain, ConsoleSink
from tilebot.game import get_game, list_games
from tilebot.utils.logger import LogLevel, get_log_path, get_logger, setup_logging


logger = get_logger('main')


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="tilebot - a deep-Q agent that teaches itself 2048",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES
========
    python main.py                               Play on a timer, log to console
    python main.py --fast --ticks 100000         Train headless at full speed
    python main.py --web                         Dashboard at localhost:5000
    python main.py --model models/brain.pth      Continue from a saved brain
        """
    )

    parser.add_argument(
        '--game', type=str, default=None, choices=list_games(),
        help='Game to play (default: from config)'
    )
    parser.add_argument(
        '--web', action='store_true',
        help='Serve the web dashboard and control the agent from the browser'
    )
    parser.add_argument(
        '--port', type=int, default=None,
        help='Web dashboard port (default: from config)'
    )
    parser.add_argument(
        '--paused', action='store_true',
        help='With --web: wait for Start in the browser instead of starting immediately'
    )
    parser.add_argument(
        '--speed', type=int, default=None, metavar='MS',
        help='Milliseconds between ticks (default: from config)'
    )
    parser.add_argument(
        '--ticks', type=int, default=None, metavar='N',
        help='Stop after N ticks (headless only; default: run until Ctrl+C)'
    )
    parser.add_argument(
        '--fast', action='store_true',
        help='Headless: run ticks back to back instead of on the timer (requires --ticks)'
    )
    parser.add_argument(
        '--grid-size', type=int, default=None, metavar='N',
        help='Board side length (default: from config)'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for the game and the brain'
    )
    parser.add_argument(
        '--model', type=str, default=None, metavar='PATH',
        help='Load brain weights before playing'
    )
    parser.add_argument(
        '--save', type=str, default=None, metavar='PATH',
        help='Save brain weights on exit'
    )
    parser.add_argument(
        '--log-level', type=str, default=None, choices=[level.name for level in LogLevel],
        help='Console log level (default: from config)'
    )
    parser.add_argument(
        '--no-log-file', action='store_true',
        help='Log to the console only'
    )

    args = parser.parse_args(argv)
    if args.fast and args.ticks is None:
        parser.error('--fast requires --ticks')
    if args.fast and args.web:
        parser.error('--fast cannot be combined with --web')
    return args


def build_config(args: argparse.Namespace) -> Config:
    """Create the config with command line overrides applied (and validated)."""
    overrides: Dict[str, Any] = {}
    if args.game is not None:
        overrides['GAME_NAME'] = args.game
    if args.grid_size is not None:
        overrides['GRID_SIZE'] = args.grid_size
    if args.speed is not None:
        overrides['PLAY_SPEED_MS'] = args.speed
    if args.port is not None:
        overrides['WEB_PORT'] = args.port
    if args.seed is not None:
        overrides['SEED'] = args.seed
    if args.log_level is not None:
        overrides['LOG_LEVEL'] = args.log_level
    if args.no_log_file:
        overrides['LOG_TO_FILE'] = False
    return Config(**overrides)


def build_loop(config: Config, model_path: Optional[str] = None) -> AgentLoop:
    """Create the game and the agent loop, optionally loading saved weights."""
    game_class = get_game(config.GAME_NAME)
    if game_class is None:
        raise SystemExit(f"Unknown game: {config.GAME_NAME}")
    game = game_class(config, seed=config.SEED)

    loop = AgentLoop(game, config, sinks=[ConsoleSink(config.LOG_MOVES_EVERY)])
    if model_path:
        if not isinstance(loop.model, Brain):
            raise SystemExit("--model requires the default brain")
        loop.model.load(model_path)
    return loop


def print_summary(loop: AgentLoop) -> None:
    """Print final statistics."""
    stats = loop.stats
    avg_reward = stats.average_reward
    avg_score = stats.average_score
    print()
    print("=" * 50)
    print("Session summary")
    print("=" * 50)
    print(f"  Ticks:          {loop.tick_count:,} ({loop.failed_ticks} failed)")
    print(f"  Moves:          {stats.total_moves:,}")
    print(f"  Avg reward:     {avg_reward:.2f}" if avg_reward is not None else "  Avg reward:     -")
    print(f"  Episodes:       {stats.episode_count:,}")
    print(f"  Avg score:      {avg_score:.1f}" if avg_score is not None else "  Avg score:      -")
    print(f"  Best score:     {stats.best_score:,}")
    print(f"  Largest tile:   {stats.largest_tile_seen}")
    print(f"  Win rate (100): {stats.win_rate(100):.0%}")
    log_path = get_log_path()
    if log_path is not None:
        print(f"  Log file:       {log_path}")


def run_headless(loop: AgentLoop, args: argparse.Namespace) -> None:
    """Play without the dashboard until --ticks is reached or Ctrl+C."""
    if args.fast:
        logger.info(f"Running {args.ticks:,} ticks back to back")
        loop.step(args.ticks)
        return

    loop.start()
    try:
        while args.ticks is None or loop.tick_count < args.ticks:
            time.sleep(0.1)
    finally:
        loop.pause()


def run_web(loop: AgentLoop, config: Config, args: argparse.Namespace) -> None:
    """Serve the dashboard and keep the process alive until Ctrl+C."""
    from tilebot.web import WebDashboard

    dashboard = WebDashboard(loop, config, port=config.WEB_PORT, host=config.WEB_HOST)
    dashboard.start()
    if not args.paused:
        loop.start()
        dashboard.publisher.set_running(True)
    try:
        while True:
            time.sleep(0.5)
    finally:
        loop.pause()
        dashboard.stop()


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    config = build_config(args)

    setup_logging(
        log_dir=config.LOG_DIR,
        level=LogLevel[config.LOG_LEVEL],
        file_output=config.LOG_TO_FILE,
        force=True,
    )
    logger.info(
        f"Game: {config.GAME_NAME} {config.GRID_SIZE}x{config.GRID_SIZE} | "
        f"speed={config.PLAY_SPEED_MS} ms | seed={config.SEED}"
    )

    loop = build_loop(config, args.model)

    try:
        if args.web:
            run_web(loop, config, args)
        else:
            run_headless(loop, args)
    except KeyboardInterrupt:
        print("\n\nStopped by user")
    finally:
        if args.save and isinstance(loop.model, Brain):
            loop.model.save(args.save)
        print_summary(loop)
    return 0


if __name__ == "__main__":
    sys.exit(main())
