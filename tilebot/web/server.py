"""
Web Dashboard Server
====================

Flask + SocketIO server for watching and steering the agent.

Features:
    - REST API for the current stats and loop state
    - WebSocket events for live updates (move readout, score charts)
    - Controls wired to the agent loop: start, pause, reset, speed
    - Console panel fed by the project logger

Usage:
    >>> from tilebot.web import WebDashboard
    >>> dashboard = WebDashboard(loop, config, port=5000)
    >>> dashboard.start()
    >>> loop.start()
    >>> # ... agent plays, browser updates live ...
    >>> dashboard.stop()
"""

import base64
import logging
import os
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Deque, Dict, List, Optional

import numpy as np
from flask import Flask, jsonify, make_response, render_template
from flask_socketio import SocketIO, emit

from config import Config

from ..ai.agent_loop import AgentLoop
from ..ai.stats import (
    DisplaySink,
    EpisodeSummary,
    LongRunPoint,
    MoveReadout,
    RecentScorePoint,
)
from ..utils.logger import ROOT_LOGGER_NAME, get_logger


_logger = get_logger(__name__)


def _make_json_safe(obj: Any) -> Any:
    """
    Convert NumPy types to native Python types for JSON serialization.

    Recursively processes dictionaries, lists and tuples.
    """
    if isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, dict):
        return {k: _make_json_safe(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_make_json_safe(item) for item in obj]
    return obj


@dataclass
class LogMessage:
    """A single console entry."""
    timestamp: str
    level: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LoopState:
    """Loop and game state shown in the dashboard header."""
    is_running: bool = False
    play_speed_ms: int = 200
    total_moves: int = 0
    avg_reward: Optional[float] = None
    last_action: str = ''
    last_reward: float = 0.0
    episode: int = 0
    last_score: int = 0
    best_score: int = 0
    largest_tile: int = 0
    wins: int = 0


class MetricsPublisher(DisplaySink):
    """
    Collects stats events and publishes them to the dashboard.

    Acts as a bridge between the stats aggregator and the web server:
    stores what the page needs to draw and notifies registered callbacks.
    Per-move updates are throttled; episode and chart updates are not.
    """

    def __init__(self, config: Optional[Config] = None, min_update_interval: float = 0.1):
        self.config = config or Config()
        self.min_update_interval = min_update_interval
        self.state = LoopState(play_speed_ms=self.config.PLAY_SPEED_MS)

        self.move_log: Deque[Dict[str, Any]] = deque(maxlen=self.config.MOVE_LOG_LENGTH)
        self.recent_scores: Deque[List[float]] = deque(maxlen=self.config.RECENT_SCORE_WINDOW)
        self.long_run: Deque[List[float]] = deque(maxlen=self.config.LONG_RUN_HISTORY_LENGTH)
        self.console_logs: Deque[LogMessage] = deque(maxlen=500)

        self._callback_lock = threading.Lock()
        self._on_update_callbacks: List[Callable[[Dict[str, Any]], None]] = []
        self._on_log_callbacks: List[Callable[[LogMessage], None]] = []
        self._last_update_time = 0.0

    # -------------------------------------------------------------------------
    # DisplaySink hooks
    # -------------------------------------------------------------------------

    def show_move(self, readout: MoveReadout) -> None:
        self.state.total_moves = readout.move_count
        self.state.avg_reward = readout.avg_reward
        self.state.last_action = readout.action_label
        self.state.last_reward = readout.last_reward
        self.move_log.appendleft(readout.to_dict())
        self._notify(force=False)

    def show_episode(self, summary: EpisodeSummary) -> None:
        self.state.episode = summary.episode_index
        self.state.last_score = summary.final_score
        self.state.best_score = max(self.state.best_score, summary.final_score)
        self.state.largest_tile = max(self.state.largest_tile, summary.largest_tile_value)
        if summary.won:
            self.state.wins += 1
        self._notify(force=True)

    def add_recent_score(self, point: RecentScorePoint) -> None:
        self.recent_scores.append(list(point))

    def add_long_run(self, point: LongRunPoint) -> None:
        self.long_run.append(list(point))
        self._notify(force=True)

    def clear(self) -> None:
        running, speed = self.state.is_running, self.state.play_speed_ms
        self.state = LoopState(is_running=running, play_speed_ms=speed)
        self.move_log.clear()
        self.recent_scores.clear()
        self.long_run.clear()
        self._notify(force=True)

    # -------------------------------------------------------------------------
    # Loop state
    # -------------------------------------------------------------------------

    def set_running(self, running: bool) -> None:
        self.state.is_running = running
        self._notify(force=True)

    def set_speed(self, interval_ms: int) -> None:
        self.state.play_speed_ms = interval_ms
        self._notify(force=True)

    # -------------------------------------------------------------------------
    # Console and callbacks
    # -------------------------------------------------------------------------

    def log(self, message: str, level: str = "info") -> None:
        """Add a message to the dashboard console."""
        entry = LogMessage(
            timestamp=datetime.now().strftime("%H:%M:%S.%f")[:12],
            level=level,
            message=message,
        )
        self.console_logs.append(entry)
        with self._callback_lock:
            callbacks = self._on_log_callbacks.copy()
        for callback in callbacks:
            callback(entry)

    def get_console_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in list(self.console_logs)[-limit:]]

    def get_snapshot(self) -> Dict[str, Any]:
        """Current state as a JSON-safe dictionary."""
        return _make_json_safe({
            'state': asdict(self.state),
            'move_log': list(self.move_log),
            'recent_scores': list(self.recent_scores),
            'long_run': list(self.long_run),
        })

    def on_update(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        """Register a callback for snapshot updates."""
        with self._callback_lock:
            self._on_update_callbacks.append(callback)

    def on_log(self, callback: Callable[[LogMessage], None]) -> None:
        """Register a callback for console messages."""
        with self._callback_lock:
            self._on_log_callbacks.append(callback)

    def _notify(self, force: bool) -> None:
        now = time.time()
        if not force and now - self._last_update_time < self.min_update_interval:
            return
        self._last_update_time = now
        with self._callback_lock:
            callbacks = self._on_update_callbacks.copy()
        if not callbacks:
            return
        snapshot = self.get_snapshot()
        for callback in callbacks:
            callback(snapshot)


class DashboardLogHandler(logging.Handler):
    """Forwards project log records to the dashboard console."""

    def __init__(self, publisher: MetricsPublisher, level: int = logging.INFO):
        super().__init__(level)
        self.publisher = publisher

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.publisher.log(record.getMessage(), level=record.levelname.lower())
        except Exception:
            self.handleError(record)


class WebDashboard:
    """
    Flask web dashboard for the agent loop.

    Runs a web server in a background thread that serves a live page with
    the move readout, the recent-score and long-run charts, loop controls
    and a console.

    Example:
        >>> dashboard = WebDashboard(loop, port=5000)
        >>> dashboard.start()
        >>> loop.start()
        >>> dashboard.stop()
    """

    CONTROL_ACTIONS = ('start', 'pause', 'reset', 'speed')

    def __init__(self, loop: AgentLoop, config: Optional[Config] = None,
                 port: Optional[int] = None, host: Optional[str] = None):
        """
        Initialize the web dashboard.

        Args:
            loop: Agent loop to display and control
            config: Configuration object (defaults to the loop's)
            port: Port to run the server on
            host: Host address (0.0.0.0 for all interfaces)
        """
        self.loop = loop
        self.config = config or loop.config
        self.port = port if port is not None else self.config.WEB_PORT
        self.host = host if host is not None else self.config.WEB_HOST

        self.publisher = MetricsPublisher(self.config)
        self.publisher.state.play_speed_ms = loop.play_speed_ms
        self.publisher.state.is_running = loop.is_running
        loop.stats.add_sink(self.publisher)

        self._log_handler = DashboardLogHandler(self.publisher)
        logging.getLogger(ROOT_LOGGER_NAME).addHandler(self._log_handler)

        base_dir = os.path.dirname(__file__)
        self.app = Flask(__name__, template_folder=os.path.join(base_dir, 'templates'))
        self.app.config['SECRET_KEY'] = base64.b64encode(os.urandom(24)).decode('utf-8')

        self.socketio = SocketIO(self.app, cors_allowed_origins="*", async_mode='threading')

        self._register_routes()
        self._register_socket_events()

        self._server_thread: Optional[threading.Thread] = None
        self._running = False

    def _register_routes(self) -> None:
        """Register Flask routes."""

        @self.app.route('/')
        def index():
            response = make_response(render_template('dashboard.html'))
            response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
            return response

        @self.app.route('/api/status')
        def api_status():
            snapshot = self.publisher.get_snapshot()
            snapshot['stats'] = _make_json_safe(self.loop.stats.snapshot())
            return jsonify(snapshot)

        @self.app.route('/api/config')
        def api_config():
            return jsonify({
                'game': self.config.GAME_NAME,
                'grid_size': self.config.GRID_SIZE,
                'action_labels': list(self.config.ACTION_LABELS),
                'play_speed_ms': self.loop.play_speed_ms,
                'recent_score_window': self.config.RECENT_SCORE_WINDOW,
                'long_run_every': self.config.LONG_RUN_EVERY,
                'rewards': {
                    'merge': self.config.REWARD_MERGE,
                    'spawn': self.config.REWARD_SPAWN,
                    'no_move': self.config.REWARD_NO_MOVE,
                },
            })

    def _register_socket_events(self) -> None:
        """Register SocketIO events."""

        @self.socketio.on('connect')
        def handle_connect():
            emit('state_update', self.publisher.get_snapshot())
            emit('console_logs', {'logs': self.publisher.get_console_logs(100)})

        @self.socketio.on('control')
        def handle_control(data):
            if not isinstance(data, dict):
                emit('control_error', {'action': None, 'message': f"control payload must be an object, got {data!r}"})
                return
            action = data.get('action')
            try:
                self.handle_control_action(action, data.get('value'))
            except ValueError as e:
                _logger.warning(f"Rejected control '{action}': {e}")
                emit('control_error', {'action': action, 'message': str(e)})
                return
            if action == 'reset':
                emit('stats_reset', {'message': 'Agent reset - starting fresh'})

        def broadcast_update(snapshot):
            if self.socketio and self._running:
                self.socketio.emit('state_update', snapshot)

        def broadcast_log(entry: LogMessage):
            if self.socketio and self._running:
                self.socketio.emit('console_log', entry.to_dict())

        self.publisher.on_update(broadcast_update)
        self.publisher.on_log(broadcast_log)

    def handle_control_action(self, action: Optional[str], value: Any = None) -> None:
        """
        Apply a dashboard control to the agent loop.

        Raises:
            ValueError: Unknown action or bad speed value
        """
        if action == 'start':
            self.loop.start()
            self.publisher.set_running(True)
        elif action == 'pause':
            self.loop.pause()
            self.publisher.set_running(False)
        elif action == 'reset':
            self.loop.reset()
            self.publisher.set_running(self.loop.is_running)
        elif action == 'speed':
            if value is None:
                raise ValueError("speed requires a value in milliseconds")
            try:
                interval_ms = int(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"speed must be an integer number of milliseconds, got {value!r}") from exc
            self.loop.set_speed(interval_ms)
            self.publisher.set_speed(interval_ms)
            self.publisher.set_running(self.loop.is_running)
        else:
            raise ValueError(f"Unknown action {action!r}, expected one of {self.CONTROL_ACTIONS}")

    def start(self) -> None:
        """Start the web server in a background thread."""
        if self._running:
            return
        self._running = True

        # Keep werkzeug and socketio request logging out of the console
        for name in ('werkzeug', 'engineio', 'socketio', 'engineio.server', 'socketio.server'):
            logging.getLogger(name).setLevel(logging.ERROR)

        def run_server():
            _logger.info(f"Web Dashboard running at http://localhost:{self.port}")
            try:
                self.socketio.run(
                    self.app,
                    host=self.host,
                    port=self.port,
                    debug=False,
                    use_reloader=False,
                    log_output=False,
                    allow_unsafe_werkzeug=True
                )
            except Exception as e:
                _logger.error(f"Failed to start web dashboard on port {self.port}: {type(e).__name__}: {e}")
                _logger.error(f"Port {self.port} may already be in use. Try a different port with --port")

        self._server_thread = threading.Thread(target=run_server, name='web-dashboard', daemon=True)
        self._server_thread.start()

    def stop(self) -> None:
        """Stop the web server and detach from the logger."""
        self._running = False
        logging.getLogger(ROOT_LOGGER_NAME).removeHandler(self._log_handler)
        try:
            self.socketio.stop()
        except Exception as e:
            # Daemon thread dies with the process anyway
            _logger.debug(f"Server stop (best effort): {e}")
