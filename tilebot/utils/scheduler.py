"""
Interval timer used to drive the agent loop.

A single daemon thread calls the function every `interval` seconds. Calls
never overlap: if a call overruns one or more slots, the missed slots are
skipped rather than queued, and the next call is aligned to the following
slot.
"""

import threading
import time
from typing import Callable, Optional

from .logger import get_logger


_logger = get_logger(__name__)


class IntervalTimer:
    """
    Repeating timer.

    Example:
        >>> timer = IntervalTimer(0.2, agent_loop.tick)
        >>> timer.start()
        >>> ...
        >>> timer.cancel()   # waits for an in-flight call to finish
    """

    def __init__(self, interval: float, function: Callable[[], object], name: str = 'interval-timer'):
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self.interval = interval
        self.function = function
        self.name = name
        self.calls = 0
        self.skipped_slots = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("IntervalTimer can only be started once")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self, wait: bool = True) -> None:
        """
        Stop the timer.

        Args:
            wait: Block until an in-flight call has returned. Ignored when
                called from the timer thread itself.
        """
        self._stop_event.set()
        if wait and self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()

    def _run(self) -> None:
        next_run = time.monotonic() + self.interval
        while not self._stop_event.wait(max(0.0, next_run - time.monotonic())):
            try:
                self.function()
            except Exception as e:
                # A failed call must not end the schedule
                _logger.error(f"{self.name}: call raised {type(e).__name__}: {e}")
            self.calls += 1

            next_run += self.interval
            now = time.monotonic()
            if next_run < now:
                missed = int((now - next_run) // self.interval) + 1
                self.skipped_slots += missed
                next_run += missed * self.interval
