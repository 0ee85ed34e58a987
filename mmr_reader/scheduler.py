"""Fixed-interval polling loop with a synchronized, interruptible shutdown."""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from mmr_reader.errors import LifecycleError

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    STOP_REQUESTED = "stop_requested"


class PollScheduler:
    """
    Runs a callback on a background thread every interval until stopped.

    Ticks never overlap: the callback runs synchronously on the loop thread.
    The next tick is due one interval after the previous tick started, so a
    slow tick pushes the next one back to "immediately after" rather than
    stacking up missed ticks.

    One lock guards the stop and running flags. Two conditions share it:
    _wake interrupts the sleep when a stop is requested, _exited tells the
    stopping caller that the loop is gone.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, name: str = "mmr-poll"):
        self.clock = clock
        self.name = name
        self._lock = threading.Lock()
        self._wake = threading.Condition(self._lock)
        self._exited = threading.Condition(self._lock)
        self._stop_requested = False
        self._running = False
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            if not self._running:
                return SchedulerState.STOPPED
            if self._stop_requested:
                return SchedulerState.STOP_REQUESTED
            return SchedulerState.RUNNING

    @property
    def is_running(self) -> bool:
        return self.state is not SchedulerState.STOPPED

    def start(self, interval_ms: int, on_tick: Callable[[], object]):
        """Start ticking. The first tick fires right away."""
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        with self._lock:
            if self._running:
                raise LifecycleError("Scheduler is already running")
            self._running = True
            self._stop_requested = False
            self._thread = threading.Thread(
                target=self._loop,
                args=(interval_ms / 1000, on_tick),
                name=self.name,
                daemon=True
            )
            self._thread.start()
        logger.info(f"Polling every {interval_ms}ms")

    def stop(self):
        """
        Stop ticking and wait for the loop thread to exit.

        Once this returns no further tick will run. Calling it from inside a
        tick only requests the stop, since the loop can't exit until the tick
        returns.
        """
        with self._lock:
            if not self._running:
                return
            thread = self._thread
            self._stop_requested = True
            self._wake.notify_all()
            if thread is threading.current_thread():
                return
            while self._running:
                self._exited.wait()

        if thread is not None:
            thread.join()
        logger.info("Polling stopped")

    def _loop(self, interval: float, on_tick: Callable[[], object]):
        next_tick = self.clock()
        try:
            while True:
                with self._lock:
                    if self._stop_requested:
                        break

                if self.clock() >= next_tick:
                    tick_started = self.clock()
                    next_tick = tick_started + interval
                    try:
                        on_tick()
                    except Exception:
                        logger.exception("Unexpected error during tick")

                with self._lock:
                    remaining = next_tick - self.clock()
                    if remaining > 0 and not self._stop_requested:
                        self._wake.wait(remaining)
        finally:
            with self._lock:
                self._running = False
                if self._thread is threading.current_thread():
                    self._thread = None
                self._exited.notify_all()
