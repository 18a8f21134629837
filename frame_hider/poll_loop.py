"""Mount-gated polling of the hide condition."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from .element_registry import TrackedElement
from .visibility import VisibilityController


POLL_INTERVAL_SECONDS = 0.15

_LOGGER = logging.getLogger("SkyridingFrameHider.Poll")

TimerFactory = Callable[[float, Callable[[], None]], Any]


@dataclass
class EngineState:
    """Mutable engine state shared by the poll loop and control operations."""

    last_should_hide: bool = False
    tracked: List[TrackedElement] = field(default_factory=list)
    poll_active: bool = False


class PeriodicTask:
    """Re-arming timer that invokes ``callback`` every ``interval`` seconds."""

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        *,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self._interval = max(0.01, float(interval))
        self._callback = callback
        self._timer_factory: TimerFactory = timer_factory or threading.Timer
        self._lock = threading.Lock()
        self._timer: Optional[Any] = None
        self._running = False
        # Bumped on every start/cancel; a tick only re-arms its own generation.
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._generation += 1
            self._arm_locked()

    def cancel(self) -> None:
        with self._lock:
            self._running = False
            self._generation += 1
            timer = self._timer
            self._timer = None
        if timer is not None:
            try:
                timer.cancel()
            except Exception as exc:
                _LOGGER.debug("Cancelling poll timer failed: %s", exc)

    def _arm_locked(self) -> None:
        generation = self._generation
        timer = self._timer_factory(self._interval, lambda: self._run(generation))
        try:
            timer.daemon = True
        except (AttributeError, RuntimeError):
            pass
        self._timer = timer
        timer.start()

    def _run(self, generation: int) -> None:
        with self._lock:
            if not self._running or generation != self._generation:
                return
        try:
            self._callback()
        except Exception as exc:
            _LOGGER.warning("Poll tick failed: %s", exc, exc_info=exc)
        with self._lock:
            if self._running and generation == self._generation:
                self._arm_locked()


class PollLoop:
    """STOPPED/RUNNING state machine around a :class:`PeriodicTask`.

    The task only runs while mounted. Each check compares the freshly
    evaluated condition against the last acted-upon decision and calls the
    controller only on a change.
    """

    def __init__(
        self,
        state: EngineState,
        evaluate: Callable[[], bool],
        controller: VisibilityController,
        *,
        lock: Optional[threading.RLock] = None,
        interval: float = POLL_INTERVAL_SECONDS,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self._state = state
        self._evaluate = evaluate
        self._controller = controller
        self._lock = lock or threading.RLock()
        self._task = PeriodicTask(interval, self._tick, timer_factory=timer_factory)

    @property
    def running(self) -> bool:
        return self._state.poll_active

    def update(self, mounted: bool) -> None:
        with self._lock:
            if mounted and not self._state.poll_active:
                self._state.poll_active = True
                self._task.start()
                _LOGGER.debug("Mounted; polling started")
            elif not mounted and self._state.poll_active:
                self._state.poll_active = False
                self._task.cancel()
                _LOGGER.debug("Dismounted; polling stopped")
                # The last tick may have missed the dismount instant.
                self.check()

    def check(self) -> None:
        with self._lock:
            if not self._state.tracked:
                return
            hide = bool(self._evaluate())
            if hide == self._state.last_should_hide:
                return
            self._state.last_should_hide = hide
            if hide:
                _LOGGER.debug("Hiding %d tracked frame(s)", len(self._state.tracked))
                self._controller.hide(self._state.tracked)
            else:
                _LOGGER.debug("Restoring %d tracked frame(s)", len(self._state.tracked))
                self._controller.restore(self._state.tracked)

    def shutdown(self) -> None:
        """Cancel polling without a final check."""

        with self._lock:
            self._state.poll_active = False
            self._task.cancel()

    def _tick(self) -> None:
        with self._lock:
            if not self._state.poll_active:
                return
            self.check()
