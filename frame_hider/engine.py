"""Runtime that ties host events, polling and control operations together."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from .condition import MODE_NAMES, HideMode, should_hide
from .element_registry import ElementDirectory, ElementRegistry, HostElementDirectory
from .host_signals import HostSignals
from .poll_loop import POLL_INTERVAL_SECONDS, EngineState, PollLoop, TimerFactory
from .preferences import Preferences
from .visibility import VisibilityController


GLIDING_API_WARNING = "Requires WoW 10.0.5 or newer for skyriding detection."
NO_SKYRIDING_SIGNAL_WARNING = "No skyriding signal is available; skyriding mode will never hide frames."

RUNTIME_EVENTS = frozenset({"UNIT_AURA", "PLAYER_MOUNT_DISPLAY_CHANGED", "PLAYER_ENTERING_WORLD"})

_LOGGER = logging.getLogger("SkyridingFrameHider.Engine")


class FrameHiderError(Exception):
    """Base class for rejected control operations."""


class FrameNotFoundError(FrameHiderError):
    pass


class FrameAlreadyTrackedError(FrameHiderError):
    pass


class FrameNotTrackedError(FrameHiderError):
    pass


class InvalidModeError(FrameHiderError):
    pass


@dataclass(frozen=True)
class FrameStatus:
    index: int
    name: str
    found: bool


class FrameHiderEngine:
    """Owns the engine state and serialises every entry point on one lock."""

    def __init__(
        self,
        host: Any,
        preferences: Preferences,
        *,
        directory: Optional[ElementDirectory] = None,
        notify: Optional[Callable[[str], None]] = None,
        interval: float = POLL_INTERVAL_SECONDS,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self._prefs = preferences
        self._notify = notify
        self._lock = threading.RLock()
        self._signals = HostSignals(host)
        if directory is None:
            lookup = getattr(host, "get_element", None)
            directory = HostElementDirectory(lookup if callable(lookup) else None)
        self._registry = ElementRegistry(directory)
        self._controller = VisibilityController(self._signals.is_secret_value)
        self.state = EngineState()
        self._poll = PollLoop(
            self.state,
            self._evaluate,
            self._controller,
            lock=self._lock,
            interval=interval,
            timer_factory=timer_factory,
        )
        self._initialized = False
        self._capabilities_reported = False

    @property
    def controller(self) -> VisibilityController:
        return self._controller

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def polling(self) -> bool:
        return self._poll.running

    @property
    def mode(self) -> HideMode:
        return self._prefs.mode

    # Host lifecycle ------------------------------------------------------

    def on_login(self) -> None:
        with self._lock:
            self._report_capabilities()
            self._discover()
            self._initialized = True
            self._refresh()
        _LOGGER.info("Tracking %d frame(s) in %s mode", len(self.state.tracked), self._prefs.mode.value)

    def on_host_event(self, event: str) -> bool:
        """Re-evaluate after a runtime host event; returns False when ignored."""

        if event not in RUNTIME_EVENTS:
            return False
        with self._lock:
            if not self._initialized:
                return False
            if event == "PLAYER_ENTERING_WORLD":
                # Loading screens can recreate frames under the same names.
                self._discover()
            self._refresh()
        return True

    def shutdown(self) -> None:
        with self._lock:
            self._poll.shutdown()
            self._controller.restore_all()
            self.state.last_should_hide = False
            self._initialized = False
        _LOGGER.debug("Engine stopped; all frames restored")

    # Control operations -------------------------------------------------

    def add(self, name: str) -> str:
        frame_name = (name or "").strip()
        with self._lock:
            if not frame_name or not self._registry.exists(frame_name):
                raise FrameNotFoundError(frame_name)
            if frame_name in self._prefs.frame_names:
                raise FrameAlreadyTrackedError(frame_name)
            self._reconfigure(lambda: self._prefs.frame_names.append(frame_name))
        _LOGGER.debug("Added frame %s", frame_name)
        return frame_name

    def remove(self, name: str) -> str:
        frame_name = (name or "").strip()
        with self._lock:
            if frame_name not in self._prefs.frame_names:
                raise FrameNotTrackedError(frame_name)
            self._reconfigure(lambda: self._prefs.frame_names.remove(frame_name))
        _LOGGER.debug("Removed frame %s", frame_name)
        return frame_name

    def frame_statuses(self) -> List[FrameStatus]:
        with self._lock:
            return [
                FrameStatus(index=index, name=name, found=self._registry.exists(name))
                for index, name in enumerate(self._prefs.frame_names, start=1)
            ]

    def set_mode(self, value: str) -> HideMode:
        mode = HideMode.parse(value)
        if mode is None:
            raise InvalidModeError(f"{value} (expected one of: {', '.join(MODE_NAMES)})")

        def _apply() -> None:
            self._prefs.mode = mode

        with self._lock:
            self._reconfigure(_apply)
        _LOGGER.debug("Mode set to %s", mode.value)
        return mode

    # Implementation details --------------------------------------------

    def _evaluate(self) -> bool:
        return should_hide(self._prefs.mode, self._signals.snapshot())

    def _refresh(self) -> None:
        self._poll.update(self._signals.is_mounted())
        self._poll.check()

    def _reconfigure(self, mutate: Callable[[], None]) -> None:
        # Undo the previous configuration's effects before it changes.
        self._controller.restore(self.state.tracked)
        self.state.last_should_hide = False
        mutate()
        try:
            self._prefs.save()
        except OSError as exc:
            _LOGGER.warning("Failed to save preferences: %s", exc)
        if not self._initialized:
            return
        self._discover()
        self._poll.check()

    def _discover(self) -> None:
        tracked = self._registry.resolve(self._prefs.frame_names)
        self._controller.release_untracked(tracked)
        self.state.tracked = tracked
        if self.state.last_should_hide:
            # Recreated frames have no saved state yet; hide is a no-op for the rest.
            self._controller.hide(tracked)

    def _report_capabilities(self) -> None:
        if self._capabilities_reported:
            return
        self._capabilities_reported = True
        if not self._signals.has_gliding_info:
            self._warn(GLIDING_API_WARNING)
        if not self._signals.has_skyriding_detection:
            self._warn(NO_SKYRIDING_SIGNAL_WARNING)

    def _warn(self, message: str) -> None:
        _LOGGER.warning(message)
        if self._notify is None:
            return
        try:
            self._notify(message)
        except Exception as exc:
            _LOGGER.debug("Failed to deliver warning to chat: %s", exc)
