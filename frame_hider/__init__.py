from .condition import DEFAULT_MODE, HideMode, SignalSnapshot, should_hide
from .element_registry import ElementRegistry, HostElementDirectory, TrackedElement
from .engine import (
    FrameAlreadyTrackedError,
    FrameHiderEngine,
    FrameHiderError,
    FrameNotFoundError,
    FrameNotTrackedError,
    FrameStatus,
    InvalidModeError,
)
from .host_signals import SKYRIDING_SPELL_ID, HostSignals
from .poll_loop import POLL_INTERVAL_SECONDS, EngineState, PeriodicTask, PollLoop
from .preferences import Preferences
from .slash_commands import SlashCommandHelper, build_command_helper
from .visibility import SavedState, VisibilityController

__all__ = [
    "DEFAULT_MODE",
    "HideMode",
    "SignalSnapshot",
    "should_hide",
    "ElementRegistry",
    "HostElementDirectory",
    "TrackedElement",
    "FrameAlreadyTrackedError",
    "FrameHiderEngine",
    "FrameHiderError",
    "FrameNotFoundError",
    "FrameNotTrackedError",
    "FrameStatus",
    "InvalidModeError",
    "SKYRIDING_SPELL_ID",
    "HostSignals",
    "POLL_INTERVAL_SECONDS",
    "EngineState",
    "PeriodicTask",
    "PollLoop",
    "Preferences",
    "SlashCommandHelper",
    "build_command_helper",
    "SavedState",
    "VisibilityController",
]
