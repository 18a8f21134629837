"""Decide whether tracked frames should be hidden for the current mount state."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple


SkyridingProbe = Callable[[], Optional[bool]]


class HideMode(str, Enum):
    SKYRIDING = "skyriding"
    FLYING = "flying"
    MOUNTED = "mounted"

    @classmethod
    def parse(cls, value: object) -> Optional["HideMode"]:
        if isinstance(value, HideMode):
            return value
        token = str(value or "").strip().lower()
        for mode in cls:
            if mode.value == token:
                return mode
        return None


DEFAULT_MODE = HideMode.SKYRIDING
MODE_NAMES: Tuple[str, ...] = tuple(mode.value for mode in HideMode)


@dataclass(frozen=True)
class SignalSnapshot:
    """Host signals sampled for a single evaluation."""

    mounted: bool
    flying: bool
    skyriding_probes: Sequence[SkyridingProbe] = field(default_factory=tuple)

    def skyriding(self) -> bool:
        # Probes are independent detection paths; the first positive wins.
        for probe in self.skyriding_probes:
            if probe():
                return True
        return False


def should_hide(mode: HideMode, signals: SignalSnapshot) -> bool:
    if not signals.mounted:
        return False
    if mode is HideMode.MOUNTED:
        return True
    if not signals.flying:
        return False
    if mode is HideMode.FLYING:
        return True
    return signals.skyriding()
