from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import pytest

from frame_hider.condition import HideMode
from frame_hider.engine import (
    GLIDING_API_WARNING,
    NO_SKYRIDING_SIGNAL_WARNING,
    FrameAlreadyTrackedError,
    FrameHiderEngine,
    FrameNotFoundError,
    FrameNotTrackedError,
    FrameStatus,
    InvalidModeError,
)
from frame_hider.host_signals import SKYRIDING_SPELL_ID
from frame_hider.preferences import Preferences
from frame_hider.visibility import HIDDEN_ALPHA


class _StubFrame:
    def __init__(self, alpha: float = 1.0, mouse: bool = True) -> None:
        self.alpha = alpha
        self.mouse = mouse
        self.alpha_writes: list[float] = []

    def get_alpha(self) -> float:
        return self.alpha

    def set_alpha(self, value: float) -> None:
        self.alpha = value
        self.alpha_writes.append(value)

    def is_mouse_enabled(self) -> bool:
        return self.mouse

    def enable_mouse(self, enabled: bool) -> None:
        self.mouse = enabled


class _StubHost:
    def __init__(self) -> None:
        self.mounted = False
        self.flying = False
        self.can_glide = False
        self.auras: set[int] = set()
        self.frames: dict[str, _StubFrame] = {}

    def is_mounted(self) -> bool:
        return self.mounted

    def is_flying(self) -> bool:
        return self.flying

    def get_gliding_info(self) -> tuple[bool, bool, float]:
        return self.can_glide, self.can_glide, 0.0

    def get_player_aura_by_spell_id(self, spell_id: int):
        return {"spellId": spell_id} if spell_id in self.auras else None

    def get_element(self, name: str) -> Optional[_StubFrame]:
        return self.frames.get(name)


class _LegacyHost:
    def __init__(self) -> None:
        self.frames: dict[str, _StubFrame] = {}

    def is_mounted(self) -> bool:
        return True

    def is_flying(self) -> bool:
        return True

    def get_element(self, name: str) -> Optional[_StubFrame]:
        return self.frames.get(name)


class _FakeTimer:
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def start(self) -> None:
        return

    def cancel(self) -> None:
        self.cancelled = True


class _TimerFactory:
    def __init__(self) -> None:
        self.timers: list[_FakeTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> _FakeTimer:
        timer = _FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    def tick(self) -> None:
        self.timers[-1].callback()


@pytest.fixture
def host() -> _StubHost:
    stub = _StubHost()
    stub.frames["BuffFrame"] = _StubFrame(alpha=0.9)
    stub.frames["MinimapCluster"] = _StubFrame(alpha=1.0)
    return stub


@pytest.fixture
def prefs(tmp_path: Path) -> Preferences:
    preferences = Preferences(tmp_path)
    preferences.frame_names = ["BuffFrame"]
    return preferences


def _engine(host: object, prefs: Preferences, notices: Optional[list[str]] = None):
    timers = _TimerFactory()
    engine = FrameHiderEngine(
        host,
        prefs,
        notify=notices.append if notices is not None else None,
        timer_factory=timers,
    )
    return engine, timers


def test_skyriding_scenario_trace(host: _StubHost, prefs: Preferences) -> None:
    engine, timers = _engine(host, prefs)
    buff = host.frames["BuffFrame"]

    engine.on_login()
    assert engine.polling is False
    assert buff.alpha_writes == []

    host.mounted = True
    engine.on_host_event("PLAYER_MOUNT_DISPLAY_CHANGED")
    assert engine.polling is True
    assert buff.alpha_writes == []

    host.flying = True
    host.can_glide = True
    timers.tick()
    assert buff.alpha == HIDDEN_ALPHA
    assert engine.controller.is_hidden(buff) is True

    timers.tick()
    timers.tick()
    assert buff.alpha_writes == [HIDDEN_ALPHA]


def test_dismount_restores_frames(host: _StubHost, prefs: Preferences) -> None:
    engine, timers = _engine(host, prefs)
    engine.on_login()
    host.mounted = host.flying = True
    host.auras.add(SKYRIDING_SPELL_ID)
    engine.on_host_event("UNIT_AURA")
    assert host.frames["BuffFrame"].alpha == HIDDEN_ALPHA

    host.mounted = host.flying = False
    engine.on_host_event("PLAYER_MOUNT_DISPLAY_CHANGED")

    assert engine.polling is False
    assert timers.timers[-1].cancelled is True
    assert host.frames["BuffFrame"].alpha == 0.9
    assert engine.controller.hidden_count == 0


def test_events_before_login_are_ignored(host: _StubHost, prefs: Preferences) -> None:
    engine, timers = _engine(host, prefs)
    host.mounted = True
    assert engine.on_host_event("PLAYER_MOUNT_DISPLAY_CHANGED") is False
    assert engine.on_host_event("SOMETHING_ELSE") is False
    assert timers.timers == []


def test_mode_change_restores_before_applying(host: _StubHost, prefs: Preferences) -> None:
    prefs.mode = HideMode.MOUNTED
    engine, _timers = _engine(host, prefs)
    host.mounted = True
    engine.on_login()
    buff = host.frames["BuffFrame"]
    assert buff.alpha == HIDDEN_ALPHA

    engine.set_mode("flying")

    assert buff.alpha == 0.9
    assert engine.controller.hidden_count == 0
    assert engine.state.last_should_hide is False
    assert prefs.mode is HideMode.FLYING


def test_mode_change_rehides_when_new_mode_matches(host: _StubHost, prefs: Preferences) -> None:
    prefs.mode = HideMode.MOUNTED
    engine, _timers = _engine(host, prefs)
    host.mounted = host.flying = True
    engine.on_login()
    buff = host.frames["BuffFrame"]

    engine.set_mode("flying")

    assert buff.alpha_writes == [HIDDEN_ALPHA, 0.9, HIDDEN_ALPHA]
    assert engine.controller.saved_state(buff).alpha == 0.9


def test_invalid_mode_rejected(host: _StubHost, prefs: Preferences) -> None:
    engine, _timers = _engine(host, prefs)
    with pytest.raises(InvalidModeError):
        engine.set_mode("gliding")
    assert prefs.mode is HideMode.SKYRIDING


def test_remove_hidden_frame_restores_it(host: _StubHost, prefs: Preferences) -> None:
    prefs.mode = HideMode.MOUNTED
    prefs.frame_names = ["BuffFrame", "MinimapCluster"]
    engine, _timers = _engine(host, prefs)
    host.mounted = True
    engine.on_login()
    buff, minimap = host.frames["BuffFrame"], host.frames["MinimapCluster"]
    assert buff.alpha == minimap.alpha == HIDDEN_ALPHA

    engine.remove("BuffFrame")

    assert buff.alpha == 0.9
    assert engine.controller.is_hidden(buff) is False
    assert minimap.alpha == HIDDEN_ALPHA
    assert [t.name for t in engine.state.tracked] == ["MinimapCluster"]
    assert prefs.frame_names == ["MinimapCluster"]


def test_add_while_condition_holds_hides_new_frame(host: _StubHost, prefs: Preferences) -> None:
    prefs.mode = HideMode.MOUNTED
    engine, _timers = _engine(host, prefs)
    host.mounted = True
    engine.on_login()

    engine.add("MinimapCluster")

    assert host.frames["MinimapCluster"].alpha == HIDDEN_ALPHA
    assert host.frames["BuffFrame"].alpha == HIDDEN_ALPHA
    assert prefs.frame_names == ["BuffFrame", "MinimapCluster"]


def test_add_rejects_unknown_and_duplicate_frames(host: _StubHost, prefs: Preferences) -> None:
    engine, _timers = _engine(host, prefs)
    engine.on_login()
    with pytest.raises(FrameNotFoundError):
        engine.add("NoSuchFrame")
    with pytest.raises(FrameNotFoundError):
        engine.add("   ")
    with pytest.raises(FrameAlreadyTrackedError):
        engine.add("BuffFrame")
    with pytest.raises(FrameNotTrackedError):
        engine.remove("MinimapCluster")
    assert prefs.frame_names == ["BuffFrame"]


def test_control_operations_persist_preferences(host: _StubHost, prefs: Preferences, tmp_path: Path) -> None:
    engine, _timers = _engine(host, prefs)
    engine.on_login()
    engine.add("MinimapCluster")
    engine.set_mode("mounted")

    reloaded = Preferences(tmp_path)
    assert reloaded.frame_names == ["BuffFrame", "MinimapCluster"]
    assert reloaded.mode is HideMode.MOUNTED


def test_frame_statuses_report_missing_frames(host: _StubHost, prefs: Preferences) -> None:
    prefs.frame_names = ["BuffFrame", "AddonFrame"]
    engine, _timers = _engine(host, prefs)
    engine.on_login()

    assert engine.frame_statuses() == [
        FrameStatus(index=1, name="BuffFrame", found=True),
        FrameStatus(index=2, name="AddonFrame", found=False),
    ]
    assert [t.name for t in engine.state.tracked] == ["BuffFrame"]


def test_entering_world_rebuilds_tracked_frames(host: _StubHost, prefs: Preferences) -> None:
    prefs.mode = HideMode.MOUNTED
    engine, _timers = _engine(host, prefs)
    host.mounted = True
    engine.on_login()
    old = host.frames["BuffFrame"]

    replacement = _StubFrame(alpha=0.6)
    host.frames["BuffFrame"] = replacement
    engine.on_host_event("PLAYER_ENTERING_WORLD")

    assert old.alpha == 0.9
    assert replacement.alpha == HIDDEN_ALPHA
    assert engine.controller.saved_state(replacement).alpha == 0.6
    assert engine.state.tracked[0].handle is replacement


def test_shutdown_restores_everything(host: _StubHost, prefs: Preferences) -> None:
    prefs.mode = HideMode.MOUNTED
    engine, timers = _engine(host, prefs)
    host.mounted = True
    engine.on_login()
    assert engine.polling is True

    engine.shutdown()

    assert host.frames["BuffFrame"].alpha == 0.9
    assert engine.polling is False
    assert timers.timers[-1].cancelled is True
    assert engine.initialized is False


def test_missing_gliding_api_warned_once(prefs: Preferences) -> None:
    legacy = _LegacyHost()
    legacy.frames["BuffFrame"] = _StubFrame()
    notices: list[str] = []
    engine, _timers = _engine(legacy, prefs, notices)

    engine.on_login()
    engine.on_login()

    assert notices == [GLIDING_API_WARNING, NO_SKYRIDING_SIGNAL_WARNING]
    assert legacy.frames["BuffFrame"].alpha_writes == []


def test_full_host_has_no_capability_warnings(host: _StubHost, prefs: Preferences) -> None:
    notices: list[str] = []
    engine, _timers = _engine(host, prefs, notices)
    engine.on_login()
    assert notices == []
