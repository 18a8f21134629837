"""Capture, hide and restore tracked frames.

This is the only module that writes to host elements. Each element's
original alpha and mouse flag are captured once per hide cycle and released
on restore, so a frame is never left invisible without a record of how to
bring it back, and a second hide never captures an already-zeroed alpha.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from .element_registry import TrackedElement


HIDDEN_ALPHA = 0.0

_LOGGER = logging.getLogger("SkyridingFrameHider.Visibility")


@dataclass(frozen=True)
class SavedState:
    alpha: Optional[Any] = None
    mouse_enabled: Optional[bool] = None


@dataclass
class _HiddenEntry:
    name: str
    handle: Any
    state: SavedState


def _member(handle: Any, name: str) -> Optional[Callable[..., Any]]:
    try:
        member = getattr(handle, name, None)
    except Exception:
        return None
    return member if callable(member) else None


def _never_secret(_value: Any) -> bool:
    return False


class VisibilityController:
    """Owns the saved-state table for hidden frames."""

    def __init__(self, is_secret_value: Optional[Callable[[Any], bool]] = None) -> None:
        self._is_secret = is_secret_value or _never_secret
        self._hidden: Dict[Any, _HiddenEntry] = {}

    # Queries ------------------------------------------------------------

    def is_hidden(self, handle: Any) -> bool:
        try:
            return handle in self._hidden
        except TypeError:
            return False

    def saved_state(self, handle: Any) -> Optional[SavedState]:
        try:
            entry = self._hidden.get(handle)
        except TypeError:
            return None
        return entry.state if entry is not None else None

    @property
    def hidden_count(self) -> int:
        return len(self._hidden)

    # Mutations ----------------------------------------------------------

    def hide(self, elements: Iterable[TrackedElement]) -> None:
        for element in elements:
            try:
                entry = self._hidden.get(element.handle)
            except TypeError:
                _LOGGER.debug("Frame %s has an unhashable handle; leaving it alone", element.name)
                continue
            if entry is None:
                state = self._capture(element)
                if state is None:
                    continue
                entry = _HiddenEntry(name=element.name, handle=element.handle, state=state)
                self._hidden[element.handle] = entry
            if not self._apply_hidden(entry):
                # Never leave a saved record for a frame we could not zero.
                del self._hidden[entry.handle]

    def restore(self, elements: Iterable[TrackedElement]) -> None:
        for element in elements:
            try:
                entry = self._hidden.pop(element.handle, None)
            except TypeError:
                continue
            if entry is not None:
                self._write_back(entry)

    def restore_all(self) -> None:
        entries = list(self._hidden.values())
        self._hidden.clear()
        for entry in entries:
            self._write_back(entry)

    def release_untracked(self, tracked: Iterable[TrackedElement]) -> None:
        """Restore hidden frames whose handles are no longer tracked."""

        keep = set()
        for element in tracked:
            try:
                keep.add(element.handle)
            except TypeError:
                continue
        stale = [entry for handle, entry in self._hidden.items() if handle not in keep]
        for entry in stale:
            del self._hidden[entry.handle]
            _LOGGER.debug("Releasing frame %s that is no longer tracked", entry.name)
            self._write_back(entry)

    # Implementation details --------------------------------------------

    def _capture(self, element: TrackedElement) -> Optional[SavedState]:
        handle = element.handle
        get_alpha = _member(handle, "get_alpha")
        if get_alpha is None or _member(handle, "set_alpha") is None:
            _LOGGER.debug("Frame %s does not expose alpha controls; skipping", element.name)
            return None
        try:
            alpha = get_alpha()
        except Exception as exc:
            _LOGGER.debug("Unable to read alpha for %s: %s", element.name, exc)
            return None
        if self._is_secret(alpha):
            _LOGGER.debug("Alpha for %s is protected; skipping this cycle", element.name)
            return None

        mouse_enabled: Optional[bool] = None
        is_mouse_enabled = _member(handle, "is_mouse_enabled")
        if is_mouse_enabled is not None and _member(handle, "enable_mouse") is not None:
            try:
                value = is_mouse_enabled()
            except Exception as exc:
                _LOGGER.debug("Unable to read mouse state for %s: %s", element.name, exc)
                value = None
            if value is not None and not self._is_secret(value):
                mouse_enabled = bool(value)
        return SavedState(alpha=alpha, mouse_enabled=mouse_enabled)

    def _apply_hidden(self, entry: _HiddenEntry) -> bool:
        set_alpha = _member(entry.handle, "set_alpha")
        if set_alpha is None:
            _LOGGER.debug("Frame %s lost its alpha controls", entry.name)
            return False
        try:
            set_alpha(HIDDEN_ALPHA)
        except Exception as exc:
            _LOGGER.debug("Unable to hide %s: %s", entry.name, exc)
            return False
        enable_mouse = _member(entry.handle, "enable_mouse")
        if enable_mouse is not None and entry.state.mouse_enabled:
            try:
                enable_mouse(False)
            except Exception as exc:
                _LOGGER.debug("Unable to disable mouse for %s: %s", entry.name, exc)
        return True

    def _write_back(self, entry: _HiddenEntry) -> None:
        state = entry.state
        if state.alpha is not None:
            set_alpha = _member(entry.handle, "set_alpha")
            if set_alpha is None:
                _LOGGER.debug("Frame %s can no longer be restored; dropping saved state", entry.name)
            else:
                try:
                    set_alpha(state.alpha)
                except Exception as exc:
                    _LOGGER.debug("Unable to restore alpha for %s: %s", entry.name, exc)
        if state.mouse_enabled is not None:
            enable_mouse = _member(entry.handle, "enable_mouse")
            if enable_mouse is None:
                return
            try:
                enable_mouse(state.mouse_enabled)
            except Exception as exc:
                _LOGGER.debug("Unable to restore mouse state for %s: %s", entry.name, exc)
