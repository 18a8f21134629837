"""Preferences for the Skyriding Frame Hider plugin.

Settings live in the host's saved-variables store when one is available and
are mirrored into a JSON shadow file in the plugin directory, so a restart
stays consistent even if the host store missed a write.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, MutableMapping, Optional

from .condition import DEFAULT_MODE, HideMode


PREFERENCES_FILE = "sfh_settings.json"
CONFIG_PREFIX = "skyriding_frame_hider."
CONFIG_STATE_VERSION = 1
CONFIG_VERSION_KEY = f"{CONFIG_PREFIX}state_version"

LOGGER = logging.getLogger("SkyridingFrameHider.Preferences")


def _config_key(name: str) -> str:
    return f"{CONFIG_PREFIX}{name}"


def _store_get(store: Any, key: str, default: Any) -> Any:
    getter = getattr(store, "get", None)
    if not callable(getter):
        return default
    try:
        value = getter(key, default)
    except TypeError:
        try:
            value = getter(key)
        except Exception:
            return default
    except Exception:
        return default
    return default if value is None else value


def _store_set(store: Any, key: str, value: Any) -> None:
    setter = getattr(store, "set", None)
    try:
        if callable(setter):
            setter(key, value)
        elif isinstance(store, MutableMapping):
            store[key] = value
    except Exception:
        LOGGER.debug("Failed to persist %s into host store", key, exc_info=True)


def _coerce_frame_names(value: Any, default: Iterable[str]) -> List[str]:
    if value is None:
        return list(default)
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return list(default)
    names: List[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        name = item.strip()
        if name and name not in names:
            names.append(name)
    return names


def _coerce_mode(value: Any, default: HideMode) -> HideMode:
    return HideMode.parse(value) or default


@dataclass
class Preferences:
    """JSON-backed frame list and hide mode."""

    plugin_dir: Path
    store: Optional[Any] = None
    frame_names: List[str] = field(default_factory=list)
    mode: HideMode = DEFAULT_MODE

    def __post_init__(self) -> None:
        self.plugin_dir = Path(self.plugin_dir)
        self._path = self.plugin_dir / PREFERENCES_FILE
        if self.store is not None:
            self._load_from_store()
            # Merge in the shadow JSON in case the host store missed a recent update.
            self._load_from_json(silent=True)
            self._persist_to_store()
        else:
            self._load_from_json()
        try:
            self._write_shadow_file()
        except OSError:
            LOGGER.debug("Unable to write initial %s shadow file.", PREFERENCES_FILE, exc_info=True)

    # Persistence ---------------------------------------------------------

    def _load_from_json(self, *, silent: bool = False) -> None:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            if not silent:
                LOGGER.debug("%s is not valid JSON; ignoring contents.", PREFERENCES_FILE)
            return
        if isinstance(data, dict):
            self._apply_raw_data(data)

    def _load_from_store(self) -> None:
        payload: Dict[str, Any] = {
            "frame_names": _store_get(self.store, _config_key("frame_names"), None),
            "mode": _store_get(self.store, _config_key("mode"), None),
        }
        self._apply_raw_data(payload)

    def _apply_raw_data(self, data: Dict[str, Any]) -> None:
        # Missing containers stay empty rather than being re-populated with defaults.
        self.frame_names = _coerce_frame_names(data.get("frame_names"), self.frame_names)
        self.mode = _coerce_mode(data.get("mode"), self.mode)

    def save(self) -> None:
        if self.store is not None:
            self._persist_to_store()
        self._write_shadow_file()

    def _shadow_payload(self) -> Dict[str, Any]:
        return {
            "frame_names": list(self.frame_names),
            "mode": self.mode.value,
        }

    def _write_shadow_file(self) -> None:
        payload = self._shadow_payload()
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def _persist_to_store(self) -> None:
        if self.store is None:
            return
        _store_set(self.store, _config_key("frame_names"), json.dumps(list(self.frame_names)))
        _store_set(self.store, _config_key("mode"), self.mode.value)
        _store_set(self.store, CONFIG_VERSION_KEY, CONFIG_STATE_VERSION)
