"""Primary entry point for the Skyriding Frame Hider plugin."""
from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, Optional, Tuple

if __package__:
    from .version import __version__ as SFH_VERSION, DEV_MODE_ENV_VAR, is_dev_build
    from .frame_hider.engine import FrameHiderEngine
    from .frame_hider.preferences import Preferences
    from .frame_hider.qt_elements import QtWidgetDirectory, gui_timer_factory, qt_application_running
    from .frame_hider.slash_commands import MSG_TAG, build_command_helper
else:  # host loads the plugin as top-level modules
    from version import __version__ as SFH_VERSION, DEV_MODE_ENV_VAR, is_dev_build
    from frame_hider.engine import FrameHiderEngine
    from frame_hider.preferences import Preferences
    from frame_hider.qt_elements import QtWidgetDirectory, gui_timer_factory, qt_application_running
    from frame_hider.slash_commands import MSG_TAG, build_command_helper

PLUGIN_NAME = "SkyridingFrameHider"
PLUGIN_VERSION = SFH_VERSION
DEV_BUILD = is_dev_build(SFH_VERSION)
LOGGER_NAME = PLUGIN_NAME
LOG_TAG = PLUGIN_NAME
LOG_LEVEL_ENV_VAR = "SFH_LOG_LEVEL"

DEFAULT_LOG_LEVEL = logging.DEBUG if DEV_BUILD else logging.INFO
_LEVEL_NAME_MAP = {
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": logging.DEBUG,
}

LOGIN_EVENT = "PLAYER_LOGIN"
PLAYER_UNIT = "player"


def _coerce_level(raw: Any) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        token = raw.strip().upper()
        if token.isdigit():
            return int(token)
        return _LEVEL_NAME_MAP.get(token)
    return None


def _resolve_log_level() -> int:
    candidates = [_coerce_level(os.environ.get(LOG_LEVEL_ENV_VAR))]
    host_logger = _host_logger()
    if host_logger is not None:
        candidates.append(host_logger.getEffectiveLevel())
    candidates.append(DEFAULT_LOG_LEVEL)
    for level in candidates:
        if isinstance(level, int) and level != logging.NOTSET:
            return level
    return DEFAULT_LOG_LEVEL


def _effective_log_level(level: Optional[int] = None) -> int:
    if level is None:
        level = _resolve_log_level()
    if DEV_BUILD and level > logging.DEBUG:
        return logging.DEBUG
    return level


def _host_logger() -> Optional[logging.Logger]:
    host = _host
    if host is None:
        return None
    logger_obj = getattr(host, "logger", None)
    return logger_obj if isinstance(logger_obj, logging.Logger) else None


class _HostLogHandler(logging.Handler):
    """Logging bridge that forwards plugin records to the host's logger."""

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno < _effective_log_level():
            return
        message = self.format(record)
        host_logger = _host_logger()
        if host_logger is not None:
            try:
                if host_logger.isEnabledFor(record.levelno):
                    host_logger.log(record.levelno, message)
                return
            except Exception:
                pass
        root_logger = logging.getLogger()
        if root_logger.isEnabledFor(record.levelno):
            root_logger.log(record.levelno, message)


def _configure_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_effective_log_level())
    if not any(getattr(handler, "_sfh_handler", False) for handler in logger.handlers):
        handler = _HostLogHandler()
        handler._sfh_handler = True  # type: ignore[attr-defined]
        formatter = logging.Formatter(f"[%(asctime)s] [{LOG_TAG}] %(message)s", "%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


_host: Optional[Any] = None
LOGGER = _configure_logger()
if DEV_BUILD:
    LOGGER.info(
        "Running Skyriding Frame Hider dev build (%s); override via %s=0 to force release behaviour.",
        SFH_VERSION,
        DEV_MODE_ENV_VAR,
    )


def _element_backend(host: Any) -> Tuple[Optional[Any], Optional[Any]]:
    """Pick the frame directory and poll timer for this host.

    Hosts exposing ``get_element`` use it with plain thread timers. Otherwise,
    inside a running QApplication, frames are widgets found by object name and
    ticks are delivered on the GUI thread.
    """

    if callable(getattr(host, "get_element", None)) or not qt_application_running():
        return None, None
    LOGGER.debug("Host has no get_element; resolving frames as Qt widgets")
    return QtWidgetDirectory(), gui_timer_factory()


class _PluginRuntime:
    """Encapsulates plugin state so host globals stay tidy."""

    def __init__(self, plugin_dir: str, host: Any, preferences: Preferences) -> None:
        self.plugin_dir = Path(plugin_dir)
        self.host = host
        self.preferences = preferences
        self._lock = threading.Lock()
        self._running = False
        directory, timer_factory = _element_backend(host)
        self.engine = FrameHiderEngine(
            host,
            preferences,
            directory=directory,
            notify=self.send_chat,
            timer_factory=timer_factory,
        )
        self._command_helper = build_command_helper(self.engine, self.send_chat, LOGGER)

    # Lifecycle ------------------------------------------------------------

    def start(self) -> str:
        with self._lock:
            if self._running:
                return PLUGIN_NAME
            self._running = True
        LOGGER.info(
            "Plugin started (mode=%s, frames=%s)",
            self.preferences.mode.value,
            ", ".join(self.preferences.frame_names) or "(none)",
        )
        return PLUGIN_NAME

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
        LOGGER.info("Plugin stopping")
        self.engine.shutdown()

    # Host events ----------------------------------------------------------

    def handle_event(self, event: str, *args: Any) -> bool:
        if not self._running or not event:
            return False
        if event == LOGIN_EVENT:
            self.engine.on_login()
            self.send_chat(MSG_TAG + "Loaded. Type |cFFFFFF00/sfh|r for commands.")
            return True
        if event == "UNIT_AURA" and args and args[0] != PLAYER_UNIT:
            return False
        try:
            return self.engine.on_host_event(event)
        except Exception as exc:
            LOGGER.warning("Handling %s failed: %s", event, exc, exc_info=exc)
            return False

    def handle_command(self, message: str) -> bool:
        if not self._running:
            return False
        return self._command_helper.handle_message(message)

    def send_chat(self, text: str) -> None:
        printer = getattr(self.host, "print_message", None)
        if callable(printer):
            try:
                printer(text)
                return
            except Exception as exc:
                LOGGER.debug("Host chat output failed: %s", exc)
        LOGGER.info(text)


# Host hook functions ------------------------------------------------------

_plugin: Optional[_PluginRuntime] = None
_preferences: Optional[Preferences] = None


def plugin_start3(plugin_dir: str, host: Any) -> str:
    """Host entrypoint: load settings and start the runtime once."""
    global _host, _plugin, _preferences
    _host = host
    LOGGER.setLevel(_effective_log_level())
    LOGGER.info("Initialising Skyriding Frame Hider %s from %s", PLUGIN_VERSION, plugin_dir)
    _preferences = Preferences(Path(plugin_dir), store=getattr(host, "saved_variables", None))
    _plugin = _PluginRuntime(plugin_dir, host, _preferences)
    return _plugin.start()


def plugin_stop() -> None:
    """Host entrypoint: restore every frame and stop; idempotent if not running."""
    global _plugin, _preferences, _host
    if _plugin:
        try:
            _plugin.stop()
        finally:
            _plugin = None
    _preferences = None
    _host = None


def host_event(event: str, *args: Any) -> bool:
    if _plugin:
        return _plugin.handle_event(event, *args)
    return False


def slash_command(message: str) -> bool:
    if _plugin:
        return _plugin.handle_command(message)
    return False


def get_engine() -> Optional[FrameHiderEngine]:
    """Expose the running engine for other integrations."""

    if _plugin is None:
        return None
    return _plugin.engine


# Metadata expected by some plugin loaders
name = PLUGIN_NAME
plugin_name = PLUGIN_NAME
version = PLUGIN_VERSION
