"""Helpers for responding to ``/sfh`` chat commands.

The plugin has no settings window, so every configuration change goes through
the host's slash-command box: ``/sfh add <frame>``, ``/sfh remove <frame>``,
``/sfh list`` and ``/sfh mode [skyriding|flying|mounted]``. Parsing lives here
so :mod:`load` only has to forward the raw message.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, List, Optional, Sequence

from .condition import MODE_NAMES, HideMode
from .engine import (
    FrameAlreadyTrackedError,
    FrameHiderError,
    FrameNotFoundError,
    FrameNotTrackedError,
    FrameStatus,
    InvalidModeError,
)


_LOGGER = logging.getLogger("SkyridingFrameHider.Commands")

DEFAULT_PREFIXES = ("/sfh", "/skyridingframehider")

MSG_TAG = "|cFF33AAFF[SFH]|r "
ERROR_TAG = "|cFFFF3333[SFH]|r "
SUCCESS_TAG = "|cFF33FF33[SFH]|r "
HIGHLIGHT = "|cFFFFFF00{}|r"
FOUND_LABEL = "|cFF33FF33[found]|r"
NOT_FOUND_LABEL = "|cFFFF3333[not found]|r"


@dataclass
class _FrameCommandContext:
    """Lightweight indirection that exposes just the callbacks we need."""

    send_message: Callable[[str], None]
    add_frame: Optional[Callable[[str], str]] = None
    remove_frame: Optional[Callable[[str], str]] = None
    list_frames: Optional[Callable[[], Sequence[FrameStatus]]] = None
    get_mode: Optional[Callable[[], HideMode]] = None
    set_mode: Optional[Callable[[str], HideMode]] = None


def _normalise_prefix(value: str) -> str:
    text = (value or "").strip()
    if not text.startswith("/"):
        text = "/" + text
    return text.lower()


class SlashCommandHelper:
    """Parse ``/sfh`` messages and dispatch frame hider commands."""

    def __init__(self, context: _FrameCommandContext, prefixes: Sequence[str] = DEFAULT_PREFIXES) -> None:
        self._ctx = context
        normalised: List[str] = []
        for prefix in prefixes:
            if not prefix:
                continue
            value = _normalise_prefix(prefix)
            if value not in normalised:
                normalised.append(value)
        self._prefixes = normalised or [DEFAULT_PREFIXES[0]]
        _LOGGER.debug("Configured frame hider command prefixes: %s", ", ".join(self._prefixes))
        primary = self._prefixes[0]
        modes = "|".join(MODE_NAMES)
        self._help_lines = [
            MSG_TAG + "SkyridingFrameHider commands:",
            "  " + HIGHLIGHT.format(f"{primary} add <framename>") + " - Add a frame to hide",
            "  " + HIGHLIGHT.format(f"{primary} remove <framename>") + " - Remove a frame",
            "  " + HIGHLIGHT.format(f"{primary} list") + " - List tracked frames",
            "  " + HIGHLIGHT.format(f"{primary} mode [{modes}]") + " - Set hide mode",
            "  Modes:",
            "    " + HIGHLIGHT.format("skyriding") + " - Only hide while skyriding (default)",
            "    " + HIGHLIGHT.format("flying") + " - Hide while flying (skyriding + regular)",
            "    " + HIGHLIGHT.format("mounted") + " - Hide whenever mounted",
        ]

    # Public API ---------------------------------------------------------

    @property
    def prefixes(self) -> List[str]:
        return list(self._prefixes)

    def handle_message(self, message: object) -> bool:
        """Attempt to process a chat message.

        Returns ``True`` when the message used one of the frame hider prefixes.
        """

        if not isinstance(message, str):
            return False
        text = message.strip()
        lowered = text.lower()
        for prefix in self._prefixes:
            if lowered != prefix and not lowered.startswith(prefix + " "):
                continue
            content = text[len(prefix) :].strip()
            self.handle_arguments(content)
            return True
        return False

    def handle_arguments(self, content: str) -> None:
        """Dispatch the text that followed the slash command."""

        tokens = content.split() if content else []
        command = tokens[0].lower() if tokens else ""
        param = tokens[1] if len(tokens) > 1 else ""
        _LOGGER.debug("Frame hider command: %r", content)
        if command == "add":
            self._add(param)
        elif command == "remove":
            self._remove(param)
        elif command == "list":
            self._list()
        elif command == "mode":
            self._mode(param)
        else:
            self._emit_help()

    # Implementation details --------------------------------------------

    def _say(self, text: str) -> None:
        self._ctx.send_message(MSG_TAG + text)

    def _error(self, text: str) -> None:
        self._ctx.send_message(ERROR_TAG + text)

    def _success(self, text: str) -> None:
        self._ctx.send_message(SUCCESS_TAG + text)

    def _emit_help(self) -> None:
        for line in self._help_lines:
            self._ctx.send_message(line)

    def _unavailable(self) -> None:
        self._error("Frame hider is not ready yet; try again after login.")

    def _add(self, name: str) -> None:
        if not name:
            self._say(f"Usage: {self._prefixes[0]} add <framename>")
            return
        callback = self._ctx.add_frame
        if callback is None:
            self._unavailable()
            return
        try:
            added = callback(name)
        except FrameNotFoundError:
            self._error(f"Frame not found: {name}")
            self._say("Make sure the frame exists and the name is correct.")
        except FrameAlreadyTrackedError:
            self._say(f"Frame already tracked: {name}")
        except FrameHiderError as exc:
            self._error(str(exc))
        except Exception as exc:
            _LOGGER.warning("Add frame callback failed: %s", exc)
            self._error("Adding the frame failed; see the log for details.")
        else:
            self._success(f"Added frame: {added}")

    def _remove(self, name: str) -> None:
        if not name:
            self._say(f"Usage: {self._prefixes[0]} remove <framename>")
            return
        callback = self._ctx.remove_frame
        if callback is None:
            self._unavailable()
            return
        try:
            removed = callback(name)
        except FrameNotTrackedError:
            self._error(f"Frame not in tracked list: {name}")
        except FrameHiderError as exc:
            self._error(str(exc))
        except Exception as exc:
            _LOGGER.warning("Remove frame callback failed: %s", exc)
            self._error("Removing the frame failed; see the log for details.")
        else:
            self._success(f"Removed frame: {removed}")

    def _list(self) -> None:
        callback = self._ctx.list_frames
        if callback is None:
            self._unavailable()
            return
        statuses = list(callback())
        self._say("Tracked frames:")
        if not statuses:
            self._ctx.send_message("  (none)")
            return
        for status in statuses:
            label = FOUND_LABEL if status.found else NOT_FOUND_LABEL
            self._ctx.send_message(f"  {status.index}. {status.name} {label}")

    def _mode(self, value: str) -> None:
        available = ", ".join(MODE_NAMES)
        if not value:
            getter = self._ctx.get_mode
            if getter is None:
                self._unavailable()
                return
            self._say("Current mode: " + HIGHLIGHT.format(getter().value))
            self._say(f"Available modes: {available}")
            return
        callback = self._ctx.set_mode
        if callback is None:
            self._unavailable()
            return
        try:
            mode = callback(value.lower())
        except InvalidModeError:
            self._error(f"Invalid mode: {value}")
            self._say(f"Available modes: {available}")
        else:
            self._success(f"Mode set to: {mode.value}")


def build_command_helper(
    engine: object,
    send_message: Callable[[str], None],
    logger: Optional[logging.Logger] = None,
    *,
    prefixes: Sequence[str] = DEFAULT_PREFIXES,
) -> SlashCommandHelper:
    """Construct a :class:`SlashCommandHelper` wired to ``engine``."""

    log = logger or _LOGGER

    def _send(text: str) -> None:
        try:
            send_message(text)
        except Exception as exc:
            log.warning("Failed to send chat response '%s': %s", text, exc)

    def _get_mode() -> HideMode:
        return getattr(engine, "mode")

    context = _FrameCommandContext(
        send_message=_send,
        add_frame=getattr(engine, "add", None),
        remove_frame=getattr(engine, "remove", None),
        list_frames=getattr(engine, "frame_statuses", None),
        get_mode=_get_mode if hasattr(engine, "mode") else None,
        set_mode=getattr(engine, "set_mode", None),
    )
    return SlashCommandHelper(context, prefixes)
