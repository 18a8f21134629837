"""Resolve configured frame names to live element handles."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Protocol


_LOGGER = logging.getLogger("SkyridingFrameHider.Registry")


class ElementDirectory(Protocol):
    def resolve(self, name: str) -> Optional[Any]: ...


@dataclass(frozen=True)
class TrackedElement:
    name: str
    handle: Any


class HostElementDirectory:
    """Directory backed by the host's ``get_element(name)`` lookup."""

    def __init__(self, lookup: Optional[Callable[[str], Any]]) -> None:
        self._lookup = lookup

    def resolve(self, name: str) -> Optional[Any]:
        if self._lookup is None:
            return None
        try:
            return self._lookup(name)
        except Exception as exc:
            _LOGGER.debug("Element lookup for %s failed: %s", name, exc)
            return None


class ElementRegistry:
    """Stateless name -> handle resolution.

    Nothing is cached between calls; the host may destroy and recreate frames
    at any time, so callers rebuild the full tracked list whenever the
    configured names change.
    """

    def __init__(self, directory: ElementDirectory) -> None:
        self._directory = directory

    def resolve(self, names: Iterable[str]) -> List[TrackedElement]:
        tracked: List[TrackedElement] = []
        for name in names:
            handle = self._directory.resolve(name)
            if handle is None:
                continue
            tracked.append(TrackedElement(name=name, handle=handle))
        _LOGGER.debug("Resolved %d tracked frame(s): %s", len(tracked), ", ".join(t.name for t in tracked) or "(none)")
        return tracked

    def exists(self, name: str) -> bool:
        return self._directory.resolve(name) is not None
