"""Adapters that read mount/flight state from the host game client.

The host object is duck typed. Only ``is_mounted`` is required; everything
else is optional because older clients lack the gliding API and some builds
drop the aura lookup. Capabilities are sampled once when the adapter is built
so a missing API degrades the skyriding check instead of raising on every
poll.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from .condition import SignalSnapshot, SkyridingProbe


SKYRIDING_SPELL_ID = 410137

_LOGGER = logging.getLogger("SkyridingFrameHider.Host")


def _host_callable(host: Any, name: str) -> Optional[Callable[..., Any]]:
    member = getattr(host, name, None)
    return member if callable(member) else None


def _safe_bool(func: Callable[..., Any], *args: Any) -> bool:
    try:
        return bool(func(*args))
    except Exception as exc:
        _LOGGER.debug("Host signal %s failed: %s", getattr(func, "__name__", func), exc)
        return False


class HostSignals:
    """Samples host signals into :class:`SignalSnapshot` objects."""

    def __init__(self, host: Any) -> None:
        self._host = host
        self._is_mounted = _host_callable(host, "is_mounted")
        self._is_flying = _host_callable(host, "is_flying")
        self._gliding_info = _host_callable(host, "get_gliding_info")
        self._aura_lookup = _host_callable(host, "get_player_aura_by_spell_id")
        self._is_secret = _host_callable(host, "is_secret_value")
        self._probes: List[SkyridingProbe] = []
        if self._gliding_info is not None:
            self._probes.append(self._can_glide)
        if self._aura_lookup is not None:
            self._probes.append(self._has_skyriding_aura)

    # Capabilities -------------------------------------------------------

    @property
    def has_gliding_info(self) -> bool:
        return self._gliding_info is not None

    @property
    def has_skyriding_detection(self) -> bool:
        return bool(self._probes)

    # Signals ------------------------------------------------------------

    def is_mounted(self) -> bool:
        if self._is_mounted is None:
            return False
        return _safe_bool(self._is_mounted)

    def is_flying(self) -> bool:
        if self._is_flying is None:
            return False
        return _safe_bool(self._is_flying)

    def is_secret_value(self, value: Any) -> bool:
        if self._is_secret is None:
            return False
        return _safe_bool(self._is_secret, value)

    def snapshot(self) -> SignalSnapshot:
        mounted = self.is_mounted()
        flying = self.is_flying() if mounted else False
        return SignalSnapshot(mounted=mounted, flying=flying, skyriding_probes=tuple(self._probes))

    # Probes -------------------------------------------------------------

    def _can_glide(self) -> bool:
        try:
            info = self._gliding_info()
        except Exception as exc:
            _LOGGER.debug("get_gliding_info failed: %s", exc)
            return False
        if isinstance(info, (tuple, list)):
            # (is_gliding, can_glide, forward_speed)
            return len(info) > 1 and bool(info[1])
        return bool(getattr(info, "can_glide", False))

    def _has_skyriding_aura(self) -> bool:
        try:
            aura = self._aura_lookup(SKYRIDING_SPELL_ID)
        except Exception as exc:
            _LOGGER.debug("Aura lookup for %d failed: %s", SKYRIDING_SPELL_ID, exc)
            return False
        return aura is not None and aura is not False
