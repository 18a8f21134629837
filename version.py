"""Skyriding Frame Hider version and the dev-build switch for debug logging."""
from __future__ import annotations

import os
from typing import Optional

__all__ = ["__version__", "is_dev_build", "dev_mode_override", "DEV_MODE_ENV_VAR"]

__version__ = "1.1.0"
DEV_MODE_ENV_VAR = "SFH_DEV_MODE"
DEV_SUFFIX = "-dev"

_SWITCH_VALUES = {
    "1": True,
    "on": True,
    "yes": True,
    "true": True,
    "0": False,
    "off": False,
    "no": False,
    "false": False,
}


def dev_mode_override() -> Optional[bool]:
    """Explicit ``SFH_DEV_MODE`` setting; None when unset or unrecognised."""

    raw = os.environ.get(DEV_MODE_ENV_VAR)
    if raw is None:
        return None
    return _SWITCH_VALUES.get(raw.strip().lower())


def is_dev_build(version: Optional[str] = None) -> bool:
    override = dev_mode_override()
    if override is not None:
        return override
    identifier = __version__ if version is None else version
    return identifier.strip().lower().endswith(DEV_SUFFIX)
