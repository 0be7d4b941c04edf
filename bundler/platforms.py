"""Target platform enumeration and resolution."""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Tuple
import logging

from .errors import ConfigurationError

if TYPE_CHECKING:  # pragma: no cover
    from .environment import BuildEnvironment


logger = logging.getLogger(__name__)


class Platform(str, Enum):
    ANDROID = "android"
    IOS = "ios"


PLATFORM_PRIORITY: Tuple[Platform, ...] = (Platform.ANDROID, Platform.IOS)
"""Order in which platform flags are inspected."""

# Order handed to the compiler integration stage.
SUPPORTED_PLATFORMS: Tuple[str, ...] = (Platform.IOS.value, Platform.ANDROID.value)


def resolve_platform(env: "BuildEnvironment") -> Platform:
    """Return the single platform selected by ``env``.

    Raises :class:`ConfigurationError` when no platform flag is set or when
    more than one is.
    """

    selected = [platform for platform in PLATFORM_PRIORITY if platform in env.platforms]
    if not selected:
        raise ConfigurationError("no target platform")
    if len(selected) > 1:
        joined = ", ".join(platform.value for platform in selected)
        raise ConfigurationError(f"multiple target platforms selected: {joined}")
    logger.debug("Resolved target platform %s", selected[0].value)
    return selected[0]


__all__ = ["PLATFORM_PRIORITY", "SUPPORTED_PLATFORMS", "Platform", "resolve_platform"]
