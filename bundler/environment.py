"""The environment record handed to the assembler by its invoker."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Mapping

from .errors import ConfigurationError
from .platforms import Platform


_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"", "0", "false", "no", "off"})

# Bundler-native names first, so ``to_mapping`` can use them.
_FLAG_ALIASES: Dict[str, str] = {
    "skipCodeGeneration": "skip_code_generation",
    "skip_code_generation": "skip_code_generation",
    "snapshot": "enable_snapshot",
    "enable_snapshot": "enable_snapshot",
    "uglify": "enable_minify",
    "minify": "enable_minify",
    "enable_minify": "enable_minify",
}


def _coerce_flag(key: str, value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ConfigurationError(f"env.{key} must be a boolean flag, got {value!r}")


@dataclass(frozen=True, slots=True)
class BuildEnvironment:
    platforms: FrozenSet[Platform] = field(default_factory=frozenset)
    skip_code_generation: bool = False
    enable_snapshot: bool = False
    enable_minify: bool = False

    @classmethod
    def for_platform(cls, platform: Platform | str, **flags: bool) -> "BuildEnvironment":
        return cls(platforms=frozenset({Platform(platform)}), **flags)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BuildEnvironment":
        """Build an environment from an ``env`` flag mapping.

        Accepts both the bundler's own flag names (``android``, ``ios``,
        ``skipCodeGeneration``, ``snapshot``, ``uglify``) and the attribute
        names of this class.
        """

        platforms: set[Platform] = set()
        flags: Dict[str, bool] = {}
        platform_names = {platform.value: platform for platform in Platform}
        unknown: list[str] = []
        for raw_key, value in data.items():
            key = str(raw_key).strip()
            if key in platform_names:
                if _coerce_flag(key, value):
                    platforms.add(platform_names[key])
                continue
            attribute = _FLAG_ALIASES.get(key)
            if attribute is None:
                unknown.append(key)
                continue
            flags[attribute] = _coerce_flag(key, value)
        if unknown:
            joined = ", ".join(sorted(unknown))
            raise ConfigurationError(f"Unknown environment flags: {joined}")
        return cls(platforms=frozenset(platforms), **flags)

    @classmethod
    def from_env_args(cls, args: Iterable[str]) -> "BuildEnvironment":
        """Parse ``--env.<name>[=<value>]`` tokens as forwarded by the bundler CLI."""

        data: Dict[str, Any] = {}
        for raw in args:
            text = raw.strip()
            if not text:
                continue
            if not text.startswith("--env."):
                raise ConfigurationError(f"Unexpected argument '{text}'; expected --env.<flag>[=<value>]")
            name, separator, value = text[len("--env."):].partition("=")
            if not name:
                raise ConfigurationError(f"Missing flag name in '{text}'")
            data[name] = value if separator else True
        return cls.from_mapping(data)

    def to_mapping(self) -> Dict[str, bool]:
        data = {platform.value: platform in self.platforms for platform in Platform}
        data.update(
            {
                "skipCodeGeneration": self.skip_code_generation,
                "snapshot": self.enable_snapshot,
                "uglify": self.enable_minify,
            }
        )
        return data


__all__ = ["BuildEnvironment"]
