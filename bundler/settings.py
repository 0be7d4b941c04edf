"""Project settings: where the application lives and how reports are named."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Sequence, Tuple
import json
import logging
import re
import tomllib

import yaml

from .errors import ConfigurationError
from .platforms import Platform


logger = logging.getLogger(__name__)

ConfigLoader = Callable[[str], Any]

SETTINGS_STEM = "bundler"

FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": tomllib.loads,
    ".json": json.loads,
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
}
"""Settings file suffixes and the parser for each file's text."""

# The native CLI names the Xcode project after the package with these removed.
_IOS_NAME_STRIP = re.compile(r"[^A-Za-z0-9]")

# Identifiers the compiler integration needs to survive name mangling.
DEFAULT_MANGLE_EXCLUDES: Tuple[str, ...] = (
    "AbsoluteLayout",
    "ActionBar",
    "ActionItem",
    "ActivityIndicator",
    "Button",
    "ContentView",
    "DatePicker",
    "DockLayout",
    "FlexboxLayout",
    "Frame",
    "GridLayout",
    "HtmlView",
    "Image",
    "Label",
    "ListPicker",
    "ListView",
    "NavigationButton",
    "Page",
    "Placeholder",
    "Progress",
    "ProxyViewContainer",
    "Repeater",
    "ScrollView",
    "SearchBar",
    "SegmentedBar",
    "SegmentedBarItem",
    "Slider",
    "StackLayout",
    "Switch",
    "TabView",
    "TabViewItem",
    "TextField",
    "TextView",
    "TimePicker",
    "WebView",
    "WrapLayout",
    "FormattedString",
    "Span",
)


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Parse the settings file at ``path`` into a mapping."""

    try:
        parse = FILE_LOADERS[path.suffix.lower()]
    except KeyError:
        raise ValueError(
            f"Cannot read settings from '{path.name}': expected one of {', '.join(FILE_LOADERS)}"
        ) from None

    data = parse(path.read_text(encoding="utf-8"))
    if not isinstance(data, Mapping):
        raise TypeError(f"Settings file '{path}' must hold a mapping, not {type(data).__name__}")
    return data


def find_settings_file(project_root: Path) -> Path | None:
    """Return the single ``bundler.*`` settings file under ``project_root``, if any."""

    found: Path | None = None
    for suffix in FILE_LOADERS:
        candidate = project_root / f"{SETTINGS_STEM}{suffix}"
        if not candidate.is_file():
            continue
        if found is not None:
            raise ConfigurationError(
                f"Multiple settings files found: '{found.name}' and '{candidate.name}'. "
                "Only one format per project is allowed."
            )
        found = candidate
    return found


def _normalize_string_list(value: Any, *, field_name: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value.strip(),) if value.strip() else ()
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        items: list[str] = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError(f"{field_name} entries must be strings")
            if item.strip():
                items.append(item.strip())
        return tuple(items)
    raise ConfigurationError(f"{field_name} must be a string or sequence of strings")


@dataclass(frozen=True, slots=True)
class ProjectSettings:
    project_root: Path = field(default_factory=Path.cwd)
    app_dir: str = "app"
    report_dir: str = "report"
    entry_module: str = "app/app.module#AppModule"
    ios_project_name: str | None = None
    mangle_excludes: Tuple[str, ...] = DEFAULT_MANGLE_EXCLUDES

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, project_root: Path) -> "ProjectSettings":
        section = data.get("bundler", data)
        if not isinstance(section, Mapping):
            raise ConfigurationError("[bundler] section must be a mapping")

        allowed_keys = {"app_dir", "report_dir", "entry_module", "ios_project_name", "mangle_excludes"}
        unknown = {str(key) for key in section.keys() if str(key) not in allowed_keys}
        if unknown:
            joined = ", ".join(sorted(unknown))
            raise ConfigurationError(f"Settings contain unknown keys: {joined}")

        kwargs: Dict[str, Any] = {"project_root": project_root.resolve()}
        for key in ("app_dir", "report_dir", "entry_module", "ios_project_name"):
            value = section.get(key)
            if value is None:
                continue
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(f"{key} must be a non-empty string")
            kwargs[key] = value.strip()
        if "mangle_excludes" in section:
            kwargs["mangle_excludes"] = _normalize_string_list(
                section["mangle_excludes"],
                field_name="mangle_excludes",
            )
        return cls(**kwargs)

    @property
    def context_root(self) -> Path:
        return (self.project_root / self.app_dir).resolve()

    @property
    def report_root(self) -> Path:
        return self.project_root / self.report_dir

    def app_path(self, platform: Platform) -> Path:
        """Directory inside ``platforms/`` the native project loads the bundle from."""

        if platform is Platform.ANDROID:
            relative = Path("platforms", "android", "app", "src", "main", "assets", "app")
        else:
            name = self.ios_project_name or _IOS_NAME_STRIP.sub("", self.project_root.resolve().name)
            relative = Path("platforms", "ios", name, "app")
        return (self.project_root / relative).resolve()


def load_settings(project_root: Path | None = None) -> ProjectSettings:
    """Load settings for ``project_root``, falling back to defaults when no file exists."""

    root = (project_root or Path.cwd()).resolve()
    path = find_settings_file(root)
    if path is None:
        logger.debug("No settings file under %s, using defaults", root)
        return ProjectSettings(project_root=root)
    logger.debug("Loading settings from %s", path)
    return ProjectSettings.from_mapping(load_config_file(path), project_root=root)


__all__ = [
    "DEFAULT_MANGLE_EXCLUDES",
    "FILE_LOADERS",
    "ProjectSettings",
    "find_settings_file",
    "load_config_file",
    "load_settings",
]
