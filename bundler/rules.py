"""File category transform rules and first-match evaluation."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union
import re

from .entries import ROOT_STYLESHEET
from .environment import BuildEnvironment


RAW_LOADER = "raw-loader"
RESOLVE_URL_LOADER = "resolve-url-loader"
CSS_LOADER = "nativescript-css-loader"
PLATFORM_CSS_LOADER = "nativescript-dev-webpack/platform-css-loader"
SASS_LOADER = "sass-loader"
COMPILER_LOADER = "@ngtools/webpack"


def tsconfig_path(env: BuildEnvironment) -> str:
    return "tsconfig.json" if env.skip_code_generation else "tsconfig.aot.json"


def _normalize(path: str | Path, context_root: Path | None = None) -> str:
    candidate = Path(path)
    if candidate.is_absolute() and context_root is not None:
        try:
            candidate = candidate.relative_to(context_root)
        except ValueError:
            pass
    text = candidate.as_posix()
    while text.startswith("./"):
        text = text[2:]
    return text


@dataclass(frozen=True, slots=True)
class ExtensionMatch:
    """Matches files by suffix."""

    extensions: Tuple[str, ...]

    def matches(self, path: str) -> bool:
        return PurePosixPath(path).suffix in self.extensions

    def to_pattern(self, context_root: Path | None = None) -> str:
        return "|".join(f"{re.escape(extension)}$" for extension in self.extensions)


@dataclass(frozen=True, slots=True)
class PathMatch:
    """Matches exactly one path relative to the context root."""

    path: str

    def matches(self, path: str) -> bool:
        return path == self.path

    def to_pattern(self, context_root: Path | None = None) -> str:
        if context_root is None:
            return rf"^(\./)?{re.escape(self.path)}$"
        return f"^{re.escape((context_root / self.path).as_posix())}$"


MatchPattern = Union[ExtensionMatch, PathMatch]


@dataclass(frozen=True, slots=True)
class TransformStep:
    loader: str
    options: Mapping[str, Any] | None = None

    def to_mapping(self) -> str | Dict[str, Any]:
        if self.options is None:
            return self.loader
        return {"loader": self.loader, "options": dict(self.options)}


@dataclass(frozen=True, slots=True)
class TransformRule:
    name: str
    match: MatchPattern
    chain: Tuple[TransformStep, ...]
    exclude: MatchPattern | None = None
    extract: str | None = None

    def accepts(self, path: str) -> bool:
        if not self.match.matches(path):
            return False
        return self.exclude is None or not self.exclude.matches(path)

    def to_mapping(self, context_root: Path | None = None) -> Dict[str, Any]:
        data: Dict[str, Any] = {"test": self.match.to_pattern(context_root)}
        if self.exclude is not None:
            data["exclude"] = self.exclude.to_pattern(context_root)
        use: List[Any] = [step.to_mapping() for step in self.chain]
        if self.extract is not None:
            data["use"] = {"extract": self.extract, "use": use}
        else:
            data["use"] = use
        return data


def build_rules(env: BuildEnvironment) -> Tuple[TransformRule, ...]:
    """Return the transform rules in evaluation order.

    The root stylesheet rule must precede the generic stylesheet rule, which
    in turn excludes the root stylesheet.
    """

    root_stylesheet = PathMatch(ROOT_STYLESHEET)
    return (
        TransformRule(
            name="markup",
            match=ExtensionMatch((".html", ".xml")),
            chain=(TransformStep(RAW_LOADER),),
        ),
        TransformRule(
            name="root-stylesheet",
            match=root_stylesheet,
            chain=(
                TransformStep(RESOLVE_URL_LOADER, {"silent": True}),
                TransformStep(CSS_LOADER, {"minimize": False}),
                TransformStep(PLATFORM_CSS_LOADER),
            ),
            extract=ROOT_STYLESHEET,
        ),
        TransformRule(
            name="stylesheet",
            match=ExtensionMatch((".css",)),
            exclude=root_stylesheet,
            chain=(TransformStep(RAW_LOADER),),
        ),
        # Loaders run bottom to top: sass output reaches raw-loader last.
        TransformRule(
            name="sass",
            match=ExtensionMatch((".scss",)),
            chain=(
                TransformStep(RAW_LOADER),
                TransformStep(RESOLVE_URL_LOADER),
                TransformStep(SASS_LOADER),
            ),
        ),
        TransformRule(
            name="typescript",
            match=ExtensionMatch((".ts",)),
            chain=(TransformStep(COMPILER_LOADER, {"tsConfigPath": tsconfig_path(env)}),),
        ),
    )


def match_rule(
    rules: Iterable[TransformRule],
    path: str | Path,
    *,
    context_root: Path | None = None,
) -> TransformRule | None:
    """Return the first rule governing ``path``, or ``None`` when no rule does.

    ``path`` is taken relative to the context root; absolute paths below
    ``context_root`` are made relative first.
    """

    relative = _normalize(path, context_root)
    for rule in rules:
        if rule.accepts(relative):
            return rule
    return None


__all__ = [
    "ExtensionMatch",
    "MatchPattern",
    "PathMatch",
    "TransformRule",
    "TransformStep",
    "build_rules",
    "match_rule",
    "tsconfig_path",
]
