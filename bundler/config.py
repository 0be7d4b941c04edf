"""Assemble the complete bundle configuration handed to the bundler engine."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple
import logging

from .entries import EntryMap, build_entries
from .environment import BuildEnvironment
from .platforms import Platform, resolve_platform
from .rules import TransformRule, build_rules
from .settings import ProjectSettings
from .stages import BuildStage, build_base_stages, build_stages


logger = logging.getLogger(__name__)

TARGET_RUNTIME = "nativescript"


@dataclass(frozen=True, slots=True)
class TargetDescriptor:
    platform: Platform
    runtime: str = TARGET_RUNTIME

    def to_mapping(self) -> Dict[str, str]:
        return {"runtime": self.runtime, "platform": self.platform.value}


@dataclass(frozen=True, slots=True)
class OutputDescriptor:
    path: Path
    filename: str = "[name].js"
    library_target: str = "commonjs2"
    pathinfo: bool = True

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "pathinfo": self.pathinfo,
            "path": str(self.path),
            "libraryTarget": self.library_target,
            "filename": self.filename,
        }


@dataclass(frozen=True, slots=True)
class ResolutionDescriptor:
    alias: Mapping[str, str]
    extensions: Tuple[str, ...] = (".js", ".ts", ".css")
    # Core modules are searched before the generic module directory.
    modules: Tuple[str, ...] = ("node_modules/tns-core-modules", "node_modules")
    # Linked development packages resolve at their link location.
    symlinks: bool = False

    @classmethod
    def for_context(cls, context_root: Path) -> "ResolutionDescriptor":
        return cls(alias=MappingProxyType({"~": str(context_root)}))

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "extensions": list(self.extensions),
            "modules": list(self.modules),
            "alias": dict(self.alias),
            "symlinks": self.symlinks,
        }


@dataclass(frozen=True, slots=True)
class NodeShims:
    """Host shims disabled because they conflict with the mobile runtime."""

    http: bool = False
    timers: bool = False
    set_immediate: bool = False
    fs: str = "empty"

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "http": self.http,
            "timers": self.timers,
            "setImmediate": self.set_immediate,
            "fs": self.fs,
        }


@dataclass(frozen=True, slots=True)
class BuildConfiguration:
    context: Path
    target: TargetDescriptor
    entry: EntryMap
    output: OutputDescriptor
    resolve: ResolutionDescriptor
    rules: Tuple[TransformRule, ...]
    stages: Tuple[BuildStage, ...] = ()
    node: NodeShims = field(default_factory=NodeShims)

    def stage_names(self) -> Tuple[str, ...]:
        return tuple(stage.name.value for stage in self.stages)

    def to_mapping(self) -> Dict[str, Any]:
        """Return the configuration in the shape the bundler engine reads."""

        return {
            "context": str(self.context),
            "target": self.target.to_mapping(),
            "entry": dict(self.entry),
            "output": self.output.to_mapping(),
            "resolve": self.resolve.to_mapping(),
            "node": self.node.to_mapping(),
            "module": {"rules": [rule.to_mapping(self.context) for rule in self.rules]},
            "plugins": [stage.to_mapping() for stage in self.stages],
        }


def assemble(env: BuildEnvironment, settings: ProjectSettings | None = None) -> BuildConfiguration:
    """Build the configuration for ``env``.

    The base configuration carries the fixed stages; the returned value is a
    copy with the optional stages appended. The snapshot stage embeds the
    configuration carrying every stage except itself.
    """

    settings = settings or ProjectSettings()
    platform = resolve_platform(env)
    context_root = settings.context_root

    base = BuildConfiguration(
        context=context_root,
        target=TargetDescriptor(platform),
        entry=build_entries(env),
        output=OutputDescriptor(path=settings.app_path(platform)),
        resolve=ResolutionDescriptor.for_context(context_root),
        rules=build_rules(env),
        stages=build_base_stages(platform, env, settings),
    )
    configuration = replace(base, stages=build_stages(platform, env, base, settings))
    logger.debug(
        "Assembled %s configuration with stages: %s",
        platform.value,
        ", ".join(configuration.stage_names()),
    )
    return configuration


__all__ = [
    "TARGET_RUNTIME",
    "BuildConfiguration",
    "NodeShims",
    "OutputDescriptor",
    "ResolutionDescriptor",
    "TargetDescriptor",
    "assemble",
]
