"""Bundle configuration assembler for android and ios application bundles."""
from __future__ import annotations

from .config import BuildConfiguration, assemble
from .entries import build_entries
from .environment import BuildEnvironment
from .errors import ConfigurationError
from .platforms import Platform, resolve_platform
from .rules import TransformRule, build_rules, match_rule
from .settings import ProjectSettings, load_settings
from .stages import BuildStage, StageKind, build_stages

__all__ = [
    "BuildConfiguration",
    "BuildEnvironment",
    "BuildStage",
    "ConfigurationError",
    "Platform",
    "ProjectSettings",
    "StageKind",
    "TransformRule",
    "assemble",
    "build_entries",
    "build_rules",
    "build_stages",
    "load_settings",
    "match_rule",
    "resolve_platform",
]
