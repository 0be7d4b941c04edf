"""Post-bundling stage composition."""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from functools import reduce
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Tuple
import logging

from .entries import BUNDLE_ENTRY, ROOT_STYLESHEET, VENDOR_ENTRY
from .environment import BuildEnvironment
from .platforms import SUPPORTED_PLATFORMS, Platform
from .rules import tsconfig_path
from .settings import ProjectSettings

if TYPE_CHECKING:  # pragma: no cover
    from .config import BuildConfiguration


logger = logging.getLogger(__name__)

COPY_GLOBS: Tuple[str, ...] = (ROOT_STYLESHEET, "css/**", "fonts/**", "**/*.jpg", "**/*.png", "**/*.xml")
SNAPSHOT_TARGET_ARCHS: Tuple[str, ...] = ("arm", "arm64", "ia32")
SNAPSHOT_JAVA_PACKAGES: Tuple[str, ...] = ("tns-core-modules",)
COMPILER_IGNORE: Tuple[str, ...] = ("App_Resources",)

# Compression breaks the android runtime.
COMPRESS_DISABLED_PLATFORM = Platform.ANDROID


class StageKind(str, Enum):
    EXTRACT_STYLESHEET = "ExtractTextPlugin"
    SHARED_CHUNK = "CommonsChunkPlugin"
    DEFINE_CONSTANTS = "DefinePlugin"
    COPY_ASSETS = "CopyWebpackPlugin"
    BUNDLE_STARTER = "GenerateBundleStarterPlugin"
    WORKER_SUPPORT = "NativeScriptWorkerPlugin"
    BUNDLE_ANALYZER = "BundleAnalyzerPlugin"
    COMPILER = "NativeScriptAngularCompilerPlugin"
    SNAPSHOT = "NativeScriptSnapshotPlugin"
    LOADER_OPTIONS = "LoaderOptionsPlugin"
    MINIFY = "UglifyJsPlugin"


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def to_wire(value: Any) -> Any:
    """Convert stage options into plain JSON-compatible structures."""

    if hasattr(value, "to_mapping"):
        return value.to_mapping()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(key): to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(item) for item in value]
    if isinstance(value, Path):
        return str(value)
    return value


@dataclass(frozen=True, slots=True)
class BuildStage:
    name: StageKind
    options: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", _freeze(self.options))

    def to_mapping(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name.value}
        if self.options is not None:
            data["options"] = to_wire(self.options)
        return data


@dataclass(frozen=True, slots=True)
class StageContext:
    platform: Platform
    env: BuildEnvironment
    base: "BuildConfiguration"
    settings: ProjectSettings


@dataclass(frozen=True, slots=True)
class OptionalStage:
    """Stages appended when the environment attribute ``condition`` is true."""

    condition: str
    factory: Callable[[StageContext], Tuple[BuildStage, ...]]
    # Built from the configuration carrying every other stage.
    self_referential: bool = False

    def enabled(self, env: BuildEnvironment) -> bool:
        return bool(getattr(env, self.condition))


def build_base_stages(
    platform: Platform,
    env: BuildEnvironment,
    settings: ProjectSettings,
) -> Tuple[BuildStage, ...]:
    """Return the stages every configuration runs, in order."""

    tsconfig = tsconfig_path(env)
    report_root = settings.report_root
    return (
        BuildStage(StageKind.EXTRACT_STYLESHEET, {"filename": ROOT_STYLESHEET}),
        BuildStage(StageKind.SHARED_CHUNK, {"name": [VENDOR_ENTRY]}),
        BuildStage(
            StageKind.DEFINE_CONSTANTS,
            {
                "global.TNS_WEBPACK": "true",
                "global.skipCodeGeneration": env.skip_code_generation,
            },
        ),
        BuildStage(StageKind.COPY_ASSETS, [{"from": pattern} for pattern in COPY_GLOBS]),
        # The vendor bundle has to initialise before the application bundle.
        BuildStage(StageKind.BUNDLE_STARTER, [f"./{VENDOR_ENTRY}", f"./{BUNDLE_ENTRY}"]),
        BuildStage(StageKind.WORKER_SUPPORT),
        BuildStage(
            StageKind.BUNDLE_ANALYZER,
            {
                "analyzerMode": "static",
                "openAnalyzer": False,
                "generateStatsFile": True,
                "reportFilename": str(report_root / "report.html"),
                "statsFilename": str(report_root / "stats.json"),
            },
        ),
        BuildStage(
            StageKind.COMPILER,
            {
                "entryModule": str(settings.project_root / settings.entry_module),
                "platformOptions": {
                    "platform": platform.value,
                    "platforms": list(SUPPORTED_PLATFORMS),
                    "skipCodeGeneration": env.skip_code_generation,
                    "ignore": list(COMPILER_IGNORE),
                },
                "tsConfigPath": tsconfig,
            },
        ),
    )


def _snapshot_stages(context: StageContext) -> Tuple[BuildStage, ...]:
    # Embeds the assembled configuration so the snapshot generator can
    # replay the bundling decisions.
    return (
        BuildStage(
            StageKind.SNAPSHOT,
            {
                "chunk": VENDOR_ENTRY,
                "projectRoot": str(context.settings.project_root),
                "webpackConfig": context.base,
                "targetArchs": list(SNAPSHOT_TARGET_ARCHS),
                "tnsJavaClassesOptions": {"packages": list(SNAPSHOT_JAVA_PACKAGES)},
                "useLibs": False,
            },
        ),
    )


def _minify_stages(context: StageContext) -> Tuple[BuildStage, ...]:
    return (
        BuildStage(StageKind.LOADER_OPTIONS, {"minimize": True}),
        BuildStage(
            StageKind.MINIFY,
            {
                "mangle": {"except": list(context.settings.mangle_excludes)},
                "compress": context.platform is not COMPRESS_DISABLED_PLATFORM,
            },
        ),
    )


OPTIONAL_STAGES: Tuple[OptionalStage, ...] = (
    OptionalStage("enable_snapshot", _snapshot_stages, self_referential=True),
    OptionalStage("enable_minify", _minify_stages),
)
"""Optional stages in append order."""


def optional_stages() -> Tuple[OptionalStage, ...]:
    return OPTIONAL_STAGES


def build_stages(
    platform: Platform,
    env: BuildEnvironment,
    base: "BuildConfiguration",
    settings: ProjectSettings,
) -> Tuple[BuildStage, ...]:
    """Return ``base.stages`` followed by the enabled optional stages.

    Self-referential stages are built last, from ``base`` extended with every
    other enabled optional stage, but keep their declared position in the
    returned sequence.
    """

    enabled = tuple(optional for optional in optional_stages() if optional.enabled(env))
    context = StageContext(platform=platform, env=env, base=base, settings=settings)

    produced: Dict[str, Tuple[BuildStage, ...]] = {}
    extra: Tuple[BuildStage, ...] = ()
    for optional in enabled:
        if not optional.self_referential:
            produced[optional.condition] = optional.factory(context)
            extra += produced[optional.condition]

    pass_one = replace(base, stages=tuple(base.stages) + extra)
    referenced = replace(context, base=pass_one)
    for optional in enabled:
        if optional.self_referential:
            produced[optional.condition] = optional.factory(referenced)

    def append(stages: Tuple[BuildStage, ...], optional: OptionalStage) -> Tuple[BuildStage, ...]:
        added = produced[optional.condition]
        logger.debug(
            "Appending %s for %s",
            ", ".join(stage.name.value for stage in added),
            optional.condition,
        )
        return stages + added

    return reduce(append, enabled, tuple(base.stages))


__all__ = [
    "COPY_GLOBS",
    "OPTIONAL_STAGES",
    "BuildStage",
    "OptionalStage",
    "StageContext",
    "StageKind",
    "build_base_stages",
    "build_stages",
    "optional_stages",
    "to_wire",
]
