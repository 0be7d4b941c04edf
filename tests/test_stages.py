from __future__ import annotations

from dataclasses import replace
from itertools import product
from pathlib import Path
import tempfile
import unittest

from bundler.config import assemble
from bundler.environment import BuildEnvironment
from bundler.platforms import Platform
from bundler.settings import DEFAULT_MANGLE_EXCLUDES, ProjectSettings
from bundler.stages import (
    BuildStage,
    StageKind,
    build_base_stages,
    build_stages,
    optional_stages,
)


BASE_ORDER = [
    StageKind.EXTRACT_STYLESHEET,
    StageKind.SHARED_CHUNK,
    StageKind.DEFINE_CONSTANTS,
    StageKind.COPY_ASSETS,
    StageKind.BUNDLE_STARTER,
    StageKind.WORKER_SUPPORT,
    StageKind.BUNDLE_ANALYZER,
    StageKind.COMPILER,
]


class StageCompositionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name).resolve()
        self.settings = ProjectSettings(project_root=self.root)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _stages(self, platform: Platform, **flags: bool) -> tuple[BuildStage, ...]:
        env = BuildEnvironment.for_platform(platform, **flags)
        base = replace(
            assemble(env, self.settings),
            stages=build_base_stages(platform, env, self.settings),
        )
        return build_stages(platform, env, base, self.settings)

    def test_base_prefix_order(self) -> None:
        stages = build_base_stages(Platform.ANDROID, BuildEnvironment.for_platform("android"), self.settings)
        self.assertEqual([stage.name for stage in stages], BASE_ORDER)

    def test_optional_stage_counts(self) -> None:
        for snapshot, minify in product((False, True), repeat=2):
            with self.subTest(snapshot=snapshot, minify=minify):
                stages = self._stages(Platform.IOS, enable_snapshot=snapshot, enable_minify=minify)
                self.assertEqual([stage.name for stage in stages[:8]], BASE_ORDER)
                expected = 8 + (1 if snapshot else 0) + (2 if minify else 0)
                self.assertEqual(len(stages), expected)

    def test_snapshot_is_appended_before_minify(self) -> None:
        stages = self._stages(Platform.ANDROID, enable_snapshot=True, enable_minify=True)
        self.assertEqual(
            [stage.name for stage in stages[8:]],
            [StageKind.SNAPSHOT, StageKind.LOADER_OPTIONS, StageKind.MINIFY],
        )

    def test_optional_stage_conditions_are_declared_in_append_order(self) -> None:
        self.assertEqual(
            [optional.condition for optional in optional_stages()],
            ["enable_snapshot", "enable_minify"],
        )

    def test_compress_disabled_only_on_android(self) -> None:
        for platform, skip, snapshot in product(Platform, (False, True), (False, True)):
            with self.subTest(platform=platform, skip=skip, snapshot=snapshot):
                stages = self._stages(
                    platform,
                    skip_code_generation=skip,
                    enable_snapshot=snapshot,
                    enable_minify=True,
                )
                minify = stages[-1]
                self.assertIs(minify.name, StageKind.MINIFY)
                self.assertEqual(minify.options["compress"], platform is not Platform.ANDROID)
                self.assertEqual(minify.options["mangle"]["except"], DEFAULT_MANGLE_EXCLUDES)
                self.assertEqual(stages[-2].options, {"minimize": True})

    def test_define_constants_echo_skip_flag(self) -> None:
        for skip in (False, True):
            with self.subTest(skip=skip):
                stages = self._stages(Platform.IOS, skip_code_generation=skip)
                define = stages[2]
                self.assertEqual(define.options["global.TNS_WEBPACK"], "true")
                self.assertIs(define.options["global.skipCodeGeneration"], skip)

    def test_bundle_starter_loads_vendor_first(self) -> None:
        starter = self._stages(Platform.IOS)[4]
        self.assertEqual(starter.options, ("./vendor", "./bundle"))

    def test_analyzer_writes_static_report(self) -> None:
        analyzer = self._stages(Platform.IOS)[6]
        self.assertEqual(analyzer.options["analyzerMode"], "static")
        self.assertFalse(analyzer.options["openAnalyzer"])
        self.assertEqual(analyzer.options["reportFilename"], str(self.root / "report" / "report.html"))
        self.assertEqual(analyzer.options["statsFilename"], str(self.root / "report" / "stats.json"))

    def test_compiler_stage_mirrors_rule_config(self) -> None:
        for skip, expected in ((False, "tsconfig.aot.json"), (True, "tsconfig.json")):
            with self.subTest(skip=skip):
                compiler = self._stages(Platform.ANDROID, skip_code_generation=skip)[7]
                self.assertEqual(compiler.options["tsConfigPath"], expected)
                platform_options = compiler.options["platformOptions"]
                self.assertEqual(platform_options["platform"], "android")
                self.assertEqual(platform_options["platforms"], ("ios", "android"))
                self.assertIs(platform_options["skipCodeGeneration"], skip)
                self.assertEqual(platform_options["ignore"], ("App_Resources",))
                self.assertEqual(
                    compiler.options["entryModule"],
                    str(self.root / "app/app.module#AppModule"),
                )

    def test_snapshot_embeds_assembled_configuration(self) -> None:
        env = BuildEnvironment.for_platform("android", enable_snapshot=True)
        configuration = assemble(env, self.settings)
        snapshot = configuration.stages[-1]
        self.assertIs(snapshot.name, StageKind.SNAPSHOT)
        embedded = snapshot.options["webpackConfig"]
        self.assertEqual(len(embedded.stages), 8)
        self.assertNotIn(StageKind.SNAPSHOT.value, embedded.stage_names())
        self.assertEqual(embedded.entry, configuration.entry)
        self.assertEqual(snapshot.options["targetArchs"], ("arm", "arm64", "ia32"))
        self.assertEqual(snapshot.options["tnsJavaClassesOptions"], {"packages": ("tns-core-modules",)})
        self.assertFalse(snapshot.options["useLibs"])
        self.assertEqual(snapshot.options["chunk"], "vendor")

    def test_snapshot_configuration_includes_minify_stages(self) -> None:
        env = BuildEnvironment.for_platform("android", enable_snapshot=True, enable_minify=True)
        configuration = assemble(env, self.settings)
        snapshot = configuration.stages[8]
        self.assertIs(snapshot.name, StageKind.SNAPSHOT)
        embedded = snapshot.options["webpackConfig"]
        self.assertEqual(
            embedded.stage_names(),
            tuple(name for name in configuration.stage_names() if name != StageKind.SNAPSHOT.value),
        )
        self.assertEqual(embedded.stage_names()[-2:], ("LoaderOptionsPlugin", "UglifyJsPlugin"))

    def test_stages_extend_the_given_base(self) -> None:
        env = BuildEnvironment.for_platform("ios", enable_minify=True)
        base = assemble(BuildEnvironment.for_platform("ios"), self.settings)
        stages = build_stages(Platform.IOS, env, replace(base, stages=()), self.settings)
        self.assertEqual([stage.name for stage in stages], [StageKind.LOADER_OPTIONS, StageKind.MINIFY])

        stages = build_stages(Platform.IOS, env, base, self.settings)
        self.assertEqual(stages[:8], base.stages)
        self.assertEqual(len(stages), 10)

    def test_stage_options_are_read_only(self) -> None:
        stage = BuildStage(StageKind.LOADER_OPTIONS, {"minimize": True})
        with self.assertRaises(TypeError):
            stage.options["minimize"] = False  # type: ignore[index]


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
