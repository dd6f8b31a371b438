from __future__ import annotations

from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from types import SimpleNamespace
from unittest import mock
import io
import json
import sys
import tempfile
import unittest

from buildexec import cli


def _build_args(**overrides) -> SimpleNamespace:
    values = dict(manifest="build.json", targets=[], dry_run=False, verbose=False, log_level=None, config=None)
    values.update(overrides)
    return SimpleNamespace(**values)


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.workspace = Path(self.temp_dir.name).resolve()
        (self.workspace / "Info.plist").write_text("<plist/>")
        self.build_dir = self.workspace / "build"
        env_patch = mock.patch.dict("os.environ", {}, clear=True)
        env_patch.start()
        self.addCleanup(env_patch.stop)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _write_manifest(self, targets: dict, name: str = "build.json") -> None:
        (self.workspace / name).write_text(json.dumps({"targets": targets}, indent=2))

    def _run(self, handler, args) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            status = handler(args, self.workspace)
        return status, stdout.getvalue(), stderr.getvalue()


class BuildCommandTests(CliTestCase):
    def setUp(self) -> None:
        super().setUp()
        self._write_manifest(
            {
                "Support": {
                    "invocations": [
                        {
                            "executable": sys.executable,
                            "arguments": ["-c", "open('{{TARGET_BUILD_DIR}}/stamp', 'w').close()"],
                            "outputs": ["{{TARGET_BUILD_DIR}}/stamp"],
                            "auxiliary_files": [
                                {"path": "{{TARGET_BUILD_DIR}}/gen/run.sh", "contents": "#!/bin/sh\n", "executable": True}
                            ],
                        }
                    ]
                },
                "App": {
                    "dependencies": ["Support"],
                    "invocations": [
                        {
                            "builtin": "builtin-copy",
                            "arguments": ["Info.plist", "{{TARGET_BUILD_DIR}}/App.app"],
                            "inputs": ["Info.plist"],
                            "outputs": ["{{TARGET_BUILD_DIR}}/App.app/Info.plist"],
                        }
                    ],
                },
            }
        )

    def test_build_runs_targets_in_dependency_order(self) -> None:
        status, output, _ = self._run(cli._handle_build, _build_args())

        self.assertEqual(status, 0)
        self.assertTrue((self.build_dir / "Support" / "stamp").is_file())
        self.assertTrue((self.build_dir / "Support" / "gen" / "run.sh").is_file())
        self.assertEqual(
            (self.build_dir / "App" / "App.app" / "Info.plist").read_text(),
            "<plist/>",
        )
        self.assertLess(output.index("=== BUILD TARGET Support ==="), output.index("=== BUILD TARGET App ==="))
        self.assertIn("** BUILD SUCCEEDED **", output)

    def test_dry_run_reports_without_touching_disk(self) -> None:
        status, output, _ = self._run(cli._handle_build, _build_args(dry_run=True, verbose=True))

        self.assertEqual(status, 0)
        self.assertFalse(self.build_dir.exists())
        self.assertIn("write-file", output)
        self.assertIn("Create product structure", output)
        self.assertIn("builtin-copy Info.plist", output)
        self.assertIn("** BUILD SUCCEEDED **", output)

    def test_target_selection_limits_the_build(self) -> None:
        status, output, _ = self._run(cli._handle_build, _build_args(targets=["Support"]))

        self.assertEqual(status, 0)
        self.assertNotIn("=== BUILD TARGET App ===", output)
        self.assertFalse((self.build_dir / "App").exists())

    def test_failing_command_fails_the_build(self) -> None:
        self._write_manifest(
            {
                "Broken": {
                    "invocations": [
                        {"executable": sys.executable, "arguments": ["-c", "raise SystemExit(2)"], "outputs": ["out/a"]},
                        {"executable": sys.executable, "arguments": ["-c", "pass"], "outputs": ["out/b"]},
                    ]
                }
            }
        )

        status, output, errors = self._run(cli._handle_build, _build_args())

        self.assertEqual(status, 1)
        self.assertIn("** BUILD FAILED **", output)
        self.assertIn("The following build commands failed:", output)
        self.assertIn(str(self.workspace / "out" / "a"), output)
        self.assertIn("failed with exit code 2", errors)

    def test_missing_manifest_is_an_input_error(self) -> None:
        status, output, _ = self._run(cli._handle_build, _build_args(manifest="absent.json"))

        self.assertEqual(status, 2)
        self.assertIn("Manifest not found", output)

    def test_unknown_target_is_an_input_error(self) -> None:
        status, output, _ = self._run(cli._handle_build, _build_args(targets=["Nope"]))

        self.assertEqual(status, 2)
        self.assertEqual(output.splitlines(), ["Error: Target 'Nope' not found. Available targets: App, Support"])


class OrderCommandTests(CliTestCase):
    def test_order_lists_targets_and_invocations(self) -> None:
        self._write_manifest(
            {
                "Lib": {
                    "invocations": [
                        {"executable": "/usr/bin/ar", "inputs": ["{{TARGET_BUILD_DIR}}/a.o"], "outputs": ["{{TARGET_BUILD_DIR}}/libLib.a"]},
                        {"executable": "/usr/bin/cc", "outputs": ["{{TARGET_BUILD_DIR}}/a.o"]},
                        {"executable": "/bin/mkdir", "outputs": ["{{TARGET_BUILD_DIR}}/Lib.framework"], "creates_product_structure": True},
                    ]
                },
                "App": {"dependencies": ["Lib"], "variables": {"SDK": "{{SDKROOT}}"}},
            }
        )
        lib_dir = self.build_dir / "Lib"

        status, output, _ = self._run(cli._handle_order, SimpleNamespace(manifest="build.json", targets=[]))

        self.assertEqual(status, 0)
        self.assertEqual(
            output.splitlines(),
            [
                "Lib",
                f"  1. cc {lib_dir / 'a.o'}",
                f"  2. ar {lib_dir / 'libLib.a'}",
                f"  3. mkdir {lib_dir / 'Lib.framework'} [structure]",
                "App",
                "  (skipped: Undefined variable(s) SDKROOT in variable 'SDK' of target 'App')",
            ],
        )

    def test_order_reports_target_cycles(self) -> None:
        self._write_manifest({"A": {"dependencies": ["B"]}, "B": {"dependencies": ["A"]}})

        status, output, _ = self._run(cli._handle_order, SimpleNamespace(manifest="build.json", targets=[]))

        self.assertEqual(status, 1)
        self.assertIn("Circular dependency detected in target dependencies", output)


class MainTests(CliTestCase):
    def test_main_parses_arguments_and_dispatches(self) -> None:
        self._write_manifest({"Empty": {}})
        stdout = io.StringIO()
        with mock.patch.object(cli.Path, "cwd", return_value=self.workspace), redirect_stdout(stdout):
            status = cli.main(["order", "build.json", "-t", "Empty"])

        self.assertEqual(status, 0)
        self.assertEqual(stdout.getvalue().splitlines(), ["Empty"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
