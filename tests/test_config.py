from __future__ import annotations

from pathlib import Path
from unittest import mock
import json
import tempfile
import textwrap
import unittest

from buildexec.config import CONFIG_ENV_VAR, ExecutorConfig, load_config, locate_config
from buildexec.config_loader import (
    find_config_file,
    load_config_file,
    normalize_string_list,
    normalize_string_mapping,
)


class ExecutorConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.workspace = Path(self.temp_dir.name)
        self.config_dir = self.workspace / "config"
        self.config_dir.mkdir()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_defaults_without_configuration_file(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            config = load_config(self.workspace)

        self.assertEqual(config, ExecutorConfig())
        self.assertEqual(config.log_level, "error")
        self.assertFalse(config.inherit_environment)

    def test_workspace_configuration_is_loaded(self) -> None:
        (self.config_dir / "config.toml").write_text(
            textwrap.dedent(
                """
                [executor]
                dry_run = true
                log_level = "DEBUG"
                inherit_environment = true
                """
            )
        )

        with mock.patch.dict("os.environ", {}, clear=True):
            config = load_config(self.workspace)

        self.assertTrue(config.dry_run)
        self.assertEqual(config.log_level, "debug")
        self.assertTrue(config.inherit_environment)
        self.assertFalse(config.verbose)

    def test_environment_variable_takes_precedence(self) -> None:
        (self.config_dir / "config.toml").write_text("[executor]\nverbose = false\n")
        override = self.workspace / "ci.json"
        override.write_text(json.dumps({"executor": {"verbose": True}}))

        with mock.patch.dict("os.environ", {CONFIG_ENV_VAR: "ci.json"}):
            self.assertEqual(locate_config(self.workspace), override)
            config = load_config(self.workspace)

        self.assertTrue(config.verbose)

    def test_explicit_path_must_exist(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_config(self.workspace, str(self.workspace / "missing.toml"))

    def test_invalid_log_level_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ExecutorConfig.from_mapping({"executor": {"log_level": "loud"}})

    def test_overrides_ignore_unset_values(self) -> None:
        config = ExecutorConfig(verbose=True).with_overrides(dry_run=True, verbose=None, log_level=None)

        self.assertEqual(config, ExecutorConfig(dry_run=True, verbose=True))


class ConfigLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.directory = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_multiple_formats_for_one_stem_are_rejected(self) -> None:
        (self.directory / "config.toml").write_text("")
        (self.directory / "config.yaml").write_text("{}")

        with self.assertRaises(ValueError) as ctx:
            find_config_file(self.directory, "config")

        self.assertIn("Multiple configuration files", str(ctx.exception))

    def test_missing_directory_yields_none(self) -> None:
        self.assertIsNone(find_config_file(self.directory / "absent", "config"))

    def test_unsupported_extension_is_rejected(self) -> None:
        path = self.directory / "config.ini"
        path.write_text("[executor]\n")

        with self.assertRaises(ValueError):
            load_config_file(path)

    def test_root_must_be_a_mapping(self) -> None:
        path = self.directory / "config.yaml"
        path.write_text("- one\n- two\n")

        with self.assertRaises(TypeError):
            load_config_file(path)

    def test_normalizers(self) -> None:
        self.assertEqual(normalize_string_list(" a "), ["a"])
        self.assertEqual(normalize_string_list(["a", " ", "b"]), ["a", "b"])
        self.assertEqual(normalize_string_mapping({"A": True, "B": 2}), {"A": "YES", "B": "2"})
        with self.assertRaises(TypeError):
            normalize_string_list([1], field_name="inputs")
        with self.assertRaises(TypeError):
            normalize_string_mapping(["A"], field_name="environment")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
