import logging
import os
import tempfile
import unittest
from unittest.mock import patch

from codeatlas.config import DEFAULT_SKIP_DIRS, AnalysisConfig, configure_logging
from codeatlas.errors import CodeAtlasError, ConfigError


class AnalysisConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        config = AnalysisConfig()
        self.assertGreaterEqual(config.max_workers, 1)
        self.assertEqual(config.parse_timeout, 10.0)
        self.assertEqual(config.skip_dirs, DEFAULT_SKIP_DIRS)
        self.assertIsNot(config.skip_dirs, DEFAULT_SKIP_DIRS)
        self.assertTrue(config.detect_navigation)

    def test_invalid_values_are_rejected(self) -> None:
        with self.assertRaises(ConfigError):
            AnalysisConfig(max_workers=0)
        with self.assertRaises(ValueError):
            AnalysisConfig(parse_timeout=0)

    def test_from_env(self) -> None:
        env = {
            "CODEATLAS_MAX_WORKERS": "3",
            "CODEATLAS_PARSE_TIMEOUT": "2.5",
            "CODEATLAS_SKIP_DIRS": "generated, out",
            "CODEATLAS_DETECT_NAVIGATION": "off",
            "CODEATLAS_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env):
            config = AnalysisConfig.from_env()
        self.assertEqual(config.max_workers, 3)
        self.assertEqual(config.parse_timeout, 2.5)
        self.assertIn("generated", config.skip_dirs)
        self.assertIn("out", config.skip_dirs)
        self.assertIn("node_modules", config.skip_dirs)
        self.assertFalse(config.detect_navigation)
        self.assertEqual(config.log_level, "DEBUG")

    def test_from_env_rejects_garbage(self) -> None:
        with patch.dict(os.environ, {"CODEATLAS_MAX_WORKERS": "many"}):
            with self.assertRaises(ConfigError) as ctx:
                AnalysisConfig.from_env()
        self.assertIn("CODEATLAS_MAX_WORKERS", str(ctx.exception))
        self.assertIsInstance(ctx.exception, CodeAtlasError)

    def test_from_env_validates_ranges(self) -> None:
        with patch.dict(os.environ, {"CODEATLAS_PARSE_TIMEOUT": "-1"}):
            with self.assertRaises(ConfigError):
                AnalysisConfig.from_env()

    def test_env_file(self) -> None:
        with tempfile.TemporaryDirectory() as root:
            env_file = os.path.join(root, ".env")
            with open(env_file, "w", encoding="utf-8") as f:
                f.write("CODEATLAS_MAX_FILE_BYTES=4096\n")
            with patch.dict(os.environ, {}, clear=True):
                config = AnalysisConfig.from_env(env_file)
        self.assertEqual(config.max_file_bytes, 4096)


def test_configure_logging():
    logger = configure_logging("debug")
    assert logger.name == "codeatlas"
    assert logger.level == logging.DEBUG
    handlers = len(logger.handlers)
    configure_logging("info")
    assert len(logger.handlers) == handlers


if __name__ == "__main__":
    unittest.main()
