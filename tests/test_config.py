"""Tests for environment-driven configuration."""

from __future__ import annotations

import logging
import os
import unittest
from pathlib import Path
from unittest import mock

from longway.config import (
    AppConfig,
    get_assistant_config,
    get_server_config,
    get_storage_config,
    load_config,
)
from longway.log import LOG_FORMAT, configure_logging

_CLEAN = {
    "DATABASE_URL": "",
    "DATABASE_PATH": "",
    "VERCEL": "",
    "LONGWAY_READONLY_FS": "",
}


class TestStorageConfig(unittest.TestCase):
    def test_defaults_to_sqlite(self):
        with mock.patch.dict(os.environ, _CLEAN):
            cfg = get_storage_config()
        self.assertEqual(cfg.backend, "sqlite")
        self.assertEqual(cfg.database_path.name, "longway.db")
        self.assertFalse(cfg.readonly_fs)

    def test_database_url_selects_postgres(self):
        with mock.patch.dict(os.environ, {**_CLEAN, "DATABASE_URL": "postgresql://u:p@h/db"}):
            cfg = get_storage_config()
        self.assertEqual(cfg.backend, "postgres")

    def test_path_override(self):
        with mock.patch.dict(os.environ, {**_CLEAN, "DATABASE_PATH": "/tmp/trips.db"}):
            cfg = get_storage_config()
        self.assertEqual(cfg.database_path, Path("/tmp/trips.db"))

    def test_readonly_flags(self):
        for key in ("VERCEL", "LONGWAY_READONLY_FS"):
            with mock.patch.dict(os.environ, {**_CLEAN, key: "1"}):
                self.assertTrue(get_storage_config().readonly_fs)


class TestOtherConfig(unittest.TestCase):
    def test_assistant_overrides(self):
        env = {"ASSISTANT_MODEL": "claude-x", "ASSISTANT_MAX_TOKENS": "2048", "ASSISTANT_TIMEOUT": "30"}
        with mock.patch.dict(os.environ, env):
            cfg = get_assistant_config()
        self.assertEqual((cfg.model, cfg.max_tokens, cfg.timeout), ("claude-x", 2048, 30))
        self.assertEqual(cfg.api_version, "2023-06-01")

    def test_server_config(self):
        with mock.patch.dict(os.environ, {"SERVER_PORT": "9001", "SERVER_RELOAD": "true", "LOG_LEVEL": "debug"}):
            cfg = get_server_config()
        self.assertEqual(cfg.port, 9001)
        self.assertTrue(cfg.reload)
        self.assertEqual(cfg.log_level, "DEBUG")

    def test_load_config_bundles(self):
        self.assertIsInstance(load_config(), AppConfig)


class TestLogging(unittest.TestCase):
    def test_configure_once(self):
        first = configure_logging("INFO")
        second = configure_logging("DEBUG")
        self.assertIs(first, second)
        self.assertEqual(len(second.handlers), 1)
        self.assertEqual(second.handlers[0].formatter._fmt, LOG_FORMAT)
        self.assertEqual(second.level, logging.DEBUG)


if __name__ == "__main__":
    unittest.main()
