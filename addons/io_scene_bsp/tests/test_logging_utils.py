# Copyright 2022-2026 Tommy Lau @ SLODT
#
# Licensed under the GPL License, Version 3.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.gnu.org/licenses/gpl-3.0.html
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Unit tests for logging_utils module."""

import io
import logging
import os
import unittest
from unittest.mock import patch

from io_scene_bsp.constants import DEBUG_ENV_VAR
from io_scene_bsp.logging_utils import LogContext, get_log_level_from_env, get_logger, setup_logging


class TestLogLevelFromEnv(unittest.TestCase):
    """Tests for get_log_level_from_env()."""

    def test_levels(self):
        """Test the debug value scale."""
        expected = {
            "0": logging.CRITICAL,
            "1": logging.ERROR,
            "2": logging.WARNING,
            "3": logging.INFO,
            "4": logging.DEBUG,
            "10": logging.DEBUG,
        }
        for raw, level in expected.items():
            with self.subTest(value=raw):
                with patch.dict(os.environ, {DEBUG_ENV_VAR: raw}):
                    self.assertEqual(get_log_level_from_env(), level)

    def test_unset(self):
        """Test the default level."""
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(get_log_level_from_env(), logging.INFO)

    def test_invalid(self):
        """Test that a non-numeric value falls back to INFO."""
        with patch.dict(os.environ, {DEBUG_ENV_VAR: "verbose"}):
            self.assertEqual(get_log_level_from_env(), logging.INFO)


class TestLogContext(unittest.TestCase):
    """Tests for LogContext."""

    def test_restores_level(self):
        """Test that the package level is restored on exit."""
        logger = get_logger()
        logger.setLevel(logging.WARNING)

        with LogContext(logging.DEBUG):
            self.assertEqual(logger.level, logging.DEBUG)
        self.assertEqual(logger.level, logging.WARNING)

    def test_named_logger(self):
        """Test changing the level of a module logger only."""
        logger = get_logger("io_scene_bsp.wad_io")
        logger.setLevel(logging.NOTSET)

        with LogContext(logging.ERROR, "io_scene_bsp.wad_io"):
            self.assertEqual(logger.level, logging.ERROR)
        self.assertEqual(logger.level, logging.NOTSET)

    def test_logger_cache(self):
        """Test that loggers are cached by name."""
        self.assertIs(get_logger("io_scene_bsp.test"), get_logger("io_scene_bsp.test"))


class TestSetupLogging(unittest.TestCase):
    """Tests for setup_logging()."""

    def setUp(self):
        self.logger = get_logger()
        self._saved = (self.logger.level, list(self.logger.handlers))
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)

    def tearDown(self):
        level, handlers = self._saved
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
        for handler in handlers:
            self.logger.addHandler(handler)
        self.logger.setLevel(level)

    def test_module_records_reach_stream(self):
        """Test that module loggers write through the package handler."""
        stream = io.StringIO()
        setup_logging(logging.INFO, stream)

        get_logger("io_scene_bsp.bsp_io").info("Parsed BSP30")
        get_logger("io_scene_bsp.bsp_io").debug("hidden")
        self.assertEqual(stream.getvalue(), "[io_scene_bsp.bsp_io] INFO: Parsed BSP30\n")

    def test_second_call_changes_level(self):
        """Test that repeated setup reuses the handler with the new level."""
        stream = io.StringIO()
        first = setup_logging(logging.WARNING, stream)
        second = setup_logging(logging.DEBUG)

        self.assertIs(first, second)
        self.assertEqual(len(self.logger.handlers), 1)
        get_logger("io_scene_bsp.textures").debug("Decoded 3 textures")
        self.assertIn("Decoded 3 textures", stream.getvalue())


if __name__ == '__main__':
    unittest.main()
