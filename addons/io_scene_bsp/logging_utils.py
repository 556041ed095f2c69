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

"""Logger access for the decoder.

Every module logs through a child of the ``io_scene_bsp`` logger, so one
call to setup_logging() configures the whole package. The level can come
from the IO_SCENE_BSP_DEBUG environment variable.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, TextIO

from .constants import ADDON_NAME, DEBUG_ENV_VAR

LOG_FORMAT = '[%(name)s] %(levelname)s: %(message)s'

# Debug value -> level, anything above 3 is DEBUG
_DEBUG_LEVELS: dict[int, int] = {
    0: logging.CRITICAL,
    1: logging.ERROR,
    2: logging.WARNING,
    3: logging.INFO,
}

_loggers: dict[str, logging.Logger] = {}


def get_logger(name: str = ADDON_NAME) -> logging.Logger:
    """Get a cached logger, the package logger by default."""
    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
    return _loggers[name]


def setup_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> logging.Handler:
    """Attach a stream handler to the package logger.

    Calling it again only changes the level of the package logger and of
    the handler installed by the first call.

    Args:
        level: Logging level for the package
        stream: Output stream, stderr when None

    Returns:
        The package handler
    """
    logger = get_logger()
    logger.setLevel(level)

    for handler in logger.handlers:
        if getattr(handler, '_io_scene_bsp', False):
            handler.setLevel(level)
            return handler

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._io_scene_bsp = True
    logger.addHandler(handler)
    return handler


def get_log_level_from_env() -> int:
    """Map IO_SCENE_BSP_DEBUG to a logging level.

    Scale: 0 CRITICAL, 1 ERROR, 2 WARNING, 3 INFO, 4+ DEBUG. Unset or
    non-numeric values give INFO.
    """
    try:
        debug_value = int(os.environ[DEBUG_ENV_VAR])
    except (KeyError, ValueError):
        return logging.INFO
    return _DEBUG_LEVELS.get(debug_value, logging.DEBUG)


class LogContext:
    """Temporarily change the level of a logger.

    Usage:
        with LogContext(logging.DEBUG):
            level = parse_level(data)
    """

    def __init__(self, level: int, name: str = ADDON_NAME) -> None:
        self._level = level
        self._name = name
        self._original_level: Optional[int] = None

    def __enter__(self) -> LogContext:
        logger = get_logger(self._name)
        self._original_level = logger.level
        logger.setLevel(self._level)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._original_level is not None:
            get_logger(self._name).setLevel(self._original_level)
