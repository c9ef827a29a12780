# Copyright (c) 2024 Snowflake Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import logging
import logging.config
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import typer
from snowflake.udf.api.exceptions import InvalidLogsConfigurationError

UDF_LOGGER = "snowflake.udf"
CONNECTOR_LOGGER = "snowflake.connector"
LOG_FILENAME = "snowflake-udf.log"

_ALLOWED_LEVELS = [
    logging.DEBUG,
    logging.INFO,
    logging.WARNING,
    logging.ERROR,
    logging.CRITICAL,
]

_SHORT_FORMAT = "%(asctime)s %(levelname)s %(message)s"
_DETAILED_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class FileLogsConfig:
    """The [cli.logs] section: whether, where and from which level to save logs."""

    save_logs: bool
    path: Path
    level: int

    @classmethod
    def load(cls, debug: bool) -> FileLogsConfig:
        from snowflake.udf.api.config import get_logs_config

        config = get_logs_config()
        level = logging.getLevelName(str(config["level"]).upper())
        if level not in _ALLOWED_LEVELS:
            allowed = " / ".join(logging.getLevelName(lvl) for lvl in _ALLOWED_LEVELS)
            raise InvalidLogsConfigurationError(
                f"Invalid 'level' value set in [logs] section: {config['level']}. "
                f"'level' should be one of: {allowed}"
            )
        return cls(
            save_logs=config["save_logs"],
            path=Path(config["path"]),
            level=logging.DEBUG if debug else level,
        )

    @property
    def filename(self) -> Path:
        return self.path / LOG_FILENAME


def _console_level(verbose: bool, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.ERROR


def build_logging_config(
    verbose: bool, debug: bool, file_logs: FileLogsConfig
) -> Dict[str, Any]:
    """
    Returns the dictConfig of the tool. Console output is limited to errors unless
    --verbose or --debug is passed. The connector logs only in debug mode.
    """
    console_level = _console_level(verbose, debug)
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "detailed" if debug else "short",
            "level": console_level,
        },
        "discard": {"class": "logging.NullHandler"},
    }
    udf_handlers: List[str] = ["console"]
    level = console_level
    if file_logs.save_logs:
        handlers["file"] = {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "filename": str(file_logs.filename),
            "when": "midnight",
            "formatter": "detailed",
            "level": file_logs.level,
        }
        udf_handlers.append("file")
        level = min(level, file_logs.level)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "short": {"format": _SHORT_FORMAT, "datefmt": _DATE_FORMAT},
            "detailed": {"format": _DETAILED_FORMAT, "datefmt": _DATE_FORMAT},
        },
        "handlers": handlers,
        "loggers": {
            UDF_LOGGER: {"level": level, "handlers": udf_handlers},
            CONNECTOR_LOGGER: {
                "level": level if debug else logging.CRITICAL,
                "handlers": udf_handlers if debug else ["discard"],
                "propagate": False,
            },
        },
    }


def create_loggers(verbose: bool, debug: bool) -> None:
    """Configures logging from the --verbose / --debug flags and [cli.logs]."""
    if verbose and debug:
        raise typer.BadParameter("Only one parameter `verbose` or `debug` is possible")

    file_logs = FileLogsConfig.load(debug=debug)
    if file_logs.save_logs:
        file_logs.path.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(build_logging_config(verbose, debug, file_logs))
