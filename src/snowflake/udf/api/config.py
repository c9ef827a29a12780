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
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import tomlkit
from snowflake.connector.config_manager import CONFIG_MANAGER
from snowflake.connector.errors import ConfigSourceError, MissingConfigOptionError
from snowflake.udf.api.exceptions import (
    CliError,
    ConfigFileTooWidePermissionsError,
    MissingConfigurationError,
    UnsupportedConfigSectionTypeError,
)
from snowflake.udf.api.secure_utils import file_permissions_are_strict
from snowflake.udf.api.util import try_cast_to_bool
from tomlkit import TOMLDocument, dump
from tomlkit.container import Container
from tomlkit.exceptions import NonExistentKey
from tomlkit.items import Table

log = logging.getLogger(__name__)


CONNECTIONS_SECTION = "connections"
CLI_SECTION = "cli"
LOGS_SECTION = "logs"

LOGS_SECTION_PATH = [CLI_SECTION, LOGS_SECTION]

CONFIG_FILE_NAME = "config.toml"

CONFIG_MANAGER.add_option(
    name=CLI_SECTION,
    parse_str=tomlkit.parse,
    default=dict(),
)


def _snowflake_home() -> Path:
    return Path(os.environ.get("SNOWFLAKE_HOME", Path.home() / ".snowflake"))


@dataclass
class ConnectionConfig:
    account: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    host: Optional[str] = None
    region: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    schema: Optional[str] = None
    warehouse: Optional[str] = None
    role: Optional[str] = None
    authenticator: Optional[str] = None
    private_key_file: Optional[str] = None
    token_file_path: Optional[str] = None

    _other_settings: dict = field(default_factory=lambda: {})

    @classmethod
    def from_dict(cls, config_dict: dict) -> ConnectionConfig:
        known_settings = {}
        other_settings = {}
        for key, value in config_dict.items():
            if key in cls.__dataclass_fields__ and not key.startswith("_"):
                known_settings[key] = value
            else:
                other_settings[key] = value
        return cls(**known_settings, _other_settings=other_settings)

    def to_dict_of_known_non_empty_values(self) -> dict:
        return {
            k: v
            for k, v in asdict(self).items()
            if k != "_other_settings" and v is not None
        }

    def _non_empty_other_values(self) -> dict:
        return {k: v for k, v in self._other_settings.items() if v is not None}

    def to_dict_of_all_non_empty_values(self) -> dict:
        return {
            **self.to_dict_of_known_non_empty_values(),
            **self._non_empty_other_values(),
        }


def _default_logs_config() -> dict:
    return {
        "save_logs": False,
        "path": str(_snowflake_home() / "logs"),
        "level": "info",
    }


def config_init(config_file: Optional[Path]):
    """
    Points the connector's configuration manager at the configuration file and
    reads it. A file passed with --config-file takes precedence over
    $SNOWFLAKE_HOME/config.toml. A missing file is created with a [cli.logs] section.
    """
    CONFIG_MANAGER.file_path = (
        Path(config_file) if config_file else _snowflake_home() / CONFIG_FILE_NAME
    )
    if CONFIG_MANAGER.file_path.exists():
        _check_config_file_permissions(CONFIG_MANAGER.file_path)
    else:
        _initialise_config(CONFIG_MANAGER.file_path)
    _read_config_file()


def _read_config_file() -> None:
    try:
        CONFIG_MANAGER.read_config()
    except ConfigSourceError as exception:
        cause = exception.__cause__ or exception
        raise CliError(f"Configuration file seems to be corrupted. {cause}")


def _initialise_config(config_file: Path) -> None:
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.touch(mode=0o600)
    document = tomlkit.document()
    cli_section = tomlkit.table()
    cli_section[LOGS_SECTION] = _default_logs_config()
    document[CLI_SECTION] = cli_section
    with config_file.open("w+") as fh:
        dump(document, fh)
    log.info("Created Snowflake configuration file at %s", config_file)


def _check_config_file_permissions(config_file: Path) -> None:
    if not file_permissions_are_strict(config_file):
        raise ConfigFileTooWidePermissionsError(config_file)


def get_logs_config() -> dict:
    logs_config = _default_logs_config()
    if config_section_exists(*LOGS_SECTION_PATH):
        logs_config.update(**get_config_section(*LOGS_SECTION_PATH))
    logs_config["save_logs"] = try_cast_to_bool(logs_config["save_logs"])
    return logs_config


def config_section_exists(*path) -> bool:
    try:
        _find_section(*path)
        return True
    except (KeyError, NonExistentKey, MissingConfigOptionError):
        return False


def get_connection_dict(connection_name: str) -> dict:
    try:
        return get_config_section(CONNECTIONS_SECTION, connection_name)
    except (KeyError, NonExistentKey, MissingConfigOptionError):
        raise MissingConfigurationError(
            f"Connection {connection_name} is not configured"
        )


def get_default_connection_name() -> str:
    # SNOWFLAKE_DEFAULT_CONNECTION_NAME and the "default" fallback are handled
    # by the connector option
    return str(CONFIG_MANAGER["default_connection_name"])


def get_config_section(*path) -> dict:
    section = _find_section(*path)
    if isinstance(section, Container):
        return {s: _merge_section_with_env(section[s], *path, s) for s in section}
    if isinstance(section, dict):
        return _merge_section_with_env(section, *path)
    raise UnsupportedConfigSectionTypeError(type(section))


def get_env_variable_name(*path, key: str) -> str:
    return "SNOWFLAKE_" + "".join(f"{p.upper()}_" for p in path) + key.upper()


def get_env_value(*path, key: str) -> str | None:
    return os.environ.get(get_env_variable_name(*path, key=key))


def _find_section(*path) -> TOMLDocument:
    section = CONFIG_MANAGER
    idx = 0
    while idx < len(path):
        section = section[path[idx]]
        idx += 1
    return section


def _merge_section_with_env(section: Union[Table, Any], *path) -> Dict[str, str]:
    if isinstance(section, Table):
        env_variables = _get_envs_for_path(*path)
        section_copy = section.copy()
        section_copy.update(env_variables)
        return section_copy.unwrap()
    # It's a atomic value
    return section


def _get_envs_for_path(*path) -> dict:
    env_variables_prefix = "_".join(["SNOWFLAKE"] + [p.upper() for p in path]) + "_"
    return {
        k.replace(env_variables_prefix, "").lower(): os.environ[k]
        for k in os.environ.keys()
        if k.startswith(env_variables_prefix)
    }
