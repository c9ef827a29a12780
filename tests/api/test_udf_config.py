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

import os
from pathlib import Path
from unittest import mock

import pytest
from snowflake.udf.api.config import (
    ConnectionConfig,
    config_init,
    config_section_exists,
    get_config_section,
    get_connection_dict,
    get_default_connection_name,
    get_env_variable_name,
    get_logs_config,
)
from snowflake.udf.api.exceptions import (
    CliError,
    ConfigFileTooWidePermissionsError,
    MissingConfigurationError,
)
from snowflake.udf.api.secure_utils import file_permissions_are_strict


def _write_config(path: Path, content: str, mode: int = 0o600) -> Path:
    path.write_text(content)
    path.chmod(mode)
    return path


def test_get_connection_dict(test_udf_config):
    assert get_connection_dict("default") == {
        "account": "test_account",
        "user": "test_user",
        "password": "test_password",
        "database": "db",
        "schema": "public",
        "warehouse": "xs",
    }


@mock.patch.dict(
    os.environ,
    {
        "SNOWFLAKE_CONNECTIONS_DEFAULT_WAREHOUSE": "large",
        "SNOWFLAKE_CONNECTIONS_DEFAULT_ROLE": "admin",
    },
)
def test_connection_values_are_overridden_by_env(test_udf_config):
    connection = get_connection_dict("default")

    assert connection["warehouse"] == "large"
    assert connection["role"] == "admin"
    assert connection["account"] == "test_account"


def test_missing_connection():
    with pytest.raises(MissingConfigurationError) as err:
        get_connection_dict("missing")

    assert err.value.message == "Connection missing is not configured"


def test_config_section_exists():
    assert config_section_exists("cli", "logs")
    assert config_section_exists("connections", "other")
    assert not config_section_exists("connections", "missing")
    assert not config_section_exists("cli", "plugins")


def test_get_config_section_of_nested_tables():
    connections = get_config_section("connections")

    assert set(connections) == {"default", "other"}
    assert connections["other"]["authenticator"] == "SNOWFLAKE_JWT"


def test_default_connection_name():
    assert get_default_connection_name() == "default"


@mock.patch.dict(os.environ, {"SNOWFLAKE_DEFAULT_CONNECTION_NAME": "other"})
def test_default_connection_name_from_env():
    assert get_default_connection_name() == "other"


def test_default_connection_name_when_not_configured(tmp_path):
    config_init(
        _write_config(tmp_path / "config.toml", "[connections.dev]\naccount = 'a'\n")
    )

    assert get_default_connection_name() == "default"
    assert get_connection_dict("dev") == {"account": "a"}


@pytest.mark.parametrize(
    "path, key, expected",
    [
        ((), "default_connection_name", "SNOWFLAKE_DEFAULT_CONNECTION_NAME"),
        (("cli", "logs"), "level", "SNOWFLAKE_CLI_LOGS_LEVEL"),
        (("connections", "dev"), "user", "SNOWFLAKE_CONNECTIONS_DEV_USER"),
    ],
)
def test_get_env_variable_name(path, key, expected):
    assert get_env_variable_name(*path, key=key) == expected


def test_config_init_creates_missing_file(snowflake_home):
    config_init(None)

    config_file = snowflake_home / "config.toml"
    assert config_file.exists()
    assert file_permissions_are_strict(config_file)
    assert get_logs_config() == {
        "save_logs": False,
        "path": str(snowflake_home / "logs"),
        "level": "info",
    }


def test_config_init_corrupted_file(tmp_path):
    config_file = _write_config(tmp_path / "config.toml", "[connections\n")

    with pytest.raises(CliError) as err:
        config_init(config_file)

    assert "Configuration file seems to be corrupted" in err.value.message


@pytest.mark.skipif(os.name == "nt", reason="Windows ACLs are not inspected")
@pytest.mark.parametrize("mode", [0o644, 0o640, 0o606, 0o770])
def test_config_init_rejects_too_wide_permissions(tmp_path, mode):
    config_file = _write_config(tmp_path / "config.toml", "", mode=mode)

    with pytest.raises(ConfigFileTooWidePermissionsError) as err:
        config_init(config_file)

    assert err.value.message == (
        f"Configuration file {config_file} has too wide permissions, "
        f'run `chmod 0600 "{config_file}"`.'
    )


@pytest.mark.skipif(os.name == "nt", reason="Windows ACLs are not inspected")
def test_file_permissions_are_strict(tmp_path):
    path = _write_config(tmp_path / "config.toml", "", mode=0o600)
    assert file_permissions_are_strict(path)

    path.chmod(0o604)
    assert not file_permissions_are_strict(path)


def test_logs_config_casts_save_logs(tmp_path, snowflake_home):
    config_init(
        _write_config(
            tmp_path / "config.toml",
            '[cli.logs]\nsave_logs = "yes"\nlevel = "debug"\n',
        )
    )

    logs_config = get_logs_config()

    assert logs_config["save_logs"] is True
    assert logs_config["level"] == "debug"
    assert logs_config["path"] == str(snowflake_home / "logs")


def test_connection_config_splits_known_and_other_settings():
    config = ConnectionConfig.from_dict(
        {"account": "a", "user": None, "session_parameter": "x", "port": 443}
    )

    assert config.account == "a"
    assert config.port == 443
    assert config.to_dict_of_known_non_empty_values() == {"account": "a", "port": 443}
    assert config.to_dict_of_all_non_empty_values() == {
        "account": "a",
        "port": 443,
        "session_parameter": "x",
    }
