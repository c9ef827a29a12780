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

import contextlib
import logging
from typing import Optional

import snowflake.connector
from snowflake.connector import SnowflakeConnection
from snowflake.connector.errors import DatabaseError, ForbiddenError
from snowflake.udf.api.config import (
    ConnectionConfig,
    get_connection_dict,
    get_env_value,
)
from snowflake.udf.api.exceptions import (
    InvalidConnectionConfigurationError,
    SnowflakeConnectionError,
)

log = logging.getLogger(__name__)

APPLICATION_NAME = "SNOWFLAKE_UDF"

# connection keys that can be set using SNOWFLAKE_* env vars
SUPPORTED_ENV_OVERRIDES = [
    "account",
    "user",
    "password",
    "authenticator",
    "private_key_file",
    "private_key_path",
    "database",
    "schema",
    "role",
    "warehouse",
    "token_file_path",
]

# mapping of found key -> key to set
CONNECTION_KEY_ALIASES = {"private_key_path": "private_key_file"}


def _resolve_alias(key_or_alias: str):
    """
    Given the key of an override / env var, what key should it be set as in the connection parameters?
    """
    return CONNECTION_KEY_ALIASES.get(key_or_alias, key_or_alias)


def build_connection_parameters(
    connection_name: Optional[str] = None, **overrides
) -> dict:
    connection_parameters = {}
    if connection_name:
        connection_parameters = {
            _resolve_alias(k): v
            for k, v in ConnectionConfig.from_dict(
                get_connection_dict(connection_name)
            )
            .to_dict_of_all_non_empty_values()
            .items()
        }

    # (1) Command line override case
    for key, value in overrides.items():
        if value is not None:
            connection_parameters[_resolve_alias(key)] = value

    # (2) Generic environment variable case
    # ... apply only if value not passed via flag or connection variable
    for key in SUPPORTED_ENV_OVERRIDES:
        generic_env_value = get_env_value(key=key)
        connection_key = _resolve_alias(key)
        if connection_key not in connection_parameters and generic_env_value:
            connection_parameters[connection_key] = generic_env_value

    return {k: v for k, v in connection_parameters.items() if v is not None}


def connect_to_snowflake(
    connection_name: Optional[str] = None, **overrides
) -> SnowflakeConnection:
    connection_parameters = build_connection_parameters(connection_name, **overrides)
    log.debug(
        "Connecting to Snowflake using connection %s", connection_name or "<none>"
    )

    try:
        # Whatever output is generated when creating connection,
        # we don't want it in our output.
        with contextlib.redirect_stdout(None), contextlib.redirect_stderr(None):
            return snowflake.connector.connect(
                application=APPLICATION_NAME,
                **connection_parameters,
            )
    except ForbiddenError as err:
        raise SnowflakeConnectionError(err)
    except DatabaseError as err:
        raise InvalidConnectionConfigurationError(err.msg)
