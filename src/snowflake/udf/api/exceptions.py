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

from pathlib import Path

from click.exceptions import ClickException


class BaseUdfError(ClickException):
    """Base exception of the UDF tooling.

    0 Everything ran smoothly.
    1 Something went wrong with the client.
    2 Something went wrong with command line arguments.
    3 Could not connect to server.
    5 The database rejected a statement.
    """

    def __init__(self, *args, **kwargs):
        self.exit_code = kwargs.pop("exit_code", self.exit_code)
        super().__init__(*args, **kwargs)


class CliError(BaseUdfError):
    """Generic error - to be used in favour of ClickException."""

    exit_code = 1


class CliArgumentError(BaseUdfError):
    exit_code = 2


class CliConnectionError(BaseUdfError):
    exit_code = 3


class CliSqlError(BaseUdfError):
    exit_code = 5


class MissingScopeError(CliError):
    def __init__(self):
        super().__init__("Functions must specify a database and a schema")


class MalformedIdentifierError(CliArgumentError):
    def __init__(self, identifier: str, reason: str):
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Malformed function identifier '{identifier}': {reason}")


class UdfSqlExecutionError(CliSqlError):
    """The database failed to execute a statement issued for a function."""

    def __init__(self, message: str, cause: Exception):
        super().__init__(f"{message}: {cause}")


class MissingConfigurationError(CliError):
    pass


class ConfigFileTooWidePermissionsError(CliError):
    def __init__(self, path: Path):
        super().__init__(
            f"Configuration file {path} has too wide permissions, "
            f'run `chmod 0600 "{path}"`.'
        )


class InvalidConnectionConfigurationError(CliConnectionError):
    def format_message(self):
        return f"Invalid connection configuration. {self.message}"


class InvalidLogsConfigurationError(CliError):
    def format_message(self):
        return f"Invalid logs configuration. {self.message}"


class SnowflakeConnectionError(CliConnectionError):
    def __init__(self, snowflake_err: Exception):
        super().__init__(f"Could not connect to Snowflake. Reason: {snowflake_err}")


class UnsupportedConfigSectionTypeError(Exception):
    def __init__(self, section_type: type):
        super().__init__(f"Unsupported configuration section type {section_type}")


class DefinitionFileError(CliArgumentError):
    def format_message(self):
        return f"Invalid function definition. {self.message}"


class StateFileError(CliError):
    def format_message(self):
        return f"Invalid state file. {self.message}"
