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

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Optional

from snowflake.connector import SnowflakeConnection


@dataclass
class _CliGlobalContextManager:
    connection_name: Optional[str] = None
    connection_overrides: dict = field(default_factory=dict)

    _connection: Optional[SnowflakeConnection] = field(default=None, repr=False)

    def reset(self):
        self.close_connection()
        self.__init__()

    @property
    def connection(self) -> SnowflakeConnection:
        """
        Returns the connection of this context. The connection is opened
        on first access and reused afterwards.
        """
        if self._connection is None:
            from snowflake.udf._app.snow_connector import connect_to_snowflake
            from snowflake.udf.api.config import get_default_connection_name

            self._connection = connect_to_snowflake(
                connection_name=self.connection_name or get_default_connection_name(),
                **self.connection_overrides,
            )
        return self._connection

    def close_connection(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class _CliGlobalContextAccess:
    def __init__(self, manager: _CliGlobalContextManager):
        self._manager = manager

    @property
    def connection(self) -> SnowflakeConnection:
        return self._manager.connection


_CLI_CONTEXT_MANAGER: ContextVar[_CliGlobalContextManager | None] = ContextVar(
    "udf_cli_context", default=None
)


def get_cli_context_manager() -> _CliGlobalContextManager:
    mgr = _CLI_CONTEXT_MANAGER.get()
    if not mgr:
        mgr = _CliGlobalContextManager()
        _CLI_CONTEXT_MANAGER.set(mgr)
    return mgr


def get_cli_context() -> _CliGlobalContextAccess:
    return _CliGlobalContextAccess(get_cli_context_manager())

