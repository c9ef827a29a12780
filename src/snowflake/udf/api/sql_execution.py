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
from functools import cached_property
from io import StringIO
from textwrap import dedent
from typing import Dict, Iterable, List, Optional

from snowflake.connector import SnowflakeConnection
from snowflake.connector.cursor import DictCursor, SnowflakeCursor
from snowflake.udf.api.cli_global_context import get_cli_context


class BaseSqlExecutor:
    """
    Base class for executing SQL statements on a Snowflake connection.

    Every statement is sent as a single blocking call. Errors reported by the
    connector are not retried and propagate to the caller.
    """

    def __init__(self, connection: SnowflakeConnection | None = None) -> None:
        self._connection = connection

    @property
    def _conn(self) -> SnowflakeConnection:
        """Returns the current Snowflake connection, either from the instance or the global context."""
        if self._connection:
            return self._connection
        return get_cli_context().connection

    @cached_property
    def _log(self):
        return logging.getLogger(__name__)

    def _execute_string(
        self,
        sql_text: str,
        remove_comments: bool = False,
        cursor_class: SnowflakeCursor = SnowflakeCursor,
        **kwargs,
    ) -> Iterable[SnowflakeCursor]:
        """
        Custom implementation of SnowflakeConnection.execute_string that returns
        a generator instead of a list.
        """
        self._log.debug("Executing %s", sql_text)
        stream = StringIO(sql_text)
        return self._conn.execute_stream(
            stream,
            remove_comments=remove_comments,
            cursor_class=cursor_class,
            **kwargs,
        )

    def execute_query(self, query: str, **kwargs) -> SnowflakeCursor:
        """Executes a single SQL query and returns the last result"""
        *_, last_result = list(self._execute_string(dedent(query), **kwargs))
        return last_result

    def execute(self, query: str) -> int:
        """Executes a statement and returns the number of affected rows."""
        cursor = self.execute_query(query)
        return cursor.rowcount or 0

    def query_row(self, query: str) -> Optional[Dict]:
        """
        Executes a query and returns its first row as a dictionary,
        or None when the query returned no rows.
        """
        return self.execute_query(query, cursor_class=DictCursor).fetchone()

    def query_rows(self, query: str) -> List[Dict]:
        return self.execute_query(query, cursor_class=DictCursor).fetchall()
