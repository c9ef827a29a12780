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

from dataclasses import dataclass
from typing import Iterable, List, Optional

from snowflake.udf.api.exceptions import MissingScopeError
from snowflake.udf.api.util import (
    escape_identifier,
    escape_string,
    to_quoted_identifier,
)


@dataclass
class Argument:
    name: str
    type: str

    def definition_sql(self) -> str:
        return f'"{escape_identifier(self.name)}" {escape_string(self.type)}'

    def type_sql(self) -> str:
        return escape_string(self.type)


def arguments_definition_sql(arguments: Iterable[Argument]) -> str:
    """Renders `("name" TYPE, ...)`. Parentheses are present even for no arguments."""
    return "({})".format(", ".join(arg.definition_sql() for arg in arguments))


def arguments_types_sql(arguments: Iterable[Argument]) -> str:
    """Renders the signature `(TYPE, ...)` used to address an overloaded function."""
    return "({})".format(", ".join(arg.type_sql() for arg in arguments))


class UdfBuilder:
    """
    Builds DDL statements for a Snowflake user-defined function.

    Setters only record values and return the builder, so calls can be chained:

    UdfBuilder("fn").with_database("db").with_schema("public").with_body("1").create()

    All checks are deferred to the rendering methods. Supported statements:
      - CREATE FUNCTION
      - ALTER FUNCTION ... RENAME TO / SET SECURE / UNSET SECURE
      - DROP FUNCTION
      - SHOW FUNCTIONS
    """

    def __init__(self, name: str):
        self._name = name
        self._database: Optional[str] = None
        self._schema: Optional[str] = None
        self._arguments: List[Argument] = []
        self._replace = False
        self._secure = False
        self._return_type: Optional[str] = None
        self._language: Optional[str] = None
        self._body = ""

    @property
    def name(self) -> str:
        return self._name

    @property
    def arguments(self) -> List[Argument]:
        return list(self._arguments)

    def with_database(self, database: str) -> UdfBuilder:
        self._database = database
        return self

    def with_schema(self, schema: str) -> UdfBuilder:
        self._schema = schema
        return self

    def with_arguments(self, arguments: Iterable[Argument]) -> UdfBuilder:
        self._arguments = [Argument(name=a.name, type=a.type) for a in arguments]
        return self

    def with_replace(self, replace: bool = True) -> UdfBuilder:
        """Adds the OR REPLACE option."""
        self._replace = replace
        return self

    def with_secure(self, secure: bool = True) -> UdfBuilder:
        self._secure = secure
        return self

    def with_return_type(self, return_type: Optional[str]) -> UdfBuilder:
        self._return_type = return_type
        return self

    def with_language(self, language: Optional[str]) -> UdfBuilder:
        self._language = language
        return self

    def with_body(self, body: str) -> UdfBuilder:
        self._body = body
        return self

    def qualified_name(self) -> str:
        """Returns `"database"."schema"."name"` with every part quoted separately."""
        if not self._database or not self._schema:
            raise MissingScopeError()
        return ".".join(
            to_quoted_identifier(part)
            for part in (self._database, self._schema, self._name)
        )

    def create(self) -> str:
        query = ["CREATE"]
        if self._replace:
            query.append("OR REPLACE")
        if self._secure:
            query.append("SECURE")
        query.append(f"FUNCTION {self.qualified_name()}")
        query.append(arguments_definition_sql(self._arguments))
        if self._return_type:
            query.append(f"RETURNS {escape_string(self._return_type)}")
        if self._language:
            query.append(f"LANGUAGE {escape_string(self._language)}")
        # the body goes in verbatim, a "$$" inside it ends the literal early
        query.append(f"AS $$ {self._body} $$")
        return " ".join(query)

    def rename(self, new_name: str) -> str:
        """
        Returns the statement renaming the function. The builder takes the new name,
        so statements rendered afterwards address the renamed function.
        """
        old_name = self.qualified_name()
        self._name = new_name
        return (
            f"ALTER FUNCTION {old_name} {arguments_types_sql(self._arguments)}"
            f" RENAME TO {self.qualified_name()}"
        )

    def secure(self) -> str:
        return self._alter("SET SECURE")

    def unsecure(self) -> str:
        return self._alter("UNSET SECURE")

    def _alter(self, action: str) -> str:
        return (
            f"ALTER FUNCTION {self.qualified_name()}"
            f" {arguments_types_sql(self._arguments)} {action}"
        )

    def show(self) -> str:
        # The name is used as-is in the LIKE pattern.
        scope = ".".join(
            to_quoted_identifier(part or "") for part in (self._database, self._schema)
        )
        return f"SHOW FUNCTIONS LIKE '{self._name}' IN SCHEMA {scope}"

    def drop(self) -> str:
        return (
            f"DROP FUNCTION {self.qualified_name()}"
            f" {arguments_types_sql(self._arguments)}"
        )
