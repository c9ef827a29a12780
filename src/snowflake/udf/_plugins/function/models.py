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
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from snowflake.udf._plugins.function.builder import Argument, UdfBuilder
from snowflake.udf.api.identifiers import PIPE_ID_DELIMITER
from snowflake.udf.api.util import try_cast_to_bool


class _UdfBaseModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid", populate_by_name=True, validate_assignment=True
    )


class ArgumentModel(_UdfBaseModel):
    name: str = Field(title="Argument name")
    type: str = Field(title="Argument type, e.g. VARIANT")

    def to_argument(self) -> Argument:
        return Argument(name=self.name, type=self.type)


class _FunctionFields(_UdfBaseModel):
    name: str = Field(
        title="Identifier of the function; must be unique, in combination with "
        "its arguments, for the schema in which the function is created",
        min_length=1,
    )
    database: str = Field(
        title="Database in which to create the function", min_length=1
    )
    schema_name: str = Field(
        title="Schema in which to create the function", alias="schema", min_length=1
    )
    or_replace: bool = Field(
        title="Overwrites the function if it exists", default=False
    )
    is_secure: bool = Field(
        title="Specifies that the function is secure", default=False
    )
    language: Optional[str] = Field(
        title="Language used in the body of the function", default=None
    )
    arguments: List[ArgumentModel] = Field(
        title="Arguments the function receives, in signature order",
        default_factory=list,
    )

    @field_validator("name", "database", "schema_name")
    @classmethod
    def _validate_no_delimiter(cls, value: str) -> str:
        if PIPE_ID_DELIMITER in value:
            raise ValueError(f"Cannot contain the '{PIPE_ID_DELIMITER}' character")
        return value

    def builder(self) -> UdfBuilder:
        return (
            UdfBuilder(self.name)
            .with_database(self.database)
            .with_schema(self.schema_name)
            .with_arguments(arg.to_argument() for arg in self.arguments)
        )


class UdfDefinition(_FunctionFields):
    """Desired configuration of a function."""

    return_type: str = Field(title="Return type of the function")
    body: str = Field(title="Code of the function, inserted as-is")

    def builder(self) -> UdfBuilder:
        return (
            super()
            .builder()
            .with_replace(self.or_replace)
            .with_secure(self.is_secure)
            .with_return_type(self.return_type)
            .with_language(self.language)
            .with_body(self.body)
        )


class UdfState(_FunctionFields):
    """
    Persisted state of a managed function. `id` is the encoded
    database|schema|name handle, None once the function no longer exists.
    Arguments read back from SHOW FUNCTIONS have an empty name until the
    definition provides it.
    """

    id: Optional[str] = None
    return_type: Optional[str] = None
    body: Optional[str] = None
    comment: Optional[str] = None

    @classmethod
    def from_definition(cls, definition: UdfDefinition, id_: str) -> UdfState:
        return cls(id=id_, **definition.model_dump(by_alias=True))


@dataclass
class UdfRow:
    """A row of SHOW FUNCTIONS output."""

    name: Optional[str] = None
    schema_name: Optional[str] = None
    database_name: Optional[str] = None
    language: Optional[str] = None
    comment: Optional[str] = None
    arguments: Optional[str] = None
    is_secure: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> UdfRow:
        columns = {str(key).lower(): value for key, value in row.items()}
        database_name = columns.get("database_name", columns.get("catalog_name"))
        is_secure = columns.get("is_secure")
        return cls(
            name=columns.get("name"),
            schema_name=columns.get("schema_name"),
            database_name=database_name,
            language=columns.get("language"),
            comment=columns.get("comment", columns.get("description")),
            arguments=columns.get("arguments"),
            is_secure=try_cast_to_bool(is_secure) if is_secure is not None else False,
        )

    def argument_types(self) -> Optional[List[str]]:
        """
        Argument types listed in the `arguments` column, e.g. `OBJECT` and `VARCHAR`
        for `FN(OBJECT, VARCHAR) RETURN VARIANT`. None when the column is missing
        or has no argument list.
        """
        if not self.arguments:
            return None
        start = self.arguments.find("(")
        end = self.arguments.rfind(") RETURN ")
        if end == -1:
            end = self.arguments.rfind(")")
        if start == -1 or end < start:
            return None

        types: List[str] = []
        current, depth = "", 0
        for char in self.arguments[start + 1 : end]:
            if char == "," and depth == 0:
                types.append(current.strip())
                current = ""
                continue
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            current += char
        if current.strip():
            types.append(current.strip())
        return types


def body_statement_diff_suppressed(old: Optional[str], new: Optional[str]) -> bool:
    """
    Tells whether two function bodies should be treated as equal. Snowflake does not
    round-trip bodies faithfully, so line endings are normalised and trailing
    semicolons and line breaks are ignored.
    """

    def _normalize(body: Optional[str]) -> str:
        return (body or "").replace("\r\n", "\n").rstrip(";\r\n")

    return _normalize(old) == _normalize(new)
