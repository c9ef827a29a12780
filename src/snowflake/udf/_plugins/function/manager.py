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
from typing import Dict, List, Optional

from pydantic import ValidationError
from snowflake.connector.errors import DatabaseError
from snowflake.udf._plugins.function.builder import UdfBuilder
from snowflake.udf._plugins.function.models import (
    ArgumentModel,
    UdfDefinition,
    UdfRow,
    UdfState,
    body_statement_diff_suppressed,
)
from snowflake.udf.api.exceptions import (
    CliError,
    MalformedIdentifierError,
    MissingScopeError,
    UdfSqlExecutionError,
)
from snowflake.udf.api.identifiers import UdfId
from snowflake.udf.api.sql_execution import BaseSqlExecutor

log = logging.getLogger(__name__)


def replacement_reasons(state: UdfState, definition: UdfDefinition) -> List[str]:
    """
    Lists the attributes that changed and cannot be altered in place.
    Attributes missing from the state (e.g. after an import) are not compared.
    """
    reasons = []
    if state.database != definition.database:
        reasons.append("database")
    if state.schema_name != definition.schema_name:
        reasons.append("schema")
    if not _same_arguments(state.arguments, definition.arguments):
        reasons.append("arguments")
    if state.return_type is not None and state.return_type != definition.return_type:
        reasons.append("return_type")
    if (
        state.language is not None
        and definition.language is not None
        and state.language.lower() != definition.language.lower()
    ):
        reasons.append("language")
    if state.body is not None and not body_statement_diff_suppressed(
        state.body, definition.body
    ):
        reasons.append("body")
    return reasons


def _same_arguments(known: List[ArgumentModel], wanted: List[ArgumentModel]) -> bool:
    # SHOW FUNCTIONS lists types only, an empty name matches any name
    if len(known) != len(wanted):
        return False
    return all(
        a.type.upper() == b.type.upper() and (not a.name or a.name == b.name)
        for a, b in zip(known, wanted)
    )


class FunctionManager(BaseSqlExecutor):
    """
    Creates, reads, updates and deletes a single user-defined function.

    Every operation renders its statement with a fresh UdfBuilder and sends it
    as one blocking call. Update issues one call per changed attribute.
    """

    def _execute_or_raise(self, query: str, error_message: str) -> int:
        try:
            return self.execute(query)
        except DatabaseError as err:
            raise UdfSqlExecutionError(error_message, err) from err

    def _builder_for(self, state: UdfState) -> UdfBuilder:
        udf_id = UdfId.from_string(state.id or "")
        return (
            UdfBuilder(udf_id.name)
            .with_database(udf_id.database_name)
            .with_schema(udf_id.schema_name)
            .with_arguments(arg.to_argument() for arg in state.arguments)
        )

    def create(self, definition: UdfDefinition) -> UdfState:
        query = definition.builder().create()
        self._execute_or_raise(query, f"error creating function {definition.name}")

        # Functions can be overloaded, the id carries only the name.
        udf_id = UdfId(
            database_name=definition.database,
            schema_name=definition.schema_name,
            name=definition.name,
        ).to_string()
        log.info("Created function %s", udf_id)
        return self.read(UdfState.from_definition(definition, udf_id))

    def read(self, state: UdfState) -> UdfState:
        """
        Refreshes the state from SHOW FUNCTIONS. When the function is gone,
        the returned state has no id.
        """
        query = self._builder_for(state).show()
        try:
            row = self.query_row(query)
        except DatabaseError as err:
            raise UdfSqlExecutionError(
                f"error reading function {state.id}", err
            ) from err

        if row is None:
            log.debug("Udf (%s) not found", state.id)
            return state.model_copy(update={"id": None})

        return _copy_row_into_state(UdfRow.from_row(row), state)

    def update(self, state: UdfState, definition: UdfDefinition) -> UdfState:
        udf_id = UdfId.from_string(state.id or "")
        builder = self._builder_for(state)
        new_state = state.model_copy(deep=True)

        if definition.name != udf_id.name:
            query = builder.rename(definition.name)
            self._execute_or_raise(query, f"error renaming function {state.id}")
            new_state.id = UdfId(
                database_name=udf_id.database_name,
                schema_name=udf_id.schema_name,
                name=definition.name,
            ).to_string()
            new_state.name = definition.name
            log.info("Renamed function %s to %s", state.id, new_state.id)

        if definition.is_secure != state.is_secure:
            if definition.is_secure:
                query = builder.secure()
                message = f"error setting secure for function {new_state.id}"
            else:
                query = builder.unsecure()
                message = f"error unsetting secure for function {new_state.id}"
            self._execute_or_raise(query, message)
            new_state.is_secure = definition.is_secure

        new_state.or_replace = definition.or_replace
        # unknown after an import, take the configured values
        if new_state.return_type is None:
            new_state.return_type = definition.return_type
        if new_state.body is None:
            new_state.body = definition.body
        if any(not arg.name for arg in new_state.arguments):
            new_state.arguments = [arg.model_copy() for arg in definition.arguments]

        return self.read(new_state)

    def delete(self, state: UdfState) -> UdfState:
        query = self._builder_for(state).drop()
        self._execute_or_raise(query, f"error deleting function {state.id}")
        log.info("Dropped function %s", state.id)
        return state.model_copy(update={"id": None})

    def exists(self, state: UdfState) -> bool:
        query = self._builder_for(state).show()
        try:
            rows: List[Dict] = self.query_rows(query)
        except DatabaseError as err:
            raise UdfSqlExecutionError(
                f"error reading function {state.id}", err
            ) from err
        return len(rows) > 0

    def apply(
        self, definition: UdfDefinition, state: Optional[UdfState] = None
    ) -> UdfState:
        """
        Brings the function in line with the definition: creates it when there is
        no state or the function vanished, replaces it when an attribute that
        cannot be altered changed, and updates it otherwise.
        """
        if state is None or state.id is None:
            return self.create(definition)

        state = self.read(state)
        if state.id is None:
            log.info("Function %s no longer exists, creating it", definition.name)
            return self.create(definition)

        reasons = replacement_reasons(state, definition)
        if reasons:
            log.info(
                "Function %s has to be replaced, changed: %s",
                state.id,
                ", ".join(reasons),
            )
            self.delete(state)
            return self.create(definition)

        return self.update(state, definition)

    def import_(self, identifier: str) -> UdfState:
        udf_id = UdfId.from_string(identifier)
        if not udf_id.database_name or not udf_id.schema_name:
            raise MissingScopeError()
        try:
            state = UdfState(
                id=identifier,
                name=udf_id.name,
                database=udf_id.database_name,
                schema=udf_id.schema_name,
            )
        except ValidationError as err:
            reason = "; ".join(error["msg"] for error in err.errors())
            raise MalformedIdentifierError(identifier, reason) from err
        state = self.read(state)
        if state.id is None:
            raise CliError(f"Function {identifier} does not exist or not authorized.")
        return state


def _copy_row_into_state(row: UdfRow, state: UdfState) -> UdfState:
    update = {
        "name": row.name or state.name,
        "is_secure": row.is_secure,
        "language": row.language or state.language,
        "schema_name": row.schema_name or state.schema_name,
        "database": row.database_name or state.database,
        "comment": row.comment,
    }
    argument_types = row.argument_types()
    if not state.arguments and argument_types:
        update["arguments"] = [
            ArgumentModel(name="", type=type_) for type_ in argument_types
        ]
    return state.model_copy(update=update)
