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

import csv
from dataclasses import dataclass
from io import StringIO
from typing import List, Tuple

from snowflake.udf.api.exceptions import MalformedIdentifierError

PIPE_ID_DELIMITER = "|"
_ID_FIELDS_COUNT = 3
_LINE_TERMINATOR = "\n"


def encode_identifier(
    database: str, schema: str, name: str, delimiter: str = PIPE_ID_DELIMITER
) -> str:
    """
    Writes the three parts of a function identifier as a single CSV record
    separated by `delimiter`. Parts containing the delimiter, quotes or line breaks
    are quoted, so the result can always be decoded back.
    """
    buffer = StringIO()
    writer = csv.writer(
        buffer,
        delimiter=delimiter,
        lineterminator=_LINE_TERMINATOR,
        quoting=csv.QUOTE_MINIMAL,
        strict=True,
    )
    try:
        writer.writerow([database, schema, name])
    except csv.Error as err:
        raise MalformedIdentifierError(
            delimiter.join([database, schema, name]), f"not CSV compatible ({err})"
        ) from err
    return buffer.getvalue()[: -len(_LINE_TERMINATOR)]


def decode_identifier(
    value: str, delimiter: str = PIPE_ID_DELIMITER
) -> Tuple[str, str, str]:
    """
    Reverse of `encode_identifier`. Expects exactly one record with exactly
    three fields.
    """
    reader = csv.reader(StringIO(value, newline=""), delimiter=delimiter, strict=True)
    try:
        records: List[List[str]] = [record for record in reader if record]
    except csv.Error as err:
        raise MalformedIdentifierError(value, "not CSV compatible") from err

    if len(records) != 1:
        raise MalformedIdentifierError(value, "expected exactly one record")
    if len(records[0]) != _ID_FIELDS_COUNT:
        raise MalformedIdentifierError(
            value,
            f"expected {_ID_FIELDS_COUNT} fields separated by '{delimiter}', "
            f"got {len(records[0])}",
        )
    database, schema, name = records[0]
    return database, schema, name


@dataclass(frozen=True)
class UdfId:
    """
    Persisted handle of a function: database, schema and name.

    Functions can be overloaded, so the handle alone does not determine
    the signature. Argument types are kept in the resource state.
    """

    database_name: str
    schema_name: str
    name: str

    def to_string(self, delimiter: str = PIPE_ID_DELIMITER) -> str:
        return encode_identifier(
            self.database_name, self.schema_name, self.name, delimiter=delimiter
        )

    @classmethod
    def from_string(cls, value: str, delimiter: str = PIPE_ID_DELIMITER) -> UdfId:
        database, schema, name = decode_identifier(value, delimiter=delimiter)
        return cls(database_name=database, schema_name=schema, name=name)

    def __str__(self):
        return self.to_string()
