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

import functools
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, List, NamedTuple, Union
from unittest import mock

import pytest
from snowflake.connector.cursor import SnowflakeCursor
from snowflake.udf._app.cli_app import app
from typer import Typer
from typer.testing import CliRunner

TEST_DIR = Path(__file__).parent.parent

BASIC_DEFINITION = """\
name: fn
database: db
schema: schema
return_type: VARIANT
arguments:
  - name: arg1
    type: OBJECT
  - name: arg2
    type: VARCHAR
body: |
  arg1
"""


class UdfCliRunner(CliRunner):
    def __init__(self, app: Typer, test_udf_config: Path):
        super().__init__()
        self.app = app
        self.test_udf_config = test_udf_config

    @functools.wraps(CliRunner.invoke)
    def invoke(self, *a, **kw):
        return self.invoke_with_config_file(self.test_udf_config, *a, **kw)

    def invoke_with_config_file(self, config_file: Path, *a, **kw):
        kw.update(catch_exceptions=False)
        return super().invoke(
            self.app, ["--config-file", str(config_file), *a[0]], **kw
        )


@pytest.fixture
def mock_cursor():
    class MockResultMetadata(NamedTuple):
        name: str

    class _MockCursor(SnowflakeCursor):
        def __init__(self, rows: List[Union[tuple, dict]], columns: List[str]):
            super().__init__(mock.Mock())
            self._rows = rows
            self._columns = [MockResultMetadata(c) for c in columns]

        def fetchone(self):
            if self._rows:
                return self._rows.pop(0)
            return None

        def fetchall(self):
            return self._rows

        @property
        def rowcount(self):
            return len(self._rows)

        @property
        def description(self):
            yield from self._columns

        @classmethod
        def from_input(cls, rows, columns):
            return cls(rows, columns)

    return _MockCursor.from_input


@pytest.fixture
def mock_statement_success(mock_cursor):
    def generate_mock_success() -> SnowflakeCursor:
        return mock_cursor(
            rows=[("Statement executed successfully.",)], columns=["status"]
        )

    return generate_mock_success


@pytest.fixture
def show_functions_row():
    def _row(**overrides) -> dict:
        row = {
            "name": "fn",
            "schema_name": "schema",
            "database_name": "db",
            "language": "SQL",
            "comment": "user-defined function",
            "arguments": "FN(OBJECT, VARCHAR) RETURN VARIANT",
            "is_secure": "N",
        }
        row.update(overrides)
        return row

    return _row


@contextmanager
def _named_temporary_file(suffix=None, prefix=None):
    with tempfile.TemporaryDirectory() as tmp_dir:
        suffix = suffix or ""
        prefix = prefix or ""
        f = Path(tmp_dir) / f"{prefix}tmp_file{suffix}"
        f.touch()
        yield f


@pytest.fixture()
def test_udf_config() -> Generator[Path, None, None]:
    test_config = TEST_DIR / "test.toml"
    with _named_temporary_file(suffix=".toml") as p:
        p.write_text(test_config.read_text())
        p.chmod(0o600)
        yield p


@pytest.fixture
def snowflake_home(monkeypatch) -> Generator[Path, None, None]:
    """
    Set up the default location of config files to [temp_dir]/.snowflake
    """
    with tempfile.TemporaryDirectory() as tmp_dir:
        snowflake_home = Path(tmp_dir) / ".snowflake"
        snowflake_home.mkdir()
        monkeypatch.setenv("SNOWFLAKE_HOME", str(snowflake_home))
        yield snowflake_home


@pytest.fixture
def runner(test_udf_config):
    yield UdfCliRunner(app, test_udf_config)


@pytest.fixture
def definition_file(tmp_path) -> Path:
    path = tmp_path / "udf.yml"
    path.write_text(BASIC_DEFINITION)
    return path


@pytest.fixture
def state_file(tmp_path) -> Path:
    return tmp_path / "udf.state.json"
