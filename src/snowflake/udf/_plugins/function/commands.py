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
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from snowflake.udf._plugins.function.definition import (
    load_definition,
    load_state,
    remove_state,
    save_state,
)
from snowflake.udf._plugins.function.manager import FunctionManager
from snowflake.udf._plugins.function.models import UdfState
from snowflake.udf.api.exceptions import StateFileError

log = logging.getLogger(__name__)

app = typer.Typer(
    name="function",
    help="Manages a Snowflake user-defined function described in a YAML file.",
    no_args_is_help=True,
)

DefinitionArgument = typer.Argument(
    ...,
    help="Path to the YAML file with the function definition.",
    dir_okay=False,
    show_default=False,
)

StateOption = typer.Option(
    Path("udf.state.json"),
    "--state",
    "-s",
    help="Path to the file keeping the state of the managed function.",
    dir_okay=False,
)


class RenderedStatement(str, Enum):
    CREATE = "create"
    DROP = "drop"
    SHOW = "show"
    SECURE = "secure"
    UNSECURE = "unsecure"


def _print_state(state: UdfState) -> None:
    Console().print_json(state.model_dump_json(by_alias=True))


def _load_existing_state(state_file: Path) -> UdfState:
    state = load_state(state_file)
    if state is None:
        raise StateFileError(f"No state found at {state_file}.")
    return state


@app.command()
def apply(
    definition_file: Path = DefinitionArgument,
    state_file: Path = StateOption,
):
    """
    Creates the function, or brings the existing one in line with the definition.
    """
    definition = load_definition(definition_file)
    state = FunctionManager().apply(definition, load_state(state_file))
    save_state(state_file, state)
    _print_state(state)


@app.command()
def refresh(state_file: Path = StateOption):
    """
    Reads the function from Snowflake and updates the state file.
    """
    state = FunctionManager().read(_load_existing_state(state_file))
    save_state(state_file, state)
    if state.id is None:
        typer.echo(f"Function {state.name} no longer exists.")
        return
    _print_state(state)


@app.command()
def destroy(state_file: Path = StateOption):
    """
    Drops the function and removes the state file.
    """
    state = _load_existing_state(state_file)
    if state.id is None:
        typer.echo("Nothing to destroy.")
    else:
        FunctionManager().delete(state)
        typer.echo(f"Function {state.id} dropped.")
    remove_state(state_file)


@app.command("import")
def import_(
    identifier: str = typer.Argument(
        ...,
        help="Identifier of an existing function in the database|schema|name format.",
        show_default=False,
    ),
    state_file: Path = StateOption,
):
    """
    Starts managing an existing function.
    """
    if load_state(state_file) is not None:
        raise StateFileError(f"{state_file} already keeps a function.")
    state = FunctionManager().import_(identifier)
    save_state(state_file, state)
    _print_state(state)


@app.command()
def render(
    definition_file: Path = DefinitionArgument,
    statement: RenderedStatement = typer.Option(
        RenderedStatement.CREATE,
        "--statement",
        help="Statement to render.",
        case_sensitive=False,
    ),
):
    """
    Prints the SQL statement for the function without connecting to Snowflake.
    """
    builder = load_definition(definition_file).builder()
    rendered = {
        RenderedStatement.CREATE: builder.create,
        RenderedStatement.DROP: builder.drop,
        RenderedStatement.SHOW: builder.show,
        RenderedStatement.SECURE: builder.secure,
        RenderedStatement.UNSECURE: builder.unsecure,
    }[statement]()
    typer.echo(rendered)
