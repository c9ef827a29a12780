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
from pathlib import Path
from typing import Optional

import typer
from snowflake.udf import __about__
from snowflake.udf._app.loggers import create_loggers
from snowflake.udf._plugins.function.commands import app as function_app
from snowflake.udf.api.cli_global_context import get_cli_context_manager
from snowflake.udf.api.config import config_init

log = logging.getLogger(__name__)

app = typer.Typer(
    name="snow-udf",
    help="Declarative management of Snowflake user-defined functions.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)


def _version_callback(value: bool):
    if value:
        typer.echo(f"snowflake-udf Version: {__about__.VERSION}")
        raise typer.Exit()


@app.callback()
def default(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        help="Shows version of the tool.",
        callback=_version_callback,
        is_eager=True,
    ),
    configuration_file: Optional[Path] = typer.Option(
        None,
        "--config-file",
        help="Specifies the configuration file that should be used.",
        dir_okay=False,
        is_eager=True,
    ),
    connection: Optional[str] = typer.Option(
        None,
        "--connection",
        "-c",
        help="Name of the connection, as defined in your `config.toml`. Default: `default`.",
    ),
    account: Optional[str] = typer.Option(
        None, "--account", help="Name assigned to your Snowflake account."
    ),
    user: Optional[str] = typer.Option(
        None, "--user", help="Username to connect to Snowflake."
    ),
    role: Optional[str] = typer.Option(None, "--role", help="Role to use."),
    warehouse: Optional[str] = typer.Option(
        None, "--warehouse", help="Warehouse to use."
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Displays log entries for log levels `info` and higher.",
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Displays log entries for log levels `debug` and higher."
    ),
) -> None:
    config_init(configuration_file)
    create_loggers(verbose=verbose, debug=debug)

    cli_context_manager = get_cli_context_manager()
    cli_context_manager.connection_name = connection
    cli_context_manager.connection_overrides = {
        "account": account,
        "user": user,
        "role": role,
        "warehouse": warehouse,
    }
    ctx.call_on_close(cli_context_manager.close_connection)
    log.debug("Using configuration file %s", configuration_file or "<default>")


app.add_typer(function_app)
