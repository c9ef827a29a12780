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
from logging import FileHandler

import pytest
from snowflake.udf._app import loggers
from snowflake.udf.api.cli_global_context import get_cli_context_manager
from snowflake.udf.api.config import config_init

pytest_plugins = [
    "tests.testing_utils.fixtures",
]


@pytest.fixture(autouse=True)
# Global context and logging levels reset is required.
# Without it, state from previous tests is visible in following tests.
def reset_global_context_and_setup_config_and_logging_levels(
    snowflake_home, test_udf_config
):
    cli_context_manager = get_cli_context_manager()
    cli_context_manager.reset()
    config_init(test_udf_config)
    loggers.create_loggers(verbose=False, debug=False)
    try:
        yield
    finally:
        cli_context_manager.reset()


# This automatically used cleanup fixture is required to avoid random breaking of logging
# in one test caused by presence of capsys in other test.
# See similar issues: https://github.com/pytest-dev/pytest/issues/5502
@pytest.fixture(autouse=True)
def clean_logging_handlers_fixture():
    yield
    clean_logging_handlers()


def clean_logging_handlers():
    for logger in [logging.getLogger()] + list(
        logging.Logger.manager.loggerDict.values()
    ):
        handlers = [hdl for hdl in getattr(logger, "handlers", [])]
        for handler in handlers:
            logger.removeHandler(handler)
            if isinstance(handler, FileHandler):
                handler.close()
