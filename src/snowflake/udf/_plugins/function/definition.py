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

import json
import logging
from pathlib import Path
from textwrap import dedent
from typing import Optional

import yaml
from pydantic import ValidationError
from snowflake.udf._plugins.function.models import UdfDefinition, UdfState
from snowflake.udf.api.exceptions import DefinitionFileError, StateFileError

log = logging.getLogger(__name__)


class DefinitionValidationError(DefinitionFileError):
    generic_message = "For field {location} you provided '{input}'. This caused: {msg}"
    message_templates = {
        "string_type": "{msg} for field '{location}', you provided '{input}'.",
        "extra_forbidden": "{msg}. You provided field '{location}' with value '{input}' that is not supported.",
        "missing": "Your function definition is missing the following field: '{location}'",
    }

    def __init__(self, error: ValidationError):
        message = "During evaluation of the function definition following errors were encountered:\n"
        message += "\n".join(
            self.message_templates.get(e["type"], self.generic_message).format(
                **e,
                location=".".join(str(part) for part in e["loc"]),
            )
            for e in error.errors()
        )
        super().__init__(dedent(message))


class _DefinitionLoader(yaml.BaseLoader):
    pass


def _no_duplicates_constructor(loader, node, deep=False):
    """
    Raises error it there are duplicated keys on the same level in the yaml file
    """
    mapping = {}

    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        value = loader.construct_object(value_node, deep=deep)
        if key in mapping.keys():
            raise DefinitionFileError(
                f"While loading the function definition file, duplicate key was found: {key}"
            )
        mapping[key] = value
    return loader.construct_mapping(node, deep)


_DefinitionLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _no_duplicates_constructor
)


def load_definition(path: Path) -> UdfDefinition:
    """Loads a function definition from a YAML file."""
    if not path.exists():
        raise DefinitionFileError(f"File {path} does not exist.")
    try:
        data = yaml.load(path.read_text(), Loader=_DefinitionLoader) or {}
    except yaml.YAMLError as err:
        raise DefinitionFileError(f"Could not parse {path}. {err}")
    if not isinstance(data, dict):
        raise DefinitionFileError(f"Expected a mapping in {path}.")

    try:
        return UdfDefinition.model_validate(data)
    except ValidationError as err:
        raise DefinitionValidationError(err)


def load_state(path: Path) -> Optional[UdfState]:
    """Loads the state written by a previous run, None when there is none."""
    if not path.exists():
        log.debug("State file %s does not exist", path)
        return None
    try:
        return UdfState.model_validate(json.loads(path.read_text()))
    except (json.JSONDecodeError, ValidationError) as err:
        raise StateFileError(f"Could not load {path}. {err}")


def save_state(path: Path, state: UdfState) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(state.model_dump_json(by_alias=True, indent=2))
    log.debug("State saved to %s", path)


def remove_state(path: Path) -> None:
    if path.exists():
        path.unlink()
        log.debug("State file %s removed", path)
