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

import stat
from pathlib import Path

from snowflake.connector.compat import IS_WINDOWS

_ACCESSIBLE_BY_OTHERS = (
    stat.S_IRGRP  # readable by group
    | stat.S_IROTH  # readable by others
    | stat.S_IWGRP  # writeable by group
    | stat.S_IWOTH  # writeable by others
    | stat.S_IXGRP  # executable by group
    | stat.S_IXOTH  # executable by others
)


def file_permissions_are_strict(file_path: Path) -> bool:
    """
    Tells whether only the owner can access the file. Windows ACLs are not
    inspected, files there are always reported as strict.
    """
    if IS_WINDOWS:
        return True
    return (file_path.stat().st_mode & _ACCESSIBLE_BY_OTHERS) == 0
