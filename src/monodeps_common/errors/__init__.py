# SPDX-License-Identifier: MIT
"""Exception hierarchy and Problem Details support.

Examples
--------
>>> from monodeps_common.errors import MonodepsError, ErrorCode
>>> try:
...     raise MonodepsError("Operation failed", code=ErrorCode.RUNTIME_ERROR)
... except MonodepsError as e:
...     details = e.to_problem_details(instance="urn:monodeps:cli")
...     assert details["type"] == "https://monodeps.dev/problems/runtime-error"
"""

from __future__ import annotations

from monodeps_common.errors.codes import BASE_TYPE_URI, ErrorCode, get_type_uri
from monodeps_common.errors.exceptions import (
    EmptyWorkspaceError,
    InvalidParameterError,
    ManifestParseError,
    MonodepsError,
    SettingsError,
    VcsError,
    WorkspaceIntegrityError,
    WorkspaceIOError,
    WorkspaceScanError,
)

__all__ = [
    "BASE_TYPE_URI",
    "EmptyWorkspaceError",
    "ErrorCode",
    "InvalidParameterError",
    "ManifestParseError",
    "MonodepsError",
    "SettingsError",
    "VcsError",
    "WorkspaceIOError",
    "WorkspaceIntegrityError",
    "WorkspaceScanError",
    "get_type_uri",
]
