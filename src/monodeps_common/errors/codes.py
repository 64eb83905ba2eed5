# SPDX-License-Identifier: MIT
"""Error code registry and type URIs for Problem Details.

This module defines stable error codes and type URIs used in RFC 9457
Problem Details documents emitted by the CLI. Codes and URIs are frozen
after release so CI pipelines can match on them.

Examples
--------
>>> from monodeps_common.errors.codes import ErrorCode, get_type_uri
>>> get_type_uri(ErrorCode.VCS_ERROR)
'https://monodeps.dev/problems/vcs-error'
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

__all__ = [
    "BASE_TYPE_URI",
    "ErrorCode",
    "get_type_uri",
]

BASE_TYPE_URI: Final[str] = "https://monodeps.dev/problems"


class ErrorCode(StrEnum):
    """Stable error codes for monodeps exceptions.

    Codes follow kebab-case naming and are grouped by subsystem:

    - Manifest & workspace
    - Version control & filesystem
    - Configuration & runtime

    Attributes
    ----------
    MANIFEST_PARSE_ERROR
        A manifest exists but cannot be read or parsed.
    WORKSPACE_SCAN_ERROR
        The workspace root cannot be listed.
    EMPTY_WORKSPACE
        No modules were discovered under the workspace root.
    WORKSPACE_INTEGRITY_ERROR
        The workspace index violates an internal invariant.
    VCS_ERROR
        Repository, reference, tree or diff operation failed.
    WORKSPACE_IO_ERROR
        A filesystem check failed for a reason other than "not found".
    INVALID_PARAMETER
        A caller supplied an out-of-range or malformed parameter.
    CONFIGURATION_ERROR
        Settings could not be loaded or validated.
    RUNTIME_ERROR
        Unclassified runtime failure.
    """

    # Manifest & workspace
    MANIFEST_PARSE_ERROR = "manifest-parse-error"
    WORKSPACE_SCAN_ERROR = "workspace-scan-error"
    EMPTY_WORKSPACE = "empty-workspace"
    WORKSPACE_INTEGRITY_ERROR = "workspace-integrity-error"

    # Version control & filesystem
    VCS_ERROR = "vcs-error"
    WORKSPACE_IO_ERROR = "workspace-io-error"

    # Configuration & runtime
    INVALID_PARAMETER = "invalid-parameter"
    CONFIGURATION_ERROR = "configuration-error"
    RUNTIME_ERROR = "runtime-error"

    def __str__(self) -> str:
        """Return the code value as a string.

        Returns
        -------
        str
            The error code value (e.g., "vcs-error").
        """
        return self.value


def get_type_uri(code: ErrorCode) -> str:
    """Get the RFC 9457 type URI for an error code.

    Parameters
    ----------
    code : ErrorCode
        Error code enum value.

    Returns
    -------
    str
        Complete type URI (e.g., "https://monodeps.dev/problems/vcs-error").
    """
    return f"{BASE_TYPE_URI}/{code.value}"
