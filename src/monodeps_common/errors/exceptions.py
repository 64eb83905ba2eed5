# SPDX-License-Identifier: MIT
"""Typed exception hierarchy with Problem Details support.

All monodeps exceptions inherit from :class:`MonodepsError`, which carries a
stable :class:`ErrorCode`, an HTTP-style status, a log level and a context
mapping, and converts itself to an RFC 9457 Problem Details payload.

Fatal conditions (everything except a skipped manifest during a broad
workspace scan) propagate to the CLI, which renders the Problem Details
document on stderr and exits non-zero.

Examples
--------
>>> from monodeps_common.errors import VcsError, ErrorCode
>>> try:
...     raise VcsError("Cannot resolve reference", ref="main~3")
... except VcsError as e:
...     assert e.code == ErrorCode.VCS_ERROR
...     details = e.to_problem_details(instance="urn:monodeps:cli:changed")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, cast

from monodeps_common.errors.codes import ErrorCode, get_type_uri
from monodeps_common.problem_details import build_problem_details

if TYPE_CHECKING:
    from monodeps_common.problem_details import JsonValue, ProblemDetails

__all__ = [
    "EmptyWorkspaceError",
    "InvalidParameterError",
    "ManifestParseError",
    "MonodepsError",
    "SettingsError",
    "VcsError",
    "WorkspaceIOError",
    "WorkspaceIntegrityError",
    "WorkspaceScanError",
]


class MonodepsError(Exception):
    """Base exception for all monodeps errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode, optional
        Stable error code. Defaults to ``ErrorCode.RUNTIME_ERROR``.
    http_status : int, optional
        Status used in Problem Details payloads. Defaults to 500.
    log_level : int, optional
        Level at which callers should log the error. Defaults to ``logging.ERROR``.
    cause : Exception | None, optional
        Underlying exception. Stored as ``__cause__``. Defaults to None.
    context : Mapping[str, object] | None, optional
        Structured context for diagnostics. Defaults to None.

    Attributes
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode
        Error code enum value.
    http_status : int
        Status for Problem Details payloads.
    log_level : int
        Logging level for error logging.
    context : dict[str, object]
        Additional structured details.

    Examples
    --------
    >>> error = MonodepsError("Operation failed")
    >>> error.code
    <ErrorCode.RUNTIME_ERROR: 'runtime-error'>
    >>> error.to_problem_details()["status"]
    500
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.RUNTIME_ERROR,
        http_status: int = 500,
        log_level: int = logging.ERROR,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status
        self.log_level = log_level
        self.context = dict(context) if context else {}
        if cause is not None:
            self.__cause__ = cause

    def to_problem_details(
        self,
        instance: str | None = None,
        title: str | None = None,
    ) -> ProblemDetails:
        """Convert to an RFC 9457 Problem Details payload.

        Parameters
        ----------
        instance : str | None, optional
            URI identifying the occurrence. Defaults to ``urn:monodeps:error``.
        title : str | None, optional
            Short summary. Defaults to the exception class name.

        Returns
        -------
        ProblemDetails
            Payload with type, title, status, detail, instance, code and
            the error context as extensions.
        """
        extensions = {key: _jsonable(value) for key, value in self.context.items()}
        return build_problem_details(
            problem_type=get_type_uri(self.code),
            title=title or self.__class__.__name__,
            status=self.http_status,
            detail=self.message,
            instance=instance or "urn:monodeps:error",
            code=self.code.value,
            extensions=cast("Mapping[str, JsonValue] | None", extensions or None),
        )

    def __str__(self) -> str:
        """Return formatted error string.

        Returns
        -------
        str
            Formatted error string (e.g., "VcsError[vcs-error]: Cannot open repository").
        """
        base = f"{self.__class__.__name__}[{self.code.value}]: {self.message}"
        if self.__cause__:
            base += f" (caused by: {type(self.__cause__).__name__})"
        return base


def _jsonable(value: object) -> object:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    return str(value)


class ManifestParseError(MonodepsError):
    """Raised when a manifest cannot be read or is not well formed.

    Recoverable while scanning a whole workspace (the module is skipped with
    a warning) but fatal when the manifest belongs to the module explicitly
    targeted by the caller.

    Parameters
    ----------
    message : str
        Human-readable error message.
    path : str
        Manifest path.
    line : int | None, optional
        1-based line number of the offending statement. Defaults to None.
    cause : Exception | None, optional
        Underlying exception (typically ``OSError`` or ``UnicodeDecodeError``).
        Defaults to None.
    """

    def __init__(
        self,
        message: str,
        path: str,
        *,
        line: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        context: dict[str, object] = {"path": path}
        if line is not None:
            context["line"] = line
        super().__init__(
            message,
            code=ErrorCode.MANIFEST_PARSE_ERROR,
            http_status=422,
            log_level=logging.WARNING,
            cause=cause,
            context=context,
        )
        self.path = path
        self.line = line


class WorkspaceScanError(MonodepsError):
    """Raised when the workspace root itself cannot be listed."""

    def __init__(self, message: str, root: str, *, cause: Exception | None = None) -> None:
        super().__init__(
            message,
            code=ErrorCode.WORKSPACE_SCAN_ERROR,
            http_status=500,
            cause=cause,
            context={"root": root},
        )


class EmptyWorkspaceError(MonodepsError):
    """Raised when a workspace scan discovers zero modules.

    Kept distinct from :class:`WorkspaceScanError` so callers can decide
    whether an empty workspace is fatal.
    """

    def __init__(self, message: str, root: str) -> None:
        super().__init__(
            message,
            code=ErrorCode.EMPTY_WORKSPACE,
            http_status=404,
            context={"root": root},
        )


class WorkspaceIntegrityError(MonodepsError):
    """Raised when the workspace index is internally inconsistent.

    Examples are a dependent identifier with no known location or two
    locations declaring the same identifier. Never user-correctable by
    retrying; indicates a broken workspace or a race against a mutating one.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.WORKSPACE_INTEGRITY_ERROR,
            http_status=500,
            log_level=logging.CRITICAL,
            context=context,
        )


class VcsError(MonodepsError):
    """Raised when a repository, reference, tree or diff operation fails.

    Parameters
    ----------
    message : str
        Human-readable error message.
    ref : str | None, optional
        Revision being resolved, when applicable. Defaults to None.
    repo_path : str | None, optional
        Repository path, when applicable. Defaults to None.
    cause : Exception | None, optional
        Underlying GitPython exception. Defaults to None.
    """

    def __init__(
        self,
        message: str,
        *,
        ref: str | None = None,
        repo_path: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        context: dict[str, object] = {}
        if ref is not None:
            context["ref"] = ref
        if repo_path is not None:
            context["repo_path"] = repo_path
        super().__init__(
            message,
            code=ErrorCode.VCS_ERROR,
            http_status=500,
            cause=cause,
            context=context,
        )


class WorkspaceIOError(MonodepsError):
    """Raised when a filesystem check fails for a reason other than "not found"."""

    def __init__(self, message: str, path: str, *, cause: Exception | None = None) -> None:
        super().__init__(
            message,
            code=ErrorCode.WORKSPACE_IO_ERROR,
            http_status=500,
            cause=cause,
            context={"path": path},
        )


class InvalidParameterError(MonodepsError):
    """Raised when a caller passes an out-of-range or malformed parameter."""

    def __init__(self, message: str, *, parameter: str, value: object) -> None:
        super().__init__(
            message,
            code=ErrorCode.INVALID_PARAMETER,
            http_status=400,
            log_level=logging.WARNING,
            context={"parameter": parameter, "value": value},
        )


class SettingsError(MonodepsError):
    """Raised when runtime settings fail validation.

    Parameters
    ----------
    message : str
        Human-readable error message.
    errors : list[dict[str, object]] | None, optional
        Validation error entries with field/issue details. Defaults to None.
    cause : Exception | None, optional
        Underlying exception. Defaults to None.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, object]] | None = None,
        cause: Exception | None = None,
    ) -> None:
        context: dict[str, object] = {}
        if errors:
            context["errors"] = errors
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_ERROR,
            http_status=500,
            log_level=logging.CRITICAL,
            cause=cause,
            context=context,
        )
