# SPDX-License-Identifier: MIT
"""Change-set extraction: which directories were touched between two commits.

File changes from :meth:`GitClient.diff_trees` are reduced in four steps:

1. deletions are dropped (a module that no longer exists has no forward impact);
2. paths not matching the file pattern are dropped;
3. each path is coarsened to its first ``max_depth`` segments;
4. the deduplicated candidates are kept only if they are directories on disk.

The result is sorted so repeated runs produce identical output.
"""

from __future__ import annotations

import os
import re
import stat
from collections.abc import Iterable
from pathlib import Path

from monodeps.io.git_client import ChangeKind, FileChange, GitClient
from monodeps_common.errors import InvalidParameterError, WorkspaceIOError
from monodeps_common.logging import get_logger

__all__ = [
    "changed_paths",
    "coarsen_path",
    "collect_changed_paths",
    "compile_pattern",
]

LOGGER = get_logger(__name__)


def compile_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    """Compile ``pattern`` unless it already is a compiled expression.

    Returns
    -------
    re.Pattern[str]
        Compiled expression.

    Raises
    ------
    InvalidParameterError
        If ``pattern`` is not a valid regular expression.
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as exc:
        msg = f"invalid file pattern {pattern!r}: {exc}"
        raise InvalidParameterError(msg, parameter="pattern", value=pattern) from exc


def _check_depth(max_depth: int) -> None:
    if max_depth < 1:
        msg = f"depth must be at least 1, got {max_depth}"
        raise InvalidParameterError(msg, parameter="depth", value=max_depth)


def coarsen_path(path: str, max_depth: int) -> str:
    """Truncate a ``/``-separated path to its first ``max_depth`` segments.

    Parameters
    ----------
    path : str
        Repository-relative path as reported by git.
    max_depth : int
        Number of segments to keep (at least 1).

    Returns
    -------
    str
        ``path`` unchanged when it has at most ``max_depth`` segments.

    Raises
    ------
    InvalidParameterError
        If ``max_depth`` is smaller than 1.

    Examples
    --------
    >>> coarsen_path("a/b/c/file.go", 2)
    'a/b'
    >>> coarsen_path("a/b", 2)
    'a/b'
    """
    _check_depth(max_depth)
    parts = path.split("/")
    if len(parts) <= max_depth:
        return path
    return "/".join(parts[:max_depth])


def _is_existing_dir(path: Path) -> bool:
    try:
        info = path.stat()
    except (FileNotFoundError, NotADirectoryError):
        return False
    except OSError as exc:
        msg = f"failed to stat path {path}: {exc.strerror or exc}"
        raise WorkspaceIOError(msg, str(path), cause=exc) from exc
    return stat.S_ISDIR(info.st_mode)


def collect_changed_paths(
    changes: Iterable[FileChange],
    root: str | Path,
    max_depth: int,
    pattern: str | re.Pattern[str],
) -> list[str]:
    """Reduce file changes to existing, coarsened, sorted directory paths.

    Parameters
    ----------
    changes : Iterable[FileChange]
        File changes between two snapshots.
    root : str | Path
        Repository working tree the paths are relative to.
    max_depth : int
        Segments kept per changed path (at least 1).
    pattern : str | re.Pattern[str]
        Regular expression searched in each file path; non-matching files
        never contribute a directory.

    Returns
    -------
    list[str]
        Deduplicated, lexicographically sorted directory paths relative to
        ``root``.

    Raises
    ------
    InvalidParameterError
        If ``max_depth`` is below 1 or ``pattern`` does not compile.
    WorkspaceIOError
        If a candidate cannot be inspected for a reason other than "not found".
    """
    _check_depth(max_depth)
    matcher = compile_pattern(pattern)
    root_path = Path(root)

    candidates: set[str] = set()
    for change in changes:
        if change.kind is ChangeKind.DELETED:
            continue
        if change.old_path is not None:
            LOGGER.debug(
                "Using new path of moved file",
                extra={
                    "operation": "changed_paths",
                    "path": change.path,
                    "old_path": change.old_path,
                },
            )
        if not matcher.search(change.path):
            LOGGER.debug(
                "Skipping path not matching pattern",
                extra={"operation": "changed_paths", "path": change.path},
            )
            continue
        candidates.add(coarsen_path(change.path, max_depth))

    result = [
        candidate
        for candidate in sorted(candidates)
        if _is_existing_dir(root_path / candidate.replace("/", os.sep))
    ]
    LOGGER.info(
        "Found changed paths",
        extra={
            "operation": "changed_paths",
            "candidates": len(candidates),
            "changed": len(result),
        },
    )
    return result


def changed_paths(
    client: GitClient,
    base_ref: str | None,
    head_ref: str | None,
    max_depth: int,
    pattern: str | re.Pattern[str],
) -> list[str]:
    """Return directories touched between ``base_ref`` and ``head_ref``.

    Parameters
    ----------
    client : GitClient
        Repository handle; its ``repo_path`` is also the directory the
        existence checks run against.
    base_ref : str | None
        Base revision. Empty or all zeros means "no base".
    head_ref : str | None
        Head revision. Empty means the current ``HEAD``.
    max_depth : int
        Segments kept per changed path (at least 1).
    pattern : str | re.Pattern[str]
        File path filter.

    Returns
    -------
    list[str]
        Sorted changed directories relative to the repository root.

    Raises
    ------
    VcsError
        If the repository, a reference or the diff cannot be resolved.
    InvalidParameterError
        If ``max_depth`` or ``pattern`` is invalid.
    WorkspaceIOError
        If the working tree cannot be inspected.
    """
    _check_depth(max_depth)
    matcher = compile_pattern(pattern)
    changes = client.diff_trees(base_ref, head_ref)
    return collect_changed_paths(changes, client.repo_path, max_depth, matcher)
