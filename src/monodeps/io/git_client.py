# SPDX-License-Identifier: MIT
"""Typed git operations wrapper using GitPython.

The repository handle is explicit: callers construct a :class:`GitClient`
for a workspace root and pass it to the code that needs it. The underlying
``git.Repo`` is opened lazily on first use and released by :meth:`close`
or by leaving a ``with`` block.

Example Usage
-------------
>>> from pathlib import Path
>>> with GitClient(repo_path=Path(".")) as client:
...     changes = client.diff_trees("HEAD~1", "HEAD")
>>> sorted({change.kind for change in changes})
[<ChangeKind.MODIFIED: 'modified'>]

See Also
--------
monodeps.changes : Reduces file changes to changed directories.
GitPython documentation : https://gitpython.readthedocs.io/
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Final, Self, cast

import git
import git.exc

from monodeps_common.errors import VcsError
from monodeps_common.logging import get_logger, measure_duration

if TYPE_CHECKING:
    from types import TracebackType

__all__ = [
    "NULL_SHA",
    "ChangeKind",
    "FileChange",
    "GitClient",
    "is_null_ref",
]

LOGGER = get_logger(__name__)

# A base reference of all zeros denotes "beginning of history": CI systems send
# it for the first push of a branch.
NULL_SHA: Final[str] = "0" * 40

_GIT_ERRORS: Final = (git.exc.GitError, git.exc.ODBError, ValueError)


def is_null_ref(ref: str | None) -> bool:
    """Return True when ``ref`` means "no base": empty or the all-zero sentinel.

    Returns
    -------
    bool
        Whether the diff should treat every head file as added.
    """
    return not ref or ref.startswith(NULL_SHA)


class ChangeKind(StrEnum):
    """Kind of a per-file change between two trees."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    TYPE_CHANGED = "type_changed"


_CHANGE_TYPES: Final[dict[str, ChangeKind]] = {
    "A": ChangeKind.ADDED,
    "M": ChangeKind.MODIFIED,
    "D": ChangeKind.DELETED,
    "R": ChangeKind.RENAMED,
    "C": ChangeKind.COPIED,
    "T": ChangeKind.TYPE_CHANGED,
}


@dataclass(slots=True, frozen=True)
class FileChange:
    """One file-level difference between two snapshots.

    Attributes
    ----------
    kind : ChangeKind
        What happened to the file.
    path : str
        Repository-relative, ``/``-separated path after the change (the old
        path for deletions).
    old_path : str | None
        Path before a rename or copy. None otherwise.
    """

    kind: ChangeKind
    path: str
    old_path: str | None = None


def _change_from_diff(diff: git.Diff) -> FileChange:
    kind = _CHANGE_TYPES.get((diff.change_type or "M")[0], ChangeKind.MODIFIED)
    if diff.deleted_file:
        kind = ChangeKind.DELETED
    elif diff.new_file:
        kind = ChangeKind.ADDED
    elif diff.renamed_file:
        kind = ChangeKind.RENAMED

    if kind is ChangeKind.DELETED:
        return FileChange(kind=kind, path=cast("str", diff.a_path))
    path = cast("str", diff.b_path or diff.a_path)
    old_path = diff.a_path if kind in {ChangeKind.RENAMED, ChangeKind.COPIED} else None
    return FileChange(kind=kind, path=path, old_path=old_path)


_SET_GITCLIENT_ATTR = object.__setattr__


@dataclass(slots=True, frozen=True)
class GitClient:
    """Typed wrapper around GitPython for snapshot resolution and tree diffs.

    The workspace root must be the repository root; parent directories are
    not searched.

    Attributes
    ----------
    repo_path : Path
        Repository root directory.

    Examples
    --------
    >>> client = GitClient(repo_path=Path("/srv/monorepo"))
    >>> client.resolve_commit("").hexsha == client.repo.head.commit.hexsha
    True
    >>> client.close()

    Notes
    -----
    Internal attributes (not part of public API):
    - ``_repo``: Cached GitPython Repo instance (lazy-initialized on first access)
    """

    repo_path: Path
    _repo: git.Repo | None = field(default=None, init=False, repr=False)

    @property
    def repo(self) -> git.Repo:
        """Lazy-load the git repository.

        Returns
        -------
        git.Repo
            GitPython repository object.

        Raises
        ------
        VcsError
            If ``repo_path`` does not exist or is not a git repository.
        """
        if self._repo is None:
            try:
                repo = git.Repo(self.repo_path)
            except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as exc:
                LOGGER.exception(
                    "Invalid git repository",
                    extra={"operation": "open_repo", "repo_path": str(self.repo_path)},
                )
                msg = f"failed to open git repository at {self.repo_path}"
                raise VcsError(msg, repo_path=str(self.repo_path), cause=exc) from exc
            _SET_GITCLIENT_ATTR(self, "_repo", repo)
            LOGGER.debug(
                "Initialized git repository",
                extra={
                    "operation": "open_repo",
                    "repo_path": str(self.repo_path),
                    "git_dir": str(repo.git_dir),
                },
            )
        return cast("git.Repo", self._repo)

    def with_cached_repo(self, repo: git.Repo) -> GitClient:
        """Return a clone of this client with a cached repository.

        Parameters
        ----------
        repo : git.Repo
            Repository instance (or test double) to seed the cache with.

        Returns
        -------
        GitClient
            Clone of this client with ``repo`` cached.
        """
        clone = replace(self)
        _SET_GITCLIENT_ATTR(clone, "_repo", repo)
        return clone

    def close(self) -> None:
        """Release the repository handle, if one was opened."""
        if self._repo is not None:
            self._repo.close()
            _SET_GITCLIENT_ATTR(self, "_repo", None)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
        del exc_type, exc_val, exc_tb

    def resolve_commit(self, ref: str | None) -> git.Commit:
        """Resolve ``ref`` to a commit.

        Parameters
        ----------
        ref : str | None
            Any git revision expression (``HEAD~1``, branch, tag, SHA). An
            empty value means the currently checked-out ``HEAD``.

        Returns
        -------
        git.Commit
            Resolved commit.

        Raises
        ------
        VcsError
            If the reference cannot be resolved to a commit.
        """
        repo = self.repo
        try:
            if not ref:
                commit = repo.head.commit
                LOGGER.debug(
                    "Resolved HEAD",
                    extra={"operation": "resolve_commit", "sha": commit.hexsha},
                )
                return commit
            return repo.commit(ref)
        except _GIT_ERRORS as exc:
            msg = f"failed to resolve commit for reference {ref or 'HEAD'!r}"
            raise VcsError(msg, ref=ref or "HEAD", repo_path=str(self.repo_path), cause=exc) from exc

    def diff_trees(self, base_ref: str | None, head_ref: str | None) -> list[FileChange]:
        """Compute per-file changes between the trees of two commits.

        Parameters
        ----------
        base_ref : str | None
            Base revision. Empty or the all-zero sentinel means "no base":
            every file of the head tree is reported as added.
        head_ref : str | None
            Head revision. Empty means the current ``HEAD``.

        Returns
        -------
        list[FileChange]
            File changes in git's order. Diffing a commit against itself
            yields an empty list.

        Raises
        ------
        VcsError
            If either reference cannot be resolved or the diff fails.
        """
        start, _ = measure_duration()
        head_commit = self.resolve_commit(head_ref)
        try:
            if is_null_ref(base_ref):
                changes = [
                    FileChange(kind=ChangeKind.ADDED, path=cast("str", blob.path))
                    for blob in head_commit.tree.traverse()
                    if getattr(blob, "type", None) == "blob"
                ]
            else:
                base_commit = self.resolve_commit(base_ref)
                if base_commit.binsha == head_commit.binsha:
                    changes = []
                else:
                    changes = [
                        _change_from_diff(diff) for diff in base_commit.diff(head_commit)
                    ]
        except VcsError:
            raise
        except _GIT_ERRORS as exc:
            msg = "failed to compute diff between trees"
            raise VcsError(msg, repo_path=str(self.repo_path), cause=exc) from exc

        LOGGER.info(
            "Computed tree diff",
            extra={
                "operation": "diff_trees",
                "base": base_ref or "",
                "head": head_ref or "HEAD",
                "changes": len(changes),
                "duration_ms": round((measure_duration()[0] - start) * 1000, 3),
            },
        )
        return changes
