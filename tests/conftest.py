"""Shared pytest fixtures for workspace and repository tests.

This module provides reusable fixtures for:
- Building module trees (``go.mod`` per directory) under ``tmp_path``
- Creating real git repositories and committing snapshots
- Resetting logging and correlation state between tests
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path

import pytest

from monodeps_common.logging import set_correlation_id

type ModuleFactory = Callable[..., Path]
type CommitFn = Callable[[str], str]


def render_go_mod(identifier: str, requires: Sequence[str] = ()) -> str:
    """Return ``go.mod`` text declaring ``identifier`` and its requirements.

    Returns
    -------
    str
        Manifest text with a ``require`` block when ``requires`` is non-empty.
    """
    lines = [f"module {identifier}", "", "go 1.22"]
    if requires:
        lines.extend(["", "require ("])
        lines.extend(f"\t{req} v0.0.0" for req in requires)
        lines.append(")")
    return "\n".join(lines) + "\n"


@pytest.fixture
def make_module(tmp_path: Path) -> ModuleFactory:
    """Return a factory writing a module directory with a ``go.mod``.

    Parameters
    ----------
    tmp_path : Path
        Default workspace root.

    Returns
    -------
    ModuleFactory
        ``make_module(name, identifier, requires=(), root=tmp_path)`` returning
        the module directory.
    """

    def _make(
        name: str,
        identifier: str,
        requires: Sequence[str] = (),
        *,
        root: Path | None = None,
    ) -> Path:
        base = tmp_path if root is None else root
        directory = base / name if name not in {"", "."} else base
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "go.mod").write_text(render_go_mod(identifier, requires), encoding="utf-8")
        return directory

    return _make


@pytest.fixture
def make_workspace(make_module: ModuleFactory) -> Callable[..., None]:
    """Return a factory building several modules at once.

    Returns
    -------
    Callable[..., None]
        ``make_workspace({"a": ("ex/a", ["ex/b"]), ...}, root=...)``.
    """

    def _make(
        modules: Mapping[str, tuple[str, Sequence[str]]], *, root: Path | None = None
    ) -> None:
        for name, (identifier, requires) in modules.items():
            make_module(name, identifier, requires, root=root)

    return _make


@pytest.fixture
def git_cmd() -> str:
    """Return the full path to the git executable, skipping when absent.

    Returns
    -------
    str
        Path to ``git``.
    """
    cmd = shutil.which("git")
    if cmd is None:
        pytest.skip("git command not found in PATH")
    return cmd


@pytest.fixture
def git_repo(tmp_path: Path, git_cmd: str) -> Path:
    """Create an empty git repository with a configured identity.

    Parameters
    ----------
    tmp_path : Path
        Temporary directory for the repository.
    git_cmd : str
        Path to ``git``.

    Returns
    -------
    Path
        Repository root.
    """
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    for args in (
        ["init", "--quiet"],
        ["config", "user.name", "Test User"],
        ["config", "user.email", "test@example.com"],
        ["config", "commit.gpgsign", "false"],
    ):
        subprocess.run([git_cmd, *args], cwd=repo_root, check=True, capture_output=True)
    return repo_root


@pytest.fixture
def commit(git_repo: Path, git_cmd: str) -> CommitFn:
    """Return a function that stages everything, commits and returns the SHA.

    Returns
    -------
    CommitFn
        ``commit(message) -> sha``.
    """

    def _commit(message: str) -> str:
        subprocess.run(
            [git_cmd, "add", "--all"], cwd=git_repo, check=True, capture_output=True
        )
        subprocess.run(
            [git_cmd, "commit", "--quiet", "--allow-empty", "-m", message],
            cwd=git_repo,
            check=True,
            capture_output=True,
        )
        result = subprocess.run(
            [git_cmd, "rev-parse", "HEAD"],
            cwd=git_repo,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout.strip()

    return _commit


@pytest.fixture(autouse=True)
def _reset_logging_state() -> Iterator[None]:
    """Clear correlation IDs and root handlers installed by ``setup_logging``."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    set_correlation_id(None)
    root.handlers[:] = handlers
    root.setLevel(level)
