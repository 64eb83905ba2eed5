# SPDX-License-Identifier: MIT
"""Workspace discovery: which immediate child directories are modules.

A workspace is a directory whose *immediate* children may be module roots.
The scan is deliberately non-recursive; nested modules are only found when
their own parent directory is scanned.

Examples
--------
>>> index = scan_workspace(Path("."))
>>> index.identifier_to_location["example.com/api"]
PosixPath('api')
"""

from __future__ import annotations

import os
import stat
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from monodeps.manifest import MANIFEST_NAME, read_manifest
from monodeps_common.errors import (
    EmptyWorkspaceError,
    ManifestParseError,
    WorkspaceIntegrityError,
    WorkspaceIOError,
    WorkspaceScanError,
)
from monodeps_common.logging import get_logger

__all__ = [
    "ModuleEntry",
    "WorkspaceIndex",
    "is_module_dir",
    "scan_workspace",
]

LOGGER = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class ModuleEntry:
    """A discovered module: identifier, location and declared requirements."""

    identifier: str
    location: Path
    requires: frozenset[str] = frozenset()


@dataclass(slots=True, frozen=True)
class WorkspaceIndex:
    """Immutable bidirectional index between module locations and identifiers.

    Built once per invocation and shared read-only between resolutions.
    Iteration order of the underlying mappings is not meaningful; use
    :meth:`identifiers` for a stable order.

    Attributes
    ----------
    root : Path
        Scanned workspace root.
    location_to_identifier : Mapping[Path, str]
        Module directory to canonical identifier.
    identifier_to_location : Mapping[str, Path]
        Canonical identifier to module directory.
    """

    root: Path
    location_to_identifier: Mapping[Path, str]
    identifier_to_location: Mapping[str, Path]
    _requires: Mapping[str, frozenset[str]] = field(repr=False)

    @classmethod
    def from_entries(cls, root: Path, entries: Iterable[ModuleEntry]) -> WorkspaceIndex:
        """Build an index, rejecting identifiers declared by two locations.

        Parameters
        ----------
        root : Path
            Workspace root the entries were discovered under.
        entries : Iterable[ModuleEntry]
            Discovered modules.

        Returns
        -------
        WorkspaceIndex
            Immutable index.

        Raises
        ------
        WorkspaceIntegrityError
            If two locations declare the same canonical identifier, or one
            location appears twice.
        """
        by_location: dict[Path, str] = {}
        by_identifier: dict[str, Path] = {}
        requires: dict[str, frozenset[str]] = {}
        for entry in entries:
            existing = by_identifier.get(entry.identifier)
            if existing is not None:
                msg = (
                    f"module {entry.identifier} is declared by both "
                    f"{existing} and {entry.location}"
                )
                raise WorkspaceIntegrityError(
                    msg,
                    context={
                        "module": entry.identifier,
                        "locations": sorted([str(existing), str(entry.location)]),
                    },
                )
            if entry.location in by_location:
                msg = f"location {entry.location} indexed twice"
                raise WorkspaceIntegrityError(msg, context={"location": str(entry.location)})
            by_location[entry.location] = entry.identifier
            by_identifier[entry.identifier] = entry.location
            requires[entry.identifier] = entry.requires
        return cls(
            root=root,
            location_to_identifier=MappingProxyType(by_location),
            identifier_to_location=MappingProxyType(by_identifier),
            _requires=MappingProxyType(requires),
        )

    def __len__(self) -> int:
        return len(self.identifier_to_location)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.identifier_to_location

    def identifiers(self) -> list[str]:
        """Return all module identifiers, sorted.

        Returns
        -------
        list[str]
            Canonical identifiers in lexicographic order.
        """
        return sorted(self.identifier_to_location)

    def requires(self, dependent: str, dependency: str) -> bool:
        """Return whether ``dependent`` directly declares a requirement on ``dependency``.

        Exact identifier equality; version constraints are not consulted.

        Parameters
        ----------
        dependent : str
            Identifier of the module whose manifest is checked.
        dependency : str
            Identifier that must appear among its requirements.

        Returns
        -------
        bool
            True when the requirement edge ``dependent -> dependency`` exists.
        """
        return dependency in self._requires.get(dependent, frozenset())


def is_module_dir(directory: str | Path, manifest_name: str = MANIFEST_NAME) -> bool:
    """Return whether ``directory`` holds a regular manifest file at its top level.

    Parameters
    ----------
    directory : str | Path
        Candidate module root.
    manifest_name : str, optional
        Manifest file name. Defaults to ``"go.mod"``.

    Returns
    -------
    bool
        False when the manifest is missing or is itself a directory.

    Raises
    ------
    WorkspaceIOError
        If the manifest cannot be inspected for another reason (e.g.
        permission denied).
    """
    manifest_path = Path(directory) / manifest_name
    try:
        info = manifest_path.stat()
    except (FileNotFoundError, NotADirectoryError):
        return False
    except OSError as exc:
        msg = f"cannot inspect {manifest_path}: {exc.strerror or exc}"
        raise WorkspaceIOError(msg, str(manifest_path), cause=exc) from exc
    if stat.S_ISDIR(info.st_mode):
        LOGGER.debug(
            "Manifest name is a directory; not a module",
            extra={"operation": "is_module_dir", "path": str(manifest_path)},
        )
        return False
    return True


def _child_directories(root: Path) -> list[Path]:
    try:
        with os.scandir(root) as it:
            names = sorted(entry.name for entry in it if entry.is_dir(follow_symlinks=False))
    except OSError as exc:
        msg = f"reading workspace root {root}: {exc.strerror or exc}"
        raise WorkspaceScanError(msg, str(root), cause=exc) from exc
    return [root / name for name in names]


def _skip_or_raise(error: ManifestParseError, directory: Path, *, strict: bool) -> None:
    if strict:
        raise error
    LOGGER.warning(
        "Skipping module with unreadable manifest",
        extra={
            "operation": "scan_workspace",
            "path": str(directory),
            "error": error.message,
        },
    )


def scan_workspace(
    root: str | Path,
    *,
    manifest_name: str = MANIFEST_NAME,
    strict: bool = False,
    allow_empty: bool = False,
) -> WorkspaceIndex:
    """Discover modules among the immediate child directories of ``root``.

    Parameters
    ----------
    root : str | Path
        Workspace root. Child locations are built as ``root / name``, so a
        relative root yields relative locations.
    manifest_name : str, optional
        Manifest file name. Defaults to ``"go.mod"``.
    strict : bool, optional
        When True an unreadable or malformed manifest aborts the scan;
        otherwise the directory is skipped with a warning. Defaults to False.
    allow_empty : bool, optional
        Return an empty index instead of raising when no module is found.
        Defaults to False.

    Returns
    -------
    WorkspaceIndex
        Index of discovered modules.

    Raises
    ------
    WorkspaceScanError
        If ``root`` cannot be listed.
    EmptyWorkspaceError
        If no module is found and ``allow_empty`` is False.
    ManifestParseError
        In strict mode, for the first unreadable manifest.
    WorkspaceIntegrityError
        If two modules declare the same identifier.
    """
    root_path = Path(root)
    entries: list[ModuleEntry] = []
    for directory in _child_directories(root_path):
        try:
            if not is_module_dir(directory, manifest_name):
                continue
        except WorkspaceIOError as exc:
            parse_error = ManifestParseError(exc.message, str(exc.context["path"]), cause=exc)
            _skip_or_raise(parse_error, directory, strict=strict)
            continue
        try:
            manifest = read_manifest(directory / manifest_name)
        except ManifestParseError as exc:
            _skip_or_raise(exc, directory, strict=strict)
            continue
        entries.append(
            ModuleEntry(
                identifier=manifest.identifier,
                location=directory,
                requires=frozenset(manifest.required_identifiers),
            )
        )

    index = WorkspaceIndex.from_entries(root_path, entries)
    if not index and not allow_empty:
        msg = f"no modules found in workspace root {root_path}"
        raise EmptyWorkspaceError(msg, str(root_path))
    LOGGER.info(
        "Workspace scanned",
        extra={"operation": "scan_workspace", "root": str(root_path), "modules": len(index)},
    )
    return index
