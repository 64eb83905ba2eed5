# SPDX-License-Identifier: MIT
"""Impacted-module orchestration: changed directories to affected modules.

For each changed directory that is a module root, the module's workspace
(its parent directory) is scanned and every module depending on it is
collected. Results from all changed modules are merged in first-seen
order; a module reached from several changed modules appears once.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from monodeps.changes import changed_paths
from monodeps.io.git_client import GitClient
from monodeps.manifest import read_manifest
from monodeps.resolver import DependentRecord, resolve_dependents
from monodeps.workspace import WorkspaceIndex, is_module_dir, scan_workspace
from monodeps_common.logging import get_logger, with_fields
from monodeps_common.settings import MonodepsSettings, load_settings

__all__ = [
    "ImpactResolver",
    "find_changed_modules",
    "find_impacted_modules",
]

LOGGER = get_logger(__name__)

ROOT_DIR = "."


class ImpactResolver:
    """Resolve impacted modules for one invocation.

    Workspace indexes are scanned lazily, once per workspace directory, and
    shared read-only by every resolution made through this instance.

    Parameters
    ----------
    root : str | Path
        Repository / workspace root that changed paths are relative to.
    settings : MonodepsSettings
        Manifest name and scan strictness.
    """

    def __init__(self, root: str | Path, settings: MonodepsSettings) -> None:
        self.root = Path(root)
        self.settings = settings
        self._indexes: dict[Path, WorkspaceIndex] = {}

    def module_dir(self, changed: str) -> Path:
        """Return the on-disk directory for a root-relative changed path."""
        if changed in {"", ROOT_DIR}:
            return self.root
        return self.root / changed

    def workspace_for(self, module_dir: Path) -> WorkspaceIndex:
        """Return the (cached) index of the workspace containing ``module_dir``.

        The root module's workspace is the root itself; any other module's
        workspace is its parent directory.

        Returns
        -------
        WorkspaceIndex
            Index of the workspace.
        """
        workspace = self.root if module_dir == self.root else module_dir.parent
        index = self._indexes.get(workspace)
        if index is None:
            index = scan_workspace(
                workspace,
                manifest_name=self.settings.manifest_name,
                strict=self.settings.strict,
            )
            self._indexes[workspace] = index
        return index

    def dependents_of(
        self, module_dir: Path, *, include_self: bool = True
    ) -> list[DependentRecord]:
        """Resolve the dependents of the module at ``module_dir``.

        Parameters
        ----------
        module_dir : Path
            Module root. Its manifest is explicitly targeted, so a parse
            failure is fatal.
        include_self : bool, optional
            Put the module's own record first. Defaults to True.

        Returns
        -------
        list[DependentRecord]
            Optional own record followed by the sorted dependents.
        """
        manifest = read_manifest(module_dir / self.settings.manifest_name)
        index = self.workspace_for(module_dir)
        records = resolve_dependents(
            index,
            manifest.identifier,
            include_self=include_self,
            target_location=module_dir,
        )
        dependents = len(records) - int(include_self)
        if dependents == 0:
            LOGGER.warning(
                "No dependents found",
                extra={
                    "operation": "find_impacted_modules",
                    "module_id": manifest.identifier,
                    "path": str(module_dir),
                },
            )
        else:
            LOGGER.info(
                "Found dependents",
                extra={
                    "operation": "find_impacted_modules",
                    "module_id": manifest.identifier,
                    "path": str(module_dir),
                    "dependents": dependents,
                },
            )
        return records

    def impacted(self, changed_dirs: Iterable[str]) -> list[DependentRecord]:
        """Merge dependents of every changed module root.

        When the workspace root is itself a module and anything changed,
        the root module is considered changed as well.

        Parameters
        ----------
        changed_dirs : Iterable[str]
            Root-relative changed directories.

        Returns
        -------
        list[DependentRecord]
            Impacted modules, deduplicated by identifier, in first-seen order.
        """
        targets = list(changed_dirs)
        manifest_name = self.settings.manifest_name
        if targets and ROOT_DIR not in targets and is_module_dir(self.root, manifest_name):
            LOGGER.info(
                "Workspace root is itself a module",
                extra={"operation": "find_impacted_modules", "path": str(self.root)},
            )
            targets.append(ROOT_DIR)

        merged: dict[str, DependentRecord] = {}
        for changed in targets:
            module_dir = self.module_dir(changed)
            if not is_module_dir(module_dir, manifest_name):
                continue
            for record in self.dependents_of(module_dir):
                merged.setdefault(record.name, record)
        return list(merged.values())


def find_impacted_modules(
    changed_dirs: Iterable[str],
    *,
    root: str | Path = ROOT_DIR,
    settings: MonodepsSettings | None = None,
) -> list[DependentRecord]:
    """Return every module impacted by changes in ``changed_dirs``.

    Parameters
    ----------
    changed_dirs : Iterable[str]
        Root-relative changed directories (see :func:`changed_paths`).
    root : str | Path, optional
        Workspace root. Defaults to the current directory.
    settings : MonodepsSettings | None, optional
        Runtime settings. Defaults to :func:`load_settings`.

    Returns
    -------
    list[DependentRecord]
        Changed modules and their dependents, deduplicated, first-seen order.
    """
    resolver = ImpactResolver(root, settings or load_settings())
    return resolver.impacted(changed_dirs)


def find_changed_modules(
    base_ref: str | None,
    head_ref: str | None,
    *,
    root: str | Path = ROOT_DIR,
    settings: MonodepsSettings | None = None,
    pattern: str | re.Pattern[str] | None = None,
    max_depth: int | None = None,
) -> list[DependentRecord]:
    """Run change-set extraction and impact resolution in one call.

    Parameters
    ----------
    base_ref : str | None
        Base revision (empty or all zeros: no base).
    head_ref : str | None
        Head revision (empty: current ``HEAD``).
    root : str | Path, optional
        Repository root. Defaults to the current directory.
    settings : MonodepsSettings | None, optional
        Runtime settings. Defaults to :func:`load_settings`.
    pattern : str | re.Pattern[str] | None, optional
        File pattern; defaults to ``settings.file_pattern``.
    max_depth : int | None, optional
        Coarsening depth; defaults to ``settings.depth``.

    Returns
    -------
    list[DependentRecord]
        Impacted modules.
    """
    resolved = settings or load_settings()
    with (
        with_fields(LOGGER, operation="find_changed_modules") as log,
        GitClient(repo_path=Path(root)) as client,
    ):
        changed = changed_paths(
            client,
            base_ref,
            head_ref,
            max_depth if max_depth is not None else resolved.depth,
            pattern if pattern is not None else resolved.file_pattern,
        )
        log.info("Found changed paths", extra={"changed": len(changed)})
        return find_impacted_modules(changed, root=root, settings=resolved)
