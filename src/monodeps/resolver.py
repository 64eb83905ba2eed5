# SPDX-License-Identifier: MIT
"""Reverse dependency closure over a :class:`~monodeps.workspace.WorkspaceIndex`.

Given a target module, find every module that requires it directly or
through a chain of requirements. The search is a breadth-first walk over
reversed requirement edges: each level rescans the whole index for modules
whose manifest names the module being expanded.

Examples
--------
>>> index = scan_workspace(Path("."))
>>> [record.name for record in resolve_dependents(index, "example.com/core")]
['example.com/api', 'example.com/cli']
"""

from __future__ import annotations

from collections import deque
from pathlib import Path

import msgspec

from monodeps.workspace import WorkspaceIndex
from monodeps_common.errors import WorkspaceIntegrityError
from monodeps_common.logging import get_logger, measure_duration

__all__ = [
    "DependentRecord",
    "find_dependent_identifiers",
    "resolve_dependents",
]

LOGGER = get_logger(__name__)


class DependentRecord(msgspec.Struct, frozen=True):
    """A module found to depend on a target, serialised as ``{"name", "path"}``.

    Attributes
    ----------
    name : str
        Canonical module identifier.
    path : str
        Module location as given by the workspace scan.
    """

    name: str
    path: str


def find_dependent_identifiers(index: WorkspaceIndex, target: str) -> set[str]:
    """Return identifiers of all modules that transitively require ``target``.

    Each module is enqueued at most once, so cycles terminate: at most
    ``len(index)`` expansions, each scanning the full index.

    Parameters
    ----------
    index : WorkspaceIndex
        Workspace to search.
    target : str
        Canonical identifier of the changed module.

    Returns
    -------
    set[str]
        Dependents of ``target``. Never contains ``target`` itself.
    """
    candidates = index.identifiers()
    queue: deque[str] = deque([target])
    queued: set[str] = {target}
    found: set[str] = set()

    while queue:
        current = queue.popleft()
        for candidate in candidates:
            if candidate == target:
                continue
            if not index.requires(candidate, current):
                continue
            if candidate in found:
                continue
            found.add(candidate)
            if candidate not in queued:
                queued.add(candidate)
                queue.append(candidate)
    return found


def _location_of(index: WorkspaceIndex, identifier: str) -> Path:
    location = index.identifier_to_location.get(identifier)
    if location is None:
        msg = f"could not find module directory for {identifier}"
        raise WorkspaceIntegrityError(
            msg, context={"module": identifier, "root": str(index.root)}
        )
    return location


def resolve_dependents(
    index: WorkspaceIndex,
    target: str,
    *,
    include_self: bool = False,
    target_location: str | Path | None = None,
) -> list[DependentRecord]:
    """Resolve the dependents of ``target`` into records sorted by identifier.

    Parameters
    ----------
    index : WorkspaceIndex
        Workspace to search. Read-only; safe to reuse across calls.
    target : str
        Canonical identifier of the changed module.
    include_self : bool, optional
        Prepend a record for ``target`` itself. Defaults to False.
    target_location : str | Path | None, optional
        Location used for the ``target`` record. Required only when
        ``include_self`` is set and ``target`` is not part of ``index``
        (for example the workspace root module). Defaults to None.

    Returns
    -------
    list[DependentRecord]
        ``[target?] + sorted(dependents)``; the target record appears at
        most once and only when requested.

    Raises
    ------
    WorkspaceIntegrityError
        If a dependent (or the requested target record) has no known location.
    """
    start, _ = measure_duration()
    found = find_dependent_identifiers(index, target)

    records = [
        DependentRecord(name=identifier, path=str(_location_of(index, identifier)))
        for identifier in sorted(found)
    ]
    if include_self:
        location = (
            Path(target_location) if target_location is not None else _location_of(index, target)
        )
        records.insert(0, DependentRecord(name=target, path=str(location)))

    LOGGER.debug(
        "Resolved dependents",
        extra={
            "operation": "resolve_dependents",
            "module_id": target,
            "dependents": len(found),
            "duration_ms": round((measure_duration()[0] - start) * 1000, 3),
        },
    )
    return records
