# SPDX-License-Identifier: MIT
"""Changed-module detection for multi-module Go repositories.

A CI job passes two commits; monodeps reports the module directories that
changed between them plus every sibling module that depends on one of
those, directly or transitively.

Examples
--------
>>> from monodeps import find_changed_modules
>>> [record.path for record in find_changed_modules("HEAD~1", "HEAD")]
['api', 'cli']
"""

from __future__ import annotations

from monodeps.impact import ImpactResolver, find_changed_modules, find_impacted_modules
from monodeps.resolver import DependentRecord, resolve_dependents
from monodeps.workspace import WorkspaceIndex, scan_workspace

__all__ = [
    "DependentRecord",
    "ImpactResolver",
    "WorkspaceIndex",
    "find_changed_modules",
    "find_impacted_modules",
    "resolve_dependents",
    "scan_workspace",
]
