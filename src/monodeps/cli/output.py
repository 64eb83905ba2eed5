# SPDX-License-Identifier: MIT
"""Result rendering for the CLI (stdout only; diagnostics go to logging)."""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum

import msgspec

from monodeps.resolver import DependentRecord

__all__ = [
    "OutputFormat",
    "render_paths",
    "render_records",
]

_ENCODER = msgspec.json.Encoder()


class OutputFormat(StrEnum):
    """Result format written to stdout."""

    JSON = "json"
    TEXT = "text"


def render_paths(paths: Sequence[str], output_format: OutputFormat) -> str:
    """Render a list of paths as a JSON array or one path per line.

    Returns
    -------
    str
        Rendered output without a trailing newline.
    """
    if output_format is OutputFormat.JSON:
        return _ENCODER.encode(list(paths)).decode("utf-8")
    return "\n".join(paths)


def render_records(
    records: Sequence[DependentRecord],
    output_format: OutputFormat,
    *,
    path_only: bool = False,
) -> str:
    """Render dependent records.

    Parameters
    ----------
    records : Sequence[DependentRecord]
        Records to render, in order.
    output_format : OutputFormat
        ``json`` renders ``[{"name": ..., "path": ...}]`` (or a list of paths
        with ``path_only``); ``text`` renders one path per line.
    path_only : bool, optional
        Emit module paths only. Defaults to False.

    Returns
    -------
    str
        Rendered output without a trailing newline.
    """
    if output_format is OutputFormat.TEXT or path_only:
        return render_paths([record.path for record in records], output_format)
    return _ENCODER.encode(list(records)).decode("utf-8")
