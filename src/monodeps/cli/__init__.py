# SPDX-License-Identifier: MIT
"""Command-line interface: changed paths, dependents and impacted modules.

Results are written to stdout. Diagnostics are JSON log lines on stderr.
A fatal error prints one RFC 9457 Problem Details document on stderr and
exits with status 1.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import ParamSpec, TypeVar

import typer

from monodeps.changes import changed_paths
from monodeps.cli.output import OutputFormat, render_paths, render_records
from monodeps.impact import ImpactResolver
from monodeps.io.git_client import GitClient
from monodeps_common.errors import MonodepsError
from monodeps_common.logging import CorrelationContext, get_logger, setup_logging
from monodeps_common.problem_details import render_problem
from monodeps_common.settings import MonodepsSettings, load_settings

__all__ = ["app", "main"]

P = ParamSpec("P")
R = TypeVar("R")

LOGGER = get_logger(__name__)

app = typer.Typer(
    help="Find changed modules in a multi-module git repository and the modules depending on them.",
    no_args_is_help=True,
    add_completion=False,
)

BASE_OPTION = typer.Option(
    "",
    "--base",
    help="Base commit for the diff. Empty or all zeros diffs against an empty tree.",
)
HEAD_OPTION = typer.Option(
    "",
    "--head",
    help="Head commit for the diff. Empty means the checked-out HEAD.",
)
DEPTH_OPTION = typer.Option(
    None,
    "--depth",
    "-d",
    min=1,
    help="Path segments kept per changed file (defaults to MONODEPS_DEPTH or 1).",
)
PATTERN_OPTION = typer.Option(
    None,
    "--pattern",
    "-p",
    help="Regular expression a changed file must match (defaults to Go sources and go.mod/go.sum).",
)
FORMAT_OPTION = typer.Option(
    None,
    "--format",
    "-f",
    case_sensitive=False,
    help="Output format (defaults to MONODEPS_OUTPUT_FORMAT or json).",
)
PATH_ONLY_OPTION = typer.Option(
    False,  # noqa: FBT003
    "--path-only",
    help="Only output module paths.",
)
ROOT_OPTION = typer.Option(
    Path("."),
    "--root",
    "-C",
    file_okay=False,
    help="Repository root whose immediate subdirectories are modules.",
)
STRICT_OPTION = typer.Option(
    False,  # noqa: FBT003
    "--strict",
    help="Fail instead of skipping modules whose manifest cannot be parsed.",
)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable verbose output.")  # noqa: FBT003
DEBUG_OPTION = typer.Option(False, "--debug", help="Enable debug output.")  # noqa: FBT003
MODULE_DIR_ARGUMENT = typer.Argument(
    ...,
    file_okay=False,
    help="Module directory whose dependents are resolved.",
)
INCLUDE_SELF_OPTION = typer.Option(
    False,  # noqa: FBT003
    "--include-self",
    help="Include the module itself as the first result.",
)


def _configure(*, verbose: bool, debug: bool, **overrides: object) -> MonodepsSettings:
    values = {
        key: str(value) if isinstance(value, OutputFormat) else value
        for key, value in overrides.items()
    }
    settings = load_settings(**values)
    if debug:
        level: int | str = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = settings.log_level
    setup_logging(level)
    return settings


def cli_operation(name: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Run a command body under a correlation ID and map errors to exit codes.

    ``MonodepsError`` is rendered as Problem Details on stderr and becomes
    exit status 1; any other exception propagates unchanged.

    Parameters
    ----------
    name : str
        Command name used in the Problem Details ``instance`` URN.

    Returns
    -------
    Callable[[Callable[P, R]], Callable[P, R]]
        Decorator.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with CorrelationContext(uuid.uuid4().hex):
                try:
                    return func(*args, **kwargs)
                except MonodepsError as exc:
                    LOGGER.log(
                        exc.log_level,
                        "Command failed",
                        extra={"operation": name, "error_code": exc.code.value},
                    )
                    problem = exc.to_problem_details(instance=f"urn:monodeps:cli:{name}")
                    typer.echo(render_problem(problem), err=True)
                    raise typer.Exit(code=1) from exc

        return wrapper

    return decorator


def _emit(rendered: str) -> None:
    if rendered:
        typer.echo(rendered)


@app.command("changed")
@cli_operation("changed")
def changed(
    *,
    base: str = BASE_OPTION,
    head: str = HEAD_OPTION,
    depth: int | None = DEPTH_OPTION,
    pattern: str | None = PATTERN_OPTION,
    output_format: OutputFormat | None = FORMAT_OPTION,
    root: Path = ROOT_OPTION,
    verbose: bool = VERBOSE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Print the directories changed between two commits."""
    settings = _configure(
        verbose=verbose,
        debug=debug,
        depth=depth,
        file_pattern=pattern,
        output_format=output_format,
    )
    with GitClient(repo_path=root) as client:
        paths = changed_paths(client, base, head, settings.depth, settings.file_pattern)
    _emit(render_paths(paths, OutputFormat(settings.output_format)))


@app.command("dependents")
@cli_operation("dependents")
def dependents(
    module_dir: Path = MODULE_DIR_ARGUMENT,
    *,
    include_self: bool = INCLUDE_SELF_OPTION,
    output_format: OutputFormat | None = FORMAT_OPTION,
    path_only: bool = PATH_ONLY_OPTION,
    strict: bool = STRICT_OPTION,
    verbose: bool = VERBOSE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Print every module in MODULE_DIR's workspace that depends on it."""
    settings = _configure(
        verbose=verbose,
        debug=debug,
        output_format=output_format,
        strict=strict or None,
    )
    resolver = ImpactResolver(module_dir.parent, settings)
    records = resolver.dependents_of(module_dir, include_self=include_self)
    _emit(render_records(records, OutputFormat(settings.output_format), path_only=path_only))


@app.command("impacted")
@cli_operation("impacted")
def impacted(
    *,
    base: str = BASE_OPTION,
    head: str = HEAD_OPTION,
    depth: int | None = DEPTH_OPTION,
    pattern: str | None = PATTERN_OPTION,
    output_format: OutputFormat | None = FORMAT_OPTION,
    path_only: bool = PATH_ONLY_OPTION,
    root: Path = ROOT_OPTION,
    strict: bool = STRICT_OPTION,
    verbose: bool = VERBOSE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Print changed modules and every module depending on them."""
    settings = _configure(
        verbose=verbose,
        debug=debug,
        depth=depth,
        file_pattern=pattern,
        output_format=output_format,
        strict=strict or None,
    )
    with GitClient(repo_path=root) as client:
        paths = changed_paths(client, base, head, settings.depth, settings.file_pattern)
    LOGGER.info("Found changed paths", extra={"operation": "impacted", "changed": len(paths)})
    records = ImpactResolver(root, settings).impacted(paths)
    _emit(render_records(records, OutputFormat(settings.output_format), path_only=path_only))


def main() -> None:
    """Console-script entry point."""
    app()
