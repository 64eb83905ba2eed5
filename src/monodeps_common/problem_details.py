# SPDX-License-Identifier: MIT
"""RFC 9457 Problem Details helpers.

Fatal CLI failures are reported as a single Problem Details JSON document
on stderr. Payloads are validated against the schema below before they are
rendered so downstream CI tooling can rely on the shape.

Examples
--------
>>> problem = build_problem_details(
...     problem_type="https://monodeps.dev/problems/vcs-error",
...     title="VcsError",
...     status=500,
...     detail="Cannot resolve reference 'main~3'",
...     instance="urn:monodeps:cli:impacted",
... )
>>> problem["status"]
500
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Final, TypedDict, cast

from jsonschema import validate as jsonschema_validate
from jsonschema.exceptions import SchemaError, ValidationError

__all__ = [
    "PROBLEM_DETAILS_SCHEMA",
    "JsonValue",
    "ProblemDetails",
    "ProblemDetailsValidationError",
    "build_problem_details",
    "render_problem",
    "validate_problem_details",
]

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | dict[str, JsonValue] | list[JsonValue]

PROBLEM_DETAILS_SCHEMA: Final[dict[str, object]] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "ProblemDetails",
    "type": "object",
    "required": ["type", "title", "status", "detail", "instance"],
    "properties": {
        "type": {"type": "string", "minLength": 1},
        "title": {"type": "string", "minLength": 1},
        "status": {"type": "integer", "minimum": 100, "maximum": 599},
        "detail": {"type": "string"},
        "instance": {"type": "string", "minLength": 1},
        "code": {"type": "string", "pattern": "^[a-z0-9]+(-[a-z0-9]+)*$"},
        "extensions": {"type": "object"},
    },
    "additionalProperties": False,
}


class ProblemDetails(TypedDict, total=False):
    """TypedDict for RFC 9457 Problem Details documents."""

    type: str
    title: str
    status: int
    detail: str
    instance: str
    code: str
    extensions: dict[str, JsonValue]


class ProblemDetailsValidationError(Exception):
    """Raised when a Problem Details payload fails schema validation.

    Parameters
    ----------
    message : str
        Human-readable error message.
    validation_errors : list[str] | None, optional
        Individual constraint violations. Defaults to None.
    """

    def __init__(self, message: str, validation_errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.validation_errors = validation_errors or []


def validate_problem_details(payload: Mapping[str, JsonValue]) -> None:
    """Validate a Problem Details payload against :data:`PROBLEM_DETAILS_SCHEMA`.

    Parameters
    ----------
    payload : Mapping[str, JsonValue]
        Candidate payload.

    Raises
    ------
    ProblemDetailsValidationError
        If the payload does not conform to the schema.
    """
    try:
        jsonschema_validate(instance=payload, schema=PROBLEM_DETAILS_SCHEMA)
    except ValidationError as exc:
        errors = [exc.message]
        if exc.absolute_path:
            path_str = ".".join(str(p) for p in exc.absolute_path)
            errors.append(f"at path: {path_str}")
        msg = f"Problem Details validation failed: {'; '.join(errors)}"
        raise ProblemDetailsValidationError(msg, validation_errors=errors) from exc
    except SchemaError as exc:
        msg = f"Invalid schema: {exc}"
        raise ProblemDetailsValidationError(msg) from exc


def build_problem_details(
    *,
    problem_type: str,
    title: str,
    status: int,
    detail: str,
    instance: str,
    code: str | None = None,
    extensions: Mapping[str, JsonValue] | None = None,
) -> ProblemDetails:
    """Build and validate an RFC 9457 Problem Details payload.

    Parameters
    ----------
    problem_type : str
        Type URI identifying the problem class.
    title : str
        Short human-readable summary.
    status : int
        HTTP-style status code.
    detail : str
        Occurrence-specific explanation.
    instance : str
        URI identifying this occurrence.
    code : str | None, optional
        Stable kebab-case error code. Defaults to None.
    extensions : Mapping[str, JsonValue] | None, optional
        Structured context. Defaults to None.

    Returns
    -------
    ProblemDetails
        Validated payload.
    """
    payload: dict[str, object] = {
        "type": problem_type,
        "title": title,
        "status": status,
        "detail": detail,
        "instance": instance,
    }
    if code is not None:
        payload["code"] = code
    if extensions:
        payload["extensions"] = dict(extensions)

    validate_problem_details(cast("Mapping[str, JsonValue]", payload))
    return cast("ProblemDetails", payload)


def render_problem(problem: ProblemDetails | Mapping[str, object]) -> str:
    """Render Problem Details as a minified JSON string.

    Parameters
    ----------
    problem : ProblemDetails | Mapping[str, object]
        Payload to serialise.

    Returns
    -------
    str
        JSON document without a trailing newline.
    """
    return json.dumps(problem, default=str, ensure_ascii=False)
