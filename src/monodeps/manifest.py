# SPDX-License-Identifier: MIT
"""Reader for ``go.mod`` module manifests.

Only two facts are extracted: the module's canonical identifier (the
argument of the ``module`` directive) and the module paths it requires.
Version strings are kept for reference but never evaluated.

The grammar follows Go's ``modfile`` package: ``//`` line comments,
bare, ``"double-quoted"`` or `` `raw` `` tokens, single-character
punctuation tokens (``( ) [ ] { } ,``) and ``verb ( ... )`` blocks.
Unknown directives are rejected the same way ``go mod`` rejects them.
"""

from __future__ import annotations

import ast
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from monodeps_common.errors import ManifestParseError
from monodeps_common.logging import get_logger

__all__ = [
    "MANIFEST_NAME",
    "Manifest",
    "Requirement",
    "parse_manifest",
    "read_manifest",
]

LOGGER = get_logger(__name__)

MANIFEST_NAME: Final[str] = "go.mod"

_KNOWN_DIRECTIVES: Final[frozenset[str]] = frozenset(
    {
        "module",
        "go",
        "toolchain",
        "godebug",
        "require",
        "exclude",
        "replace",
        "retract",
        "tool",
        "ignore",
    }
)
_SINGLE_LINE_ONLY: Final[frozenset[str]] = frozenset({"go", "toolchain"})
_PUNCTUATION: Final[str] = "()[]{},"


@dataclass(slots=True, frozen=True)
class Requirement:
    """A ``require`` entry: the required module path and its declared version."""

    identifier: str
    version: str
    indirect: bool = False


@dataclass(slots=True, frozen=True)
class Manifest:
    """Parsed module manifest.

    Attributes
    ----------
    identifier : str
        Canonical module identifier declared by the ``module`` directive.
    requires : tuple[Requirement, ...]
        ``require`` entries in declaration order.
    go_version : str | None
        Argument of the ``go`` directive, when present.
    """

    identifier: str
    requires: tuple[Requirement, ...] = ()
    go_version: str | None = None

    @property
    def required_identifiers(self) -> list[str]:
        """Required module identifiers in declaration order, without duplicates.

        Returns
        -------
        list[str]
            Identifiers named by ``require`` entries.
        """
        return list(dict.fromkeys(req.identifier for req in self.requires))


@dataclass(slots=True, frozen=True)
class _Line:
    number: int
    tokens: tuple[str, ...]
    comment: str


def _is_ident(char: str) -> bool:
    return char not in _PUNCTUATION and not char.isspace() and char.isprintable()


def _tokenize_line(text: str, number: int, source: str) -> _Line:
    tokens: list[str] = []
    comment = ""
    i = 0
    length = len(text)
    while i < length:
        char = text[i]
        if char.isspace():
            i += 1
            continue
        if text.startswith("//", i):
            comment = text[i + 2 :].strip()
            break
        if text.startswith("/*", i):
            msg = "mod files must use // comments"
            raise ManifestParseError(msg, source, line=number)
        if char in _PUNCTUATION:
            tokens.append(char)
            i += 1
            continue
        if char == '"':
            end = i + 1
            while end < length and text[end] != '"':
                end += 2 if text[end] == "\\" else 1
            if end >= length:
                msg = "unterminated quoted string"
                raise ManifestParseError(msg, source, line=number)
            tokens.append(_unquote(text[i : end + 1], number, source))
            i = end + 1
            continue
        if char == "`":
            end = text.find("`", i + 1)
            if end < 0:
                msg = "unterminated raw string"
                raise ManifestParseError(msg, source, line=number)
            tokens.append(text[i + 1 : end])
            i = end + 1
            continue
        if not _is_ident(char):
            msg = f"unexpected input character {char!r}"
            raise ManifestParseError(msg, source, line=number)
        end = i
        while end < length and _is_ident(text[end]):
            if text.startswith("//", end):
                break
            if text.startswith("/*", end):
                msg = "mod files must use // comments"
                raise ManifestParseError(msg, source, line=number)
            end += 1
        tokens.append(text[i:end])
        i = end
    return _Line(number=number, tokens=tuple(tokens), comment=comment)


def _unquote(token: str, number: int, source: str) -> str:
    try:
        value = ast.literal_eval(token)
    except (SyntaxError, ValueError) as exc:
        msg = f"invalid quoted string {token}"
        raise ManifestParseError(msg, source, line=number, cause=exc) from exc
    if not isinstance(value, str):
        msg = f"invalid quoted string {token}"
        raise ManifestParseError(msg, source, line=number)
    return value


def _is_indirect(comment: str) -> bool:
    return comment == "indirect" or comment.startswith("indirect;")


def _statements(text: str, source: str) -> Iterator[tuple[str, _Line, tuple[str, ...]]]:
    """Yield ``(directive, line, args)`` for every statement, expanding blocks."""
    block: str | None = None
    block_start = 0
    for number, raw in enumerate(text.splitlines(), start=1):
        line = _tokenize_line(raw, number, source)
        tokens = line.tokens
        if not tokens:
            continue
        if block is not None:
            if tokens == (")",):
                block = None
                continue
            if "(" in tokens or ")" in tokens:
                msg = f"unexpected parenthesis inside {block} block"
                raise ManifestParseError(msg, source, line=number)
            yield block, line, tokens
            continue

        directive = tokens[0]
        if directive not in _KNOWN_DIRECTIVES:
            msg = f"unknown directive: {directive}"
            raise ManifestParseError(msg, source, line=number)
        if len(tokens) > 1 and tokens[1] == "(":
            if directive in _SINGLE_LINE_ONLY:
                msg = f"{directive} directive cannot use a block"
                raise ManifestParseError(msg, source, line=number)
            rest = tokens[2:]
            if rest == (")",):
                continue
            if rest:
                msg = f"unexpected tokens after {directive} ("
                raise ManifestParseError(msg, source, line=number)
            block = directive
            block_start = number
            continue
        if "(" in tokens or ")" in tokens:
            msg = "unexpected parenthesis"
            raise ManifestParseError(msg, source, line=number)
        yield directive, line, tokens[1:]

    if block is not None:
        msg = f"unterminated {block} block"
        raise ManifestParseError(msg, source, line=block_start)


def parse_manifest(text: str, *, source: str = MANIFEST_NAME) -> Manifest:
    """Parse ``go.mod`` text into a :class:`Manifest`.

    Parameters
    ----------
    text : str
        Manifest contents.
    source : str, optional
        Path used in error messages. Defaults to ``"go.mod"``.

    Returns
    -------
    Manifest
        Canonical identifier and requirements. A manifest without
        ``require`` directives yields an empty ``requires`` tuple.

    Raises
    ------
    ManifestParseError
        If the text is not a well-formed manifest or declares no module.
    """
    identifier: str | None = None
    go_version: str | None = None
    requires: list[Requirement] = []

    for directive, line, args in _statements(text, source):
        if directive == "module":
            if identifier is not None:
                msg = "repeated module statement"
                raise ManifestParseError(msg, source, line=line.number)
            if len(args) != 1 or not args[0]:
                msg = "usage: module module/path"
                raise ManifestParseError(msg, source, line=line.number)
            identifier = args[0]
        elif directive == "go":
            if len(args) != 1:
                msg = "usage: go 1.23"
                raise ManifestParseError(msg, source, line=line.number)
            go_version = args[0]
        elif directive == "require":
            if len(args) != 2:  # noqa: PLR2004
                msg = "usage: require module/path v1.2.3"
                raise ManifestParseError(msg, source, line=line.number)
            requires.append(
                Requirement(
                    identifier=args[0],
                    version=args[1],
                    indirect=_is_indirect(line.comment),
                )
            )

    if identifier is None:
        msg = "no module directive found"
        raise ManifestParseError(msg, source)
    return Manifest(identifier=identifier, requires=tuple(requires), go_version=go_version)


def read_manifest(path: str | Path) -> Manifest:
    """Read and parse the manifest at ``path``.

    Parameters
    ----------
    path : str | Path
        Path to a ``go.mod`` file.

    Returns
    -------
    Manifest
        Parsed manifest.

    Raises
    ------
    ManifestParseError
        If the file cannot be read (missing, permission denied, not UTF-8)
        or cannot be parsed.
    """
    manifest_path = Path(path)
    try:
        text = manifest_path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"opening {manifest_path}: {exc.strerror or exc}"
        raise ManifestParseError(msg, str(manifest_path), cause=exc) from exc
    except UnicodeDecodeError as exc:
        msg = f"reading {manifest_path}: not valid UTF-8"
        raise ManifestParseError(msg, str(manifest_path), cause=exc) from exc

    manifest = parse_manifest(text, source=str(manifest_path))
    LOGGER.debug(
        "Parsed manifest",
        extra={
            "operation": "read_manifest",
            "path": str(manifest_path),
            "module_id": manifest.identifier,
            "requires_count": len(manifest.requires),
            "go_version": manifest.go_version,
        },
    )
    return manifest
