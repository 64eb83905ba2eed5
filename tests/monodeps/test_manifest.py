"""Tests for go.mod parsing."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from monodeps.manifest import Requirement, parse_manifest, read_manifest
from monodeps_common.errors import ErrorCode, ManifestParseError


class TestParseManifest:
    """Directive handling and requirement extraction."""

    def test_module_only(self) -> None:
        manifest = parse_manifest("module example.com/core\n")

        assert manifest.identifier == "example.com/core"
        assert manifest.requires == ()
        assert manifest.required_identifiers == []

    def test_block_and_single_line_requires(self) -> None:
        text = """
module example.com/api

go 1.22

require example.com/core v0.1.0

require (
	github.com/stretchr/testify v1.9.0
	golang.org/x/mod v0.17.0 // indirect
)
"""
        manifest = parse_manifest(text)

        assert manifest.identifier == "example.com/api"
        assert manifest.go_version == "1.22"
        assert manifest.requires == (
            Requirement("example.com/core", "v0.1.0"),
            Requirement("github.com/stretchr/testify", "v1.9.0"),
            Requirement("golang.org/x/mod", "v0.17.0", indirect=True),
        )

    def test_quoted_and_raw_tokens(self) -> None:
        text = 'module "example.com/quoted"\nrequire `example.com/raw` v1.0.0\n'

        manifest = parse_manifest(text)

        assert manifest.identifier == "example.com/quoted"
        assert manifest.required_identifiers == ["example.com/raw"]

    def test_comments_are_ignored(self) -> None:
        text = "// leading comment\nmodule example.com/a // trailing\n"

        assert parse_manifest(text).identifier == "example.com/a"

    def test_other_directives_do_not_count_as_requirements(self) -> None:
        text = """module example.com/a
toolchain go1.22.1
replace example.com/b => ../b
exclude example.com/c v1.0.0
retract v0.1.0
"""
        assert parse_manifest(text).required_identifiers == []

    def test_duplicate_requirements_deduplicated(self) -> None:
        text = "module example.com/a\nrequire example.com/b v1.0.0\nrequire example.com/b v1.1.0\n"

        assert parse_manifest(text).required_identifiers == ["example.com/b"]

    def test_empty_block(self) -> None:
        assert parse_manifest("module example.com/a\nrequire ()\n").requires == ()

    def test_module_block_form(self) -> None:
        manifest = parse_manifest("module (\n\texample.com/a\n)\n\nrequire example.com/b v1.0.0\n")

        assert manifest.identifier == "example.com/a"
        assert manifest.required_identifiers == ["example.com/b"]

    def test_module_block_with_two_entries(self) -> None:
        with pytest.raises(ManifestParseError, match="repeated module") as exc_info:
            parse_manifest("module (\n\texample.com/a\n\texample.com/b\n)\n")

        assert exc_info.value.line == 3

    def test_comma_ends_a_token(self) -> None:
        with pytest.raises(ManifestParseError, match="usage: require"):
            parse_manifest("module a\nrequire example.com/b v1.0.0,\n")

    def test_brackets_end_a_token(self) -> None:
        with pytest.raises(ManifestParseError, match="usage: module"):
            parse_manifest("module example.com/[a]\n")

    def test_control_character_rejected(self) -> None:
        with pytest.raises(ManifestParseError, match="unexpected input character"):
            parse_manifest("module example.com/a\x07\n")

    @pytest.mark.parametrize(
        ("text", "fragment"),
        [
            ("", "no module directive"),
            ("require example.com/b v1.0.0\n", "no module directive"),
            ("module a\nmodule b\n", "repeated module"),
            ("module\n", "usage: module"),
            ("module a\nfrobnicate x\n", "unknown directive"),
            ("module a\nrequire (\nexample.com/b v1\n", "unterminated require block"),
            ("go (\n1.22\n)\n", "cannot use a block"),
            ("module a\nrequire example.com/b\n", "usage: require"),
            ("module a /* c */\n", "// comments"),
            ('module "unterminated\n', "unterminated quoted string"),
        ],
    )
    def test_malformed_manifest(self, text: str, fragment: str) -> None:
        with pytest.raises(ManifestParseError, match=fragment) as exc_info:
            parse_manifest(text, source="x/go.mod")

        assert exc_info.value.path == "x/go.mod"
        assert exc_info.value.code is ErrorCode.MANIFEST_PARSE_ERROR

    def test_error_carries_line_number(self) -> None:
        with pytest.raises(ManifestParseError) as exc_info:
            parse_manifest("module a\n\nbogus\n")

        assert exc_info.value.line == 3
        assert exc_info.value.context["line"] == 3


class TestReadManifest:
    """File access failures surface as parse errors."""

    def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "go.mod"
        path.write_text("module example.com/a\n", encoding="utf-8")

        assert read_manifest(path).identifier == "example.com/a"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestParseError, match="opening"):
            read_manifest(tmp_path / "go.mod")

    def test_not_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "go.mod"
        path.write_bytes(b"module \xff\xfe\n")

        with pytest.raises(ManifestParseError, match="UTF-8"):
            read_manifest(path)

    def test_debug_log_carries_go_version(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = tmp_path / "go.mod"
        path.write_text("module example.com/a\n\ngo 1.22\n", encoding="utf-8")

        with caplog.at_level(logging.DEBUG, logger="monodeps.manifest"):
            read_manifest(path)

        parsed = [r for r in caplog.records if r.getMessage() == "Parsed manifest"]
        assert parsed[0].go_version == "1.22"  # type: ignore[attr-defined]
