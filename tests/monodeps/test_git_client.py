"""Unit tests for GitClient.

Tests use mocking to avoid real Git operations; see
``test_git_integration.py`` for behaviour against a real repository.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock, patch

import git
import git.exc
import pytest

from monodeps.io.git_client import (
    NULL_SHA,
    ChangeKind,
    FileChange,
    GitClient,
    _change_from_diff,
    is_null_ref,
)
from monodeps_common.errors import ErrorCode, VcsError


@pytest.fixture
def mock_repo() -> Mock:
    """Create a mock GitPython Repo object.

    Returns
    -------
    Mock
        Mock git.Repo instance with git_dir attribute.
    """
    repo = Mock(spec=git.Repo)
    repo.git_dir = Path("/mock/repo/.git")
    return repo


@pytest.fixture
def git_client(tmp_path: Path) -> GitClient:
    """Create GitClient instance for testing.

    Returns
    -------
    GitClient
        GitClient instance with repo_path set to tmp_path.
    """
    return GitClient(repo_path=tmp_path)


def make_diff(
    change_type: str,
    a_path: str | None,
    b_path: str | None,
    *,
    new_file: bool = False,
    deleted_file: bool = False,
    renamed_file: bool = False,
) -> Mock:
    diff = Mock(spec=git.Diff)
    diff.change_type = change_type
    diff.a_path = a_path
    diff.b_path = b_path
    diff.new_file = new_file
    diff.deleted_file = deleted_file
    diff.renamed_file = renamed_file
    return diff


def make_commit(binsha: bytes) -> Mock:
    commit = Mock(spec=git.Commit)
    commit.binsha = binsha
    commit.hexsha = binsha.hex()
    return commit


class TestIsNullRef:
    @pytest.mark.parametrize("ref", [None, "", NULL_SHA, NULL_SHA + "00"])
    def test_null(self, ref: str | None) -> None:
        assert is_null_ref(ref)

    @pytest.mark.parametrize("ref", ["HEAD", "0" * 39, "a" * 40])
    def test_not_null(self, ref: str) -> None:
        assert not is_null_ref(ref)


class TestChangeFromDiff:
    def test_modified(self) -> None:
        change = _change_from_diff(make_diff("M", "a/x.go", "a/x.go"))

        assert change == FileChange(kind=ChangeKind.MODIFIED, path="a/x.go")

    def test_added(self) -> None:
        change = _change_from_diff(make_diff("A", None, "a/x.go", new_file=True))

        assert change == FileChange(kind=ChangeKind.ADDED, path="a/x.go")

    def test_deleted_uses_old_path(self) -> None:
        change = _change_from_diff(make_diff("D", "a/x.go", None, deleted_file=True))

        assert change == FileChange(kind=ChangeKind.DELETED, path="a/x.go")

    def test_renamed_keeps_both_paths(self) -> None:
        change = _change_from_diff(make_diff("R", "old/x.go", "new/x.go", renamed_file=True))

        assert change == FileChange(kind=ChangeKind.RENAMED, path="new/x.go", old_path="old/x.go")

    def test_type_change(self) -> None:
        assert _change_from_diff(make_diff("T", "l", "l")).kind is ChangeKind.TYPE_CHANGED


class TestGitClientLazyInit:
    """Test lazy repository initialization."""

    def test_repo_not_created_until_access(self, git_client: GitClient) -> None:
        assert git_client._repo is None

    def test_repo_created_on_first_access(self, git_client: GitClient, mock_repo: Mock) -> None:
        with patch("monodeps.io.git_client.git.Repo", return_value=mock_repo) as repo_cls:
            repo1 = git_client.repo
            repo2 = git_client.repo

        assert repo1 is mock_repo
        assert repo2 is mock_repo
        repo_cls.assert_called_once_with(git_client.repo_path)

    def test_invalid_repository_raises_vcs_error(self, git_client: GitClient) -> None:
        with (
            patch(
                "monodeps.io.git_client.git.Repo",
                side_effect=git.exc.InvalidGitRepositoryError("not a repo"),
            ),
            pytest.raises(VcsError) as exc_info,
        ):
            _ = git_client.repo

        assert exc_info.value.code is ErrorCode.VCS_ERROR
        assert exc_info.value.context["repo_path"] == str(git_client.repo_path)

    def test_missing_path_raises_vcs_error(self, tmp_path: Path) -> None:
        client = GitClient(repo_path=tmp_path / "missing")

        with pytest.raises(VcsError, match="failed to open git repository"):
            _ = client.repo

    def test_close_releases_repo(self, git_client: GitClient, mock_repo: Mock) -> None:
        client = git_client.with_cached_repo(mock_repo)

        with client:
            assert client.repo is mock_repo

        mock_repo.close.assert_called_once_with()
        assert client._repo is None


class TestResolveCommit:
    def test_empty_ref_is_head(self, git_client: GitClient, mock_repo: Mock) -> None:
        head_commit = make_commit(b"\x01" * 20)
        mock_repo.head = Mock()
        mock_repo.head.commit = head_commit
        client = git_client.with_cached_repo(mock_repo)

        assert client.resolve_commit("") is head_commit
        mock_repo.commit.assert_not_called()

    def test_named_ref(self, git_client: GitClient, mock_repo: Mock) -> None:
        commit = make_commit(b"\x02" * 20)
        mock_repo.commit.return_value = commit
        client = git_client.with_cached_repo(mock_repo)

        assert client.resolve_commit("main~1") is commit
        mock_repo.commit.assert_called_once_with("main~1")

    def test_unknown_ref(self, git_client: GitClient, mock_repo: Mock) -> None:
        mock_repo.commit.side_effect = git.exc.BadName("nope")
        client = git_client.with_cached_repo(mock_repo)

        with pytest.raises(VcsError) as exc_info:
            client.resolve_commit("nope")

        assert exc_info.value.context["ref"] == "nope"
        assert isinstance(exc_info.value.__cause__, git.exc.BadName)


class TestDiffTrees:
    def test_same_commit_is_empty(self, git_client: GitClient, mock_repo: Mock) -> None:
        commit = make_commit(b"\x03" * 20)
        mock_repo.commit.return_value = commit
        client = git_client.with_cached_repo(mock_repo)

        assert client.diff_trees("abc", "abc") == []
        commit.diff.assert_not_called()

    def test_maps_diffs(self, git_client: GitClient, mock_repo: Mock) -> None:
        base = make_commit(b"\x04" * 20)
        head = make_commit(b"\x05" * 20)
        base.diff.return_value = [
            make_diff("M", "a/x.go", "a/x.go"),
            make_diff("D", "b/y.go", None, deleted_file=True),
        ]
        mock_repo.commit.side_effect = lambda ref: {"base": base, "head": head}[ref]
        client = git_client.with_cached_repo(mock_repo)

        changes = client.diff_trees("base", "head")

        assert changes == [
            FileChange(kind=ChangeKind.MODIFIED, path="a/x.go"),
            FileChange(kind=ChangeKind.DELETED, path="b/y.go"),
        ]
        base.diff.assert_called_once_with(head)

    def test_null_base_lists_head_blobs(self, git_client: GitClient, mock_repo: Mock) -> None:
        head = make_commit(b"\x06" * 20)
        blob = Mock(type="blob", path="a/x.go")
        tree = Mock(type="tree", path="a")
        head.tree = Mock()
        head.tree.traverse.return_value = [tree, blob]
        mock_repo.commit.return_value = head
        client = git_client.with_cached_repo(mock_repo)

        changes = client.diff_trees(NULL_SHA, "head")

        assert changes == [FileChange(kind=ChangeKind.ADDED, path="a/x.go")]

    def test_diff_failure_wrapped(self, git_client: GitClient, mock_repo: Mock) -> None:
        base = make_commit(b"\x07" * 20)
        head = make_commit(b"\x08" * 20)
        base.diff.side_effect = git.exc.GitCommandError("diff", 128)
        mock_repo.commit.side_effect = lambda ref: {"base": base, "head": head}[ref]
        client = git_client.with_cached_repo(mock_repo)

        with pytest.raises(VcsError, match="failed to compute diff"):
            client.diff_trees("base", "head")
