"""Unit tests for the PyGithub adapter, with the PyGithub repository mocked."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

from github import UnknownObjectException
from github.GithubObject import NotSet

from prstacker.github import GitAuthor
from prstacker.github.adapters import PyGithubRepoAdapter

def make_adapter():
    gh_repo = MagicMock()
    gh_repo.full_name = "acme/widgets"
    gh_repo.default_branch = "main"
    return gh_repo, PyGithubRepoAdapter(gh_repo)

def test_refs_use_heads_prefix() -> None:
    gh_repo, adapter = make_adapter()
    gh_repo.get_git_ref.return_value.object.sha = "abc"

    assert adapter.get_ref_sha("feature") == "abc"
    gh_repo.get_git_ref.assert_called_with("heads/feature")

    adapter.update_ref("feature", "def")
    gh_repo.get_git_ref.return_value.edit.assert_called_with("def", force=True)

    adapter.create_ref("scratch", "abc")
    gh_repo.create_git_ref.assert_called_with(ref="refs/heads/scratch", sha="abc")

    adapter.delete_ref("scratch")
    gh_repo.get_git_ref.return_value.delete.assert_called_once()

def test_get_commit() -> None:
    gh_repo, adapter = make_adapter()
    commit = gh_repo.get_git_commit.return_value
    commit.sha = "c1"
    commit.tree.sha = "t1"
    commit.message = "msg"
    commit.author.name = "Alice"
    commit.author.email = "alice@example.com"
    commit.author.date = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    commit.committer.name = ""
    parent = MagicMock()
    parent.sha = "p1"
    commit.parents = [parent]

    result = adapter.get_commit("c1")

    assert result.tree_sha == "t1"
    assert result.parents == ["p1"]
    assert result.author == GitAuthor("Alice", "alice@example.com", "2024-01-02T03:04:05Z")
    assert result.committer is None

def test_create_commit_passes_objects() -> None:
    gh_repo, adapter = make_adapter()
    gh_repo.create_git_commit.return_value.sha = "new"

    sha = adapter.create_commit("msg", "t1", ["p1"],
                                author=GitAuthor("Alice", "alice@example.com", "2024-01-02T03:04:05Z"))

    assert sha == "new"
    gh_repo.get_git_tree.assert_called_with("t1")
    gh_repo.get_git_commit.assert_called_with("p1")
    args, kwargs = gh_repo.create_git_commit.call_args
    assert args[0] == "msg"
    assert args[1] is gh_repo.get_git_tree.return_value
    assert kwargs["committer"] is NotSet
    assert kwargs["author"] is not NotSet

def test_missing_file_is_none() -> None:
    gh_repo, adapter = make_adapter()
    gh_repo.get_contents.side_effect = UnknownObjectException(404, {"message": "Not Found"}, None)
    assert adapter.get_file_content(".github/pr-stacker.yml") is None

def test_file_content_decoded() -> None:
    gh_repo, adapter = make_adapter()
    gh_repo.get_contents.return_value.decoded_content = b"enabled: false\n"
    assert adapter.get_file_content(".github/pr-stacker.yml") == "enabled: false\n"

def test_required_status_checks() -> None:
    gh_repo, adapter = make_adapter()
    gh_repo.get_branch.return_value.get_required_status_checks.return_value.contexts = ["ci"]
    assert adapter.get_required_status_checks("feature") == ["ci"]

def test_compare_oldest_first() -> None:
    gh_repo, adapter = make_adapter()
    commits = [MagicMock(sha="a"), MagicMock(sha="b")]
    gh_repo.compare.return_value.commits = commits
    assert adapter.compare("base", "head") == ["a", "b"]
