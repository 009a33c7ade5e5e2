"""Tests for the command line interface, run against the fake repository."""

import json

import pytest
from click.testing import CliRunner

from prstacker.cmd.prstacker import main as cli_main
from prstacker.config import Config
from prstacker.github import GitHubClient
from prstacker.tests.fake_github import FakeGithubRepo

@pytest.fixture(autouse=True)
def fake_setup(monkeypatch: pytest.MonkeyPatch, config: Config, github: GitHubClient) -> None:
    monkeypatch.setattr(cli_main, "setup_github", lambda repo: (config, github))
    # Keep log output out of the captured CLI output
    monkeypatch.setattr("prstacker.setup_logging", lambda verbose=0: None)

def test_stack(repo: FakeGithubRepo) -> None:
    repo.build_stack(3)
    result = CliRunner().invoke(cli_main.cli, ["stack", "--repo", "acme/widgets", "--pr", "2"])
    assert result.exit_code == 0, result.output
    lines = [line for line in result.output.splitlines() if line.startswith("#")]
    assert [line.split()[0] for line in lines] == ["#3", "#2", "#1"]
    assert lines[1].endswith("⬅")

def test_squash(repo: FakeGithubRepo) -> None:
    repo.build_stack(2)
    result = CliRunner().invoke(cli_main.cli, ["squash", "--pr", "2", "--scope", "all"])
    assert result.exit_code == 0, result.output
    assert "#1: ✅ Successfully squashed" in result.output
    assert "#2: ✅ Successfully squashed" in result.output

def test_fold(repo: FakeGithubRepo) -> None:
    repo.build_stack(2)
    result = CliRunner().invoke(cli_main.cli, ["fold", "--pr", "1"])
    assert result.exit_code == 0, result.output
    assert repo.pulls[2].base_ref == "main"
    assert repo.refs["main"] == repo.refs["feature-1"]

def test_fold_error_exits_nonzero(repo: FakeGithubRepo) -> None:
    repo.build_stack(1)
    repo.pulls[1].mergeable_state = "dirty"
    result = CliRunner().invoke(cli_main.cli, ["fold", "--pr", "1"])
    assert result.exit_code == 1

def test_fold_skip_ready_check(repo: FakeGithubRepo) -> None:
    repo.build_stack(1)
    repo.pulls[1].mergeable_state = "dirty"
    result = CliRunner().invoke(cli_main.cli, ["fold", "--pr", "1", "--skip-ready-check"])
    assert result.exit_code == 0, result.output

def test_unknown_pr_exits_nonzero(repo: FakeGithubRepo) -> None:
    result = CliRunner().invoke(cli_main.cli, ["stack", "--pr", "99"])
    assert result.exit_code == 1

def test_event_issue_comment(repo: FakeGithubRepo, tmp_path) -> None:
    repo.build_stack(1)
    comment = repo.add_user_comment(1, "alice", "/stackbot help")
    payload = {
        "action": "created",
        "issue": {"number": 1, "user": {"login": "alice"}, "pull_request": {"url": "x"}},
        "comment": {"id": comment.id, "body": "/stackbot help", "user": {"login": "alice"}},
        "repository": {"name": "widgets", "full_name": "acme/widgets", "owner": {"login": "acme"}},
        "sender": {"login": "alice", "type": "User"},
    }
    path = tmp_path / "event.json"
    path.write_text(json.dumps(payload))

    result = CliRunner().invoke(cli_main.cli, ["event", "--name", "issue_comment", str(path)])

    assert result.exit_code == 0, result.output
    assert comment.reactions == ["rocket"]
    assert "/stackbot fold" in result.output

def test_event_invalid_payload(tmp_path) -> None:
    path = tmp_path / "event.json"
    path.write_text("{not json")
    result = CliRunner().invoke(cli_main.cli, ["event", str(path)])
    assert result.exit_code == 1
