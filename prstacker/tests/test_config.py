"""Tests for configuration parsing."""

import pytest

from prstacker.config import default_config
from prstacker.config.config_parser import CONFIG_PATH, load_repo_config, parse_config, snake_case
from prstacker.errors import StackError, ErrorKind
from prstacker.tests.fake_github import FakeGithubRepo

def test_defaults() -> None:
    config = parse_config()
    assert config.repo.enabled
    assert config.repo.main_branch is None
    assert config.repo.restrict_commands_to_originator
    assert not config.repo.single_comment
    assert not config.repo.skip_ready_check
    assert config.repo.stack_tree_comment.enable
    assert config.repo.stack_tree_comment.skip_single_pr
    assert config.tool.concurrency == 0
    assert config.tool.consistency_timeout == 30.0

def test_default_config_matches_parser() -> None:
    assert default_config().repo.model_dump() == parse_config().repo.model_dump()

def test_camel_case_file() -> None:
    content = """
mainBranch: develop
restrictCommandsToOriginator: false
singleComment: true
skipReadyCheck: true
stackTreeComment:
  enable: false
  skipSinglePR: false
"""
    config = parse_config(content)
    assert config.repo.main_branch == "develop"
    assert not config.repo.restrict_commands_to_originator
    assert config.repo.single_comment
    assert config.repo.skip_ready_check
    assert not config.repo.stack_tree_comment.enable
    assert not config.repo.stack_tree_comment.skip_single_pr

def test_partial_nested_section_keeps_defaults() -> None:
    config = parse_config("stackTreeComment:\n  skipSinglePR: false\n")
    assert config.repo.stack_tree_comment.enable
    assert not config.repo.stack_tree_comment.skip_single_pr

def test_overrides_win_over_file() -> None:
    config = parse_config("mainBranch: develop\n",
                          {'repo': {'main_branch': 'release'}, 'tool': {'consistency_timeout': 2}})
    assert config.repo.main_branch == "release"
    assert config.tool.consistency_timeout == 2.0

def test_unknown_keys_ignored() -> None:
    config = parse_config("someFutureOption: 3\n")
    assert config.repo.enabled

def test_empty_file() -> None:
    assert parse_config("").repo.enabled

@pytest.mark.parametrize("content", [
    "mainBranch: [unclosed\n",
    "- just\n- a list\n",
    "enabled: maybe-not\n",
])
def test_invalid_file(content: str) -> None:
    with pytest.raises(StackError) as exc_info:
        parse_config(content)
    assert exc_info.value.kind is ErrorKind.CONFIGURATION
    assert exc_info.value.expected

def test_snake_case() -> None:
    assert snake_case("mainBranch") == "main_branch"
    assert snake_case("skipSinglePR") == "skip_single_pr"
    assert snake_case("enabled") == "enabled"
    assert snake_case("already_snake") == "already_snake"

def test_load_repo_config(repo: FakeGithubRepo) -> None:
    repo.files[CONFIG_PATH] = "skipReadyCheck: true\n"
    config = load_repo_config(repo, {'repo': {'github_repo_owner': 'acme', 'github_repo_name': 'widgets'}})
    assert config.repo.skip_ready_check
    assert config.repo.github_repo_owner == "acme"

def test_load_repo_config_missing_file(repo: FakeGithubRepo) -> None:
    assert not load_repo_config(repo).repo.skip_ready_check
