"""Shared fixtures: a fake repository and a GitHubClient that never sleeps."""

import logging
from typing import List

import pytest

from prstacker.config import Config
from prstacker.github import GitHubClient
from prstacker.tests.fake_github import FakeGithubRepo

logger = logging.getLogger(__name__)

class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

@pytest.fixture
def config() -> Config:
    return Config({
        'repo': {
            'github_repo_owner': 'acme',
            'github_repo_name': 'widgets',
        },
        'tool': {
            'consistency_poll_interval': 0.5,
            'consistency_timeout': 5.0,
        },
    })

@pytest.fixture
def repo() -> FakeGithubRepo:
    return FakeGithubRepo()

@pytest.fixture
def github(config: Config, repo: FakeGithubRepo, clock: FakeClock) -> GitHubClient:
    return GitHubClient(config, repo, sleep=clock.sleep, clock=clock)

