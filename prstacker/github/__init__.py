"""GitHub interfaces and implementation."""

import os
import time
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, runtime_checkable

from ..config.models import PrStackerConfig
from ..errors import infrastructure_error, ErrorCode
from ..typing import CommitSha, Reaction, SleepFn, ClockFn
from ..util import short_sha

# Get module logger
logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class PullRequest:
    """Snapshot of one open stack member."""
    number: int
    base_ref: str
    head_ref: str
    title: str = ""
    body: Optional[str] = None

    def __str__(self) -> str:
        return f"PR #{self.number} - {self.title}"

@dataclass(frozen=True)
class PullRequestDetail:
    """Freshly fetched PR state."""
    number: int
    title: str
    body: Optional[str]
    base_ref: str
    head_ref: str
    head_sha: str
    commit_count: int
    mergeable_state: str
    user_login: str

    def to_pull_request(self) -> PullRequest:
        return PullRequest(self.number, self.base_ref, self.head_ref, self.title, self.body)

@dataclass(frozen=True)
class GitAuthor:
    """Author or committer identity of a commit."""
    name: str
    email: str
    date: Optional[str] = None  # ISO-8601

@dataclass(frozen=True)
class GitCommit:
    """A commit object on the remote host."""
    sha: str
    tree_sha: str
    message: str
    author: Optional[GitAuthor]
    committer: Optional[GitAuthor]
    parents: List[str] = field(default_factory=list)

@dataclass(frozen=True)
class PullRequestCommit:
    """A commit listed as belonging to a PR."""
    sha: str
    author: Optional[GitAuthor]

@dataclass(frozen=True)
class CheckRun:
    name: str
    conclusion: Optional[str]

@dataclass(frozen=True)
class IssueComment:
    id: int
    user_login: str
    body: str

@runtime_checkable
class GitHubRepoProtocol(Protocol):
    """Protocol for the remote repository primitives (real or fake).

    Branch names are given without the refs/heads/ prefix. Failed calls raise
    PyGithub's GithubException family.
    """
    @property
    def full_name(self) -> str:
        """owner/name of the repository."""
        ...

    @property
    def default_branch(self) -> str:
        """Get the repository default branch."""
        ...

    def get_open_pulls(self) -> List[PullRequest]:
        """List open pull requests."""
        ...

    def get_pull(self, number: int) -> PullRequestDetail:
        """Fetch a pull request, making the host recompute mergeability."""
        ...

    def get_pull_commits(self, number: int) -> List[PullRequestCommit]:
        """List the commits of a pull request, oldest first."""
        ...

    def edit_pull_base(self, number: int, base: str) -> None:
        """Change the base branch of a pull request."""
        ...

    def get_ref_sha(self, branch: str) -> str:
        """Read the SHA a branch ref points at."""
        ...

    def create_ref(self, branch: str, sha: str) -> None:
        """Create a branch ref."""
        ...

    def update_ref(self, branch: str, sha: str, force: bool = True) -> None:
        """Point an existing branch ref at a commit."""
        ...

    def delete_ref(self, branch: str) -> None:
        """Delete a branch ref."""
        ...

    def get_branch_sha(self, branch: str) -> str:
        """Read a branch's tip commit."""
        ...

    def get_commit(self, sha: str) -> GitCommit:
        """Read a commit object."""
        ...

    def create_commit(self, message: str, tree_sha: str, parents: List[str],
                      author: Optional[GitAuthor] = None,
                      committer: Optional[GitAuthor] = None) -> str:
        """Create a commit object and return its SHA."""
        ...

    def get_required_status_checks(self, branch: str) -> List[str]:
        """Names of the status checks required on a branch."""
        ...

    def get_check_runs(self, sha: str) -> List[CheckRun]:
        """Check runs evaluated against a commit."""
        ...

    def compare(self, base: str, head: str) -> List[str]:
        """SHAs reachable from head but not from base, oldest first."""
        ...

    def get_file_content(self, path: str) -> Optional[str]:
        """Text of a file on the default branch, or None if it does not exist."""
        ...

    def get_issue_comments(self, number: int) -> List[IssueComment]:
        """List comments of an issue or PR."""
        ...

    def create_issue_comment(self, number: int, body: str) -> None:
        """Add a comment to an issue or PR."""
        ...

    def edit_issue_comment(self, comment_id: int, body: str) -> None:
        """Replace the body of an existing comment."""
        ...

    def create_comment_reaction(self, comment_id: int, reaction: str) -> None:
        """React to an issue comment."""
        ...

def find_github_token() -> Optional[str]:
    """Find GitHub token from env var or gh CLI config."""
    import yaml
    from pathlib import Path

    # First try environment variable
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    # Then try gh CLI config at ~/.config/gh/hosts.yml
    try:
        gh_config_path = Path.home() / ".config" / "gh" / "hosts.yml"
        if gh_config_path.exists():
            with open(gh_config_path, "r") as f:
                gh_config = yaml.safe_load(f)
                if gh_config and "github.com" in gh_config:
                    github_config: Dict[str, object] = gh_config["github.com"]
                    if "oauth_token" in github_config:
                        token = github_config["oauth_token"]
                        if isinstance(token, str):
                            return token
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error reading gh CLI config: {e}")
    return None


class GitHubClient:
    """GitHub client implementation.

    Thin layer over a GitHubRepoProtocol that logs every remote call and
    waits for ref updates to become visible before returning.
    """
    def __init__(self, config: PrStackerConfig, repo: GitHubRepoProtocol,
                 sleep: SleepFn = time.sleep, clock: ClockFn = time.monotonic):
        self.config = config
        self.repo = repo
        self.sleep = sleep
        self.clock = clock

    def get_main_branch(self) -> str:
        """Trunk of the stacks: config override or repository default branch."""
        if self.config.repo.main_branch:
            return self.config.repo.main_branch
        return self.repo.default_branch

    def list_open_pull_requests(self) -> List[PullRequest]:
        logger.info(f"> github list open pull requests {self.repo.full_name}")
        prs = self.repo.get_open_pulls()
        logger.debug(f"Found {len(prs)} open PRs")
        for pr in prs:
            logger.debug(f"  PR #{pr.number}: base={pr.base_ref} head={pr.head_ref}")
        return prs

    def get_pull_request(self, number: int) -> PullRequestDetail:
        logger.info(f"> github get #{number}")
        return self.repo.get_pull(number)

    def get_pull_request_commits(self, number: int) -> List[PullRequestCommit]:
        logger.info(f"> github list commits #{number}")
        return self.repo.get_pull_commits(number)

    def update_base(self, number: int, base: str) -> None:
        logger.info(f"> github update base #{number} : {base}")
        self.repo.edit_pull_base(number, base)

    def get_ref_sha(self, branch: str) -> str:
        return self.repo.get_ref_sha(branch)

    def get_branch_sha(self, branch: str) -> str:
        return self.repo.get_branch_sha(branch)

    def get_commit(self, sha: str) -> GitCommit:
        return self.repo.get_commit(sha)

    def create_ref(self, branch: str, sha: str) -> None:
        logger.info(f"> github create ref {branch} at {short_sha(sha)}")
        self.repo.create_ref(branch, sha)
        self.wait_for_ref(branch, sha)

    def force_update_ref(self, branch: str, sha: str) -> None:
        """Force-update a branch and wait until the host reports the new SHA."""
        logger.info(f"> github force update {branch} to {short_sha(sha)}")
        self.repo.update_ref(branch, sha, force=True)
        self.wait_for_ref(branch, sha)

    def delete_ref(self, branch: str) -> None:
        logger.info(f"> github delete ref {branch}")
        self.repo.delete_ref(branch)

    def create_commit(self, message: str, tree_sha: str, parents: List[str],
                      author: Optional[GitAuthor] = None,
                      committer: Optional[GitAuthor] = None) -> CommitSha:
        sha = self.repo.create_commit(message, tree_sha, parents, author=author, committer=committer)
        logger.debug(f"Created commit {short_sha(sha)} tree={short_sha(tree_sha)} parents={[short_sha(p) for p in parents]}")
        return CommitSha(sha)

    def recreate_commit(self, source: GitCommit, parent_sha: str) -> CommitSha:
        """Copy a commit's tree, message, author and committer onto a new parent."""
        return self.create_commit(source.message, source.tree_sha, [parent_sha],
                                  author=source.author, committer=source.committer)

    def compare(self, base: str, head: str) -> List[str]:
        logger.info(f"> github compare {short_sha(base)}...{short_sha(head)}")
        return self.repo.compare(base, head)

    def get_required_status_checks(self, branch: str) -> List[str]:
        """Required check names; raises GithubException 404 for an unprotected branch."""
        logger.info(f"> github required status checks {branch}")
        return self.repo.get_required_status_checks(branch)

    def get_check_runs(self, sha: str) -> List[CheckRun]:
        logger.info(f"> github check runs {short_sha(sha)}")
        return self.repo.get_check_runs(sha)

    def wait_for_ref(self, branch: str, expected_sha: str) -> None:
        """Poll a ref until it reads back expected_sha.

        Raises a CONSISTENCY_TIMEOUT infrastructure error when the host does
        not report the SHA within the configured timeout.
        """
        timeout = self.config.tool.consistency_timeout
        interval = self.config.tool.consistency_poll_interval
        deadline = self.clock() + timeout
        while True:
            current = self.repo.get_ref_sha(branch)
            if current == expected_sha:
                return
            if self.clock() >= deadline:
                raise infrastructure_error(
                    f"Timed out after {timeout:g}s waiting for {branch} to point at "
                    f"{short_sha(expected_sha)} (still at {short_sha(current)})",
                    code=ErrorCode.CONSISTENCY_TIMEOUT)
            logger.debug(f"Waiting for {branch}: {short_sha(current)} != {short_sha(expected_sha)}")
            self.sleep(interval)

    def post_comment(self, number: int, body: str, single_comment: Optional[bool] = None) -> None:
        """Comment on a PR, editing the bot's existing comment in single comment mode."""
        if single_comment is None:
            single_comment = self.config.repo.single_comment
        if single_comment:
            bot_name = self.config.tool.bot_name
            existing = next((c for c in self.repo.get_issue_comments(number)
                             if c.user_login == bot_name), None)
            if existing:
                logger.info(f"> github edit comment #{number} ({existing.id})")
                self.repo.edit_issue_comment(existing.id, body)
                return
        logger.info(f"> github add comment #{number}")
        self.repo.create_issue_comment(number, body)

    def upsert_marked_comment(self, number: int, marker: str, body: str) -> None:
        """Create or replace the bot comment containing marker."""
        bot_name = self.config.tool.bot_name
        for comment in self.repo.get_issue_comments(number):
            if comment.user_login == bot_name and marker in comment.body:
                logger.info(f"> github edit comment #{number} ({comment.id})")
                self.repo.edit_issue_comment(comment.id, body)
                return
        logger.info(f"> github add comment #{number}")
        self.repo.create_issue_comment(number, body)

    def react_to_comment(self, comment_id: int, reaction: Reaction = "rocket") -> None:
        logger.info(f"> github react {reaction} to comment {comment_id}")
        self.repo.create_comment_reaction(comment_id, reaction)


def create_github_client(config: PrStackerConfig, token: Optional[str] = None) -> GitHubClient:
    """Create a GitHub client backed by the real PyGithub library."""
    from github import Github
    from .adapters import PyGithubRepoAdapter

    if token is None:
        token = find_github_token()
    if not token:
        error_msg = "No GitHub token found. Try one of:\n1. Set GITHUB_TOKEN env var\n2. Log in with 'gh auth login'"
        logger.error(error_msg)
        raise ValueError(error_msg)

    owner = config.repo.github_repo_owner
    name = config.repo.github_repo_name
    if not owner or not name:
        raise ValueError("Repository owner and name must be configured")

    real_github = Github(token)
    repo = PyGithubRepoAdapter(real_github.get_repo(f"{owner}/{name}"))
    return GitHubClient(config, repo)
