"""Adapter wrapping a PyGithub Repository with our protocol interface."""

from datetime import datetime, timezone
from typing import List, Optional
import logging

from github import UnknownObjectException
from github.GitAuthor import GitAuthor as PyGithubGitAuthor
from github.GithubObject import NotSet
from github.InputGitAuthor import InputGitAuthor
from github.Repository import Repository

from . import (
    GitHubRepoProtocol,
    PullRequest,
    PullRequestDetail,
    PullRequestCommit,
    GitAuthor,
    GitCommit,
    CheckRun,
    IssueComment,
)

logger = logging.getLogger(__name__)


def _format_date(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _to_author(author: Optional[PyGithubGitAuthor]) -> Optional[GitAuthor]:
    if author is None or not author.name:
        return None
    return GitAuthor(name=author.name, email=author.email, date=_format_date(author.date))


def _to_input_author(author: Optional[GitAuthor]):
    """Convert to PyGithub's InputGitAuthor, or NotSet to let GitHub fill it in."""
    if author is None:
        return NotSet
    if author.date:
        return InputGitAuthor(author.name, author.email, author.date)
    return InputGitAuthor(author.name, author.email)


class PyGithubRepoAdapter(GitHubRepoProtocol):
    """Adapter for PyGithub Repository objects."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    @property
    def full_name(self) -> str:
        return self._repo.full_name

    @property
    def default_branch(self) -> str:
        return self._repo.default_branch

    def get_open_pulls(self) -> List[PullRequest]:
        return [
            PullRequest(number=pr.number, base_ref=pr.base.ref, head_ref=pr.head.ref,
                        title=pr.title, body=pr.body)
            for pr in self._repo.get_pulls(state="open")
        ]

    def get_pull(self, number: int) -> PullRequestDetail:
        pr = self._repo.get_pull(number)
        return PullRequestDetail(
            number=pr.number,
            title=pr.title,
            body=pr.body,
            base_ref=pr.base.ref,
            head_ref=pr.head.ref,
            head_sha=pr.head.sha,
            commit_count=pr.commits,
            mergeable_state=pr.mergeable_state,
            user_login=pr.user.login,
        )

    def get_pull_commits(self, number: int) -> List[PullRequestCommit]:
        pr = self._repo.get_pull(number)
        return [PullRequestCommit(sha=c.sha, author=_to_author(c.commit.author))
                for c in pr.get_commits()]

    def edit_pull_base(self, number: int, base: str) -> None:
        self._repo.get_pull(number).edit(base=base)

    def get_ref_sha(self, branch: str) -> str:
        return self._repo.get_git_ref(f"heads/{branch}").object.sha

    def create_ref(self, branch: str, sha: str) -> None:
        self._repo.create_git_ref(ref=f"refs/heads/{branch}", sha=sha)

    def update_ref(self, branch: str, sha: str, force: bool = True) -> None:
        self._repo.get_git_ref(f"heads/{branch}").edit(sha, force=force)

    def delete_ref(self, branch: str) -> None:
        self._repo.get_git_ref(f"heads/{branch}").delete()

    def get_branch_sha(self, branch: str) -> str:
        return self._repo.get_branch(branch).commit.sha

    def get_commit(self, sha: str) -> GitCommit:
        commit = self._repo.get_git_commit(sha)
        return GitCommit(
            sha=commit.sha,
            tree_sha=commit.tree.sha,
            message=commit.message,
            author=_to_author(commit.author),
            committer=_to_author(commit.committer),
            parents=[p.sha for p in commit.parents],
        )

    def create_commit(self, message: str, tree_sha: str, parents: List[str],
                      author: Optional[GitAuthor] = None,
                      committer: Optional[GitAuthor] = None) -> str:
        # PyGithub wants the tree and parents as objects, not SHAs
        tree = self._repo.get_git_tree(tree_sha)
        parent_commits = [self._repo.get_git_commit(p) for p in parents]
        commit = self._repo.create_git_commit(
            message, tree, parent_commits,
            author=_to_input_author(author),
            committer=_to_input_author(committer),
        )
        return commit.sha

    def get_required_status_checks(self, branch: str) -> List[str]:
        return list(self._repo.get_branch(branch).get_required_status_checks().contexts)

    def get_check_runs(self, sha: str) -> List[CheckRun]:
        return [CheckRun(name=run.name, conclusion=run.conclusion)
                for run in self._repo.get_commit(sha).get_check_runs()]

    def compare(self, base: str, head: str) -> List[str]:
        return [c.sha for c in self._repo.compare(base, head).commits]

    def get_file_content(self, path: str) -> Optional[str]:
        try:
            content = self._repo.get_contents(path)
        except UnknownObjectException:
            return None
        if isinstance(content, list):
            # path is a directory
            return None
        return content.decoded_content.decode("utf-8")

    def get_issue_comments(self, number: int) -> List[IssueComment]:
        return [IssueComment(id=c.id, user_login=c.user.login, body=c.body)
                for c in self._repo.get_issue(number).get_comments()]

    def create_issue_comment(self, number: int, body: str) -> None:
        self._repo.get_issue(number).create_comment(body)

    def edit_issue_comment(self, comment_id: int, body: str) -> None:
        self._repo.get_issue_comment(comment_id).edit(body)

    def create_comment_reaction(self, comment_id: int, reaction: str) -> None:
        self._repo.get_issue_comment(comment_id).create_reaction(reaction)
