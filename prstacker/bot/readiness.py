"""Merge readiness checks run before history is rewritten."""

import concurrent.futures
import logging
from typing import List, Sequence

from github import GithubException

from ..github import GitHubClient, PullRequest

logger = logging.getLogger(__name__)

NOT_PROTECTED_MESSAGE = "Branch not protected"


def is_branch_not_protected(error: GithubException) -> bool:
    """GitHub answers 404 with a specific message when a branch has no protection rules."""
    if error.status != 404:
        return False
    data = error.data
    return (isinstance(data, dict)
            and isinstance(data.get("message"), str)
            and NOT_PROTECTED_MESSAGE in data["message"])


def is_ready(github: GitHubClient, pr_number: int, require_single_commit: bool = False) -> bool:
    """Check whether a PR's remote state allows rewriting it."""
    # Fetching the PR makes GitHub recompute its mergeability
    fresh = github.get_pull_request(pr_number)

    if require_single_commit and fresh.commit_count != 1:
        logger.info(f"PR #{pr_number} has {fresh.commit_count} commits, expected 1")
        return False

    if fresh.mergeable_state != "clean":
        logger.info(f"PR #{pr_number} mergeable state is {fresh.mergeable_state}")
        return False

    try:
        required = github.get_required_status_checks(fresh.head_ref)
        runs = github.get_check_runs(fresh.head_sha)
    except GithubException as e:
        if is_branch_not_protected(e):
            logger.debug(f"Branch {fresh.head_ref} is not protected, no checks required")
            return True
        raise

    passed = {run.name for run in runs if run.conclusion == "success"}
    missing = [name for name in required if name not in passed]
    if missing:
        logger.info(f"PR #{pr_number} is missing successful checks: {missing}")
        return False
    return True


def check_readiness(github: GitHubClient, prs: Sequence[PullRequest],
                 require_single_commit: bool = False, concurrency: int = 0) -> List[PullRequest]:
    """Check PRs concurrently; return the ones that are not ready, in stack order."""
    if not prs:
        return []
    workers = concurrency if concurrency > 0 else len(prs)
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(
            lambda pr: is_ready(github, pr.number, require_single_commit), prs))
    return [pr for pr, ready in zip(prs, results) if not ready]
