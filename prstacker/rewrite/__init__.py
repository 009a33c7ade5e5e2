"""Remote history rewriting: squash a PR, fold a stack into trunk.

Everything happens through ref and commit primitives of the host API; there
is no local checkout. Each step depends on the SHA produced by the previous
one, so steps run strictly in order. A failure stops the operation and leaves
already-mutated refs in place.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ..errors import validation_error, wrap_error, error_message, ErrorCode
from ..github import GitHubClient, GitAuthor, PullRequest
from ..typing import CommitSha
from ..util import utc_now_iso, short_sha

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "temp-fold-stack"

@dataclass
class SquashResult:
    """Outcome of squashing one PR."""
    number: int
    sha: CommitSha
    squashed_count: int

@dataclass
class CommandOutcome:
    """One message for the notifier, optionally aimed at another PR."""
    message: str
    issue_number: Optional[int] = None

@dataclass
class FoldState:
    """Running state of a fold, carried through each step."""
    trunk: str
    scratch: str
    start_sha: str
    tip: str
    outcomes: List[CommandOutcome] = field(default_factory=list)

def squash_message(title: str, body: Optional[str]) -> str:
    if not body:
        return title
    return f"{title}\n\n{body}"

class HistoryRewriter:
    """Squash and fold operations over a GitHubClient."""

    def __init__(self, github: GitHubClient, now_ms: Callable[[], int] = lambda: int(time.time() * 1000)):
        self.github = github
        self.now_ms = now_ms

    # Squash

    def squash(self, pr_number: int) -> SquashResult:
        """Collapse a PR into one commit on top of its base branch's current tip."""
        try:
            return self._squash(pr_number)
        except Exception as e:
            raise wrap_error(f"Could not squash PR #{pr_number}", e) from e

    def _squash(self, pr_number: int) -> SquashResult:
        pr = self.github.get_pull_request(pr_number)
        commits = self.github.get_pull_request_commits(pr_number)
        if not commits:
            raise validation_error(ErrorCode.EMPTY_PR, "There are no commits in this PR")

        message = squash_message(pr.title, pr.body)
        author = commits[0].author
        if author is None:
            author = GitAuthor(name=pr.user_login,
                               email=f"{pr.user_login}@users.noreply.github.com",
                               date=utc_now_iso())
        elif not author.date:
            author = GitAuthor(name=author.name, email=author.email, date=utc_now_iso())

        base_sha = self.github.get_branch_sha(pr.base_ref)
        head = self.github.get_commit(pr.head_sha)

        new_sha = self.github.create_commit(message, head.tree_sha, [base_sha], author=author)
        self.github.force_update_ref(pr.head_ref, new_sha)

        logger.info(f"Squashed {len(commits)} commits of PR #{pr_number} into {short_sha(new_sha)} on {pr.base_ref}")
        return SquashResult(number=pr_number, sha=new_sha, squashed_count=len(commits))

    # Fold

    @staticmethod
    def check_foldable(prs: Sequence[PullRequest], trunk: str) -> None:
        """Only a prefix of the stack, starting on trunk, can be folded."""
        if prs and prs[0].base_ref != trunk:
            raise validation_error(
                ErrorCode.NOT_STACK_PREFIX,
                f"Only a prefix of the stack can be folded: PR #{prs[0].number} is based on "
                f"`{prs[0].base_ref}`, not `{trunk}`. Fold the PRs below it first.")

    def fold(self, prs: Sequence[PullRequest], trunk: str,
             full_stack: Optional[Sequence[PullRequest]] = None,
             origin_number: Optional[int] = None) -> List[CommandOutcome]:
        """Replay squashed PRs (bottom first) onto trunk.

        Every PR must already be squashed to a single commit. When full_stack
        has a PR right above the folded range, that PR is reattached to trunk.
        """
        if not prs:
            return []
        try:
            self.check_foldable(prs, trunk)
            outcomes = self._fold(list(prs), trunk, origin_number or prs[-1].number)
            if full_stack:
                self._reattach_next(list(prs), list(full_stack), trunk)
            return outcomes
        except Exception as e:
            raise wrap_error("Failed to fold stack", e) from e

    def _fold(self, prs: List[PullRequest], trunk: str, origin_number: int) -> List[CommandOutcome]:
        start_sha = self.github.get_ref_sha(trunk)
        scratch = f"{SCRATCH_PREFIX}-{prs[0].number}-{self.now_ms()}"
        self.github.create_ref(scratch, start_sha)
        state = FoldState(trunk=trunk, scratch=scratch, start_sha=start_sha, tip=start_sha)

        try:
            for i, pr in enumerate(prs):
                logger.info(f"Processing PR #{pr.number} ({pr.head_ref}) {i + 1}/{len(prs)}")
                self._stage(state, pr, first=(i == 0))
                if i + 1 < len(prs):
                    self._rebase_next(state, prs[i + 1])
                state.outcomes.append(CommandOutcome(
                    message=f"✅ Folded this PR into `{trunk}` as part of a fold operation started at PR #{origin_number}",
                    issue_number=pr.number))

            final_sha = self._reconcile(state)
            self.github.force_update_ref(trunk, final_sha)
        except Exception:
            self._cleanup_scratch(scratch)
            raise

        self.github.delete_ref(scratch)
        return state.outcomes

    def _stage(self, state: FoldState, pr: PullRequest, first: bool) -> None:
        """Append PR's commit to the scratch branch and point the PR head at it."""
        head_sha = self.github.get_branch_sha(pr.head_ref)

        if first:
            # Squashed onto trunk already: fast-forward, reusing the commit as is
            self.github.force_update_ref(state.scratch, head_sha)
            state.tip = head_sha
            return

        # The commit's recorded parent is the old base branch; rebuild it on the scratch tip
        commit = self.github.get_commit(head_sha)
        new_sha = self.github.recreate_commit(commit, state.tip)
        self.github.force_update_ref(state.scratch, new_sha)
        self.github.force_update_ref(pr.head_ref, new_sha)
        state.tip = new_sha

    def _rebase_next(self, state: FoldState, next_pr: PullRequest) -> None:
        """Keep the next PR's diff correct while the stack is being assembled."""
        logger.info(f"Changing base of PR #{next_pr.number} from {next_pr.base_ref} to {state.scratch}")
        self.github.update_base(next_pr.number, state.scratch)

        next_head = self.github.get_commit(self.github.get_branch_sha(next_pr.head_ref))
        new_sha = self.github.recreate_commit(next_head, state.tip)
        self.github.force_update_ref(next_pr.head_ref, new_sha)

    def _reconcile(self, state: FoldState) -> str:
        """Replay the folded commits onto trunk if trunk moved during the fold."""
        current_sha = self.github.get_ref_sha(state.trunk)
        if current_sha == state.start_sha:
            return state.tip

        logger.info(f"{state.trunk} moved during operation ({short_sha(state.start_sha)} -> "
                    f"{short_sha(current_sha)}), rebasing folded changes on top of new {state.trunk}")
        rebased = current_sha
        for sha in self.github.compare(state.start_sha, state.tip):
            rebased = self.github.recreate_commit(self.github.get_commit(sha), rebased)
        return rebased

    def _cleanup_scratch(self, scratch: str) -> None:
        """Best-effort removal of the scratch branch after a failure."""
        try:
            self.github.delete_ref(scratch)
        except Exception as e:
            logger.error(f"Failed to delete scratch branch {scratch}: {error_message(e)}")

    def _reattach_next(self, prs: List[PullRequest], full_stack: List[PullRequest], trunk: str) -> None:
        """Point the PR right above the folded range at trunk."""
        last = prs[-1].number
        idx = next((i for i, pr in enumerate(full_stack) if pr.number == last), None)
        if idx is None or idx + 1 >= len(full_stack):
            return
        next_pr = full_stack[idx + 1]

        logger.info(f"Setting PR #{next_pr.number} to have base {trunk} and rebasing its head")
        self.github.update_base(next_pr.number, trunk)

        trunk_sha = self.github.get_ref_sha(trunk)
        head = self.github.get_commit(self.github.get_branch_sha(next_pr.head_ref))
        # Same tree on top of the new trunk: the PR only shows its own changes
        new_sha = self.github.recreate_commit(head, trunk_sha)
        self.github.force_update_ref(next_pr.head_ref, new_sha)
        logger.info(f"Rebased PR #{next_pr.number} head {next_pr.head_ref} onto {trunk}")
