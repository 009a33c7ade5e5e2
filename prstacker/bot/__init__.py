"""Stack bot: turns PR comment commands into stack operations."""

import logging
from typing import List, Sequence

from ..config.models import PrStackerConfig
from ..errors import StackError, ErrorCode, validation_error, permission_error, error_message, wrap_error
from ..github import GitHubClient, PullRequest
from ..github.types import IssueCommentEvent, PullRequestEvent
from ..graph import resolve_stack, select_stack
from ..rewrite import HistoryRewriter, CommandOutcome
from .commands import HELP_TEXT, ParsedCommand, is_bot_command, parse_command
from .readiness import check_readiness

__all__ = ['StackBot', 'CommandOutcome', 'STACK_TREE_MARKER']

logger = logging.getLogger(__name__)

STACK_TREE_MARKER = "<!-- pr-stacker:stack-tree -->"

# pull_request actions after which the stack tree comments are refreshed
STACK_TREE_ACTIONS = ("opened", "reopened", "edited", "synchronize")

class StackBot:
    """Handles bot commands for one repository."""

    def __init__(self, config: PrStackerConfig, github: GitHubClient):
        self.config = config
        self.github = github
        self.rewriter = HistoryRewriter(github)

    def get_stack(self, pr_number: int) -> List[PullRequest]:
        """Resolve the stack a PR belongs to, root first."""
        trunk = self.github.get_main_branch()
        open_prs = self.github.list_open_pull_requests()
        return resolve_stack(pr_number, trunk, open_prs)

    def handle_squash_command(self, pr_number: int, scope: str = "only") -> List[CommandOutcome]:
        stack = self.get_stack(pr_number)
        selected = select_stack(pr_number, stack, scope)

        outcomes: List[CommandOutcome] = []
        # Bottom-up: each squash builds on the base branch's current tip
        for pr in selected:
            result = self.rewriter.squash(pr.number)
            outcomes.append(CommandOutcome(
                message=f"✅ Successfully squashed {result.squashed_count} commits into one commit "
                        "with the PR title and description.",
                issue_number=pr.number))
        return outcomes

    def handle_fold_command(self, pr_number: int, scope: str = "down") -> List[CommandOutcome]:
        try:
            trunk = self.github.get_main_branch()
            stack = self.get_stack(pr_number)
            selected = select_stack(pr_number, stack, scope)
            self.rewriter.check_foldable(selected, trunk)

            if not self.config.repo.skip_ready_check:
                unready = check_readiness(self.github, selected, concurrency=self.config.tool.concurrency)
                if unready:
                    listing = "\n".join(f"- #{pr.number}" for pr in unready)
                    raise validation_error(ErrorCode.NOT_READY,
                                           f"The following PRs are not ready to be folded:\n{listing}")

            for pr in selected:
                self.rewriter.squash(pr.number)
        except Exception as e:
            raise wrap_error("Failed to fold stack", e) from e

        # fold adds the same prefix to its own failures
        return self.rewriter.fold(selected, trunk, full_stack=stack, origin_number=pr_number)

    def handle_help_command(self) -> List[CommandOutcome]:
        return [CommandOutcome(message=HELP_TEXT)]

    def run_command(self, pr_number: int, parsed: ParsedCommand) -> List[CommandOutcome]:
        """Run a parsed command against a PR."""
        logger.info(f"Running {parsed.command} ({parsed.scope or 'default'}) on PR #{pr_number}")
        if parsed.command == "squash":
            return self.handle_squash_command(pr_number, parsed.scope or "only")
        if parsed.command == "fold":
            return self.handle_fold_command(pr_number, parsed.scope or "down")
        if parsed.command == "help":
            return self.handle_help_command()
        raise validation_error(ErrorCode.UNRECOGNIZED_COMMAND,
                               f"Could not understand command: `{parsed.command} {parsed.scope or ''}`")

    # Stack tree comments

    def format_stack_tree(self, stack: Sequence[PullRequest], current: int) -> str:
        """Render the stack as markdown, top to bottom, marking the current PR."""
        trunk = self.github.get_main_branch()
        lines: List[str] = []
        for pr in reversed(stack):
            suffix = " ⬅" if pr.number == current else ""
            lines.append(f"- #{pr.number}{suffix}")
        lines.append(f"- `{trunk}`")
        return f"{STACK_TREE_MARKER}\n**Stack**:\n" + "\n".join(lines)

    def update_stack_tree_comments(self, pr_number: int) -> None:
        """Post or refresh the stack tree comment on every PR of the stack."""
        tree_config = self.config.repo.stack_tree_comment
        if not tree_config.enable:
            logger.debug("Stack tree comments are disabled")
            return

        stack = self.get_stack(pr_number)
        if len(stack) <= 1 and tree_config.skip_single_pr:
            logger.debug(f"PR #{pr_number} is not part of a stack, skipping stack tree comment")
            return

        for pr in stack:
            self.github.upsert_marked_comment(pr.number, STACK_TREE_MARKER,
                                              self.format_stack_tree(stack, pr.number))

    # Webhook events

    def _check_originator(self, event: IssueCommentEvent) -> None:
        if not self.config.repo.restrict_commands_to_originator:
            return
        author = event.issue.user
        if author is not None and author.login != event.comment.user.login:
            raise permission_error(
                f"Only the author of this PR (@{author.login}) can run commands on it.")

    def handle_comment_event(self, event: IssueCommentEvent) -> List[CommandOutcome]:
        """Handle an issue_comment webhook. Returns the outcomes that were posted."""
        if event.action != "created" or event.is_from_bot or not event.is_pull_request:
            return []

        body = event.comment.body.strip()
        if not is_bot_command(body):
            return []

        if not self.config.repo.enabled:
            logger.info(f"Bot is disabled for {self.github.repo.full_name}, ignoring command")
            return []

        pr_number = event.issue.number
        comment_id = event.comment.id
        try:
            parsed = parse_command(body)
            if parsed is None:
                return []
            self._check_originator(event)
            self.github.react_to_comment(comment_id, "rocket")

            outcomes = self.run_command(pr_number, parsed)
            for outcome in outcomes:
                self.github.post_comment(outcome.issue_number or pr_number, outcome.message)
            return outcomes
        except Exception as e:
            logger.error(f"Command on PR #{pr_number} failed: {error_message(e)}")
            self._report_failure(pr_number, comment_id, e)
            if isinstance(e, StackError) and e.expected:
                return []
            raise

    def _report_failure(self, pr_number: int, comment_id: int, error: BaseException) -> None:
        """Best-effort reaction and comment; the command's own error is what propagates."""
        try:
            self.github.react_to_comment(comment_id, "confused")
        except Exception as e:
            logger.error(f"Failed to react to comment {comment_id}: {error_message(e)}")
        try:
            self.github.post_comment(pr_number, f"❌ {error_message(error)}")
        except Exception as e:
            logger.error(f"Failed to report error on PR #{pr_number}: {error_message(e)}")

    def handle_pull_request_event(self, event: PullRequestEvent) -> None:
        """Refresh the stack tree comments when a PR changes."""
        if event.action not in STACK_TREE_ACTIONS:
            return
        if not self.config.repo.enabled:
            return
        self.update_stack_tree_comments(event.number)
