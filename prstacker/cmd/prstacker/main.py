"""CLI entry point."""

import json
import os
import sys
import click
import logging
from typing import Any, Dict, List, Optional, Tuple
from click import Context

from ...bot import StackBot, CommandOutcome
from ...config import Config
from ...config.config_parser import load_repo_config
from ...errors import error_message
from ...github import GitHubClient, create_github_client
from ...github.types import parse_issue_comment_event, parse_pull_request_event
from ...typing import SCOPES

# Get module logger
logger = logging.getLogger(__name__)

class AliasedGroup(click.Group):
    """Command group with support for aliases."""

    def __init__(self, name: Optional[str] = None, commands: Optional[Dict[str, click.Command]] = None, **attrs: Any) -> None:
        """Initialize with aliases map."""
        super().__init__(name, commands, **attrs)
        self.aliases: Dict[str, str] = {}

    def add_alias(self, alias: str, command: str) -> None:
        """Add an alias for a command."""
        self.aliases[alias] = command

    def get_command(self, ctx: Context, cmd_name: str) -> Optional[click.Command]:
        """Get a command by name, supporting aliases."""
        # Check if cmd_name is a registered alias
        if cmd_name in self.aliases:
            cmd_name = self.aliases[cmd_name]
        return super().get_command(ctx, cmd_name)

@click.group(cls=AliasedGroup)
@click.pass_context
def cli(ctx: Context) -> None:
    """prstacker - squash and fold stacked pull requests on GitHub."""
    ctx.obj = {}

def split_repo(repo: Optional[str]) -> Tuple[str, str]:
    """owner/name from --repo, falling back to GITHUB_REPOSITORY as set in Actions."""
    full_name = repo or os.environ.get("GITHUB_REPOSITORY")
    if not full_name or "/" not in full_name:
        raise click.UsageError("Repository must be given as --repo owner/name (or GITHUB_REPOSITORY)")
    owner, name = full_name.split("/", 1)
    return owner, name

def setup_github(repo: Optional[str]) -> Tuple[Config, GitHubClient]:
    """Connect to GitHub and load the repository's config file."""
    owner, name = split_repo(repo)
    overrides = {'repo': {'github_repo_owner': owner, 'github_repo_name': name}}

    github = create_github_client(Config(overrides))
    config = load_repo_config(github.repo, overrides)
    github.config = config
    return config, github

def echo_outcomes(outcomes: List[CommandOutcome], pr_number: int) -> None:
    for outcome in outcomes:
        click.echo(f"#{outcome.issue_number or pr_number}: {outcome.message}")

def run_or_exit(description: str, action: Any) -> Any:
    """Run an action, logging its error and exiting with status 1 on failure."""
    try:
        return action()
    except Exception as e:
        logger.error(f"Error during {description}: {error_message(e)}")
        logger.debug("Traceback", exc_info=True)
        sys.exit(1)

repo_option = click.option('--repo', 'repo', type=str,
                           help="Repository as owner/name (defaults to $GITHUB_REPOSITORY)")
pr_option = click.option('--pr', 'pr_number', type=int, required=True,
                         help="Number of the pull request to act on")
verbose_option = click.option('-v', '--verbose', count=True,
                              help="Increase verbosity (can be used multiple times for more verbosity)")

@cli.command(name="stack", help="Show the stack a pull request belongs to")
@repo_option
@pr_option
@verbose_option
def stack(repo: Optional[str], pr_number: int, verbose: int) -> None:
    """Stack command."""
    from ... import setup_logging
    setup_logging(verbose)

    config, github = run_or_exit("setup", lambda: setup_github(repo))
    bot = StackBot(config, github)
    prs = run_or_exit("stack", lambda: bot.get_stack(pr_number))

    # Top of the stack first, like the stack tree comment
    for pr in reversed(prs):
        marker = " ⬅" if pr.number == pr_number else ""
        click.echo(f"#{pr.number} {pr.head_ref} -> {pr.base_ref} {pr.title}{marker}")

@cli.command(name="squash", help="Squash pull requests of a stack into one commit each")
@repo_option
@pr_option
@click.option('--scope', '-s', type=click.Choice(SCOPES), default='only',
              help="Part of the stack to squash")
@verbose_option
def squash(repo: Optional[str], pr_number: int, scope: str, verbose: int) -> None:
    """Squash command."""
    from ... import setup_logging
    setup_logging(verbose)

    config, github = run_or_exit("setup", lambda: setup_github(repo))
    bot = StackBot(config, github)
    outcomes = run_or_exit("squash", lambda: bot.handle_squash_command(pr_number, scope))
    echo_outcomes(outcomes, pr_number)

@cli.command(name="fold", help="Squash and fold pull requests of a stack into the trunk")
@repo_option
@pr_option
@click.option('--scope', '-s', type=click.Choice(SCOPES), default='down',
              help="Part of the stack to fold")
@click.option('--skip-ready-check', is_flag=True, help="Fold even if some pull requests are not ready to merge")
@verbose_option
def fold(repo: Optional[str], pr_number: int, scope: str, skip_ready_check: bool, verbose: int) -> None:
    """Fold command."""
    from ... import setup_logging
    setup_logging(verbose)

    config, github = run_or_exit("setup", lambda: setup_github(repo))
    if skip_ready_check:
        config.repo.skip_ready_check = True
    bot = StackBot(config, github)
    outcomes = run_or_exit("fold", lambda: bot.handle_fold_command(pr_number, scope))
    echo_outcomes(outcomes, pr_number)

@cli.command(name="tree", help="Post or refresh the stack tree comment on every pull request of a stack")
@repo_option
@pr_option
@verbose_option
def tree(repo: Optional[str], pr_number: int, verbose: int) -> None:
    """Tree command."""
    from ... import setup_logging
    setup_logging(verbose)

    config, github = run_or_exit("setup", lambda: setup_github(repo))
    bot = StackBot(config, github)
    run_or_exit("tree", lambda: bot.update_stack_tree_comments(pr_number))

@cli.command(name="event", help="Handle a GitHub webhook payload (issue_comment or pull_request)")
@click.argument('payload_file', type=click.File('r'))
@click.option('--name', 'event_name', type=click.Choice(['issue_comment', 'pull_request']),
              default=lambda: os.environ.get("GITHUB_EVENT_NAME", "issue_comment"),
              help="Webhook event name (defaults to $GITHUB_EVENT_NAME)")
@repo_option
@verbose_option
def event(payload_file: Any, event_name: str, repo: Optional[str], verbose: int) -> None:
    """Event command."""
    from ... import setup_logging
    setup_logging(verbose)

    try:
        payload = json.load(payload_file)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON payload: {e}")
        sys.exit(1)

    if event_name == "issue_comment":
        comment_event = run_or_exit("event parsing", lambda: parse_issue_comment_event(payload))
        config, github = run_or_exit("setup", lambda: setup_github(repo or comment_event.repository.full_name))
        bot = StackBot(config, github)
        outcomes = run_or_exit("event", lambda: bot.handle_comment_event(comment_event))
        echo_outcomes(outcomes, comment_event.issue.number)
    else:
        pr_event = run_or_exit("event parsing", lambda: parse_pull_request_event(payload))
        config, github = run_or_exit("setup", lambda: setup_github(repo or pr_event.repository.full_name))
        bot = StackBot(config, github)
        run_or_exit("event", lambda: bot.handle_pull_request_event(pr_event))

def main() -> None:
    """Main entry point."""
    # Add command aliases
    cli.aliases['st'] = 'stack'
    cli.aliases['sq'] = 'squash'
    cli(obj={})

if __name__ == "__main__":
    main()
