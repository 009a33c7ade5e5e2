"""Parsing of bot commands written in PR comments."""

from dataclasses import dataclass
from typing import Optional

from ..errors import validation_error, ErrorCode
from ..typing import COMMANDS, SCOPES

BASE_COMMAND = "/stackbot"

# Range used when a command is given without one
DEFAULT_SCOPES = {
    "squash": "only",
    "fold": "down",
    "help": None,
}

HELP_TEXT = (
    f"- `{BASE_COMMAND} fold [down|up|all|only]`: Folds a stack of PR's from this PR down into the trunk\n"
    f"- `{BASE_COMMAND} squash [down|up|all|only]`: Squashes each PR to one commit using the PR title "
    "and description (this PR only by default)\n"
    f"- `{BASE_COMMAND} help`: Shows this message"
)

@dataclass(frozen=True)
class ParsedCommand:
    command: str
    scope: Optional[str] = None

def is_bot_command(text: str) -> bool:
    return text.strip().startswith(BASE_COMMAND)

def parse_command(text: str) -> Optional[ParsedCommand]:
    """Parse `/stackbot <command> [scope]`.

    Returns None when the text is not addressed to the bot. A comment that is
    addressed to it but names an unknown command or scope is a validation error.
    """
    words = text.strip().split()
    if not words or words[0] != BASE_COMMAND:
        return None

    if len(words) < 2 or words[1] not in COMMANDS:
        given = words[1] if len(words) > 1 else ""
        raise validation_error(
            ErrorCode.UNRECOGNIZED_COMMAND,
            f"The command `{given}` was not recognized. Expected one of: {', '.join(COMMANDS)}")
    command = words[1]

    if len(words) > 2:
        scope = words[2]
        if scope not in SCOPES:
            raise validation_error(
                ErrorCode.UNRECOGNIZED_SCOPE,
                f"Could not understand the given sub command: `{scope}`. Expected one of: {', '.join(SCOPES)}")
    else:
        scope = DEFAULT_SCOPES[command]

    return ParsedCommand(command=command, scope=scope)
