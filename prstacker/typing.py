"""Common types used across the codebase."""

from typing import Callable, Literal, NewType, Tuple

# Commit identifier on the remote host
CommitSha = NewType('CommitSha', str)

# Range of a stack a command applies to
SCOPES: Tuple[str, ...] = ('down', 'up', 'all', 'only')

# Bot commands understood in PR comments
COMMANDS: Tuple[str, ...] = ('squash', 'fold', 'help')

Reaction = Literal['rocket', 'confused']

SleepFn = Callable[[float], None]
ClockFn = Callable[[], float]
