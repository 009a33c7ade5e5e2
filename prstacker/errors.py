"""Error kinds raised by the stack bot.

Every failure surfaces as a StackError tagged with an ErrorKind and an
ErrorCode. Callers inspect the tags rather than the exception type:
validation, permission and configuration errors are expected and shown to
the user; infrastructure errors are unexpected and escalated.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    VALIDATION = "validation"
    PERMISSION = "permission"
    CONFIGURATION = "configuration"
    INFRASTRUCTURE = "infrastructure"


class ErrorCode(Enum):
    NOT_FOUND = "not_found"
    UNRECOGNIZED_SCOPE = "unrecognized_scope"
    UNRECOGNIZED_COMMAND = "unrecognized_command"
    UNSUPPORTED_TOPOLOGY = "unsupported_topology"
    EMPTY_PR = "empty_pr"
    NOT_READY = "not_ready"
    NOT_STACK_PREFIX = "not_stack_prefix"
    NOT_ORIGINATOR = "not_originator"
    INVALID_CONFIG = "invalid_config"
    CONSISTENCY_TIMEOUT = "consistency_timeout"
    REMOTE_FAILURE = "remote_failure"


class StackError(Exception):
    """A failure carrying its kind, a specific code and an optional cause."""

    def __init__(self, kind: ErrorKind, code: ErrorCode, message: str,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.code = code
        self.message = message
        self.cause = cause

    @property
    def expected(self) -> bool:
        """Expected errors are part of normal operation and are not escalated."""
        return self.kind is not ErrorKind.INFRASTRUCTURE

    def __repr__(self) -> str:
        return f"StackError({self.kind.name}, {self.code.name}, {self.message!r})"


def validation_error(code: ErrorCode, message: str) -> StackError:
    return StackError(ErrorKind.VALIDATION, code, message)


def permission_error(message: str) -> StackError:
    return StackError(ErrorKind.PERMISSION, ErrorCode.NOT_ORIGINATOR, message)


def configuration_error(message: str, cause: Optional[BaseException] = None) -> StackError:
    return StackError(ErrorKind.CONFIGURATION, ErrorCode.INVALID_CONFIG, message, cause)


def infrastructure_error(message: str, cause: Optional[BaseException] = None,
                         code: ErrorCode = ErrorCode.REMOTE_FAILURE) -> StackError:
    return StackError(ErrorKind.INFRASTRUCTURE, code, message, cause)


def error_message(error: BaseException) -> str:
    """Human readable message for any error, including PyGithub ones."""
    if isinstance(error, StackError):
        return error.message
    # GithubException keeps the API response in .data
    data = getattr(error, "data", None)
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    text = str(error)
    return text if text else "Unknown error"


def wrap_error(prefix: str, error: BaseException) -> StackError:
    """Prefix an error's message, preserving its kind and code.

    Anything that is not already a StackError is a failed remote call and is
    classified as infrastructure with the original error kept as the cause.
    """
    message = f"{prefix}: {error_message(error)}"
    if isinstance(error, StackError):
        return StackError(error.kind, error.code, message, error.cause or error)
    return infrastructure_error(message, cause=error)
