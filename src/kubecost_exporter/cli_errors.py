"""Errors surfaced to the command line, and the exit codes they map to."""

from __future__ import annotations

import logging
import sys
from functools import wraps
from typing import Any, Callable, Dict, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

EXIT_INTERRUPTED = 130
EXIT_FILE_ERROR = 2


class CLIError(Exception):
    """Base exception for failures a command reports and exits on."""

    exit_code = 1
    title = "Command failed"

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(message)


class ConfigError(CLIError):
    """Configuration is missing, unreadable or has the wrong shape."""

    exit_code = 3
    title = "Invalid configuration"


class NetworkError(CLIError):
    """The Allocation API could not be reached or answered badly."""

    exit_code = 5
    title = "Allocation API unavailable"


# Titles for errors raised outside this module
_OS_ERROR_TITLES: Dict[Type[BaseException], str] = {
    FileNotFoundError: "File not found",
    PermissionError: "Permission denied",
    KeyboardInterrupt: "Operation cancelled",
}


def format_error_message(error: BaseException, context: Optional[str] = None) -> str:
    """
    One-line, user facing description of ``error``.

    >>> format_error_message(NetworkError("timeout"), "Poll")
    '❌ Poll: Allocation API unavailable - timeout'
    """
    title = getattr(error, "title", None) or _OS_ERROR_TITLES.get(
        type(error), type(error).__name__
    )
    prefix = f"❌ {context}: {title}" if context else f"❌ {title}"
    detail = str(error)
    return f"{prefix} - {detail}" if detail else prefix


def _fail(message: str, exit_code: int) -> None:
    print(message, file=sys.stderr)
    sys.exit(exit_code)


def handle_cli_errors(context: str = "") -> Callable[[F], F]:
    """
    Turn the known failures of a click command into a message on stderr and an exit code.

    Anything else propagates unchanged so real bugs keep their traceback.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                _fail("\n⚠️  Interrupted, exporter stopped", EXIT_INTERRUPTED)
            except CLIError as e:
                message = format_error_message(e, context or e.context)
                logger.debug(f"{type(e).__name__} in {func.__name__}: {e.message}")
                _fail(message, e.exit_code)
            except (FileNotFoundError, PermissionError) as e:
                _fail(format_error_message(e, context or "File operation"), EXIT_FILE_ERROR)

        return wrapper  # type: ignore

    return decorator
