"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from muno.core.errors import (
    ConfigError,
    CyclicReferenceError,
    DuplicateNameError,
    ErrorCode,
    GitOperationError,
    MaterializationError,
    NodeNotFoundError,
    WorkspaceError,
)
from muno.output.console import Style

if TYPE_CHECKING:
    from muno.output.console import ConsoleProtocol

__all__ = ["print_workspace_error", "workspace_error_exit_code"]


def print_workspace_error(error: WorkspaceError, console: ConsoleProtocol) -> None:
    """Print a workspace error with its context lines."""
    match error:
        case ConfigError(message=message, path=path, hint=hint):
            console.error(message)
            if path is not None:
                console.print(f"file: {path}", Style.DIM)
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case CyclicReferenceError():
            console.error(error.message)
        case NodeNotFoundError():
            console.error(error.message)
            console.print("hint: run `muno tree` to see available nodes", Style.DIM)
        case DuplicateNameError():
            console.error(error.message)
        case MaterializationError(path=path, message=message):
            console.error(f"clone failed for {path}: {message}")
        case GitOperationError(path=path, command=command, message=message):
            console.error(f"git {command} failed for {path}: {message}")


def workspace_error_exit_code(error: WorkspaceError) -> int:
    """Get exit code for a workspace error."""
    match error:
        case NodeNotFoundError() | DuplicateNameError():
            return int(ErrorCode.USER_ERROR)
        case ConfigError(io=True):
            return int(ErrorCode.IO_ERROR)
        case ConfigError() | CyclicReferenceError():
            return int(ErrorCode.CONFIG_ERROR)
        case MaterializationError() | GitOperationError():
            return int(ErrorCode.GIT_ERROR)
    return int(ErrorCode.USER_ERROR)
