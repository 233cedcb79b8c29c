"""Error values and CLI exit codes.

Errors are plain frozen dataclasses carried inside ``Err`` results. They are
grouped in the ``WorkspaceError`` union so the CLI layer can pattern match on
them once, at the boundary.

Structural errors (config, cycles, unknown nodes, duplicates) stop a command.
Per-node errors (materialization, git) are collected by batch operations and
reported together at the end.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

__all__ = [
    "ConfigError",
    "CyclicReferenceError",
    "DuplicateNameError",
    "ErrorCode",
    "GitOperationError",
    "MaterializationError",
    "NodeNotFoundError",
    "WorkspaceError",
]


class ErrorCode(IntEnum):
    """Process exit status of a ``muno`` command. Scripts rely on these values."""

    OK = 0
    USER_ERROR = 1  # unknown node, name collision, bad arguments
    CONFIG_ERROR = 2  # malformed or cyclic documents, no workspace
    GIT_ERROR = 3  # at least one node failed in a batch
    IO_ERROR = 5  # state or documents could not be written


@dataclass(frozen=True, slots=True)
class ConfigError:
    """A workspace document is missing, malformed or cannot be written."""

    message: str
    path: Path | None = None
    hint: str | None = None
    io: bool = False  # a write failed, as opposed to bad content


@dataclass(frozen=True, slots=True)
class CyclicReferenceError:
    """A document transitively references itself.

    Attributes:
        chain: Resolved document paths, first to last, ending with the
            document that closes the cycle.
    """

    chain: tuple[Path, ...]

    @property
    def message(self) -> str:
        names = " -> ".join(str(p) for p in self.chain)
        return f"cyclic document reference: {names}"


@dataclass(frozen=True, slots=True)
class NodeNotFoundError:
    """A virtual path does not name a node in the tree.

    Attributes:
        path: The path as requested.
        segment: The first segment that could not be resolved.
    """

    path: str
    segment: str

    @property
    def message(self) -> str:
        if self.segment and self.segment != self.path:
            return f"node not found: {self.path} (no '{self.segment}')"
        return f"node not found: {self.path}"


@dataclass(frozen=True, slots=True)
class DuplicateNameError:
    """A sibling with the same name already exists."""

    parent: str
    name: str

    @property
    def message(self) -> str:
        return f"'{self.name}' already exists under {self.parent}"


@dataclass(frozen=True, slots=True)
class MaterializationError:
    """Cloning a node's repository failed; the node stays absent."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class GitOperationError:
    """A pull, commit, push or status call failed on one node."""

    path: str
    command: str
    message: str


WorkspaceError = (
    ConfigError
    | CyclicReferenceError
    | NodeNotFoundError
    | DuplicateNameError
    | MaterializationError
    | GitOperationError
)
