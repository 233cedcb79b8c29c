"""The git capability the workspace depends on.

Tree operations never shell out themselves; they call a ``GitCapability``.
``GitCli`` is the real implementation on top of the ``git`` binary;
``RecordingGit`` stands in for it in tests.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from muno.core.result import Err, Ok, Result

from .repository import GitError, GitStatus, Repository, StatusEntry
from .repository import clone as git_clone

__all__ = ["GitCall", "GitCapability", "GitCli", "RecordingGit"]


class GitCapability(Protocol):
    """Repository content operations, one working tree at a time."""

    def clone(self, url: str, dest: Path) -> Result[str, GitError]: ...

    def pull(self, dest: Path, *, force: bool = False) -> Result[str, GitError]: ...

    def commit(self, dest: Path, message: str) -> Result[str, GitError]: ...

    def push(self, dest: Path) -> Result[str, GitError]: ...

    def status(self, dest: Path) -> Result[GitStatus, GitError]: ...


class GitCli:
    """GitCapability backed by the git command line."""

    def clone(self, url: str, dest: Path) -> Result[str, GitError]:
        return git_clone(url, dest)

    def pull(self, dest: Path, *, force: bool = False) -> Result[str, GitError]:
        return Repository(dest).pull(force=force)

    def commit(self, dest: Path, message: str) -> Result[str, GitError]:
        return Repository(dest).commit(message)

    def push(self, dest: Path) -> Result[str, GitError]:
        return Repository(dest).push()

    def status(self, dest: Path) -> Result[GitStatus, GitError]:
        return Repository(dest).status()


@dataclass(frozen=True, slots=True)
class GitCall:
    """One call recorded by RecordingGit."""

    op: str
    dest: Path
    arg: str | None = None


def _no_files() -> dict[str, dict[str, str]]:
    return {}


@dataclass
class RecordingGit:
    """GitCapability that records calls instead of running git.

    Use this in tests. ``clone`` creates the destination with a ``.git``
    directory, plus any files listed for the URL in ``clone_files``.

    Attributes:
        fail_clone: URLs whose clone fails.
        fail: Directory names whose pull/commit/push/status fails.
        dirty: Directory names whose status reports local changes.
        clone_files: Files to create in a fresh clone, by URL.
    """

    fail_clone: set[str] = field(default_factory=set)
    fail: set[str] = field(default_factory=set)
    dirty: set[str] = field(default_factory=set)
    clone_files: dict[str, dict[str, str]] = field(default_factory=_no_files)
    calls: list[GitCall] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def clone(self, url: str, dest: Path) -> Result[str, GitError]:
        self._record("clone", dest, url)
        if url in self.fail_clone:
            return Err(GitError(command="clone", message=f"repository '{url}' not found", returncode=128))
        (dest / ".git").mkdir(parents=True, exist_ok=True)
        for rel, content in self.clone_files.get(url, {}).items():
            target = dest / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return Ok(f"Cloning into '{dest.name}'...")

    def pull(self, dest: Path, *, force: bool = False) -> Result[str, GitError]:
        self._record("pull", dest, "force" if force else None)
        if dest.name in self.fail:
            return Err(GitError(command="pull --ff-only", message="Not possible to fast-forward"))
        return Ok("Already up to date.")

    def commit(self, dest: Path, message: str) -> Result[str, GitError]:
        self._record("commit", dest, message)
        if dest.name in self.fail:
            return Err(GitError(command="commit", message="commit failed"))
        return Ok(f"[main 1a2b3c4] {message}")

    def push(self, dest: Path) -> Result[str, GitError]:
        self._record("push", dest)
        if dest.name in self.fail:
            return Err(GitError(command="push", message="rejected"))
        return Ok("")

    def status(self, dest: Path) -> Result[GitStatus, GitError]:
        self._record("status", dest)
        if dest.name in self.fail:
            return Err(GitError(command="status", message="not a git repository"))
        entries = (StatusEntry(xy=" M", path="README.md"),) if dest.name in self.dirty else ()
        return Ok(GitStatus(branch="main", upstream="origin/main", entries=entries))

    # Test helpers

    def count(self, op: str) -> int:
        return sum(1 for c in self.calls if c.op == op)

    def dests(self, op: str) -> list[Path]:
        return [c.dest for c in self.calls if c.op == op]

    def _record(self, op: str, dest: Path, arg: str | None = None) -> None:
        with self._lock:
            self.calls.append(GitCall(op=op, dest=dest, arg=arg))
