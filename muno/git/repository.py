"""The git binary, one working tree at a time.

    repo = Repository(Path("repos/backend/payment-service"))

    match repo.status():
        case Ok(status):
            print(status.summary())
        case Err(e):
            print(f"git {e.command}: {e.message}")

Network commands get a long timeout; local ones a short one, so a wedged
index lock fails a single node instead of hanging a whole batch.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from muno.core.result import Result
from muno.platform.process import ProcessError
from muno.platform.process import run as run_process

__all__ = [
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
    "clone",
]

LOCAL_TIMEOUT = 30.0
NETWORK_TIMEOUT = 300.0
_NETWORK = frozenset({"clone", "fetch", "pull", "push"})

# "## main...origin/main [ahead 1, behind 2]" / "## No commits yet on main"
_HEADER = re.compile(
    r"^##\s+(?:No commits yet on\s+)?(?P<branch>.+?)(?:\.\.\.(?P<upstream>\S+))?(?:\s+\[(?P<track>[^\]]*)\])?\s*$"
)
_TRACK = re.compile(r"(ahead|behind)\s+(\d+)")


@dataclass(frozen=True, slots=True)
class GitError:
    """A git command that failed; ``message`` is git's own explanation."""

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class StatusEntry:
    xy: str  # porcelain code: "M ", " M", "??", ...
    path: str

    @property
    def is_untracked(self) -> bool:
        return self.xy == "??"


@dataclass(frozen=True, slots=True)
class GitStatus:
    branch: str
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    entries: tuple[StatusEntry, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not self.entries

    @property
    def is_dirty(self) -> bool:
        return bool(self.entries)

    def summary(self) -> str:
        """``"main, 2 changed, ahead 1"`` style one-liner."""
        parts = [self.branch or "?", f"{len(self.entries)} changed" if self.entries else "clean"]
        parts += [f"{word} {n}" for word, n in (("ahead", self.ahead), ("behind", self.behind)) if n]
        return ", ".join(parts)


def _run_git(args: list[str], cwd: Path, label: str) -> Result[str, GitError]:
    timeout = NETWORK_TIMEOUT if _NETWORK & set(args[:3]) else LOCAL_TIMEOUT

    def to_git_error(e: ProcessError) -> GitError:
        return GitError(command=label, message=e.detail, returncode=e.returncode)

    return run_process(["git", *args], cwd=cwd, timeout=timeout).map(str.strip).map_err(to_git_error)


def clone(url: str, dest: Path) -> Result[str, GitError]:
    """Clone ``url`` into ``dest``; the parent directory must exist."""
    return _run_git(["clone", url, str(dest)], dest.parent, "clone")


class Repository:
    """Git operations on the working tree at ``path``."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        # .git is a directory, or a file for worktrees and submodules
        return (self.path / ".git").exists()

    def status(self) -> Result[GitStatus, GitError]:
        return self._git("status", "--porcelain=v1", "-b").map(self._parse_status)

    def pull(self, *, force: bool = False) -> Result[str, GitError]:
        """Fast-forward from upstream.

        With ``force``, local divergence is thrown away instead: fetch, then
        hard-reset to the upstream branch.
        """
        if not force:
            return self._git("pull", "--ff-only")
        return self._git("fetch").and_then(lambda _: self._git("reset", "--hard", "@{u}"))

    def commit(self, message: str) -> Result[str, GitError]:
        """Stage everything, tracked or not, and commit."""
        return self._git("add", "-A").and_then(lambda _: self._git("commit", "-m", message))

    def push(self) -> Result[str, GitError]:
        return self._git("push")

    def _git(self, *args: str) -> Result[str, GitError]:
        return _run_git(["-C", str(self.path), *args], self.path, args[0])

    def _parse_status(self, output: str) -> GitStatus:
        lines = [ln for ln in output.splitlines() if ln.strip()]
        if not lines or not lines[0].startswith("##"):
            return GitStatus(branch="", entries=self._entries(lines))

        header = _HEADER.match(lines[0].strip())
        if header is None:
            return GitStatus(branch="", entries=self._entries(lines[1:]))

        counts = {word: int(n) for word, n in _TRACK.findall(header["track"] or "")}
        return GitStatus(
            branch=header["branch"],
            upstream=header["upstream"],
            ahead=counts.get("ahead", 0),
            behind=counts.get("behind", 0),
            entries=self._entries(lines[1:]),
        )

    @staticmethod
    def _entries(lines: list[str]) -> tuple[StatusEntry, ...]:
        return tuple(StatusEntry(xy=ln[:2], path=ln[3:]) for ln in lines if len(ln) > 3)
