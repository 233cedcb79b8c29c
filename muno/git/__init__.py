"""Git operations module.

- Repository: single working tree operations on top of the git binary
- GitCapability: the protocol tree operations depend on
- GitCli: GitCapability implemented with Repository

Usage:
    from muno.git import GitCli

    git = GitCli()
    match git.status(Path("repos/backend")):
        case Ok(status):
            print(status.branch)
        case Err(error):
            print(error.message)
"""

from muno.git.capability import GitCapability, GitCli, RecordingGit
from muno.git.repository import (
    GitError,
    GitStatus,
    Repository,
    StatusEntry,
)

__all__ = [
    "GitCapability",
    "GitCli",
    "RecordingGit",
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
]
