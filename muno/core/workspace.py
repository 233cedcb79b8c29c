"""Workspace detection and layout.

A workspace is the directory holding the root document (``muno.yaml``). Its
layout:

    <root>/muno.yaml          root document
    <root>/.muno/current      persisted position
    <root>/<repos_dir>/...    working trees, one directory per node path
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .config import CONFIG_FILE_NAMES, find_config_file
from .errors import ConfigError
from .result import Err, Ok, Result

__all__ = [
    "WORKSPACE_ENV_VAR",
    "Workspace",
    "WorkspaceInfo",
    "WorkspaceSource",
    "detect_workspace",
    "detect_workspace_info",
    "find_workspace_upward",
    "is_workspace_root",
]

WORKSPACE_ENV_VAR = "MUNO_WORKSPACE"


@dataclass(frozen=True, slots=True)
class Workspace:
    """A detected workspace root."""

    root: Path

    @property
    def config_path(self) -> Path:
        """Path to the root document (muno.yaml unless an alternative exists)."""
        return find_config_file(self.root) or self.root / CONFIG_FILE_NAMES[0]

    @property
    def state_dir(self) -> Path:
        return self.root / ".muno"

    @property
    def position_path(self) -> Path:
        """Path to the persisted position record."""
        return self.state_dir / "current"

    def repos_path(self, repos_dir: str) -> Path:
        return self.root / repos_dir

    def exists(self) -> bool:
        return self.root.is_dir() and find_config_file(self.root) is not None

    def __str__(self) -> str:
        return str(self.root)


WorkspaceSource = Literal["env", "cwd"]


@dataclass(frozen=True, slots=True)
class WorkspaceInfo:
    workspace: Workspace
    source: WorkspaceSource


def is_workspace_root(path: Path) -> bool:
    return find_config_file(path) is not None


def find_workspace_upward(start: Path) -> Path | None:
    """Outermost directory at or above ``start`` holding a root document.

    A cloned repository may carry its own ``muno.yaml`` for a nested subtree;
    that must not shadow the workspace it lives in.
    """
    matches = [d for d in (start, *start.parents) if is_workspace_root(d)]
    return matches[-1] if matches else None


def _from_env(env_var: str) -> Result[WorkspaceInfo, ConfigError] | None:
    raw = os.environ.get(env_var)
    if not raw:
        return None
    root = Path(raw).expanduser().resolve()
    if not (root.is_dir() and is_workspace_root(root)):
        return Err(ConfigError(f"${env_var} is set to '{raw}' but it is not a valid workspace", path=root))
    return Ok(WorkspaceInfo(workspace=Workspace(root=root), source="env"))


def detect_workspace_info(
    *,
    start_dir: Path | None = None,
    env_var: str = WORKSPACE_ENV_VAR,
) -> Result[WorkspaceInfo, ConfigError]:
    """Find the workspace: ``$MUNO_WORKSPACE`` first, then upward from CWD.

    A set but invalid environment variable is an error rather than a
    fallthrough, so a typo never silently selects another workspace.
    """
    from_env = _from_env(env_var)
    if from_env is not None:
        return from_env

    start = (start_dir or Path.cwd()).resolve()
    root = find_workspace_upward(start)
    if root is None:
        return Err(
            ConfigError(
                "could not find workspace (muno.yaml not found)",
                path=start,
                hint="run `muno init` to create one, or pass --workspace",
            )
        )
    return Ok(WorkspaceInfo(workspace=Workspace(root=root), source="cwd"))


def detect_workspace(
    *,
    start_dir: Path | None = None,
    env_var: str = WORKSPACE_ENV_VAR,
) -> Result[Workspace, ConfigError]:
    return detect_workspace_info(start_dir=start_dir, env_var=env_var).map(lambda info: info.workspace)
