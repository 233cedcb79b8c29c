"""Durable "current position" across CLI invocations.

Each invocation is a fresh process, so the last node the user moved to is
kept in a one-line file next to the workspace document:

  <workspace>/.muno/current

with content like:

  /backend/payment-service

Writes are last-writer-wins; nothing locks the file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from muno.platform.files import atomic_write_text

from .errors import ConfigError
from .result import Err, Ok, Result

__all__ = [
    "FilePositionStore",
    "MemoryPositionStore",
    "PositionStore",
]


class PositionStore(Protocol):
    """Where the last-used virtual path is kept."""

    def get(self) -> str | None: ...

    def set(self, virtual_path: str) -> Result[None, ConfigError]: ...

    def clear(self) -> Result[None, ConfigError]: ...


class FilePositionStore:
    """Position stored in a small text file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def get(self) -> str | None:
        """Return the stored path, or None when unset or unreadable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

        value = raw.strip()
        if not value.startswith("/"):
            return None
        return value

    def set(self, virtual_path: str) -> Result[None, ConfigError]:
        try:
            atomic_write_text(self.path, f"{virtual_path}\n")
        except OSError as e:
            return Err(ConfigError(f"could not write {self.path}: {e}", path=self.path, io=True))
        return Ok(None)

    def clear(self) -> Result[None, ConfigError]:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            return Err(ConfigError(f"could not remove {self.path}: {e}", path=self.path, io=True))
        return Ok(None)


class MemoryPositionStore:
    """In-process position, for tests and embedding."""

    def __init__(self, initial: str | None = None) -> None:
        self.value = initial

    def get(self) -> str | None:
        return self.value

    def set(self, virtual_path: str) -> Result[None, ConfigError]:
        self.value = virtual_path
        return Ok(None)

    def clear(self) -> Result[None, ConfigError]:
        self.value = None
        return Ok(None)
