"""Eager/lazy classification of repository nodes.

Aggregate repositories (meta-repos, platforms, workspaces) are cloned eagerly
so their nested documents can be discovered. Everything else waits until it
is first needed. The decision depends on the repository name taken from the
URL, never on the node name, so renaming a node does not change it.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum

from muno.core.config import DEFAULT_EAGER_MARKERS

__all__ = ["FetchMode", "classify_fetch_mode", "repo_name_from_url"]


class FetchMode(StrEnum):
    EAGER = "eager"
    LAZY = "lazy"


def repo_name_from_url(url: str) -> str:
    """Repository name from a clone URL.

    Handles https URLs, scp-style ``git@host:org/repo.git`` and local paths.
    """
    trimmed = url.strip().rstrip("/")
    last = trimmed.rsplit("/", 1)[-1]
    last = last.rsplit(":", 1)[-1]
    if last.endswith(".git"):
        last = last[: -len(".git")]
    return last


def classify_fetch_mode(
    url: str | None,
    explicit: FetchMode | None = None,
    markers: Sequence[str] = DEFAULT_EAGER_MARKERS,
) -> FetchMode:
    """Effective fetch mode of a node.

    An explicit mode always wins. Without one, a URL whose repository name
    ends with one of ``markers`` is eager; anything else is lazy.
    """
    if explicit is not None:
        return explicit
    if not url:
        return FetchMode.LAZY

    name = repo_name_from_url(url).lower()
    if any(name.endswith(marker.lower()) for marker in markers):
        return FetchMode.EAGER
    return FetchMode.LAZY
