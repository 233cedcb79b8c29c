"""muno - a tree of git repositories navigated as one workspace."""

__version__ = "0.4.0"
