"""Core domain types: results, errors, documents, workspace, position."""

from .config import Document, NodeDefinition, WorkspaceSettings, load_document, save_document
from .errors import (
    ConfigError,
    CyclicReferenceError,
    DuplicateNameError,
    ErrorCode,
    GitOperationError,
    MaterializationError,
    NodeNotFoundError,
    WorkspaceError,
)
from .position import FilePositionStore, MemoryPositionStore, PositionStore
from .result import Err, Ok, Result, is_err, is_ok
from .workspace import Workspace, detect_workspace

__all__ = [
    # config
    "Document",
    "NodeDefinition",
    "WorkspaceSettings",
    "load_document",
    "save_document",
    # errors
    "ConfigError",
    "CyclicReferenceError",
    "DuplicateNameError",
    "ErrorCode",
    "GitOperationError",
    "MaterializationError",
    "NodeNotFoundError",
    "WorkspaceError",
    # position
    "FilePositionStore",
    "MemoryPositionStore",
    "PositionStore",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
    # workspace
    "Workspace",
    "detect_workspace",
]
