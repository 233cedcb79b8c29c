"""Workspace services: materialization, bulk operations, manager facade.

The manager lives in ``muno.services.manager`` and is imported from there;
it depends on the output layer, which itself renders executor reports.
"""

from muno.services.executor import BatchReport, Operation, OperationExecutor, OperationResult, Outcome
from muno.services.materializer import LazyMaterializer

__all__ = [
    "BatchReport",
    "LazyMaterializer",
    "Operation",
    "OperationExecutor",
    "OperationResult",
    "Outcome",
]
