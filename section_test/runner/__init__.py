"""Runner module - tree execution and fault isolation."""

from .executor import ExecutionResult, Executor
from .isolation import FaultIsolator, IsolationOutcome

__all__ = [
    "ExecutionResult",
    "Executor",
    "FaultIsolator",
    "IsolationOutcome",
]
