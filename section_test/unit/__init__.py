"""Unit module - the execution-unit tree."""

from .execution_unit import ExecutionUnit, Failure, UnitState
from .resolver import declare_section, declare_test

__all__ = [
    "ExecutionUnit",
    "Failure",
    "UnitState",
    "declare_section",
    "declare_test",
]
