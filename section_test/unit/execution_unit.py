"""Execution unit: the node type of the test tree.

A unit is either a root test or a (possibly nested) section. It owns the
callable holding its statements, its place in the tree, and the guards that
make execution and reporting happen at most once per process.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Optional

from ..config import DEFAULT_PRINT_LENGTH
from ..exceptions import UnitStateError


class UnitState(str, Enum):
    """Execution state of a unit."""
    UNEXECUTED = "unexecuted"
    EXECUTING = "executing"
    EXECUTED = "executed"


@dataclass
class Failure:
    """A failure recorded by a unit's own body."""
    message: str
    detail: Optional[str] = None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}\n{self.detail}"
        return self.message


@dataclass(eq=False)
class ExecutionUnit:
    """A test or section in the execution tree."""
    unit_id: str
    friendly_name: str
    expect_fail: bool = False
    body: Optional[Callable[..., Any]] = None
    source_file: Optional[str] = None
    fails_as: Optional[str] = None
    parent: Optional["ExecutionUnit"] = field(default=None, repr=False)
    children: dict[str, "ExecutionUnit"] = field(default_factory=dict, repr=False)
    print_length: int = DEFAULT_PRINT_LENGTH
    print_length_forced: bool = False
    section_depth: int = 0
    debug_mode: bool = False
    execute_sections: bool = False
    has_executed: bool = False
    has_printed: bool = False
    section_names_to_ids: dict[str, str] = field(default_factory=dict, repr=False)
    failures: list[Failure] = field(default_factory=list, repr=False)
    state: UnitState = UnitState.UNEXECUTED
    passed: Optional[bool] = None

    def append_child(self, key: str, child: "ExecutionUnit") -> None:
        """Attach ``child`` under ``key``.

        Raises:
            UnitStateError: If ``key`` is already bound to a different unit.
        """
        existing = self.children.get(key)
        if existing is child:
            return
        if existing is not None:
            raise UnitStateError(
                f"Key '{key}' under '{self.friendly_name}' is already bound to "
                f"'{existing.friendly_name}', refusing to rebind it to "
                f"'{child.friendly_name}'"
            )

        child.parent = self
        child.section_depth = self.section_depth + 1
        child.source_file = self.source_file
        child.debug_mode = self.debug_mode
        if not child.print_length_forced:
            child.print_length = self.print_length
        self.children[key] = child

    def ancestors(self) -> Iterator["ExecutionUnit"]:
        """Yield ancestors from the immediate parent up to the root."""
        next_parent = self.parent
        while next_parent is not None:
            yield next_parent
            next_parent = next_parent.parent

    @property
    def root(self) -> "ExecutionUnit":
        unit = self
        while unit.parent is not None:
            unit = unit.parent
        return unit

    @property
    def path(self) -> list[str]:
        """Friendly names from the root test down to this unit."""
        names = [self.friendly_name]
        names.extend(a.friendly_name for a in self.ancestors())
        names.reverse()
        return names

    def effective_print_length(self, default: Optional[int] = None) -> int:
        """Resolve the report line width.

        Priority: this unit's forced value, the nearest ancestor's forced
        value, ``default`` (the configured length), then the built-in 80.
        """
        if self.print_length_forced:
            return self.print_length
        for ancestor in self.ancestors():
            if ancestor.print_length_forced:
                return ancestor.print_length
        if default is not None and default > 0:
            return default
        return DEFAULT_PRINT_LENGTH

    def record_failure(self, message: str, detail: Optional[str] = None) -> None:
        self.failures.append(Failure(message=str(message), detail=detail))

    @property
    def failed(self) -> bool:
        return len(self.failures) > 0

    @property
    def is_leaf(self) -> bool:
        return len(self.children) == 0

    def iter_subtree(self) -> Iterator["ExecutionUnit"]:
        """Yield this unit and every descendant, depth first, in declaration order."""
        yield self
        for child in self.children.values():
            yield from child.iter_subtree()

    def to_dict(self) -> dict[str, Any]:
        """Convert the subtree rooted here to a JSON-serializable dict."""
        return {
            "id": self.unit_id,
            "name": self.friendly_name,
            "source_file": self.source_file,
            "expect_fail": self.expect_fail,
            "depth": self.section_depth,
            "status": _status_name(self.passed),
            "failures": [str(f) for f in self.failures],
            "children": [child.to_dict() for child in self.children.values()],
        }


    def to_string(self, indent: str = "  ") -> str:
        """Readable dump of the subtree rooted here, one unit per line."""
        lines = []
        for unit in self.iter_subtree():
            flags = []
            if unit.expect_fail:
                flags.append("expect_fail")
            if unit.print_length_forced:
                flags.append(f"print_length={unit.print_length}")
            suffix = f" [{', '.join(flags)}]" if flags else ""
            lines.append(
                f"{indent * (unit.section_depth - self.section_depth)}"
                f"{unit.friendly_name} ({unit.unit_id}): {_status_name(unit.passed)}{suffix}"
            )
        return "\n".join(lines)


def _status_name(passed: Optional[bool]) -> str:
    if passed is None:
        return "not_run"
    return "passed" if passed else "failed"
