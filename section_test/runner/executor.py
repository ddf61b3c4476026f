"""Execution engine - runs the unit tree.

Each unit goes through three steps:
1. Discover: its body runs once, registering (not running) its sections
2. Report: its PASSED/FAILED line is printed
3. Descend: every registered section is executed in declaration order,
   each going through the same phases in turn

Expect-fail units are handed to the fault isolator instead of running in
this process, unless this process is already the isolated one.
"""

import logging
import time
import traceback
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..context import Context
from ..exceptions import ConfigurationError
from ..reporting.console_reporter import ConsoleReporter
from ..session import Session, activate
from ..unit.execution_unit import ExecutionUnit, UnitState
from .isolation import FaultIsolator

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Result of running one session."""
    tests_did_pass: bool
    roots: list[ExecutionUnit] = field(default_factory=list)
    duration_ms: int = 0


class Executor:
    """Drives the discover-then-descend traversal of a session's tests."""

    def __init__(
        self,
        session: Session,
        reporter: Optional[ConsoleReporter] = None,
        isolator: Optional[FaultIsolator] = None,
    ):
        self.session = session
        self.reporter = reporter or ConsoleReporter(session)
        self.isolator = isolator or FaultIsolator(session)

    def run(self, names: Optional[Iterable[str]] = None) -> ExecutionResult:
        """Execute root tests in declaration order.

        Args:
            names: Only run the root tests with these names. None = all.

        Raises:
            ConfigurationError: If a requested test is not declared.
        """
        start_time = time.time()
        roots = self._select_roots(names)
        with activate(self.session):
            for root in roots:
                self.execute(root)

        return ExecutionResult(
            tests_did_pass=self.session.tests_did_pass,
            roots=roots,
            duration_ms=int((time.time() - start_time) * 1000),
        )

    def run_path(self, path: list[str]) -> ExecutionResult:
        """Execute the single unit at ``path`` (used by the isolated subprocess).

        Every ancestor body runs once in discover-only mode to rebuild the
        tree down to the target; ancestors are neither reported nor descended.
        """
        if not path:
            raise ConfigurationError("An empty unit path was given")

        start_time = time.time()
        unit = self._select_roots([path[0]])[0]
        with activate(self.session):
            for name in path[1:]:
                self._discover(unit)
                child_id = unit.section_names_to_ids.get(name)
                if child_id is None:
                    raise ConfigurationError(
                        f"No section named \"{name}\" in \"{unit.friendly_name}\""
                    )
                unit = unit.children[child_id]

            self.execute(unit)
        return ExecutionResult(
            tests_did_pass=self.session.tests_did_pass,
            roots=[unit.root],
            duration_ms=int((time.time() - start_time) * 1000),
        )

    def execute(self, unit: ExecutionUnit) -> None:
        """Execute ``unit`` and its subtree. A no-op if it already ran."""
        if unit.has_executed:
            return
        unit.has_executed = True
        unit.state = UnitState.EXECUTING

        with self.session.entered(unit):
            if self._needs_isolation(unit):
                self.isolator.run(unit)
            else:
                self._call_body(unit)

        self.reporter.print_result(unit)
        self._descend(unit)
        unit.state = UnitState.EXECUTED

    def _needs_isolation(self, unit: ExecutionUnit) -> bool:
        return unit.expect_fail and not self.session.isolated

    def _select_roots(self, names: Optional[Iterable[str]]) -> list[ExecutionUnit]:
        if names is None:
            return list(self.session.roots.values())

        roots = []
        for name in names:
            if name not in self.session.roots:
                raise ConfigurationError(
                    f"No test named \"{name}\". Declared tests: "
                    f"{', '.join(self.session.roots) or 'none'}"
                )
            roots.append(self.session.roots[name])
        return roots

    def _call_body(self, unit: ExecutionUnit) -> None:
        """Call the unit's body under its debug mode.

        A failing ``assert`` statement is recorded as a failure of the unit.
        Any other exception propagates and aborts the run.
        """
        if unit.body is None:
            return

        context = Context(unit, self.session, self)
        with self.session.debug_scope(unit.debug_mode):
            try:
                unit.body(context)
            except AssertionError as e:
                unit.record_failure(
                    str(e) or "assertion failed",
                    detail=traceback.format_exc().rstrip(),
                )

    def _discover(self, unit: ExecutionUnit) -> None:
        with self.session.entered(unit):
            self._call_body(unit)

    def _descend(self, unit: ExecutionUnit) -> None:
        """Execute the sections registered while ``unit``'s body ran."""
        if unit.is_leaf or self._needs_isolation(unit):
            return

        unit.execute_sections = True
        with self.session.entered(unit):
            for child in list(unit.children.values()):
                self.execute(child)
