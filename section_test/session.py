"""Process-wide run state.

A Session holds everything one suite-run process shares: the registry of root
tests, the unit whose body is currently running, the suite-wide pass flag and
the run configuration (including whether this process is an isolated
subprocess). An isolated subprocess builds its own Session.
"""

import itertools
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from .config import RunConfig
from .unit.execution_unit import ExecutionUnit

logger = logging.getLogger(__name__)


class Session:
    """State shared by every unit of one suite run."""

    def __init__(self, config: Optional[RunConfig] = None):
        self.config = config or RunConfig()
        self.roots: dict[str, ExecutionUnit] = {}
        self.current: Optional[ExecutionUnit] = None
        self.tests_did_pass = True
        self.debug_mode = self.config.debug
        self.loading_file: Optional[str] = None
        self._ids = itertools.count(1)

    @property
    def isolated(self) -> bool:
        """Whether this process is an isolated subprocess for one unit."""
        return self.config.isolated

    def next_id(self) -> str:
        return f"unit_{next(self._ids)}"

    def register_root(self, unit: ExecutionUnit) -> None:
        self.roots[unit.friendly_name] = unit

    def mark_failed(self) -> None:
        """Clear the suite-wide pass flag. It is never set back."""
        if self.tests_did_pass:
            logger.debug("Suite pass flag cleared")
        self.tests_did_pass = False

    @contextmanager
    def entered(self, unit: ExecutionUnit) -> Iterator[ExecutionUnit]:
        """Make ``unit`` the current unit, restoring the previous one on exit."""
        previous = self.current
        self.current = unit
        try:
            yield unit
        finally:
            self.current = previous

    @contextmanager
    def debug_scope(self, enabled: bool) -> Iterator[None]:
        """Run with ``debug_mode`` set to ``enabled``, then restore it."""
        previous = self.debug_mode
        self.debug_mode = enabled
        try:
            yield
        finally:
            self.debug_mode = previous


_active_session: Optional[Session] = None


def get_session() -> Session:
    """Return the active session, creating a default one if none is active."""
    global _active_session
    if _active_session is None:
        _active_session = Session()
    return _active_session


@contextmanager
def activate(session: Session) -> Iterator[Session]:
    """Make ``session`` the target of module-level ``@add_test`` declarations."""
    global _active_session
    previous = _active_session
    _active_session = session
    try:
        yield session
    finally:
        _active_session = previous
