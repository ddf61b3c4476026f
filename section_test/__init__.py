"""section-test: nested test sections with process-isolated expected failures."""

from typing import Callable, Optional

from .config import RunConfig, load_config
from .context import Context
from .exceptions import (
    ConfigurationError,
    LogicError,
    SectionTestError,
    SuiteLoadError,
    UnitStateError,
)
from .runner.executor import ExecutionResult, Executor
from .session import Session, get_session
from .unit.execution_unit import ExecutionUnit, Failure
from .unit.resolver import Body, declare_test

__version__ = "0.1.0"


def add_test(
    name: str,
    expect_fail: bool = False,
    print_length: Optional[int] = None,
    fails_as: Optional[str] = None,
) -> Callable[[Body], Body]:
    """Decorator declaring a root test in the active session.

    Args:
        name: Test name, unique within the suite.
        expect_fail: The test passes only if its body fails. It then runs
            in a separate process.
        print_length: Forces the report line width for this test and every
            section that does not force its own.
        fails_as: Text the failing run's output must contain.

    Raises:
        ConfigurationError: If called while a test or section body is running.
    """
    def decorator(body: Body) -> Body:
        session = get_session()
        declare_test(
            session,
            name,
            body,
            expect_fail=expect_fail,
            print_length=print_length,
            source_file=session.loading_file or body.__code__.co_filename,
            fails_as=fails_as,
        )
        return body

    return decorator


__all__ = [
    "ConfigurationError",
    "Context",
    "ExecutionResult",
    "ExecutionUnit",
    "Executor",
    "Failure",
    "LogicError",
    "RunConfig",
    "SectionTestError",
    "Session",
    "SuiteLoadError",
    "UnitStateError",
    "add_test",
    "load_config",
]
