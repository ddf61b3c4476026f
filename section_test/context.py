"""The context object handed to every test and section body."""

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from .unit.execution_unit import ExecutionUnit
from .unit.resolver import Body, declare_section

if TYPE_CHECKING:
    from .runner.executor import Executor
    from .session import Session

logger = logging.getLogger(__name__)


class Context:
    """Declares sections and records failures for the unit whose body is running.

    A body receives its Context as the only argument::

        @add_test("strings")
        def strings(t):
            @t.add_section("upper")
            def _(t):
                t.assert_equal("a".upper(), "A")
    """

    def __init__(self, unit: ExecutionUnit, session: "Session", executor: "Executor"):
        self.unit = unit
        self._session = session
        self._executor = executor

    @property
    def name(self) -> str:
        return self.unit.friendly_name

    @property
    def debug(self) -> bool:
        """Debug mode as seen by the body currently running."""
        return self._session.debug_mode

    @property
    def isolated(self) -> bool:
        return self._session.isolated

    def add_section(
        self,
        name: str,
        expect_fail: bool = False,
        print_length: Optional[int] = None,
        fails_as: Optional[str] = None,
    ) -> Callable[[Body], Body]:
        """Decorator declaring a section nested in this unit.

        Args:
            name: Section name, unique within this unit.
            expect_fail: The section passes only if its body fails.
            print_length: Forces the report line width for this section
                and every descendant that does not force its own.
            fails_as: Text the failing run's output must contain.
        """
        def decorator(body: Body) -> Body:
            declare_section(
                self._session,
                self.unit,
                name,
                body,
                expect_fail=expect_fail,
                print_length=print_length,
                fails_as=fails_as,
                execute=self._executor.execute,
            )
            return body

        return decorator

    def fail(self, message: str, detail: Optional[str] = None) -> None:
        """Record a failure. The body keeps running."""
        logger.debug("Failure recorded in \"%s\": %s", self.name, message)
        self.unit.record_failure(message, detail)

    def check(self, condition: Any, message: str = "Check failed") -> bool:
        if not condition:
            self.fail(message)
            return False
        return True

    def assert_true(self, value: Any, message: Optional[str] = None) -> bool:
        return self.check(value, message or f"Expected a true value, got {value!r}")

    def assert_false(self, value: Any, message: Optional[str] = None) -> bool:
        return self.check(not value, message or f"Expected a false value, got {value!r}")

    def assert_equal(self, actual: Any, expected: Any, message: Optional[str] = None) -> bool:
        return self.check(
            actual == expected,
            message or f"Expected {expected!r}, got {actual!r}",
        )

    def assert_raises(
        self,
        exc_type: type[BaseException],
        func: Callable[..., Any],
        *args: Any,
        match: Optional[str] = None,
        **kwargs: Any,
    ) -> bool:
        """Check that ``func(*args, **kwargs)`` raises ``exc_type``.

        For faults that are recoverable in-process. Anything that would take
        the interpreter down belongs in an ``expect_fail`` section instead.
        """
        try:
            func(*args, **kwargs)
        except exc_type as e:
            if match is not None and match not in str(e):
                self.fail(f"{exc_type.__name__} raised without \"{match}\": {e}")
                return False
            return True
        self.fail(f"Expected {exc_type.__name__} to be raised")
        return False

    def log(self, message: str, *args: Any) -> None:
        """Log a diagnostic message, emitted only in debug mode."""
        if self.debug:
            logger.info("[%s] " + message, self.name, *args)
