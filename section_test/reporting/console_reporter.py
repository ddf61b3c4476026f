"""Console reporter for unit results.

Prints one PASSED/FAILED line per unit, indented by section depth and padded
with dots to the unit's print length, and keeps the suite-wide pass flag.
"""

import logging
from typing import TYPE_CHECKING, Callable, Optional

import click

from ..unit.execution_unit import ExecutionUnit

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

PASS_TEXT = "PASSED"
FAIL_TEXT = "FAILED"
INDENT = "    "
ELLIPSIS = "..."


def format_result_line(name: str, depth: int, width: int, status: str) -> str:
    """Build the uncolored result line for a unit.

    The line is ``width`` characters long whenever the indentation and status
    fit; over-long names are cut with an ellipsis.
    """
    indent = INDENT * depth
    room = width - len(indent) - len(status)

    if room <= len(name):
        if room > len(ELLIPSIS) + 1:
            name = name[:room - len(ELLIPSIS) - 1] + ELLIPSIS
        else:
            return f"{indent}{name} {status}"

    return f"{indent}{name}{'.' * (room - len(name))}{status}"


class ConsoleReporter:
    """Prints unit results and maintains ``session.tests_did_pass``."""

    def __init__(
        self,
        session: "Session",
        echo: Optional[Callable[[str], None]] = None,
    ):
        """Initialize console reporter.

        Args:
            session: Session whose pass flag and config are used.
            echo: Output function. Default: ``click.echo`` to stdout.
        """
        self.session = session
        self._echo = echo or click.echo

    @property
    def color(self) -> bool:
        return self.session.config.color

    def _style(self, text: str, fg: str) -> str:
        if not self.color:
            return text
        return click.style(text, fg=fg, bold=True)

    def print_result(self, unit: ExecutionUnit) -> None:
        """Print the result of ``unit`` once.

        Failure messages come first, then the summary line. Any failure
        clears the suite-wide pass flag.
        """
        if unit.has_printed:
            return

        failed = unit.failed
        if failed:
            for failure in unit.failures:
                self._echo(self._style(
                    f"Test named \"{unit.friendly_name}\" raised exception:", "red"
                ))
                self._echo(self._style(str(failure), "red"))
            self.session.mark_failed()

        unit.passed = not failed
        width = unit.effective_print_length(self.session.config.print_length)
        status = FAIL_TEXT if failed else PASS_TEXT
        line = format_result_line(unit.friendly_name, unit.section_depth, width, status)
        if self.color:
            line = line[:-len(status)] + self._style(status, "red" if failed else "green")
        self._echo(line)

        unit.has_printed = True
        logger.debug("Reported \"%s\" as %s", unit.friendly_name, status)
