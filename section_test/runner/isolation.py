"""Fault isolator for expect-fail units.

A unit that is expected to fail runs in a fresh interpreter, so that whatever
takes it down cannot take the suite down with it. Only the exit status of
that process decides the outcome; its unit tree is never read back.
"""

import json
import logging
import os
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..exceptions import ConfigurationError
from ..unit.execution_unit import ExecutionUnit

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

CLI_MODULE = "section_test.cli"
UNEXPECTED_PASS_MESSAGE = "Test passed but was expected to fail"

# Directory holding the section_test package, exported so the subprocess can
# import it from a source checkout.
PACKAGE_ROOT = Path(__file__).resolve().parents[2]


@dataclass
class IsolationOutcome:
    """How an isolated subprocess ended."""
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    duration_ms: int = 0

    @property
    def crashed(self) -> bool:
        """Whether the process ended abnormally (non-zero or signal)."""
        return not self.timed_out and self.returncode != 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part).rstrip()


class FaultIsolator:
    """Runs an expect-fail unit in a subprocess and interprets its outcome."""

    def __init__(self, session: "Session", python_exe: Optional[str] = None):
        """Initialize fault isolator.

        Args:
            session: Session whose configuration is passed to the subprocess.
            python_exe: Interpreter to launch. Default: the running one.
        """
        self.session = session
        self.python_exe = python_exe or sys.executable

    def build_command(self, unit: ExecutionUnit) -> list[str]:
        """Command line re-entering the suite for ``unit`` only."""
        if not unit.source_file:
            raise ConfigurationError(
                f"Cannot isolate \"{unit.friendly_name}\": its source file is unknown"
            )

        config = self.session.config
        return [
            self.python_exe,
            "-m", CLI_MODULE,
            "run", str(unit.source_file),
            "--isolated",
            "--unit-path", json.dumps(unit.path),
            "--print-length", str(config.print_length),
            "--timeout", str(config.timeout),
            "--debug" if unit.debug_mode else "--no-debug",
            "--no-color",
        ]

    def _environment(self) -> dict[str, str]:
        env = dict(os.environ)
        pythonpath = env.get("PYTHONPATH")
        env["PYTHONPATH"] = (
            f"{PACKAGE_ROOT}{os.pathsep}{pythonpath}" if pythonpath else str(PACKAGE_ROOT)
        )
        return env

    def launch(self, unit: ExecutionUnit) -> IsolationOutcome:
        """Run ``unit`` in a subprocess and wait for it to finish."""
        cmd = self.build_command(unit)
        timeout = self.session.config.timeout
        logger.debug("Isolating \"%s\": %s", unit.friendly_name, " ".join(cmd))

        start_time = time.time()
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=os.getcwd(),
                env=self._environment(),
            )
        except subprocess.TimeoutExpired as e:
            return IsolationOutcome(
                returncode=None,
                stdout=_decode(e.stdout),
                stderr=_decode(e.stderr),
                timed_out=True,
                duration_ms=int((time.time() - start_time) * 1000),
            )

        return IsolationOutcome(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            duration_ms=int((time.time() - start_time) * 1000),
        )

    def run(self, unit: ExecutionUnit) -> bool:
        """Isolate ``unit`` and record a failure unless it failed as expected.

        Returns:
            True if the expected failure occurred.
        """
        outcome = self.launch(unit)
        if outcome.output:
            logger.debug(
                "Output of isolated \"%s\" (exit %s):\n%s",
                unit.friendly_name, outcome.returncode, outcome.output,
            )

        if outcome.timed_out:
            unit.record_failure(
                f"Isolated run timed out after {self.session.config.timeout}s; "
                "a timeout does not count as the expected failure",
                detail=outcome.output or None,
            )
            return False

        if not outcome.crashed:
            unit.record_failure(UNEXPECTED_PASS_MESSAGE, detail=outcome.output or None)
            return False

        if unit.fails_as and unit.fails_as not in outcome.output:
            unit.record_failure(
                f"Test failed, but its output does not contain \"{unit.fails_as}\"",
                detail=outcome.output or None,
            )
            return False

        logger.debug(
            "\"%s\" failed as expected (exit %s)", unit.friendly_name, outcome.returncode
        )
        return True


def _decode(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
