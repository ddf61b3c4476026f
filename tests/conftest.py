"""Shared fixtures for section-test tests."""

import textwrap

import pytest

from section_test.config import RunConfig
from section_test.reporting.console_reporter import ConsoleReporter
from section_test.runner.executor import Executor
from section_test.session import Session

# pylint: disable=redefined-outer-name


class FakeIsolator:
    """Stands in for the subprocess launcher.

    ``crashes`` maps unit names to whether their isolated run should be
    treated as having crashed (default: True).
    """

    def __init__(self, crashes=None):
        self.crashes = crashes or {}
        self.isolated = []

    def run(self, unit):
        self.isolated.append(unit.friendly_name)
        if self.crashes.get(unit.friendly_name, True):
            return True
        unit.record_failure("Test passed but was expected to fail")
        return False


@pytest.fixture
def config():
    return RunConfig(color=False)


@pytest.fixture
def session(config):
    return Session(config)


@pytest.fixture
def output():
    """Lines printed by the console reporter."""
    return []


@pytest.fixture
def isolator():
    return FakeIsolator()


@pytest.fixture
def executor(session, output, isolator):
    reporter = ConsoleReporter(session, echo=output.append)
    return Executor(session, reporter=reporter, isolator=isolator)


@pytest.fixture
def write_suite(tmp_path):
    """Write a suite file from dedented source and return its path."""
    def _write(source, name="test_suite.py"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write
