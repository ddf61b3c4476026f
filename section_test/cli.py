"""CLI entry point for section-test.

Usage:
    section-test run <suite.py|dir>... [options]
    section-test list <suite.py|dir>... [options]

The fault isolator re-enters a suite through this module:
    python -m section_test.cli run <suite.py> --isolated --unit-path '["test", "section"]'
"""

import json
import sys
import time
from pathlib import Path
from typing import Optional

import click

from .config import RunConfig, load_config, validate_config
from .discovery import build_manifest, find_suite_files, load_suite
from .exceptions import ConfigurationError, SectionTestError
from .logs import setup_logging
from .reporting.json_reporter import JsonReporter
from .runner.executor import ExecutionResult, Executor
from .session import Session

EXIT_FAILED = 1
EXIT_USAGE = 2


def output_error(message: str, command: str = "run", **extra) -> None:
    """Output an error in the JSON summary format."""
    output = {
        "success": False,
        "command": command,
        "data": extra or None,
        "message": message,
    }
    click.echo(json.dumps(output, ensure_ascii=False))


def _resolve_config(config_file: Optional[Path], **overrides) -> RunConfig:
    config = load_config(config_file).merged(**overrides)
    validation = validate_config(config)
    if not validation.valid:
        raise ConfigurationError(f"Invalid options: {validation}")
    return config


def _parse_unit_path(raw: str) -> list[str]:
    try:
        path = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"--unit-path is not valid JSON: {e}") from None
    if not isinstance(path, list) or not path or not all(isinstance(p, str) for p in path):
        raise ConfigurationError("--unit-path must be a non-empty JSON list of names")
    return path


@click.group()
@click.version_option(package_name="section-test")
def main():
    """Run nested test sections, isolating expected failures in subprocesses."""


@main.command("run")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--test", "test_names", multiple=True, help="Only run the root test with this name (repeatable).")
@click.option("--print-length", type=int, default=None, help="Default width of result lines.")
@click.option("--debug/--no-debug", default=None, help="Enable debug mode in tests and verbose logs.")
@click.option("--timeout", type=float, default=None, help="Seconds before an isolated run is killed.")
@click.option("--color/--no-color", default=None, help="Color PASSED/FAILED output.")
@click.option("--config", "config_file", type=click.Path(path_type=Path), default=None,
              help="YAML config file. Default: ./section-test.yaml if present.")
@click.option("--json", "json_output", is_flag=True, help="Print a JSON summary line.")
@click.option("--report-file", type=click.Path(path_type=Path), default=None, help="Save a JSON report.")
@click.option("--isolated", is_flag=True, hidden=True)
@click.option("--unit-path", default=None, hidden=True)
def run_command(
    paths, test_names, print_length, debug, timeout, color, config_file,
    json_output, report_file, isolated, unit_path,
):
    """Run the tests declared in suite files (directories are searched)."""
    try:
        config = _resolve_config(
            config_file,
            print_length=print_length,
            debug=debug,
            timeout=timeout,
            color=color,
            json_output=json_output or None,
            report_file=report_file,
            isolated=isolated or None,
        )
        setup_logging(config.debug)

        if config.isolated:
            sys.exit(_run_isolated(paths, unit_path, config))

        results = _run_suites(paths, test_names, config)
    except SectionTestError as e:
        output_error(str(e))
        sys.exit(EXIT_USAGE)

    tests_did_pass = all(r.tests_did_pass for r in results)
    _write_reports(results, tests_did_pass, config)
    if not tests_did_pass:
        sys.exit(EXIT_FAILED)


def _run_isolated(paths, unit_path: Optional[str], config: RunConfig) -> int:
    """Run one unit inside the isolated subprocess and return the exit code."""
    if len(paths) != 1 or unit_path is None:
        raise ConfigurationError("--isolated requires exactly one suite file and --unit-path")

    session = Session(config)
    load_suite(paths[0], session)
    result = Executor(session).run_path(_parse_unit_path(unit_path))
    return 0 if result.tests_did_pass else EXIT_FAILED


def _run_suites(paths, test_names, config: RunConfig) -> list[ExecutionResult]:
    suites = find_suite_files(paths)
    if not suites:
        raise ConfigurationError(f"No suite files found in: {', '.join(map(str, paths))}")

    results = []
    for suite in suites:
        session = Session(config)
        load_suite(suite, session)
        names = [n for n in test_names if n in session.roots] if test_names else None
        if test_names and not names:
            continue
        results.append(Executor(session).run(names))

    if test_names:
        ran = {root.friendly_name for r in results for root in r.roots}
        missing = [n for n in test_names if n not in ran]
        if missing:
            raise ConfigurationError(f"No test named: {', '.join(missing)}")
    return results


def _write_reports(results: list[ExecutionResult], tests_did_pass: bool, config: RunConfig) -> None:
    if not (config.json_output or config.report_file):
        return

    reporter = JsonReporter()
    report = reporter.generate(
        roots=[root for r in results for root in r.roots],
        tests_did_pass=tests_did_pass,
        duration_ms=sum(r.duration_ms for r in results),
    )

    report_path = None
    if config.report_file:
        report_path = str(reporter.save(report, config.report_file))

    if config.json_output:
        summary = reporter.generate_summary(report, report_path)
        click.echo(json.dumps(summary, ensure_ascii=False))


@main.command("list")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--namespace", default=None, help="Prefix for every listed test name.")
@click.option("--pretty", is_flag=True, help="Pretty print the JSON output.")
def list_command(paths, namespace, pretty):
    """List root tests as independently runnable units (JSON)."""
    start_time = time.time()
    try:
        setup_logging(False)
        entries = build_manifest(paths, namespace=namespace, config=load_config())
    except SectionTestError as e:
        output_error(str(e), command="list")
        sys.exit(EXIT_USAGE)

    output = {
        "success": True,
        "command": "list",
        "data": {
            "tests": [entry.to_dict() for entry in entries],
            "duration_ms": int((time.time() - start_time) * 1000),
        },
        "message": f"{len(entries)} test(s) found",
    }
    click.echo(json.dumps(output, indent=2 if pretty else None, ensure_ascii=False))


if __name__ == "__main__":
    main()
