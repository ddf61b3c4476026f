"""Suite discovery and the per-test manifest.

Finds suite files under directories and describes every root test as an
independently invocable unit, for an external orchestrator that launches one
process per test.
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

from ..config import RunConfig
from ..session import Session
from .loader import load_suite

SUITE_PATTERNS = ("test_*.py", "*_test.py")


@dataclass
class ManifestEntry:
    """One root test, runnable on its own."""
    name: str
    test: str
    source_file: str
    working_directory: str
    command: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "test": self.test,
            "source_file": self.source_file,
            "working_directory": self.working_directory,
            "command": self.command,
        }


def find_suite_files(paths: Iterable[Union[str, Path]]) -> list[Path]:
    """Expand files and directories into a sorted, de-duplicated list of suites.

    Directories are searched recursively for ``test_*.py`` and ``*_test.py``.
    Explicit files are kept whatever their name.
    """
    found: list[Path] = []
    seen: set[Path] = set()

    for raw in paths:
        path = Path(raw).resolve()
        if path.is_dir():
            candidates = sorted(
                {p.resolve() for pattern in SUITE_PATTERNS for p in path.rglob(pattern)}
            )
        else:
            candidates = [path]

        for candidate in candidates:
            if candidate not in seen:
                seen.add(candidate)
                found.append(candidate)

    return found


def _dotted_name(suite: Path, base: Optional[Path]) -> str:
    rel = suite.relative_to(base) if base and suite.is_relative_to(base) else Path(suite.name)
    return ".".join(rel.with_suffix("").parts)


def build_manifest(
    paths: Iterable[Union[str, Path]],
    namespace: Optional[str] = None,
    config: Optional[RunConfig] = None,
) -> list[ManifestEntry]:
    """Load every suite under ``paths`` and list its root tests.

    Names are ``[namespace.]<dotted relative path>::<test name>``, relative to
    the directory argument a suite was found under.
    """
    entries: list[ManifestEntry] = []

    for raw in paths:
        base = Path(raw).resolve()
        base = base if base.is_dir() else None
        for suite in find_suite_files([raw]):
            session = Session(config)
            load_suite(suite, session)

            prefix = _dotted_name(suite, base)
            if namespace:
                prefix = f"{namespace}.{prefix}"

            for test_name, unit in session.roots.items():
                entries.append(ManifestEntry(
                    name=f"{prefix}::{test_name}",
                    test=test_name,
                    source_file=str(unit.source_file or suite),
                    working_directory=str(suite.parent),
                    command=[
                        sys.executable, "-m", "section_test.cli",
                        "run", str(suite), "--test", test_name,
                    ],
                ))

    return entries
