"""JSON report generator for suite runs.

Generates structured JSON reports from executed unit trees.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from ..unit.execution_unit import ExecutionUnit


class JsonReporter:
    """Generates JSON reports from executed unit trees."""

    def generate(
        self,
        roots: Iterable[ExecutionUnit],
        tests_did_pass: bool,
        duration_ms: int = 0,
    ) -> dict[str, Any]:
        """Generate a JSON report from executed root units.

        Args:
            roots: Root units of every suite that was run.
            tests_did_pass: Final suite-wide pass flag.
            duration_ms: Run duration in milliseconds.

        Returns:
            Report dictionary ready for JSON serialization.
        """
        roots = list(roots)
        units = [unit for root in roots for unit in root.iter_subtree()]
        ran = [unit for unit in units if unit.passed is not None]
        passed = sum(1 for unit in ran if unit.passed)

        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "status": "passed" if tests_did_pass else "failed",
            "summary": {
                "total": len(ran),
                "passed": passed,
                "failed": len(ran) - passed,
                "not_run": len(units) - len(ran),
                "duration_ms": duration_ms,
            },
            "tests": [root.to_dict() for root in roots],
        }

    def save(self, report: dict[str, Any], path: Path) -> Path:
        """Write ``report`` to ``path`` as indented JSON, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    def generate_summary(
        self,
        report: dict[str, Any],
        report_path: Optional[str] = None,
        command: str = "run",
    ) -> dict[str, Any]:
        """Generate the one-line machine-readable summary.

        Shape::

            {
                "success": bool,
                "command": "run",
                "data": { ... },
                "message": str
            }
        """
        summary = report["summary"]
        all_passed = report["status"] == "passed"

        data: dict[str, Any] = {
            "total_units": summary["total"],
            "passed": summary["passed"],
            "failed": summary["failed"],
            "duration_ms": summary["duration_ms"],
        }

        if report_path:
            data["report_path"] = report_path

        if not all_passed:
            message = f"{summary['failed']} of {summary['total']} units failed"
        else:
            message = "All tests passed"

        return {
            "success": all_passed,
            "command": command,
            "data": data,
            "message": message,
        }
