"""JSON export of a run report.

Why JSON:
- CI jobs can archive or post-process which directories were reinstalled.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import RunReport


def export_report_json(*, report: RunReport, output_path: Path) -> Path:
    """Export `RunReport` as UTF-8 JSON with a stable layout."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = report.model_dump(mode="json")
    payload["success"] = report.success
    payload["exit_code"] = report.exit_code
    payload["message"] = report.message
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
