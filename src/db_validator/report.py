"""
Report export utilities.
"""

import json
from pathlib import Path

from .models import BatchValidationResult


def report_to_json(result: BatchValidationResult, indent: int = 2) -> str:
    """Serialize a validation result to JSON text."""
    return json.dumps(result.to_dict(), indent=indent, default=str)


def export_report_json(result: BatchValidationResult, output_path: str) -> None:
    """
    Export a validation result to a JSON file

    Args:
        result: Validation result
        output_path: Path to output file (parent directories are created)
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report_to_json(result) + "\n", encoding="utf-8")
