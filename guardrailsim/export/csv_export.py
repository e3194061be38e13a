"""CSV export for simulation results.

Writes one row per simulated year with raw numeric values, under a
metadata header of "#"-prefixed comment lines.

"""

from __future__ import annotations

import csv
import io
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from guardrailsim.simulation.engine import YearResult

RESULT_FIELDS = [
    "year",
    "start_worth",
    "inflation_applied",
    "planned_withdrawal",
    "planned_rate",
    "rate_with_inflation",
    "rule",
    "actual_withdrawal",
    "actual_rate",
    "post_withdrawal_balance",
    "return_percent",
    "end_worth",
]


def export_results_csv(
    results: Sequence[YearResult],
    output_path: str | None = None,
    extra: str = "",
) -> str:
    """Export simulation results to CSV format.

    Values are written unformatted; the rule column holds the rule tag.
    rate_with_inflation is left empty for the initial year.

    Args:
        results: Output of simulate().
        output_path: File path to write. If None, returns CSV string.
        extra: Optional additional metadata line.

    Returns:
        The CSV content as a string, or file path if output_path given.

    """
    output = io.StringIO()
    _write_metadata_header(output, "Guardrails Simulation Export", extra=extra)

    writer = csv.DictWriter(output, fieldnames=RESULT_FIELDS)
    writer.writeheader()
    for result in results:
        row = result.to_dict()
        if row["rate_with_inflation"] is None:
            row["rate_with_inflation"] = ""
        writer.writerow(row)

    content = output.getvalue()
    if output_path:
        Path(output_path).write_text(content, encoding="utf-8")
        return output_path
    return content


def _write_metadata_header(
    output: io.StringIO,
    title: str,
    extra: str = "",
) -> None:
    """Write metadata comment lines at the top of a CSV export."""
    now = datetime.now(tz=UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    output.write(f"# {title}\n")
    output.write(f"# Generated: {now}\n")
    if extra:
        output.write(f"# {extra}\n")
