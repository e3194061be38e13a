"""JSON export for simulation runs.

Produces a JSON document holding the run parameters, the per-year
results and an optional summary, with export metadata.

"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from guardrailsim.simulation.engine import SimulationParameters, YearResult

FORMAT_VERSION = "1.0"


class _ResultEncoder(json.JSONEncoder):
    """JSON encoder that handles NumPy types and datetimes."""

    def default(self, o: Any) -> Any:
        """Convert non-serializable types to JSON-safe values."""
        if isinstance(o, np.ndarray):
            return o.tolist()
        if isinstance(o, np.integer):
            return int(o)
        if isinstance(o, np.floating):
            return float(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def export_results_json(
    results: Sequence[YearResult],
    params: SimulationParameters | None = None,
    summary: dict[str, Any] | None = None,
    output_path: str | None = None,
) -> str:
    """Export a simulation run to JSON format.

    Non-finite values from a depleted portfolio are written as the
    JavaScript literals NaN/Infinity that json.dumps emits by default.

    Args:
        results: Output of simulate().
        params: Parameters the run was made with.
        summary: Optional summarize() output.
        output_path: File path to write. If None, returns JSON string.

    Returns:
        JSON string, or file path if output_path given.

    """
    export_data: dict[str, Any] = {
        "metadata": {
            "export_date": datetime.now(tz=UTC),
            "format_version": FORMAT_VERSION,
            "source": "guardrailsim",
            "years": len(results),
        },
        "results": [r.to_dict() for r in results],
    }
    if params is not None:
        export_data["parameters"] = asdict(params)
    if summary is not None:
        export_data["summary"] = summary

    content = json.dumps(export_data, cls=_ResultEncoder, indent=2)

    if output_path:
        Path(output_path).write_text(content, encoding="utf-8")
        return output_path
    return content
