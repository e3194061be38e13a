"""guardrailsim sidecar entry point.

Communicates with a host process via stdin/stdout using
newline-delimited JSON messages.

Protocol:
    Request:  {"id": "uuid", "method": "string", "params": {}}
    Response: {"id": "uuid", "result": {}}
    Error:    {"id": "uuid", "error": {"message": "string", "traceback": "string"}}

Annual data travels as lists of {"year", "return", "inflation"} dicts and
results come back as lists of YearResult dicts.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from typing import Any

from guardrailsim import log_config
from guardrailsim.analysis.statistics import summarize
from guardrailsim.export.csv_export import export_results_csv
from guardrailsim.export.json_export import export_results_json
from guardrailsim.ingest.annual_data import (
    combine_data,
    load_annual_data,
    parse_annual_csv,
)
from guardrailsim.simulation.engine import (
    AnnualDatum,
    SimulationParameters,
    YearResult,
    simulate,
)
from guardrailsim.simulation.rules import GuardrailConfig, Rule
from guardrailsim.simulation.sweep import sweep_withdrawal_rates

logger = logging.getLogger(__name__)


def _to_annual_data(records: list[dict[str, Any]]) -> list[AnnualDatum]:
    return [AnnualDatum.from_dict(r) for r in records]


def _to_results(records: list[dict[str, Any]]) -> list[YearResult]:
    """Rebuild YearResult objects from their dict form."""
    return [YearResult(**{**r, "rule": Rule(r["rule"])}) for r in records]


def _config(guardrails: dict[str, float] | None) -> GuardrailConfig | None:
    return GuardrailConfig(**guardrails) if guardrails else None


def _handle_simulation_run(
    initial_assets: float,
    initial_withdrawal_rate: float,
    annual_data: list[dict[str, Any]],
    years: int | None = None,
    guardrails: dict[str, float] | None = None,
    fail_on_depletion: bool = False,
    include_summary: bool = False,
) -> dict[str, Any]:
    """Run a simulation from plain request params.

    Args:
        initial_assets: Starting portfolio value.
        initial_withdrawal_rate: Initial withdrawal rate in percent.
        annual_data: List of {"year", "return", "inflation"} dicts.
        years: Year count; defaults to len(annual_data).
        guardrails: Optional GuardrailConfig overrides.
        fail_on_depletion: Raise instead of propagating inf/nan.
        include_summary: Attach summarize() output.

    Returns:
        Dict with "results" and, if requested, "summary".

    """
    data = _to_annual_data(annual_data)
    params = SimulationParameters(
        initial_assets=float(initial_assets),
        initial_withdrawal_rate=float(initial_withdrawal_rate),
        years=len(data) if years is None else int(years),
    )
    results = simulate(
        params, data, _config(guardrails), fail_on_depletion=fail_on_depletion
    )
    response: dict[str, Any] = {"results": [r.to_dict() for r in results]}
    if include_summary:
        response["summary"] = summarize(results)
    return response


def _handle_simulation_sweep(
    initial_assets: float,
    annual_data: list[dict[str, Any]],
    rates: list[float],
    guardrails: dict[str, float] | None = None,
) -> list[dict[str, Any]]:
    return sweep_withdrawal_rates(
        float(initial_assets),
        _to_annual_data(annual_data),
        [float(r) for r in rates],
        _config(guardrails),
    )


def _handle_analysis_summary(results: list[dict[str, Any]]) -> dict[str, Any]:
    return summarize(_to_results(results))


def _handle_ingest_combine(
    investment_data: list[dict[str, Any]],
    inflation_data: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    return [_datum_dict(d) for d in combine_data(investment_data, inflation_data)]


def _handle_ingest_load(
    investment_path: str,
    inflation_path: str,
) -> list[dict[str, Any]]:
    return [_datum_dict(d) for d in load_annual_data(investment_path, inflation_path)]


def _handle_ingest_csv(
    file_path: str | None = None,
    csv_content: str | None = None,
) -> list[dict[str, Any]]:
    return [_datum_dict(d) for d in parse_annual_csv(file_path, csv_content)]


def _handle_export_csv(
    results: list[dict[str, Any]],
    output_path: str | None = None,
) -> str:
    return export_results_csv(_to_results(results), output_path=output_path)


def _handle_export_json(
    results: list[dict[str, Any]],
    parameters: dict[str, Any] | None = None,
    summary: dict[str, Any] | None = None,
    output_path: str | None = None,
) -> str:
    params = SimulationParameters(**parameters) if parameters else None
    return export_results_json(
        _to_results(results), params=params, summary=summary, output_path=output_path
    )


def _datum_dict(datum: AnnualDatum) -> dict[str, Any]:
    return {
        "year": datum.year,
        "return": datum.return_percent,
        "inflation": datum.inflation_percent,
    }


def dispatch(method: str, params: dict[str, Any]) -> Any:
    """Route a method call to the appropriate handler.

    Args:
        method: The method name (e.g., "simulation.run").
        params: The parameters for the method.

    Returns:
        The result of the method call.

    Raises:
        ValueError: If the method is not recognized.

    """
    handlers: dict[str, Any] = {
        # Simulation
        "simulation.run": _handle_simulation_run,
        "simulation.sweep": _handle_simulation_sweep,
        # Analysis
        "analysis.summary": _handle_analysis_summary,
        # Annual data
        "ingest.combine": _handle_ingest_combine,
        "ingest.load": _handle_ingest_load,
        "ingest.csv": _handle_ingest_csv,
        # Export
        "export.results_csv": _handle_export_csv,
        "export.results_json": _handle_export_json,
    }
    if method not in handlers:
        msg = f"Unknown method: {method}"
        raise ValueError(msg)
    return handlers[method](**params)


def main() -> None:
    """Run the sidecar message loop.

    Reads newline-delimited JSON from stdin, dispatches to handlers,
    and writes JSON responses to stdout. Runs indefinitely until
    stdin is closed. Set GUARDRAILSIM_VERBOSE=1 for debug logging.
    """
    log_config.setup(verbose=os.environ.get("GUARDRAILSIM_VERBOSE") == "1")

    for raw_line in sys.stdin:
        stripped = raw_line.strip()
        if not stripped:
            continue

        request: dict[str, Any] = {}
        try:
            request = json.loads(stripped)
            request_id = request.get("id", "unknown")
            method = request["method"]
            params = request.get("params", {})
            logger.debug("Dispatching %s (id=%s)", method, request_id)
            result = dispatch(method, params)
            response: dict[str, Any] = {"id": request_id, "result": result}
        except Exception as exc:  # noqa: BLE001 — dispatcher must catch all errors and return them as JSON
            request_id = (
                request.get("id", "unknown") if isinstance(request, dict) else "unknown"
            )
            logger.warning("Request %s failed: %s", request_id, exc)
            response = {
                "id": request_id,
                "error": {
                    "message": str(exc),
                    "traceback": traceback.format_exc(),
                },
            }
        sys.stdout.write(json.dumps(response) + "\n")
        sys.stdout.flush()


if __name__ == "__main__":
    main()
