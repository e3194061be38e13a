"""Tests for the sidecar entry point (dispatch and message loop)."""

from __future__ import annotations

import json
from io import StringIO
from unittest.mock import patch

import pytest
from guardrailsim.main import dispatch, main

ANNUAL_DATA = [
    {"year": 2000, "return": -5.0, "inflation": 3.4},
    {"year": 2001, "return": 5.0, "inflation": 5.0},
    {"year": 2002, "return": 50.0, "inflation": 2.0},
]


def _run_requests(*requests: str) -> list[dict]:
    stdin = StringIO("".join(r + "\n" for r in requests))
    stdout = StringIO()
    with patch("sys.stdin", stdin), patch("sys.stdout", stdout):
        main()
    return [json.loads(line) for line in stdout.getvalue().splitlines() if line]


class TestDispatch:
    """Tests for the dispatch function."""

    def test_unknown_method_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown method"):
            dispatch("nonexistent.method", {})

    def test_unknown_method_includes_name(self) -> None:
        with pytest.raises(ValueError, match=r"foo\.bar"):
            dispatch("foo.bar", {})

    def test_simulation_run(self) -> None:
        result = dispatch(
            "simulation.run",
            {
                "initial_assets": 1_000_000,
                "initial_withdrawal_rate": 5,
                "annual_data": ANNUAL_DATA,
            },
        )
        rules = [r["rule"] for r in result["results"]]
        assert rules[:2] == ["Initial", "InflationFrozen"]
        assert result["results"][1]["actual_withdrawal"] == 50_000.0
        assert "summary" not in result

    def test_simulation_run_with_summary(self) -> None:
        result = dispatch(
            "simulation.run",
            {
                "initial_assets": 1_000_000,
                "initial_withdrawal_rate": 5,
                "annual_data": ANNUAL_DATA,
                "include_summary": True,
            },
        )
        assert result["summary"]["years"] == 3

    def test_simulation_run_custom_guardrails(self) -> None:
        result = dispatch(
            "simulation.run",
            {
                "initial_assets": 1_000_000,
                "initial_withdrawal_rate": 5,
                "annual_data": ANNUAL_DATA,
                "guardrails": {"ceiling_multiplier": 1.0},
            },
        )
        assert result["results"][1]["rule"] == "CapitalPreservation"

    def test_simulation_run_year_mismatch(self) -> None:
        with pytest.raises(ValueError, match="years is 5"):
            dispatch(
                "simulation.run",
                {
                    "initial_assets": 1_000_000,
                    "initial_withdrawal_rate": 5,
                    "annual_data": ANNUAL_DATA,
                    "years": 5,
                },
            )

    def test_simulation_sweep(self) -> None:
        result = dispatch(
            "simulation.sweep",
            {"initial_assets": 1_000_000, "annual_data": ANNUAL_DATA, "rates": [4, 5]},
        )
        assert [r["initial_withdrawal_rate"] for r in result] == [4.0, 5.0]

    def test_analysis_summary_from_results(self) -> None:
        run = dispatch(
            "simulation.run",
            {
                "initial_assets": 1_000_000,
                "initial_withdrawal_rate": 5,
                "annual_data": ANNUAL_DATA,
            },
        )
        summary = dispatch("analysis.summary", {"results": run["results"]})
        assert summary["rule_counts"]["Initial"] == 1

    def test_ingest_combine(self) -> None:
        result = dispatch(
            "ingest.combine",
            {
                "investment_data": [{"year": 2000, "return": 1.5}],
                "inflation_data": [{"year": 2000, "inflation": 2.5}],
            },
        )
        assert result == [{"year": 2000, "return": 1.5, "inflation": 2.5}]

    def test_ingest_csv(self) -> None:
        result = dispatch(
            "ingest.csv", {"csv_content": "year,return,inflation\n2000,1.5,2.5\n"}
        )
        assert result == [{"year": 2000, "return": 1.5, "inflation": 2.5}]

    def test_export_results_csv(self) -> None:
        run = dispatch(
            "simulation.run",
            {
                "initial_assets": 1_000_000,
                "initial_withdrawal_rate": 5,
                "annual_data": ANNUAL_DATA,
            },
        )
        content = dispatch("export.results_csv", {"results": run["results"]})
        assert "InflationFrozen" in content

    def test_export_results_json(self) -> None:
        run = dispatch(
            "simulation.run",
            {
                "initial_assets": 1_000_000,
                "initial_withdrawal_rate": 5,
                "annual_data": ANNUAL_DATA,
            },
        )
        content = dispatch(
            "export.results_json",
            {
                "results": run["results"],
                "parameters": {
                    "initial_assets": 1_000_000.0,
                    "initial_withdrawal_rate": 5.0,
                    "years": 3,
                },
            },
        )
        assert json.loads(content)["parameters"]["years"] == 3


class TestMain:
    """Tests for the stdin/stdout message loop."""

    def test_valid_request_returns_response(self) -> None:
        request = json.dumps({"id": "1", "method": "ping", "params": {}})
        with patch("guardrailsim.main.dispatch", return_value={"status": "ok"}):
            responses = _run_requests(request)
        assert responses == [{"id": "1", "result": {"status": "ok"}}]

    def test_simulation_round_trip(self) -> None:
        request = json.dumps(
            {
                "id": "sim",
                "method": "simulation.run",
                "params": {
                    "initial_assets": 1_000_000,
                    "initial_withdrawal_rate": 5,
                    "annual_data": ANNUAL_DATA,
                },
            }
        )
        (response,) = _run_requests(request)
        assert response["id"] == "sim"
        assert len(response["result"]["results"]) == 3

    def test_summary_round_trip_is_plain_json(self) -> None:
        request = json.dumps(
            {
                "id": "sum",
                "method": "simulation.run",
                "params": {
                    "initial_assets": 1_000_000,
                    "initial_withdrawal_rate": 5,
                    "annual_data": ANNUAL_DATA,
                    "include_summary": True,
                },
            }
        )
        (response,) = _run_requests(request)
        summary = response["result"]["summary"]
        assert summary["years"] == 3
        assert isinstance(summary["worth_cagr"], float)
        assert isinstance(summary["max_drawdown"], float)
        assert summary["rule_counts"]["Initial"] == 1

    def test_invalid_json_returns_error(self) -> None:
        (response,) = _run_requests("not valid json")
        assert response["id"] == "unknown"
        assert "error" in response

    def test_missing_method_returns_error(self) -> None:
        (response,) = _run_requests(json.dumps({"id": "2"}))
        assert response["id"] == "2"
        assert "error" in response

    def test_invalid_input_returns_error(self) -> None:
        request = json.dumps(
            {
                "id": "bad-input",
                "method": "simulation.run",
                "params": {
                    "initial_assets": 1_000_000,
                    "initial_withdrawal_rate": 5,
                    "annual_data": [],
                },
            }
        )
        (response,) = _run_requests(request)
        assert "years must be at least 1" in response["error"]["message"]

    def test_empty_lines_are_skipped(self) -> None:
        request = json.dumps({"id": "3", "method": "test", "params": {}})
        with patch("guardrailsim.main.dispatch", return_value="ok"):
            responses = _run_requests("", "", request, "")
        assert len(responses) == 1

    def test_dispatch_error_includes_traceback(self) -> None:
        (response,) = _run_requests(
            json.dumps({"id": "4", "method": "bad", "params": {}})
        )
        assert "traceback" in response["error"]
