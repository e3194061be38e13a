"""Year-by-year guardrails withdrawal simulation.

Runs a deterministic simulation of a retirement portfolio under the
Guyton-Klinger decision rules, driven by a historical sequence of annual
market returns and inflation figures. Each year's withdrawal depends on
the previous year's actual withdrawal and market return, so the loop is
strictly sequential.

Per year:
    1. Start from the previous year's end worth (initial assets in year 0).
    2. Inflate last year's withdrawal (capped), unless the freeze rule holds.
    3. Apply the capital preservation or prosperity guardrail.
    4. Withdraw, then compound the remainder by the year's market return.

References:
    Guyton, J. T. & Klinger, W. J. (2006).
        "Decision Rules and Maximum Initial Withdrawal Rates."

"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from guardrailsim.simulation.rules import (
    DEFAULT_CONFIG,
    GuardrailConfig,
    Rule,
    apply_guardrails,
    apply_inflation_rule,
    rate_percent,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


class InvalidInputError(ValueError):
    """Simulation inputs are malformed; raised before any year is computed."""


class DegenerateStateError(ArithmeticError):
    """Portfolio worth reached zero or below while depletion is fatal."""


@dataclass(frozen=True)
class SimulationParameters:
    """Initial parameters of a simulation run.

    Attributes:
        initial_assets: Starting portfolio value. Must be positive.
        initial_withdrawal_rate: Initial withdrawal rate in percent (5.0 = 5%).
        years: Number of simulated years; must equal len(annual_data).

    """

    initial_assets: float
    initial_withdrawal_rate: float
    years: int

    @classmethod
    def for_data(
        cls,
        initial_assets: float,
        initial_withdrawal_rate: float,
        annual_data: Sequence[AnnualDatum],
    ) -> SimulationParameters:
        """Build parameters whose year count matches annual_data."""
        return cls(initial_assets, initial_withdrawal_rate, len(annual_data))


@dataclass(frozen=True)
class AnnualDatum:
    """Market return and inflation for one simulated year.

    Attributes:
        year: Display label, carried through untouched.
        return_percent: Market return applied at year end, in percent.
        inflation_percent: Inflation for the year, in percent. Ignored in year 0.

    """

    year: int
    return_percent: float
    inflation_percent: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnnualDatum:
        """Build from a dict using either snake_case or dataset keys."""
        return cls(
            year=int(data["year"]),
            return_percent=float(data.get("return_percent", data.get("return"))),
            inflation_percent=float(
                data.get("inflation_percent", data.get("inflation"))
            ),
        )


@dataclass(frozen=True)
class YearResult:
    """Outcome of one simulated year.

    rate_with_inflation is None for year 0, where no inflation rule runs.
    """

    year: int
    start_worth: float
    inflation_applied: float
    planned_withdrawal: float
    planned_rate: float
    rate_with_inflation: float | None
    rule: Rule
    actual_withdrawal: float
    actual_rate: float
    post_withdrawal_balance: float
    return_percent: float
    end_worth: float

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dict with the rule as its tag string."""
        return {
            "year": self.year,
            "start_worth": self.start_worth,
            "inflation_applied": self.inflation_applied,
            "planned_withdrawal": self.planned_withdrawal,
            "planned_rate": self.planned_rate,
            "rate_with_inflation": self.rate_with_inflation,
            "rule": self.rule.value,
            "actual_withdrawal": self.actual_withdrawal,
            "actual_rate": self.actual_rate,
            "post_withdrawal_balance": self.post_withdrawal_balance,
            "return_percent": self.return_percent,
            "end_worth": self.end_worth,
        }


@dataclass(frozen=True)
class _CarriedState:
    """State crossing the year boundary."""

    last_actual_withdrawal: float
    previous_return_percent: float
    end_worth: float


def validate_annual_data(annual_data: Iterable[AnnualDatum]) -> None:
    """Check every record carries finite return and inflation values.

    Raises:
        InvalidInputError: On the first non-finite value, naming its year.

    """
    for datum in annual_data:
        if not math.isfinite(datum.return_percent):
            msg = f"return_percent for year {datum.year} is not finite"
            raise InvalidInputError(msg)
        if not math.isfinite(datum.inflation_percent):
            msg = f"inflation_percent for year {datum.year} is not finite"
            raise InvalidInputError(msg)


def validate_inputs(
    params: SimulationParameters,
    annual_data: Sequence[AnnualDatum],
) -> None:
    """Reject malformed simulation inputs.

    Raises:
        InvalidInputError: If years < 1, the data length differs from years,
            initial_assets is not a positive finite number, or any rate,
            return or inflation value is non-finite.

    """
    if params.years < 1:
        msg = f"years must be at least 1, got {params.years}"
        raise InvalidInputError(msg)
    if len(annual_data) != params.years:
        msg = (
            f"annual_data has {len(annual_data)} records but years is {params.years}"
        )
        raise InvalidInputError(msg)
    if not math.isfinite(params.initial_assets) or params.initial_assets <= 0:
        msg = f"initial_assets must be positive and finite, got {params.initial_assets}"
        raise InvalidInputError(msg)
    if not math.isfinite(params.initial_withdrawal_rate):
        msg = (
            "initial_withdrawal_rate must be finite, "
            f"got {params.initial_withdrawal_rate}"
        )
        raise InvalidInputError(msg)
    validate_annual_data(annual_data)


def simulate(
    params: SimulationParameters,
    annual_data: Sequence[AnnualDatum],
    config: GuardrailConfig | None = None,
    *,
    fail_on_depletion: bool = False,
) -> list[YearResult]:
    """Run the guardrails withdrawal simulation.

    Pure and deterministic: identical inputs give bit-for-bit identical
    output. Inputs are validated before the first year is computed.

    Args:
        params: Initial assets, initial withdrawal rate and year count.
        annual_data: One record per simulated year, index 0 first.
        config: Guardrail thresholds; defaults to the standard 1.2 / 0.8
            band with a 6% inflation cap and 10% adjustments.
        fail_on_depletion: If True, raise once a year starts with
            non-positive worth. If False, rates are computed with IEEE
            division and inf/nan values propagate into later years.

    Returns:
        One YearResult per year, in input order.

    Raises:
        InvalidInputError: If the inputs are malformed.
        DegenerateStateError: If fail_on_depletion is set and worth
            reaches zero or below.

    """
    validate_inputs(params, annual_data)
    if config is None:
        config = DEFAULT_CONFIG

    initial_rate = params.initial_withdrawal_rate
    results: list[YearResult] = []
    state: _CarriedState | None = None

    for datum in annual_data:
        if state is None:
            result = _initial_year(params, datum)
        else:
            if fail_on_depletion and state.end_worth <= 0:
                msg = (
                    f"portfolio worth is {state.end_worth} entering year {datum.year}"
                )
                raise DegenerateStateError(msg)
            result = _subsequent_year(state, datum, initial_rate, config)
        results.append(result)
        state = _CarriedState(
            last_actual_withdrawal=result.actual_withdrawal,
            previous_return_percent=result.return_percent,
            end_worth=result.end_worth,
        )

    return results


def _initial_year(params: SimulationParameters, datum: AnnualDatum) -> YearResult:
    """Year 0: withdraw the initial rate, no guardrail evaluation."""
    start_worth = params.initial_assets
    withdrawal = params.initial_assets * params.initial_withdrawal_rate / 100
    return _finalize(
        datum,
        start_worth=start_worth,
        inflation_applied=0.0,
        planned_withdrawal=withdrawal,
        rate_with_inflation=None,
        rule=Rule.INITIAL,
        actual_withdrawal=withdrawal,
    )


def _subsequent_year(
    state: _CarriedState,
    datum: AnnualDatum,
    initial_rate: float,
    config: GuardrailConfig,
) -> YearResult:
    start_worth = state.end_worth
    planned, rate_with_inflation, rule = apply_inflation_rule(
        last_withdrawal=state.last_actual_withdrawal,
        inflation_percent=datum.inflation_percent,
        previous_return_percent=state.previous_return_percent,
        start_worth=start_worth,
        initial_rate=initial_rate,
        config=config,
    )
    actual, rule = apply_guardrails(
        planned_withdrawal=planned,
        planned_rate=rate_percent(planned, start_worth),
        initial_rate=initial_rate,
        rule=rule,
        config=config,
    )
    return _finalize(
        datum,
        start_worth=start_worth,
        inflation_applied=datum.inflation_percent,
        planned_withdrawal=planned,
        rate_with_inflation=rate_with_inflation,
        rule=rule,
        actual_withdrawal=actual,
    )


def _finalize(  # noqa: PLR0913
    datum: AnnualDatum,
    *,
    start_worth: float,
    inflation_applied: float,
    planned_withdrawal: float,
    rate_with_inflation: float | None,
    rule: Rule,
    actual_withdrawal: float,
) -> YearResult:
    """Withdraw, then compound the remaining balance by the year's return."""
    post_withdrawal = start_worth - actual_withdrawal
    return YearResult(
        year=datum.year,
        start_worth=start_worth,
        inflation_applied=inflation_applied,
        planned_withdrawal=planned_withdrawal,
        planned_rate=rate_percent(planned_withdrawal, start_worth),
        rate_with_inflation=rate_with_inflation,
        rule=rule,
        actual_withdrawal=actual_withdrawal,
        actual_rate=rate_percent(actual_withdrawal, start_worth),
        post_withdrawal_balance=post_withdrawal,
        return_percent=datum.return_percent,
        end_worth=post_withdrawal * (1 + datum.return_percent / 100),
    )
