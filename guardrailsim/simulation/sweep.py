"""Sensitivity sweep over initial withdrawal rates.

Re-runs the guardrails simulation against the same annual data for a
range of initial withdrawal rates, so the outcomes can be compared.

"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from guardrailsim.simulation.engine import (
    InvalidInputError,
    SimulationParameters,
    simulate,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from guardrailsim.simulation.engine import AnnualDatum
    from guardrailsim.simulation.rules import GuardrailConfig

logger = logging.getLogger(__name__)


def sweep_withdrawal_rates(
    initial_assets: float,
    annual_data: Sequence[AnnualDatum],
    rates: Sequence[float],
    config: GuardrailConfig | None = None,
) -> list[dict[str, Any]]:
    """Run one simulation per initial withdrawal rate.

    Args:
        initial_assets: Starting portfolio value.
        annual_data: Annual return/inflation records shared by every run.
        rates: Initial withdrawal rates to test, in percent.
        config: Guardrail configuration passed to each run.

    Returns:
        List of result dicts, one per rate, with keys:
        initial_withdrawal_rate, final_worth, total_withdrawn, depleted.

    Raises:
        InvalidInputError: If rates is empty or any run's inputs are invalid.

    """
    if not rates:
        msg = "rates must not be empty"
        raise InvalidInputError(msg)

    params_years = len(annual_data)
    results: list[dict[str, Any]] = []

    for rate in rates:
        params = SimulationParameters(initial_assets, rate, params_years)
        run = simulate(params, annual_data, config)
        final_worth = run[-1].end_worth
        results.append(
            {
                "initial_withdrawal_rate": rate,
                "final_worth": final_worth,
                "total_withdrawn": sum(r.actual_withdrawal for r in run),
                "depleted": any(r.end_worth <= 0 for r in run),
            }
        )
        logger.debug("Sweep rate %.2f%% -> final worth %.2f", rate, final_worth)

    logger.info("Swept %d withdrawal rates over %d years", len(rates), params_years)
    return results
