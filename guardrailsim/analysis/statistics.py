"""Summary statistics for a simulation run.

Aggregates a run's year results into headline figures: final worth,
withdrawal totals, how often each rule fired, and growth metrics.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

import numpy as np
from scipy import stats

from guardrailsim.analysis.returns import (
    cagr,
    is_positive_path,
    max_drawdown,
    worth_path,
)
from guardrailsim.simulation.rules import Rule

if TYPE_CHECKING:
    from collections.abc import Sequence

    from guardrailsim.simulation.engine import YearResult


def annualized_return(returns_percent: Sequence[float]) -> float:
    """Geometric mean annual return of a series of yearly returns.

    Uses scipy.stats.gmean over the growth factors (1 + r/100).

    Args:
        returns_percent: Annual returns in percent. Every return must be
            above -100.

    Returns:
        Annualized return in percent.

    Raises:
        ValueError: If the series is empty or contains a return <= -100.

    """
    if len(returns_percent) == 0:
        msg = "returns_percent must not be empty"
        raise ValueError(msg)
    factors = 1.0 + np.asarray(returns_percent, dtype=np.float64) / 100
    if np.any(factors <= 0):
        msg = "returns_percent must all be greater than -100"
        raise ValueError(msg)
    return float((stats.gmean(factors) - 1.0) * 100)


def summarize(results: Sequence[YearResult]) -> dict[str, Any]:
    """Summarize a simulation run.

    Args:
        results: Output of simulate().

    Returns:
        Dict with keys: years, final_worth, total_withdrawn, min_withdrawal,
        max_withdrawal, rule_counts, worth_cagr, max_drawdown,
        annualized_market_return. Growth metrics are None when the worth
        path leaves positive territory.

    Raises:
        ValueError: If results is empty.

    """
    if not results:
        msg = "results must not be empty"
        raise ValueError(msg)

    withdrawals = [r.actual_withdrawal for r in results]
    rule_counts = {rule.value: 0 for rule in Rule}
    for r in results:
        rule_counts[r.rule.value] += 1

    path = worth_path(results)

    worth_cagr = None
    drawdown = None
    if is_positive_path(path):
        worth_cagr = cagr(path[0], path[-1], len(results))
        drawdown = max_drawdown(path)

    market_return = None
    returns = [r.return_percent for r in results]
    if all(r > -100 for r in returns):  # noqa: PLR2004
        market_return = annualized_return(returns)

    total = math.fsum(withdrawals)
    return {
        "years": len(results),
        "final_worth": results[-1].end_worth,
        "total_withdrawn": total,
        "min_withdrawal": min(withdrawals),
        "max_withdrawal": max(withdrawals),
        "rule_counts": rule_counts,
        "worth_cagr": worth_cagr,
        "max_drawdown": drawdown,
        "annualized_market_return": market_return,
    }
