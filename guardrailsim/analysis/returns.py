"""Growth metrics over a simulated worth path.

A worth path is the start worth of year 0 followed by every year's end
worth, so a run of n years gives n + 1 points. The metrics here only make
sense while the path stays positive and finite; a depleted run has no
meaningful growth rate or drawdown.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from guardrailsim.simulation.engine import YearResult


def worth_path(results: Sequence[YearResult]) -> NDArray[np.float64]:
    """Build the worth path of a run.

    Example:
        A two-year run from 1,000,000 ending at 1,045,000 and 1,020,000
        gives ``array([1000000., 1045000., 1020000.])``.

    Raises:
        ValueError: If results is empty.

    """
    if not results:
        msg = "results must not be empty"
        raise ValueError(msg)
    return np.array(
        [results[0].start_worth] + [r.end_worth for r in results],
        dtype=np.float64,
    )


def is_positive_path(path: NDArray[np.float64]) -> bool:
    """Whether every point of a worth path is finite and above zero."""
    return bool(np.all(np.isfinite(path)) and np.all(path > 0))


def cagr(start_worth: float, end_worth: float, years: float) -> float:
    """Compound annual growth rate of portfolio worth.

    Withdrawals are not added back, so a portfolio that funds a 5%
    withdrawal out of 5% returns shows a CAGR near zero.

    Example:
        >>> round(cagr(1_000_000.0, 1_500_000.0, 10), 4)
        0.0414

    Args:
        start_worth: Worth before year 0. Must be positive and finite.
        end_worth: Worth after the last year. Must be non-negative and finite.
        years: Number of simulated years. Must be positive.

    Returns:
        CAGR as a decimal (e.g., 0.07 for 7%).

    Raises:
        ValueError: If any argument is out of range or non-finite.

    """
    if not math.isfinite(start_worth) or start_worth <= 0:
        msg = f"start_worth must be positive and finite, got {start_worth}"
        raise ValueError(msg)
    if not math.isfinite(end_worth) or end_worth < 0:
        msg = f"end_worth must be non-negative and finite, got {end_worth}"
        raise ValueError(msg)
    if years <= 0:
        msg = f"years must be positive, got {years}"
        raise ValueError(msg)
    return float((end_worth / start_worth) ** (1.0 / years) - 1.0)


def max_drawdown(path: NDArray[np.float64]) -> float:
    """Largest fall of a worth path from its running peak.

    Example:
        A path of 1,000,000 -> 1,200,000 -> 900,000 -> 1,300,000 falls
        25% from the 1,200,000 peak, so the result is -0.25.

    Args:
        path: Worth path from worth_path(). At least 2 points, all
            positive and finite.

    Returns:
        Maximum drawdown as a negative decimal (-0.25 for a 25% fall),
        0.0 if worth never falls.

    Raises:
        ValueError: If the path is too short or leaves positive territory.

    """
    if len(path) < 2:  # noqa: PLR2004
        msg = f"worth path must have at least 2 points, got {len(path)}"
        raise ValueError(msg)
    if not is_positive_path(path):
        msg = "worth path must stay positive and finite"
        raise ValueError(msg)
    running_max = np.maximum.accumulate(path)
    drawdowns = (path - running_max) / running_max
    return float(np.min(drawdowns))
