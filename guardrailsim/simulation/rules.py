"""Guyton-Klinger decision rules.

Implements the per-year rule evaluation used by the simulation engine:

    - Inflation rule (capped inflation adjustment of last year's withdrawal)
    - Inflation-freeze rule (skip the adjustment after a losing year)
    - Capital preservation guardrail (10% cut)
    - Prosperity guardrail (10% raise)

All rates are expressed in percent (5.0 means 5%).

References:
    Guyton, J. T. & Klinger, W. J. (2006).
        "Decision Rules and Maximum Initial Withdrawal Rates."

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class Rule(Enum):
    """Rule that determined a year's withdrawal."""

    INITIAL = "Initial"
    INFLATION = "Inflation"
    INFLATION_FROZEN = "InflationFrozen"
    CAPITAL_PRESERVATION = "CapitalPreservation"
    PROSPERITY = "Prosperity"


@dataclass(frozen=True)
class GuardrailConfig:
    """Guardrail thresholds and adjustment factors.

    Attributes:
        ceiling_multiplier: Planned rate above initial_rate * this triggers a cut.
        floor_multiplier: Planned rate below initial_rate * this triggers a raise.
        inflation_cap: Maximum inflation adjustment per year, in percent.
        capital_preservation_factor: Multiplier applied on a cut.
        prosperity_factor: Multiplier applied on a raise.

    """

    ceiling_multiplier: float = 1.2
    floor_multiplier: float = 0.8
    inflation_cap: float = 6.0
    capital_preservation_factor: float = 0.9
    prosperity_factor: float = 1.1

    def lower_guardrail(self, initial_rate: float) -> float:
        """Rate above which the capital preservation rule fires."""
        return initial_rate * self.ceiling_multiplier

    def upper_guardrail(self, initial_rate: float) -> float:
        """Rate below which the prosperity rule fires."""
        return initial_rate * self.floor_multiplier


DEFAULT_CONFIG = GuardrailConfig()


def rate_percent(amount: float, worth: float) -> float:
    """Return amount as a percentage of worth.

    Division follows IEEE semantics, so a zero worth yields inf or nan
    instead of raising.

    Args:
        amount: Withdrawal amount.
        worth: Portfolio value the amount is drawn from.

    Returns:
        amount / worth * 100.

    """
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(amount) / np.float64(worth) * 100)


def apply_inflation_rule(
    last_withdrawal: float,
    inflation_percent: float,
    previous_return_percent: float,
    start_worth: float,
    initial_rate: float,
    config: GuardrailConfig = DEFAULT_CONFIG,
) -> tuple[float, float, Rule]:
    """Apply the capped inflation adjustment, or freeze it.

    The adjustment is skipped when last year's market return was negative
    and the inflated withdrawal would push the rate above the initial rate.
    The comparison is always against the fixed initial rate.

    Args:
        last_withdrawal: Previous year's actual withdrawal.
        inflation_percent: This year's inflation, in percent.
        previous_return_percent: Previous year's market return, in percent.
        start_worth: Portfolio value at the start of this year.
        initial_rate: Initial withdrawal rate, in percent.
        config: Guardrail configuration.

    Returns:
        Tuple of (planned_withdrawal, rate_with_inflation, rule).

    """
    capped = min(inflation_percent, config.inflation_cap)
    with_inflation = last_withdrawal * (1 + capped / 100)
    rate_with_inflation = rate_percent(with_inflation, start_worth)

    if previous_return_percent < 0 and rate_with_inflation > initial_rate:
        return last_withdrawal, rate_with_inflation, Rule.INFLATION_FROZEN
    return with_inflation, rate_with_inflation, Rule.INFLATION


def apply_guardrails(
    planned_withdrawal: float,
    planned_rate: float,
    initial_rate: float,
    rule: Rule,
    config: GuardrailConfig = DEFAULT_CONFIG,
) -> tuple[float, Rule]:
    """Apply the capital preservation and prosperity guardrails.

    Capital preservation is checked first; at most one guardrail fires.

    Args:
        planned_withdrawal: Withdrawal after the inflation rule.
        planned_rate: planned_withdrawal as a percent of start worth.
        initial_rate: Initial withdrawal rate, in percent.
        rule: Rule chosen by the inflation step, kept if no guardrail fires.
        config: Guardrail configuration.

    Returns:
        Tuple of (actual_withdrawal, rule).

    """
    if planned_rate > config.lower_guardrail(initial_rate):
        return (
            planned_withdrawal * config.capital_preservation_factor,
            Rule.CAPITAL_PRESERVATION,
        )
    if planned_rate < config.upper_guardrail(initial_rate):
        return planned_withdrawal * config.prosperity_factor, Rule.PROSPERITY
    return planned_withdrawal, rule
