"""Shared pytest fixtures for guardrailsim tests."""

from __future__ import annotations

import pytest
from guardrailsim.simulation.engine import AnnualDatum, SimulationParameters


@pytest.fixture
def sample_annual_data() -> list[AnnualDatum]:
    """Provide ten years of annual returns and inflation.

    Based on rounded S&P 500 total returns and US CPI for 2000-2009,
    which includes two bear markets and a deflation year.
    """
    rows = [
        (2000, -9.1, 3.4),
        (2001, -11.9, 2.8),
        (2002, -22.1, 1.6),
        (2003, 28.7, 2.3),
        (2004, 10.9, 2.7),
        (2005, 4.9, 3.4),
        (2006, 15.8, 3.2),
        (2007, 5.5, 2.8),
        (2008, -37.0, 3.8),
        (2009, 26.5, -0.4),
    ]
    return [AnnualDatum(y, r, i) for y, r, i in rows]


@pytest.fixture
def sample_params(sample_annual_data: list[AnnualDatum]) -> SimulationParameters:
    """Provide a 1,000,000 portfolio at a 5% initial withdrawal rate."""
    return SimulationParameters.for_data(1_000_000.0, 5.0, sample_annual_data)
