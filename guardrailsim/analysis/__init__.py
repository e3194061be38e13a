"""Run summaries: growth, drawdown and rule counts."""
