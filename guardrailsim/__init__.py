"""Guyton-Klinger guardrails withdrawal simulator.

The engine lives in ``guardrailsim.simulation.engine``; everything else
feeds it annual data or consumes its year results.
"""
