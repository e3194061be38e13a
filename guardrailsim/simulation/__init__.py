"""Simulation engine, decision rules and rate sweeps."""
