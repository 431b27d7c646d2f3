"""Tests package for the Musika marketplace simulation.

Covers curve math, ROI projection, the token registry, the simulation clock,
market events, the batch model and metrics. Tests are plain functions and run
with either ``tests/run_tests.py`` or pytest.
"""
