"""Benchmark execution and results pipeline for litbench.

Resolves benchmark specs from the on-disk catalog, runs them in one or
more browsers (or dispatches URLs for manual runs), reduces the trial
samples to summary statistics and persists the session history of each
benchmark.
"""
