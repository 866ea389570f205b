"""litbench: run browser benchmarks across implementations and track their history."""

__version__ = "0.1.0"
