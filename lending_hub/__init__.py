"""Multi-protocol lending market aggregator and reward claimer for SUI."""

__version__ = "0.1.0"
