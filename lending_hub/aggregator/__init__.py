"""Swap-aggregator collaborators."""
from .cetus import CetusAggregator

__all__ = ["CetusAggregator"]
