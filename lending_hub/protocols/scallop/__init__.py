"""Scallop lending markets, spool and borrow-incentive rewards."""
from .adapter import ScallopMarketAdapter, ScallopUserAdapter
from .claim import ScallopClaimBuilder

__all__ = ["ScallopClaimBuilder", "ScallopMarketAdapter", "ScallopUserAdapter"]
