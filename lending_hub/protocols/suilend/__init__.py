"""Suilend reserves, obligations and liquidity-mining rewards."""
from .adapter import SuilendMarketAdapter, SuilendUserAdapter
from .claim import SuilendClaimBuilder

__all__ = ["SuilendClaimBuilder", "SuilendMarketAdapter", "SuilendUserAdapter"]
