"""Navi lending pools and incentive v3 rewards."""
from .adapter import NaviMarketAdapter, NaviUserAdapter
from .claim import NaviClaimBuilder

__all__ = ["NaviClaimBuilder", "NaviMarketAdapter", "NaviUserAdapter"]
