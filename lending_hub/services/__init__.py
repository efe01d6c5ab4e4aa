"""Service modules"""
from .claims import ALL, ClaimOrchestrator, ClaimState
from .hub import LendingHub, build_wallet
from .market_data import MarketDataService
from .snapshot import merge_snapshot

__all__ = [
    "ALL",
    "ClaimOrchestrator",
    "ClaimState",
    "LendingHub",
    "MarketDataService",
    "build_wallet",
    "merge_snapshot",
]
