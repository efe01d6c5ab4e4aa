"""Collaborator interfaces for the lending aggregator."""
from .chain import ChainClient
from .claim_builder import ClaimBuilder, ClaimInput, ClaimResult
from .protocol_adapter import MarketAdapter, UserAdapter
from .swap_aggregator import SwapAggregator
from .wallet import Wallet

__all__ = [
    "ChainClient",
    "ClaimBuilder",
    "ClaimInput",
    "ClaimResult",
    "MarketAdapter",
    "SwapAggregator",
    "UserAdapter",
    "Wallet",
]
