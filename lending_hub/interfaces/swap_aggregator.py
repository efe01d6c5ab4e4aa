"""Swap aggregator protocol: routing quotes and swap construction."""
from typing import Protocol

from ..chains.sui.transaction import Argument, TransactionDraft
from ..models import MergedRoute, Route


class SwapAggregator(Protocol):
    """Black-box router. Quote methods return None when no route exists."""

    async def find_route(
        self, from_coin_type: str, target_coin_type: str, amount_atomic: int
    ) -> Route | None: ...

    async def find_merged_route(
        self, target_coin_type: str, inputs: list[tuple[str, int]]
    ) -> MergedRoute | None: ...

    def build_merged_swap(
        self,
        tx: TransactionDraft,
        route: MergedRoute,
        input_coins: list[tuple[str, Argument]],
        slippage: float,
    ) -> Argument: ...
