"""Protocol adapters: per-protocol market and wallet fetching."""
from typing import Protocol

from ..models import MarketFetch, UserFetch
from ..registry import Protocol as LendingProtocol


class MarketAdapter(Protocol):
    """Fetches protocol-wide pool state. Never raises."""

    @property
    def protocol(self) -> LendingProtocol: ...

    async def fetch_market(self) -> MarketFetch: ...


class UserAdapter(Protocol):
    """Fetches a wallet's supplied positions and claimable rewards. Never raises."""

    @property
    def protocol(self) -> LendingProtocol: ...

    async def fetch_user(self, address: str | None) -> UserFetch: ...
