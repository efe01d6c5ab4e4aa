"""Application wiring: builds every collaborator from ``AppConfig``."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from ..aggregator import CetusAggregator
from ..chains.sui import CoinDecimalsCache, SuiClient
from ..config import AppConfig, ProtocolConfig
from ..interfaces.claim_builder import ClaimBuilder
from ..interfaces.protocol_adapter import MarketAdapter, UserAdapter
from ..interfaces.wallet import Wallet
from ..models import MarketSnapshot, SwapPreview
from ..protocols.alphalend import (
    AlphaLendClaimBuilder,
    AlphaLendMarketAdapter,
    AlphaLendUserAdapter,
)
from ..protocols.alphalend.source import AlphaLendSource
from ..protocols.navi import NaviClaimBuilder, NaviMarketAdapter, NaviUserAdapter
from ..protocols.navi.source import NaviSource
from ..protocols.scallop import (
    ScallopClaimBuilder,
    ScallopMarketAdapter,
    ScallopUserAdapter,
)
from ..protocols.scallop.source import ScallopSource
from ..protocols.suilend import (
    SuilendClaimBuilder,
    SuilendMarketAdapter,
    SuilendUserAdapter,
)
from ..protocols.suilend.source import SuilendSource
from ..registry import ASSET_DECIMALS, ASSET_COIN_TYPES, SUPPORTED_PROTOCOLS, Protocol
from ..wallets import RemoteSignerWallet, WatchOnlyWallet
from .claims import ClaimOrchestrator, ClaimTarget
from .market_data import MarketDataService

logger = logging.getLogger(__name__)

_Components = tuple[MarketAdapter, UserAdapter, ClaimBuilder]
_Factory = Callable[[SuiClient, CoinDecimalsCache, ProtocolConfig], _Components]


def _scallop(client: SuiClient, decimals: CoinDecimalsCache, cfg: ProtocolConfig) -> _Components:
    source = ScallopSource(cfg)
    return (
        ScallopMarketAdapter(source),
        ScallopUserAdapter(source),
        ScallopClaimBuilder(client, decimals, cfg),
    )


def _navi(client: SuiClient, decimals: CoinDecimalsCache, cfg: ProtocolConfig) -> _Components:
    source = NaviSource(cfg)
    return (
        NaviMarketAdapter(source),
        NaviUserAdapter(source),
        NaviClaimBuilder(source, decimals, cfg),
    )


def _suilend(client: SuiClient, decimals: CoinDecimalsCache, cfg: ProtocolConfig) -> _Components:
    source = SuilendSource(cfg)
    return (
        SuilendMarketAdapter(source),
        SuilendUserAdapter(source),
        SuilendClaimBuilder(client, decimals, cfg),
    )


def _alphalend(client: SuiClient, decimals: CoinDecimalsCache, cfg: ProtocolConfig) -> _Components:
    source = AlphaLendSource(cfg)
    return (
        AlphaLendMarketAdapter(source),
        AlphaLendUserAdapter(source),
        AlphaLendClaimBuilder(client, decimals, cfg),
    )


# Registry of per-protocol component factories.
_PROTOCOL_FACTORIES: dict[Protocol, _Factory] = {
    Protocol.SCALLOP: _scallop,
    Protocol.NAVI: _navi,
    Protocol.SUILEND: _suilend,
    Protocol.ALPHALEND: _alphalend,
}


def build_wallet(config: AppConfig, address: str | None = None) -> Wallet:
    """Remote signer when ``wallet.signer_url`` is set, watch-only otherwise."""
    address = address or config.wallet.address or None
    if config.wallet.signer_url and (address is None or address == config.wallet.address):
        return RemoteSignerWallet(config.wallet)
    return WatchOnlyWallet(address)


class LendingHub:
    """Market data, positions and claims for one wallet across all protocols."""

    def __init__(self, config: AppConfig, address: str | None = None) -> None:
        self._config = config

        sui_cfg = config.chains["sui"]
        self.chain_client = SuiClient(sui_cfg)
        self.decimals = CoinDecimalsCache(
            self.chain_client,
            known={ASSET_COIN_TYPES[a]: d for a, d in ASSET_DECIMALS.items()},
        )
        self.wallet = build_wallet(config, address)

        market_adapters: list[MarketAdapter] = []
        user_adapters: list[UserAdapter] = []
        builders: list[ClaimBuilder] = []
        for protocol in SUPPORTED_PROTOCOLS:
            factory = _PROTOCOL_FACTORIES.get(protocol)
            if factory is None:
                logger.warning("No component factory for protocol '%s'", protocol.value)
                continue
            market, user, builder = factory(
                self.chain_client, self.decimals, config.protocol(protocol)
            )
            market_adapters.append(market)
            user_adapters.append(user)
            builders.append(builder)

        self.market_data = MarketDataService(
            market_adapters,
            user_adapters,
            address_provider=self.wallet.get_current_address,
            decimals=self.decimals,
            user_refresh_seconds=config.market_data.user_refresh_seconds,
            market_refresh_seconds={p: config.refresh_seconds(p) for p in SUPPORTED_PROTOCOLS},
            default_market_refresh_seconds=config.market_data.market_refresh_seconds,
        )
        self.aggregator = CetusAggregator(config.aggregator)
        self.claims = ClaimOrchestrator(
            builders,
            self.market_data,
            self.wallet,
            self.decimals,
            config.claims,
            aggregator=self.aggregator,
            slippage=config.aggregator.slippage,
        )

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_wallet(address: str | None) -> str:
        if not address:
            return "(no wallet)"
        if len(address) > 16:
            return f"{address[:10]}...{address[-6:]}"
        return address

    @staticmethod
    def _format_time(value: datetime | None) -> str:
        if value is None:
            return "never"
        return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    @staticmethod
    def format_markets(snapshot: MarketSnapshot) -> str:
        lines = [
            f"{'Protocol':<10} {'Asset':<6} {'Supply %':>9} {'Borrow %':>9} "
            f"{'Incent. S':>9} {'Incent. B':>9} {'Util %':>7}"
        ]
        for row in snapshot.rows:
            lines.append(
                f"{row.protocol.value:<10} {row.asset.value:<6} "
                f"{row.supply_apr:>9.2f} {row.borrow_apr:>9.2f} "
                f"{row.supply_incentive_apr:>9.2f} {row.borrow_incentive_apr:>9.2f} "
                f"{row.utilization:>7.1f}"
            )
        if not snapshot.rows:
            lines.append("No market data available.")
        return "\n".join(lines)

    def format_positions(self, snapshot: MarketSnapshot) -> str:
        address = self.wallet.get_current_address()
        lines = [f"Wallet: {self._format_wallet(address)}", ""]
        for item in snapshot.reward_summary:
            supplies = ", ".join(
                f"{s.amount:,.4f} {s.asset.value}" for s in item.supplies
            ) or "—"
            rewards = ", ".join(f"{r.amount} {r.token}" for r in item.rewards) or "—"
            lines.append(f"{item.protocol.value}")
            lines.append(f"  Supplied: {supplies}")
            lines.append(f"  Rewards:  {rewards}")
        lines.append("")
        totals = ", ".join(f"{r.amount} {r.token}" for r in snapshot.total_rewards) or "—"
        lines.append(f"Total rewards: {totals}")
        lines.append(f"Updated: {self._format_time(snapshot.updated_at)} UTC")
        return "\n".join(lines)

    @staticmethod
    def format_preview(preview: SwapPreview) -> str:
        lines = [f"Swap preview → {preview.target_symbol}"]
        for item in preview.items:
            route = " → ".join(step.provider for step in item.steps) or "—"
            estimate = item.estimated_out if item.estimated_out is not None else "n/a"
            note = f" ({item.note})" if item.note else ""
            lines.append(f"  {item.amount} {item.token}: ≈ {estimate} via {route}{note}")
        if preview.total_estimated_out is not None:
            lines.append(f"Total: ≈ {preview.total_estimated_out} {preview.target_symbol}")
        if not preview.can_swap_all:
            lines.append("Not every reward can be swapped; claim without swap instead.")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    async def show_markets(self) -> str:
        snapshot = await self.market_data.refresh()
        return self.format_markets(snapshot)

    async def show_positions(self) -> str:
        snapshot = await self.market_data.refresh()
        return self.format_positions(snapshot)

    async def claim(self, target: ClaimTarget) -> dict[str, Any] | None:
        await self.market_data.refresh()
        if isinstance(target, Protocol):
            return await self.claims.claim_protocol(target)
        return await self.claims.claim_all()

    async def preview(self, target: ClaimTarget) -> SwapPreview | None:
        await self.market_data.refresh()
        return await self.claims.preview_swap(target)

    async def watch(self, interval: int, emit: Callable[[str], None] = print) -> None:
        """Run the pollers and emit a positions summary every ``interval`` seconds."""
        await self.market_data.start()
        try:
            while True:
                await asyncio.sleep(interval)
                emit(self.format_positions(self.market_data.get_snapshot()))
        finally:
            await self.market_data.stop()
