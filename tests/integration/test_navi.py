"""Integration tests for the Navi adapters and claim builder."""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from lending_hub.chains.sui.decimals import CoinDecimalsCache
from lending_hub.chains.sui.transaction import TransactionDraft
from lending_hub.config import ProtocolConfig
from lending_hub.errors import ClaimNotAvailableError, MissingObjectError
from lending_hub.interfaces.claim_builder import ClaimResult
from lending_hub.models import RewardSummaryItem
from lending_hub.protocols.navi.adapter import NaviMarketAdapter, NaviUserAdapter
from lending_hub.protocols.navi.claim import NaviClaimBuilder
from lending_hub.protocols.navi.parser import NaviClaimMeta
from lending_hub.registry import ASSET_COIN_TYPES, Asset, Protocol

USDC = ASSET_COIN_TYPES[Asset.USDC]
SUI = "0x2::sui::SUI"
NAVX = "0xa99b::navx::NAVX"

POOL = {
    "token": {"symbol": "USDC", "address": USDC},
    "currentSupplyRate": "45000000000000000000000000",
    "currentBorrowRate": "60000000000000000000000000",
    "totalSupplyAmount": "1000",
    "borrowedAmount": "250",
    "supplyIncentiveApyInfo": {"boostedApr": "3", "rewardCoin": [NAVX, SUI]},
    "borrowIncentiveApyInfo": {"vaultApr": "7.5", "boostedApr": "1", "rewardCoin": [NAVX]},
}

REWARDS = [
    {
        "rewardCoinType": SUI,
        "userClaimableReward": "0.3",
        "assetCoinType": USDC,
        "ruleIds": ["0xr1"],
        "rewardFundId": "0xfund_sui",
    },
    {
        "rewardCoinType": SUI,
        "userClaimableReward": "0.2",
        "assetCoinType": SUI,
        "ruleIds": ["0xr2", "0xr1"],
    },
    {
        "rewardCoinType": NAVX,
        "userClaimableReward": "1.25",
        "assetCoinType": USDC,
        "ruleIds": ["0xr3"],
        "rewardFundId": "0xfund_navx",
    },
]


@pytest.fixture()
def source() -> AsyncMock:
    mock = AsyncMock()
    mock.get_pools.return_value = [POOL]
    mock.get_lending_state.return_value = [
        {"pool": {"token": {"symbol": "USDC", "address": USDC}}, "supplyBalance": "12.5"}
    ]
    mock.get_available_rewards.return_value = REWARDS
    return mock


@pytest.fixture()
def builder(
    source: AsyncMock, decimals: CoinDecimalsCache, navi_config: ProtocolConfig
) -> NaviClaimBuilder:
    return NaviClaimBuilder(source, decimals, navi_config)


def _summary() -> RewardSummaryItem:
    return RewardSummaryItem(Protocol.NAVI)


class TestNaviMarketAdapter:
    @pytest.mark.asyncio
    async def test_builds_row(self, source: AsyncMock) -> None:
        result = await NaviMarketAdapter(source).fetch_market()

        (row,) = result.rows
        assert row.asset is Asset.USDC
        assert row.supply_apr == pytest.approx(7.5)
        assert row.borrow_apr == pytest.approx(6.5)
        assert row.utilization == 25.0
        assert [(b.token, b.apr) for b in row.supply_breakdown] == [("NAVX", 1.5), ("SUI", 1.5)]

    @pytest.mark.asyncio
    async def test_source_failure(self, source: AsyncMock) -> None:
        source.get_pools.side_effect = RuntimeError("bad gateway")

        result = await NaviMarketAdapter(source).fetch_market()

        assert result.error == "bad gateway"


class TestNaviUserAdapter:
    @pytest.mark.asyncio
    async def test_positions_and_rewards(self, source: AsyncMock) -> None:
        result = await NaviUserAdapter(source).fetch_user("0xABC")

        assert result.positions == {(Protocol.NAVI, Asset.USDC): 12.5}
        rewards = {r.token: r.amount for r in result.reward_summary.rewards}
        assert rewards == {"SUI": Decimal("0.5"), "NAVX": Decimal("1.25")}
        assert isinstance(result.reward_summary.claim_meta, NaviClaimMeta)

    @pytest.mark.asyncio
    async def test_reward_failure_keeps_positions(self, source: AsyncMock) -> None:
        source.get_available_rewards.side_effect = RuntimeError("rewards down")

        result = await NaviUserAdapter(source).fetch_user("0xABC")

        assert result.ok
        assert result.positions == {(Protocol.NAVI, Asset.USDC): 12.5}
        assert result.reward_summary.rewards == ()
        assert result.reward_summary.claim_meta is None
        assert result.reward_error == "rewards down"

    @pytest.mark.asyncio
    async def test_state_failure(self, source: AsyncMock) -> None:
        source.get_lending_state.side_effect = RuntimeError("down")

        result = await NaviUserAdapter(source).fetch_user("0xABC")

        assert not result.ok
        source.get_available_rewards.assert_not_awaited()


class TestNaviClaimBuilder:
    @pytest.mark.asyncio
    async def test_one_claim_per_coin_type(
        self, builder: NaviClaimBuilder, source: AsyncMock
    ) -> None:
        tx = TransactionDraft()

        result = await builder.append_claim(tx, "0xABC", _summary())

        assert result.has_claim
        source.get_available_rewards.assert_awaited_once_with("0xABC")
        assert [c["target"] for c in tx.commands] == [
            "0xa1::incentive_v3::claim_reward",
            "0x2::coin::from_balance",
            "0xa1::incentive_v3::claim_reward",
            "0x2::coin::from_balance",
        ]
        first_args = tx.commands[0]["arguments"]
        asset_types = tx.inputs[first_args[4]["Input"]]
        rule_ids = tx.inputs[first_args[5]["Input"]]
        assert asset_types["value"] == [USDC, SUI]
        assert rule_ids["value"] == ["0xr1", "0xr2"]
        assert {"type": "object", "objectId": "0xfund_sui"} in tx.inputs
        amounts = {i.coin_type: i.amount_atomic for i in result.inputs}
        # NAVX decimals cannot be resolved, so its amount is unknown.
        assert amounts == {SUI: 500_000_000, NAVX: None}

    @pytest.mark.asyncio
    async def test_dust_reward_skipped(
        self, builder: NaviClaimBuilder, source: AsyncMock
    ) -> None:
        source.get_available_rewards.return_value = [
            {"rewardCoinType": SUI, "userClaimableReward": "0.0000000001", "rewardFundId": "0xf"}
        ]
        tx = TransactionDraft()

        result = await builder.append_claim(tx, "0xABC", _summary())

        assert not result.has_claim
        assert len(tx) == 0

    @pytest.mark.asyncio
    async def test_missing_reward_fund(
        self, builder: NaviClaimBuilder, source: AsyncMock
    ) -> None:
        source.get_available_rewards.return_value = [
            REWARDS[0],
            {"rewardCoinType": NAVX, "userClaimableReward": "2"},
        ]
        tx = TransactionDraft()

        with pytest.raises(MissingObjectError, match="reward fund"):
            await builder.append_claim(tx, "0xABC", _summary())

        assert len(tx) == 0

    @pytest.mark.asyncio
    async def test_reward_read_failure_is_claim_not_available(
        self, builder: NaviClaimBuilder, source: AsyncMock
    ) -> None:
        source.get_available_rewards.side_effect = RuntimeError("gateway timeout")
        tx = TransactionDraft()

        with pytest.raises(ClaimNotAvailableError, match="Navi rewards"):
            await builder.append_claim(tx, "0xABC", _summary())

        assert len(tx) == 0

    @pytest.mark.asyncio
    async def test_nothing_to_claim(self, builder: NaviClaimBuilder, source: AsyncMock) -> None:
        source.get_available_rewards.return_value = []

        result = await builder.append_claim(TransactionDraft(), "0xABC", _summary())

        assert result == ClaimResult()
