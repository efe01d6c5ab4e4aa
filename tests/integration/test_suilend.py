"""Integration tests for the Suilend adapters and claim builder."""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from lending_hub.chains.sui.decimals import CoinDecimalsCache
from lending_hub.chains.sui.transaction import TransactionDraft
from lending_hub.config import ProtocolConfig
from lending_hub.errors import MissingObjectError
from lending_hub.models import RewardSummaryItem, RewardToken
from lending_hub.protocols.suilend.adapter import SuilendMarketAdapter, SuilendUserAdapter
from lending_hub.protocols.suilend.claim import SuilendClaimBuilder
from lending_hub.protocols.suilend.parser import Side, SuilendClaimMeta, SuilendClaimReward
from lending_hub.registry import Asset, Protocol

SEND = "0xb45f::mint::MINT"
SUI = "0x2::sui::SUI"

RESERVE = {
    "coinType": SUI,
    "arrayIndex": "0",
    "token": {"symbol": "SUI"},
    "depositAprPercent": "3.2",
    "borrowAprPercent": 5.1,
    "utilizationPercent": "61",
    "depositRewards": [
        {"stats": {"rewardCoinType": SEND, "symbol": "SEND", "aprPercent": "1.5", "rewardIndex": 0}},
        {"stats": {"rewardCoinType": SUI, "aprPercent": 0.5, "rewardIndex": 1}},
    ],
    "borrowRewards": [
        {"stats": {"rewardCoinType": SUI, "aprPercent": 2, "rewardIndex": 0}},
    ],
}

OBLIGATION = {
    "id": "0x0b1",
    "deposits": [{"coinType": SUI, "symbol": "SUI", "depositedAmount": "12"}],
    "claims": [
        {"reserveArrayIndex": 0, "rewardIndex": 0, "rewardCoinType": SEND, "symbol": "SEND", "claimableAmount": "1.5", "mintDecimals": 6},
        {"reserveArrayIndex": 3, "rewardIndex": 1, "rewardCoinType": SUI, "side": "borrow", "claimableAmount": "0.1"},
    ],
}


@pytest.fixture()
def source() -> AsyncMock:
    mock = AsyncMock()
    mock.get_reserves.return_value = [RESERVE]
    mock.get_obligations.return_value = [OBLIGATION]
    return mock


@pytest.fixture()
def builder(
    mock_chain_client: AsyncMock,
    decimals: CoinDecimalsCache,
    suilend_config: ProtocolConfig,
) -> SuilendClaimBuilder:
    return SuilendClaimBuilder(mock_chain_client, decimals, suilend_config)


def _summary(meta: SuilendClaimMeta | None, *rewards: RewardToken) -> RewardSummaryItem:
    return RewardSummaryItem(Protocol.SUILEND, rewards=rewards, claim_meta=meta)


class TestSuilendMarketAdapter:
    @pytest.mark.asyncio
    async def test_builds_row(self, source: AsyncMock) -> None:
        result = await SuilendMarketAdapter(source).fetch_market()

        assert result.ok
        (row,) = result.rows
        assert row.asset is Asset.SUI
        assert row.supply_apr == pytest.approx(5.2)
        assert row.borrow_apr == pytest.approx(3.1)
        assert row.utilization == 61.0
        assert [b.token for b in row.supply_breakdown] == ["SEND", "SUI"]

    @pytest.mark.asyncio
    async def test_source_failure(self, source: AsyncMock) -> None:
        source.get_reserves.side_effect = RuntimeError("502")

        result = await SuilendMarketAdapter(source).fetch_market()

        assert not result.ok
        assert "502" in result.error
        assert result.rows == ()


class TestSuilendUserAdapter:
    @pytest.mark.asyncio
    async def test_positions_and_rewards(self, source: AsyncMock) -> None:
        result = await SuilendUserAdapter(source).fetch_user("0xABC")

        assert result.ok
        assert result.positions == {(Protocol.SUILEND, Asset.SUI): 12.0}
        rewards = {r.coin_type: r for r in result.reward_summary.rewards}
        assert rewards[SEND].amount == Decimal("1.5")
        assert rewards[SEND].amount_atomic == 1_500_000
        assert rewards[SUI].amount_atomic is None
        meta = result.reward_summary.claim_meta
        assert isinstance(meta, SuilendClaimMeta)
        assert len(meta.rewards) == 2
        source.get_obligations.assert_awaited_once_with("0xABC")

    @pytest.mark.asyncio
    async def test_no_address(self, source: AsyncMock) -> None:
        result = await SuilendUserAdapter(source).fetch_user(None)

        assert result.ok
        assert result.positions == {}
        source.get_obligations.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_source_failure(self, source: AsyncMock) -> None:
        source.get_obligations.side_effect = RuntimeError("timeout")

        result = await SuilendUserAdapter(source).fetch_user("0xABC")

        assert result.error == "timeout"


class TestSuilendClaimBuilder:
    META = SuilendClaimMeta(
        rewards=(
            SuilendClaimReward(0, 0, SEND, Side.DEPOSIT),
            SuilendClaimReward(3, 1, SUI, Side.BORROW),
        ),
        swap_inputs=((SEND, 1_750_000),),
    )

    @pytest.mark.asyncio
    async def test_appends_claim_per_reward(
        self, builder: SuilendClaimBuilder, mock_chain_client: AsyncMock
    ) -> None:
        mock_chain_client.get_owned_objects.return_value = [{"data": {"objectId": "0xCAP"}}]
        tx = TransactionDraft()
        summary = _summary(
            self.META,
            RewardToken("SEND", Decimal("1.75"), SEND),
            RewardToken("SUI", Decimal("0.1"), SUI),
        )

        result = await builder.append_claim(tx, "0xABC", summary)

        assert result.has_claim
        mock_chain_client.get_owned_objects.assert_awaited_once_with(
            "0xABC", "0x51::lending_market::ObligationOwnerCap<0x53::suilend::MAIN_POOL>"
        )
        assert [c["target"] for c in tx.commands] == [
            "0x51::lending_market::claim_rewards",
            "0x51::lending_market::claim_rewards",
        ]
        assert tx.commands[0]["typeArguments"] == ["0x53::suilend::MAIN_POOL", SEND]
        assert [i.amount_atomic for i in result.inputs] == [1_750_000, 100_000_000]
        assert {"type": "object", "objectId": "0xCAP"} in tx.inputs

    @pytest.mark.asyncio
    async def test_zero_amount_rewards_skipped(
        self, builder: SuilendClaimBuilder, mock_chain_client: AsyncMock
    ) -> None:
        meta = SuilendClaimMeta(
            rewards=(SuilendClaimReward(0, 0, SEND, Side.DEPOSIT),),
            swap_inputs=((SEND, 0),),
        )
        tx = TransactionDraft()

        result = await builder.append_claim(tx, "0xABC", _summary(meta))

        assert not result.has_claim
        assert len(tx) == 0
        mock_chain_client.get_owned_objects.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_owner_cap_leaves_draft_untouched(
        self, builder: SuilendClaimBuilder
    ) -> None:
        tx = TransactionDraft()
        summary = _summary(self.META, RewardToken("SEND", Decimal("1.75"), SEND))

        with pytest.raises(MissingObjectError, match="obligation owner cap"):
            await builder.append_claim(tx, "0xABC", summary)

        assert len(tx) == 0
        assert tx.inputs == []

    @pytest.mark.asyncio
    async def test_without_claim_meta(self, builder: SuilendClaimBuilder) -> None:
        result = await builder.append_claim(TransactionDraft(), "0xABC", _summary(None))
        assert not result.has_claim
