"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from lending_hub.chains.sui.decimals import CoinDecimalsCache
from lending_hub.config import (
    AggregatorConfig,
    AppConfig,
    ChainConfig,
    ClaimsConfig,
    MarketDataConfig,
    ProtocolConfig,
    WalletConfig,
)
from lending_hub.registry import ASSET_COIN_TYPES, Asset

USDC = ASSET_COIN_TYPES[Asset.USDC]
SUI = "0x2::sui::SUI"
SCA = "0x7016aae72cfc67f2fadf55769c0a7dd54291a583b63051a5ed71081cce836ac6::sca::SCA"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def scallop_config() -> ProtocolConfig:
    return ProtocolConfig(
        api_url="https://scallop.example.com",
        contracts={
            "protocol_package_id": "0x5ca1",
            "spool_package_id": "0x5b01",
            "borrow_incentive_package_id": "0xb1",
            "borrow_incentive_config_id": "0xb2",
            "borrow_incentive_pools_id": "0xb3",
            "borrow_incentive_accounts_id": "0xb4",
        },
    )


@pytest.fixture()
def navi_config() -> ProtocolConfig:
    return ProtocolConfig(
        api_url="https://navi.example.com",
        contracts={"package_id": "0xa1", "incentive_v3_id": "0xa2", "storage_id": "0xa3"},
    )


@pytest.fixture()
def suilend_config() -> ProtocolConfig:
    return ProtocolConfig(
        api_url="https://suilend.example.com",
        contracts={
            "package_id": "0x51",
            "lending_market_id": "0x52",
            "lending_market_type": "0x53::suilend::MAIN_POOL",
        },
    )


@pytest.fixture()
def alphalend_config() -> ProtocolConfig:
    return ProtocolConfig(
        api_url="https://alphalend.example.com",
        contracts={
            "package_id": "0xa1fa",
            "protocol_id": "0xa1fb",
            "position_cap_type": "0xa1fa::position::PositionCap",
            "positions_table_id": "0x111",
            "markets_table_id": "0x222",
        },
    )


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig,
    scallop_config: ProtocolConfig,
    navi_config: ProtocolConfig,
    suilend_config: ProtocolConfig,
    alphalend_config: ProtocolConfig,
) -> AppConfig:
    return AppConfig(
        chains={"sui": sample_chain_config},
        wallet=WalletConfig(address="0xABC"),
        market_data=MarketDataConfig(user_refresh_seconds=30, market_refresh_seconds=15),
        protocols={
            "scallop": scallop_config,
            "navi": navi_config,
            "suilend": suilend_config,
            "alphalend": alphalend_config,
        },
        aggregator=AggregatorConfig(endpoint="https://router.example.com"),
        claims=ClaimsConfig(swap_enabled=True, swap_target="USDC"),
    )


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_chain_client() -> AsyncMock:
    client = AsyncMock()
    client.get_owned_objects.return_value = []
    client.get_coin_metadata.return_value = {}
    return client


@pytest.fixture()
def decimals(mock_chain_client: AsyncMock) -> CoinDecimalsCache:
    return CoinDecimalsCache(mock_chain_client, known={SUI: 9, USDC: 6, SCA: 9})


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    chains:
      sui:
        rpc_endpoints: ["https://rpc.example.com"]
        rpc_timeout: 10
    wallet:
      address: "${TEST_WALLET_ADDRESS}"
    market_data:
      user_refresh_seconds: 45
    protocols:
      scallop:
        api_url: "https://scallop.example.com/"
        refresh_seconds: 10
        contracts:
          spool_package_id: "0x5b01"
      navi:
        endpoints:
          pools: "/v2/pools"
    aggregator:
      slippage: 0.005
    claims:
      swap_enabled: false
      swap_target: sui
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
