"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .registry import Protocol, coin_type_for_symbol, parse_protocol

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class WalletConfig:
    address: str = ""
    signer_url: str = ""
    signer_timeout: int = 60


@dataclass(frozen=True)
class MarketDataConfig:
    user_refresh_seconds: int = 30
    market_refresh_seconds: int = 15


@dataclass(frozen=True)
class ProtocolConfig:
    chain: str = "sui"
    api_url: str = ""
    endpoints: dict[str, str] = field(default_factory=dict)
    contracts: dict[str, str] = field(default_factory=dict)
    refresh_seconds: int | None = None
    request_timeout: int = 20


@dataclass(frozen=True)
class AggregatorConfig:
    endpoint: str = "https://api-sui-cloudfront.cetus.zone/router_v3"
    routes_path: str = "/find_routes"
    merge_routes_path: str = "/find_merge_routes"
    slippage: float = 0.001
    depth: int = 3
    providers: tuple[str, ...] = ()
    timeout: int = 20


@dataclass(frozen=True)
class ClaimsConfig:
    swap_enabled: bool = True
    swap_target: str = "USDC"
    swap_targets: tuple[str, ...] = ("SUI", "USDC", "USDT")


@dataclass(frozen=True)
class AppConfig:
    chains: dict[str, ChainConfig] = field(default_factory=dict)
    wallet: WalletConfig = field(default_factory=WalletConfig)
    market_data: MarketDataConfig = field(default_factory=MarketDataConfig)
    protocols: dict[str, ProtocolConfig] = field(default_factory=dict)
    aggregator: AggregatorConfig = field(default_factory=AggregatorConfig)
    claims: ClaimsConfig = field(default_factory=ClaimsConfig)

    def protocol(self, protocol: Protocol) -> ProtocolConfig:
        """Config block for ``protocol`` (defaults when not configured)."""
        return self.protocols.get(protocol.value.lower(), ProtocolConfig())

    def refresh_seconds(self, protocol: Protocol) -> int:
        configured = self.protocol(protocol).refresh_seconds
        return configured or self.market_data.market_refresh_seconds


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    chains: dict[str, ChainConfig] = {}
    for name, cfg in raw.items():
        chains[name] = ChainConfig(
            rpc_endpoints=tuple(cfg.get("rpc_endpoints", [])),
            rpc_timeout=int(cfg.get("rpc_timeout", 30)),
        )
    return chains


def _build_wallet(raw: dict[str, Any]) -> WalletConfig:
    return WalletConfig(
        address=str(raw.get("address", "") or ""),
        signer_url=str(raw.get("signer_url", "") or ""),
        signer_timeout=int(raw.get("signer_timeout", 60)),
    )


def _build_market_data(raw: dict[str, Any]) -> MarketDataConfig:
    return MarketDataConfig(
        user_refresh_seconds=int(raw.get("user_refresh_seconds", 30)),
        market_refresh_seconds=int(raw.get("market_refresh_seconds", 15)),
    )


def _build_protocols(raw: dict[str, Any]) -> dict[str, ProtocolConfig]:
    protocols: dict[str, ProtocolConfig] = {}
    for name, cfg in raw.items():
        cfg = cfg or {}
        refresh = cfg.get("refresh_seconds")
        protocols[str(name).lower()] = ProtocolConfig(
            chain=cfg.get("chain", "sui"),
            api_url=str(cfg.get("api_url", "") or "").rstrip("/"),
            endpoints=dict(cfg.get("endpoints", {})),
            contracts=dict(cfg.get("contracts", {})),
            refresh_seconds=int(refresh) if refresh is not None else None,
            request_timeout=int(cfg.get("request_timeout", 20)),
        )
    return protocols


def _build_aggregator(raw: dict[str, Any]) -> AggregatorConfig:
    defaults = AggregatorConfig()
    return AggregatorConfig(
        endpoint=str(raw.get("endpoint", defaults.endpoint)).rstrip("/"),
        routes_path=raw.get("routes_path", defaults.routes_path),
        merge_routes_path=raw.get("merge_routes_path", defaults.merge_routes_path),
        slippage=float(raw.get("slippage", defaults.slippage)),
        depth=int(raw.get("depth", defaults.depth)),
        providers=tuple(raw.get("providers", [])),
        timeout=int(raw.get("timeout", defaults.timeout)),
    )


def _build_claims(raw: dict[str, Any]) -> ClaimsConfig:
    defaults = ClaimsConfig()
    return ClaimsConfig(
        swap_enabled=bool(raw.get("swap_enabled", defaults.swap_enabled)),
        swap_target=str(raw.get("swap_target", defaults.swap_target)).upper(),
        swap_targets=tuple(
            str(symbol).upper()
            for symbol in raw.get("swap_targets", defaults.swap_targets)
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        chains=_build_chains(raw.get("chains", {})),
        wallet=_build_wallet(raw.get("wallet", {})),
        market_data=_build_market_data(raw.get("market_data", {})),
        protocols=_build_protocols(raw.get("protocols", {})),
        aggregator=_build_aggregator(raw.get("aggregator", {})),
        claims=_build_claims(raw.get("claims", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    sui = cfg.chains.get("sui")
    if sui is None or not sui.rpc_endpoints:
        raise ValueError("Chain 'sui' must be configured with at least one RPC endpoint")

    for name, proto in cfg.protocols.items():
        if parse_protocol(name) is None:
            raise ValueError(f"Unknown protocol '{name}'")
        if proto.chain not in cfg.chains:
            raise ValueError(
                f"Protocol '{name}' references unknown chain '{proto.chain}'"
            )
        if proto.refresh_seconds is not None and proto.refresh_seconds <= 0:
            raise ValueError(f"Protocol '{name}' refresh_seconds must be positive")

    if cfg.market_data.user_refresh_seconds <= 0:
        raise ValueError("market_data.user_refresh_seconds must be positive")
    if cfg.market_data.market_refresh_seconds <= 0:
        raise ValueError("market_data.market_refresh_seconds must be positive")

    if not 0 < cfg.aggregator.slippage < 1:
        raise ValueError("aggregator.slippage must be between 0 and 1")

    for symbol in cfg.claims.swap_targets:
        if coin_type_for_symbol(symbol) is None:
            raise ValueError(f"Unknown swap target '{symbol}'")
    if cfg.claims.swap_target not in cfg.claims.swap_targets:
        raise ValueError(
            f"Swap target '{cfg.claims.swap_target}' is not one of the swap_targets"
        )
