"""Supported assets and protocols, canonical coin types and normalization."""
from __future__ import annotations

import re
from enum import Enum


class Asset(str, Enum):
    """Canonical asset symbols shown in the market table."""

    SUI = "SUI"
    USDC = "USDC"
    USDT = "USDT"
    XBTC = "XBTC"
    DEEP = "DEEP"
    WAL = "WAL"


class Protocol(str, Enum):
    """Supported lending venues, in display order."""

    SCALLOP = "Scallop"
    NAVI = "Navi"
    SUILEND = "Suilend"
    ALPHALEND = "AlphaLend"


SUPPORTED_ASSETS: tuple[Asset, ...] = tuple(Asset)
SUPPORTED_PROTOCOLS: tuple[Protocol, ...] = tuple(Protocol)

SUI_COIN_TYPE = "0x2::sui::SUI"
SUI_COIN_TYPE_LONG = (
    "0x0000000000000000000000000000000000000000000000000000000000000002::sui::SUI"
)

ASSET_COIN_TYPES: dict[Asset, str] = {
    Asset.SUI: SUI_COIN_TYPE_LONG,
    Asset.USDC: "0xdba34672e30cb065b1f93e3ab55318768fd6fef66c15942c9f7cb846e2f900e7::usdc::USDC",
    Asset.USDT: "0x375f70cf2ae4c00bf37117d0c85a2c71545e6ee05c4a5c7d282cd66a4504b068::usdt::USDT",
    Asset.XBTC: "0x876a4b7bce8aeaef60464c11f4026903e9afacab79b9b142686158aa86560b50::xbtc::XBTC",
    Asset.DEEP: "0xdeeb7a4662eec9f2f3def03fb937a663dddaa2e215b8078a284d026b7946c270::deep::DEEP",
    Asset.WAL: "0x356a26eb9e012a68958082340d4c4116e7f55615cf27affcff209cf0ae544f59::wal::WAL",
}

ASSET_DECIMALS: dict[Asset, int] = {
    Asset.SUI: 9,
    Asset.USDC: 6,
    Asset.USDT: 6,
    Asset.XBTC: 8,
    Asset.DEEP: 6,
    Asset.WAL: 9,
}

# Substring fallback for legacy / alias coin types. SUI goes last because
# many unrelated symbols contain it.
_SYMBOL_HEURISTIC: tuple[Asset, ...] = (
    Asset.USDC,
    Asset.USDT,
    Asset.XBTC,
    Asset.DEEP,
    Asset.WAL,
    Asset.SUI,
)

_HEX_RE = re.compile(r"^(?:0x)?([0-9a-fA-F]{1,64})$")


def normalize_address(address: str) -> str | None:
    """Left-pad a hex address to 64 digits, lowercase, ``0x``-prefixed.

    Returns None when ``address`` is not a hex string.
    """
    match = _HEX_RE.match(address.strip())
    if not match:
        return None
    return "0x" + match.group(1).lower().rjust(64, "0")


def normalize_coin_type(coin_type: str) -> str:
    """Normalize the address part of a coin type, keeping module path.

    ``0x2::sui::SUI`` and ``2::sui::SUI`` both become the long SUI form.
    Strings that do not start with a hex address come back unchanged.
    """
    if not coin_type:
        return coin_type
    head, sep, rest = coin_type.strip().partition("::")
    address = normalize_address(head)
    if address is None:
        return coin_type
    return f"{address}{sep}{rest}"


def same_coin_type(left: str | None, right: str | None) -> bool:
    """Compare two coin types modulo address padding."""
    if not left or not right:
        return False
    return normalize_coin_type(left) == normalize_coin_type(right)


_ADDRESS_TO_ASSET: dict[str, Asset] = {
    normalize_address(coin_type.split("::")[0]): asset  # type: ignore[misc]
    for asset, coin_type in ASSET_COIN_TYPES.items()
}


def normalize_asset(identifier: str | None) -> Asset | None:
    """Map a protocol-reported coin identifier to a canonical Asset.

    Accepts a bare address, a ``<address>::module::TYPE`` coin type, or a
    symbol. Pure and total: anything unrecognised returns None.
    """
    if not identifier:
        return None
    text = str(identifier.value if isinstance(identifier, Enum) else identifier)
    address = normalize_address(text.split("::")[0])
    if address is not None and address in _ADDRESS_TO_ASSET:
        return _ADDRESS_TO_ASSET[address]

    upper = text.upper()
    for asset in _SYMBOL_HEURISTIC:
        if asset.value in upper:
            return asset
    return None


def asset_from_source(symbol: str | None, coin_type: str | None) -> Asset | None:
    """Resolve an asset from a pool's coin type, then from its symbol."""
    return normalize_asset(coin_type) or normalize_asset(symbol)


def preferred_coin_type(asset: Asset) -> str:
    return ASSET_COIN_TYPES[asset]


def is_preferred_coin_type(asset: Asset, coin_type: str | None) -> bool:
    return same_coin_type(coin_type, ASSET_COIN_TYPES[asset])


def coin_type_for_symbol(symbol: str) -> str | None:
    """Canonical coin type for an asset symbol (case-insensitive)."""
    try:
        return ASSET_COIN_TYPES[Asset(symbol.upper())]
    except ValueError:
        return None


def parse_protocol(name: str) -> Protocol | None:
    """Case-insensitive lookup of a protocol by name."""
    lowered = name.strip().lower()
    for protocol in Protocol:
        if protocol.value.lower() == lowered:
            return protocol
    return None
