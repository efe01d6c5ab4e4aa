"""Claim-flow exceptions. Messages are shown to the user verbatim."""
from __future__ import annotations


class ClaimError(RuntimeError):
    """Base class for failures of a single claim attempt."""


class ClaimNotAvailableError(ClaimError):
    def __init__(self, message: str = "Claim not available.") -> None:
        super().__init__(message)


class MissingObjectError(ClaimError):
    """A required owned object (cap, key, account) was not found."""

    def __init__(self, protocol: str, object_name: str) -> None:
        self.protocol = protocol
        self.object_name = object_name
        super().__init__(f"Missing {protocol} {object_name}.")


class SwapRouteUnavailableError(ClaimError):
    def __init__(self, message: str = "Swap route unavailable.") -> None:
        super().__init__(message)


class WalletError(ClaimError):
    """Signing was rejected or the signer failed."""


class SourceError(RuntimeError):
    """An HTTP data source returned an unusable response."""


class RpcError(RuntimeError):
    """Every configured SUI RPC endpoint failed or none is configured."""
