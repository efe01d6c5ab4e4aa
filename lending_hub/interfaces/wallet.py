"""Wallet protocol: address and transaction signing."""
from typing import Any, Protocol

from ..chains.sui.transaction import TransactionDraft


class Wallet(Protocol):
    """External signer. ``sign_and_execute`` raises WalletError on rejection."""

    def get_current_address(self) -> str | None: ...

    async def sign_and_execute(self, tx: TransactionDraft) -> dict[str, Any]: ...
