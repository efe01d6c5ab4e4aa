"""Address-only wallet for read-only use."""
from __future__ import annotations

from typing import Any

from ..chains.sui.transaction import TransactionDraft
from ..errors import WalletError


class WatchOnlyWallet:
    def __init__(self, address: str | None) -> None:
        self._address = address or None

    def get_current_address(self) -> str | None:
        return self._address

    async def sign_and_execute(self, tx: TransactionDraft) -> dict[str, Any]:
        raise WalletError("Wallet is watch-only; configure wallet.signer_url to sign.")
