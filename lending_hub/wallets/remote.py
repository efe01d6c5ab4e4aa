"""Wallet backed by an external signing service."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..chains.sui.transaction import TransactionDraft
from ..config import WalletConfig
from ..errors import WalletError

logger = logging.getLogger(__name__)


class RemoteSignerWallet:
    """POSTs serialized drafts to a signer that builds, signs and executes them.

    The signer answers with the execution receipt, or ``{"error": ...}``
    when the user declines or execution fails.
    """

    def __init__(self, config: WalletConfig) -> None:
        self._address = config.address or None
        self.signer_url = config.signer_url
        self.timeout = config.signer_timeout

    def get_current_address(self) -> str | None:
        return self._address

    async def sign_and_execute(self, tx: TransactionDraft) -> dict[str, Any]:
        if not self.signer_url:
            raise WalletError("No signer configured.")
        if tx.sender is None:
            tx.set_sender(self._address or "")
        tx.seal()

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.signer_url,
                    json={"transaction": tx.to_dict()},
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    payload = await response.json(content_type=None)
                    status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise WalletError(f"Signer unreachable: {e}") from e

        if not isinstance(payload, dict):
            raise WalletError("Signer returned an invalid response.")
        if payload.get("error"):
            raise WalletError(str(payload["error"]))
        if not 200 <= status < 300:
            raise WalletError(f"Signer returned HTTP {status}.")

        logger.info("Transaction executed: %s", payload.get("digest", "<no digest>"))
        return payload
