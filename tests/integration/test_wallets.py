"""Integration tests for the remote signer and watch-only wallets."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from lending_hub.chains.sui.transaction import TransactionDraft
from lending_hub.config import WalletConfig
from lending_hub.errors import WalletError
from lending_hub.wallets import RemoteSignerWallet, WatchOnlyWallet


@pytest.fixture()
def wallet() -> RemoteSignerWallet:
    return RemoteSignerWallet(
        WalletConfig(address="0xABC", signer_url="https://signer.example.com/execute")
    )


def _mock_session(payload=None, status: int = 200, error: Exception | None = None):
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=payload)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    if error:
        mock_session.post = MagicMock(side_effect=error)
    else:
        mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


def _draft() -> TransactionDraft:
    tx = TransactionDraft()
    tx.move_call("0x1::m::f", [tx.object("0x6")])
    return tx


class TestRemoteSignerWallet:
    def test_address(self, wallet: RemoteSignerWallet) -> None:
        assert wallet.get_current_address() == "0xABC"

    @pytest.mark.asyncio
    async def test_sign_and_execute(self, wallet: RemoteSignerWallet) -> None:
        session = _mock_session({"digest": "D1G", "effects": {"status": "success"}})
        tx = _draft()

        with patch("lending_hub.wallets.remote.aiohttp.ClientSession", return_value=session):
            with patch("lending_hub.wallets.remote.aiohttp.TCPConnector"):
                receipt = await wallet.sign_and_execute(tx)

        assert receipt["digest"] == "D1G"
        assert tx.sealed
        sent = session.post.call_args.kwargs["json"]["transaction"]
        assert sent["sender"] == "0xABC"
        assert sent["commands"][0]["target"] == "0x1::m::f"

    @pytest.mark.asyncio
    async def test_user_rejection(self, wallet: RemoteSignerWallet) -> None:
        session = _mock_session({"error": "User rejected the request"}, status=400)

        with patch("lending_hub.wallets.remote.aiohttp.ClientSession", return_value=session):
            with patch("lending_hub.wallets.remote.aiohttp.TCPConnector"):
                with pytest.raises(WalletError, match="User rejected"):
                    await wallet.sign_and_execute(_draft())

    @pytest.mark.asyncio
    async def test_http_status_error(self, wallet: RemoteSignerWallet) -> None:
        session = _mock_session({}, status=500)

        with patch("lending_hub.wallets.remote.aiohttp.ClientSession", return_value=session):
            with patch("lending_hub.wallets.remote.aiohttp.TCPConnector"):
                with pytest.raises(WalletError, match="HTTP 500"):
                    await wallet.sign_and_execute(_draft())

    @pytest.mark.asyncio
    async def test_unreachable(self, wallet: RemoteSignerWallet) -> None:
        session = _mock_session(error=aiohttp.ClientConnectionError("refused"))

        with patch("lending_hub.wallets.remote.aiohttp.ClientSession", return_value=session):
            with patch("lending_hub.wallets.remote.aiohttp.TCPConnector"):
                with pytest.raises(WalletError, match="unreachable"):
                    await wallet.sign_and_execute(_draft())

    @pytest.mark.asyncio
    async def test_no_signer_url(self) -> None:
        wallet = RemoteSignerWallet(WalletConfig(address="0xABC"))
        with pytest.raises(WalletError, match="No signer"):
            await wallet.sign_and_execute(_draft())


class TestWatchOnlyWallet:
    @pytest.mark.asyncio
    async def test_cannot_sign(self) -> None:
        wallet = WatchOnlyWallet("0xABC")

        assert wallet.get_current_address() == "0xABC"
        with pytest.raises(WalletError, match="watch-only"):
            await wallet.sign_and_execute(_draft())

    def test_empty_address(self) -> None:
        assert WatchOnlyWallet("").get_current_address() is None
