"""Wallet collaborators: address source and transaction signer."""
from .remote import RemoteSignerWallet
from .watch_only import WatchOnlyWallet

__all__ = ["RemoteSignerWallet", "WatchOnlyWallet"]
