"""SUI chain access: JSON-RPC client, coin decimals cache, transaction drafts."""
from .client import SuiClient
from .decimals import CoinDecimalsCache
from .transaction import Argument, TransactionDraft

__all__ = ["Argument", "CoinDecimalsCache", "SuiClient", "TransactionDraft"]
