"""Chain client protocol: the read-only RPC surface claim builders need."""
from typing import Any, Protocol


class ChainClient(Protocol):
    """Abstract interface for blockchain RPC interactions."""

    async def get_owned_objects(
        self, wallet_address: str, struct_type: str | None = None
    ) -> list[dict[str, Any]]: ...

    async def get_dynamic_field_object(
        self, parent_id: str, key_type: str, key_value: str
    ) -> dict[str, Any]: ...

    async def get_coin_metadata(self, coin_type: str) -> dict[str, Any]: ...
