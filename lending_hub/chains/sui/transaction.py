"""Programmable transaction draft.

The draft is an ordered list of inputs and commands that the wallet signer
turns into a SUI programmable transaction block. Result handles can only
point at commands that were already appended, so a coin is never used
before the instruction producing it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

INPUT = "Input"
RESULT = "Result"
NESTED_RESULT = "NestedResult"
GAS_COIN = "GasCoin"

CLOCK_OBJECT_ID = "0x6"
SYSTEM_STATE_OBJECT_ID = "0x5"


@dataclass(frozen=True)
class Argument:
    """Handle to a transaction input or command result."""

    kind: str
    index: int = 0
    result_index: int | None = None

    def nested(self, result_index: int) -> Argument:
        """Handle to the ``result_index``-th value returned by a command."""
        if self.kind != RESULT:
            raise ValueError("Only command results can be indexed")
        return Argument(NESTED_RESULT, self.index, result_index)

    def to_json(self) -> Any:
        if self.kind == GAS_COIN:
            return GAS_COIN
        if self.kind == NESTED_RESULT:
            return {NESTED_RESULT: [self.index, self.result_index]}
        return {self.kind: self.index}


class TransactionDraft:
    """Mutable transaction under construction, owned by one claim attempt."""

    def __init__(self, sender: str | None = None) -> None:
        self.sender = sender
        self.inputs: list[dict[str, Any]] = []
        self.commands: list[dict[str, Any]] = []
        self._object_inputs: dict[str, Argument] = {}
        self._sealed = False

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    @property
    def gas(self) -> Argument:
        return Argument(GAS_COIN)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def set_sender(self, sender: str) -> None:
        self._ensure_mutable()
        self.sender = sender

    def object(self, object_id: str) -> Argument:
        """Object input, deduplicated by id."""
        self._ensure_mutable()
        if object_id in self._object_inputs:
            return self._object_inputs[object_id]
        arg = self._add_input({"type": "object", "objectId": object_id})
        self._object_inputs[object_id] = arg
        return arg

    def pure(self, value: Any, value_type: str) -> Argument:
        """Pure (BCS-encodable) input such as ``u64``, ``bool``, ``address``."""
        self._ensure_mutable()
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        return self._add_input({"type": "pure", "valueType": value_type, "value": value})

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def move_call(
        self,
        target: str,
        arguments: Iterable[Argument] = (),
        type_arguments: Iterable[str] = (),
    ) -> Argument:
        args = list(arguments)
        self._check_arguments(args)
        return self._add_command(
            {
                "kind": "MoveCall",
                "target": target,
                "typeArguments": list(type_arguments),
                "arguments": [arg.to_json() for arg in args],
            }
        )

    def merge_coins(self, destination: Argument, sources: Iterable[Argument]) -> None:
        source_list = list(sources)
        if not source_list:
            return
        self._check_arguments([destination, *source_list])
        self._add_command(
            {
                "kind": "MergeCoins",
                "destination": destination.to_json(),
                "sources": [arg.to_json() for arg in source_list],
            }
        )

    def transfer_objects(self, objects: Iterable[Argument], address: str) -> None:
        object_list = list(objects)
        if not object_list:
            return
        self._check_arguments(object_list)
        recipient = self.pure(address, "address")
        self._add_command(
            {
                "kind": "TransferObjects",
                "objects": [arg.to_json() for arg in object_list],
                "address": recipient.to_json(),
            }
        )

    def aggregator_swap(
        self,
        provider: str,
        route: dict[str, Any],
        inputs: Iterable[tuple[str, Argument]],
        target_coin_type: str,
        slippage: float,
    ) -> Argument:
        """Swap intent expanded by the signer into the aggregator's move calls.

        Returns the handle of the single output coin.
        """
        pairs = list(inputs)
        self._check_arguments([arg for _, arg in pairs])
        return self._add_command(
            {
                "kind": "AggregatorSwap",
                "provider": provider,
                "route": route,
                "inputs": [
                    {"coinType": coin_type, "coin": arg.to_json()}
                    for coin_type, arg in pairs
                ],
                "targetCoinType": target_coin_type,
                "slippage": slippage,
            }
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def seal(self) -> None:
        """Freeze the draft before it is handed to the signer."""
        self._sealed = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "sender": self.sender,
            "inputs": list(self.inputs),
            "commands": list(self.commands),
        }

    def __len__(self) -> int:
        return len(self.commands)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_mutable(self) -> None:
        if self._sealed:
            raise ValueError("Transaction draft is sealed")

    def _add_input(self, entry: dict[str, Any]) -> Argument:
        self.inputs.append(entry)
        return Argument(INPUT, len(self.inputs) - 1)

    def _add_command(self, command: dict[str, Any]) -> Argument:
        self._ensure_mutable()
        self.commands.append(command)
        return Argument(RESULT, len(self.commands) - 1)

    def _check_arguments(self, args: list[Argument]) -> None:
        for arg in args:
            if not isinstance(arg, Argument):
                raise ValueError(f"Not a transaction argument: {arg!r}")
            if arg.kind == INPUT and not 0 <= arg.index < len(self.inputs):
                raise ValueError(f"Unknown input {arg.index}")
            if arg.kind in (RESULT, NESTED_RESULT) and not (
                0 <= arg.index < len(self.commands)
            ):
                raise ValueError(
                    f"Result {arg.index} referenced before its command was appended"
                )
