"""
Deposit references and normalization of the deposits input.

Callers may address deposits as:
    - a single deposit tx hash (vout 0)
    - a list of deposit tx hashes (vout 0 each)
    - a list of (tx_hash, vout) pairs, DepositRef instances, or
      {"txHash": ..., "vout": ...} mappings

Unstake and withdrawal may also be addressed by an amount in sats.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from .errors import DepositInputError


@dataclass(frozen=True)
class DepositRef:
    """A deposit identified by its transaction hash and output index."""

    tx_hash: str
    vout: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.tx_hash, str) or not self.tx_hash:
            raise DepositInputError(f"Invalid deposit tx hash: {self.tx_hash!r}")
        if isinstance(self.vout, bool) or not isinstance(self.vout, int) or self.vout < 0:
            raise DepositInputError(f"Invalid deposit vout: {self.vout!r}")

    def to_params(self) -> dict[str, Any]:
        """Relayer request representation."""
        return {"txHash": self.tx_hash, "vout": self.vout}

    def __str__(self) -> str:
        return format_deposit(self)


DepositsInput = Union[str, Sequence[str], Sequence[DepositRef], Sequence[tuple[str, int]]]
DepositsOrAmount = Union[DepositsInput, int]


@dataclass(frozen=True)
class ByDeposits:
    """Operation addressed by explicit deposit references."""

    refs: tuple[DepositRef, ...]


@dataclass(frozen=True)
class ByAmount:
    """Operation addressed by an amount in sats."""

    sats: int


DepositSelection = Union[ByDeposits, ByAmount]


def _to_ref(item: Any) -> DepositRef:
    if isinstance(item, DepositRef):
        return item
    if isinstance(item, Mapping):
        if "txHash" not in item:
            raise DepositInputError(f"Deposit mapping without txHash: {item!r}")
        return DepositRef(item["txHash"], item.get("vout", 0))
    if isinstance(item, tuple) and len(item) == 2:
        return DepositRef(item[0], item[1])
    raise DepositInputError(f"Unsupported deposit entry: {item!r}")


def parse_deposits_input(value: DepositsInput) -> list[DepositRef]:
    """
    Normalize a deposits input into a list of deposit references.

    Raises:
        DepositInputError: empty, mixed or malformed input, or an amount
    """
    if isinstance(value, str):
        return [DepositRef(value, 0)]

    if isinstance(value, (int, float)):
        raise DepositInputError("An amount is not a list of deposits")

    if not isinstance(value, Sequence) or len(value) == 0:
        raise DepositInputError(f"No deposits given: {value!r}")

    if all(isinstance(item, str) for item in value):
        return [DepositRef(tx_hash, 0) for tx_hash in value]

    if any(isinstance(item, str) for item in value):
        raise DepositInputError("Cannot mix tx hashes and explicit deposits")

    return [_to_ref(item) for item in value]


def parse_amount(value: Any) -> int:
    """Validate an amount in sats."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise DepositInputError(f"Amount must be an integer number of sats, got {value!r}")
    if value <= 0:
        raise DepositInputError(f"Amount must be positive, got {value}")
    return value


def select_deposits(value: DepositsOrAmount) -> DepositSelection:
    """Classify the input as an amount or a list of deposit references."""
    if isinstance(value, (int, float)):
        return ByAmount(parse_amount(value))
    return ByDeposits(tuple(parse_deposits_input(value)))


def format_deposit(deposit: DepositRef) -> str:
    if deposit.vout == 0:
        return deposit.tx_hash
    return f"{deposit.tx_hash}:{deposit.vout}"


def format_deposits(deposits: Union[DepositRef, Sequence[DepositRef]]) -> str:
    if isinstance(deposits, DepositRef):
        return format_deposit(deposits)
    return ", ".join(format_deposit(d) for d in deposits)
