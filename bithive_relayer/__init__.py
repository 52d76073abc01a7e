"""
BitHive Relayer examples

Stake, unstake and withdraw BTC through the BitHive relayer, signing PSBTs
and messages with a locally held private key.

Usage:
    # Stake 0.00005 BTC and wait until it is confirmed
    bithive-examples stake

    # Unstake and withdraw part of the stake by amount
    bithive-examples partial-withdrawal
"""

__version__ = "0.1.0"

from .deposits import DepositRef, parse_deposits_input, select_deposits
from .errors import (
    BitHiveError,
    DepositInputError,
    DepositNotFoundError,
    DepositStatusError,
    InvalidKeyError,
    PreconditionError,
    RelayerRPCError,
    UnimplementedSignatureError,
    UnsupportedCapabilityError,
    WaitTimeoutError,
)
from .operations import Operation
from .rpc import RelayerClient, RelayerRPCConfig
from .signer import AddressType, BitcoinProvider, BitcoinSigner
from .staker import BitHiveStaker
from .transactions import list_deposits, stake, unstake, withdraw
from .waiter import DepositWaiter, WaitOutcome

__all__ = [
    "__version__",
    "DepositRef",
    "parse_deposits_input",
    "select_deposits",
    "BitHiveError",
    "DepositInputError",
    "DepositNotFoundError",
    "DepositStatusError",
    "InvalidKeyError",
    "PreconditionError",
    "RelayerRPCError",
    "UnimplementedSignatureError",
    "UnsupportedCapabilityError",
    "WaitTimeoutError",
    "Operation",
    "RelayerClient",
    "RelayerRPCConfig",
    "AddressType",
    "BitcoinProvider",
    "BitcoinSigner",
    "BitHiveStaker",
    "list_deposits",
    "stake",
    "unstake",
    "withdraw",
    "DepositWaiter",
    "WaitOutcome",
]
