"""
Error types raised by the BitHive relayer helpers.
"""

from typing import Optional, Sequence


class BitHiveError(Exception):
    """Base class for all errors raised by this package."""


class RelayerRPCError(BitHiveError):
    """Error returned by the relayer JSON-RPC endpoint."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"RPC Error {code}: {message}")


class DepositInputError(BitHiveError, ValueError):
    """Deposits or amount input cannot be normalized."""


class PreconditionError(BitHiveError):
    """The requested operation cannot start for the given deposits."""


class DepositNotFoundError(PreconditionError):
    """None of the requested deposits are known to the relayer."""


class DepositStatusError(PreconditionError):
    """A deposit is in a status incompatible with the requested operation."""

    def __init__(self, message: str, tx_hash: str, vout: int, status: str):
        self.tx_hash = tx_hash
        self.vout = vout
        self.status = status
        super().__init__(message)


class WaitTimeoutError(BitHiveError, TimeoutError):
    """Polling deadline reached while deposits were still pending."""

    def __init__(self, message: str, pending: Sequence = (), timeout: Optional[float] = None):
        self.pending = list(pending)
        self.timeout = timeout
        super().__init__(message)


class UnsupportedCapabilityError(BitHiveError):
    """The Bitcoin provider does not support a required signing method."""


class UnimplementedSignatureError(BitHiveError, NotImplementedError):
    """The requested signature scheme has no local implementation."""


class InvalidKeyError(BitHiveError, ValueError):
    """The configured private key cannot be decoded."""


class SigningError(BitHiveError):
    """A PSBT could not be signed or finalized."""
