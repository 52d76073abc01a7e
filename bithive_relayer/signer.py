"""
Local Bitcoin signer compatible with the browser wallet provider interface
(UniSat, OKX Wallet, ...).

PSBT handling, keys and addresses are delegated to python-bitcoin-utils.
Message signatures are BIP-137 compact signatures.
"""

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Union

import structlog
from bitcoinutils.keys import P2shAddress, PrivateKey
from bitcoinutils.psbt import PSBT
from bitcoinutils.setup import setup

from .errors import InvalidKeyError, SigningError, UnimplementedSignatureError
from .helpers import get_bitcoin_network
from .signmessage import sign_message as sign_bip137_message

logger = structlog.get_logger()

# python-bitcoin-utils only knows mainnet/testnet/regtest; signet and
# testnet4 share the testnet address and WIF prefixes.
_LIBRARY_NETWORKS = {
    "mainnet": "mainnet",
    "testnet": "testnet",
    "testnet4": "testnet",
    "signet": "testnet",
    "regtest": "regtest",
}


class AddressType(str, Enum):
    NATIVE_SEGWIT = "NativeSegwit"
    NESTED_SEGWIT = "NestedSegwit"
    LEGACY = "Legacy"


@dataclass(frozen=True)
class Bip322Full:
    """Full BIP-322 message signature for an address."""

    address: str


SignatureType = Union[str, Bip322Full]

ECDSA = "ECDSA"


@dataclass
class ToSignInput:
    index: int
    public_key: str


@dataclass
class SignPsbtOptions:
    auto_finalized: bool = True
    to_sign_inputs: Optional[list[ToSignInput]] = field(default=None)


class BitcoinProvider(Protocol):
    """Signing interface of a Bitcoin wallet."""

    async def sign_psbt(self, psbt: str, options: Optional[SignPsbtOptions] = None) -> str:
        ...

    async def sign_message(self, message: str, signature_type: SignatureType = ECDSA) -> str:
        ...


def psbt_hex_to_base64(psbt_hex: str) -> str:
    return base64.b64encode(bytes.fromhex(psbt_hex)).decode("ascii")


def psbt_base64_to_hex(psbt_b64: str) -> str:
    return base64.b64decode(psbt_b64).hex()


class BitcoinSigner:
    """Signer backed by a single private key."""

    def __init__(self, private_key: PrivateKey, network: str = "signet"):
        self.network = get_bitcoin_network(network)
        self.private_key = private_key

    def _select_network(self) -> None:
        setup(_LIBRARY_NETWORKS[self.network])

    @classmethod
    def from_wif(cls, wif: str, network: str = "signet") -> "BitcoinSigner":
        """
        Load a WIF private key for the network.

        Raises:
            InvalidKeyError: empty, malformed, or for another network
        """
        network = get_bitcoin_network(network)
        # PrivateKey() without a WIF generates a random key
        if not wif or not wif.strip():
            raise InvalidKeyError("A WIF private key is required")
        setup(_LIBRARY_NETWORKS[network])
        try:
            private_key = PrivateKey(wif.strip())
        except ValueError as e:
            raise InvalidKeyError(f"Invalid WIF private key for {network}: {e}") from e
        return cls(private_key, network)

    def to_wif(self) -> str:
        self._select_network()
        return self.private_key.to_wif(compressed=True)

    def get_private_key_raw(self) -> bytes:
        return self.private_key.to_bytes()

    def get_private_key(self) -> str:
        return self.get_private_key_raw().hex()

    def get_public_key(self) -> str:
        """Compressed public key (hex)."""
        return self.private_key.get_public_key().to_hex(compressed=True)

    def get_address(self, address_type: AddressType = AddressType.NATIVE_SEGWIT) -> str:
        self._select_network()
        public_key = self.private_key.get_public_key()
        address_type = AddressType(address_type)

        if address_type is AddressType.NATIVE_SEGWIT:
            return public_key.get_segwit_address().to_string()
        if address_type is AddressType.NESTED_SEGWIT:
            redeem_script = public_key.get_segwit_address().to_script_pub_key()
            return P2shAddress.from_script(redeem_script).to_string()
        return public_key.get_address(compressed=True).to_string()

    async def sign_psbt(self, psbt_hex: str, options: Optional[SignPsbtOptions] = None) -> str:
        """
        Sign a PSBT (hex) and return it as hex.

        All inputs are signed unless `to_sign_inputs` is given. The PSBT is
        finalized unless `auto_finalized` is False.
        """
        options = options or SignPsbtOptions()
        self._select_network()
        psbt = PSBT.from_base64(psbt_hex_to_base64(psbt_hex))

        if options.to_sign_inputs is not None:
            indexes = [i.index for i in options.to_sign_inputs]
        else:
            indexes = list(range(len(psbt.inputs)))

        for index in indexes:
            psbt.sign_input(self.private_key, index)

        if options.auto_finalized and not psbt.finalize():
            raise SigningError("Failed to finalize PSBT")

        logger.debug(
            "psbt_signed",
            inputs=indexes,
            finalized=options.auto_finalized,
        )
        return psbt_base64_to_hex(psbt.to_base64())

    async def sign_message(self, message: str, signature_type: SignatureType = ECDSA) -> str:
        """Sign a message. Returns a base64 signature."""
        if signature_type == ECDSA:
            return sign_bip137_message(self.get_private_key_raw(), message)
        if isinstance(signature_type, Bip322Full):
            raise UnimplementedSignatureError(
                f"BIP-322 full signatures are not implemented (address {signature_type.address})"
            )
        raise UnimplementedSignatureError(f"Unknown signature type: {signature_type!r}")
