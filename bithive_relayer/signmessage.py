"""
Bitcoin message signatures (BIP-137 style).

Wallets sign the hash of:
  "Bitcoin Signed Message:\n" + varint(len(message)) + message

Signature format (base64):
  header(1) + r(32) + s(32)  (compact recoverable signature)

Header ranges per BIP-137:
  - 27-30: P2PKH uncompressed
  - 31-34: P2PKH compressed
  - 35-38: Segwit P2SH
  - 39-42: Segwit Bech32 (P2WPKH v0)

The relayer accepts the compressed P2PKH form, which is what we produce.
"""

from __future__ import annotations

import base64
import hashlib

from coincurve import PrivateKey, PublicKey

HEADER_UNCOMPRESSED = 27
HEADER_COMPRESSED = 31
HEADER_BECH32 = 39


def sha256d(data: bytes) -> bytes:
    """Double SHA256 hash (Bitcoin standard)."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def _encode_varint(n: int) -> bytes:
    if n < 0:
        raise ValueError("varint must be non-negative")
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xFD" + n.to_bytes(2, "little")
    if n <= 0xFFFFFFFF:
        return b"\xFE" + n.to_bytes(4, "little")
    return b"\xFF" + n.to_bytes(8, "little")


def bitcoin_message_hash(message: str) -> bytes:
    msg = message.encode("utf-8")
    prefix = b"\x18Bitcoin Signed Message:\n"
    payload = prefix + _encode_varint(len(msg)) + msg
    return sha256d(payload)


def sign_message(secret: bytes, message: str, compressed: bool = True) -> str:
    """
    Sign a message with a raw 32-byte private key.

    Returns:
        base64 encoded 65-byte signature (header || r || s)
    """
    msg_hash = bitcoin_message_hash(message)
    # coincurve returns r || s || recid
    recoverable = PrivateKey(secret).sign_recoverable(msg_hash, hasher=None)
    recid = recoverable[64]
    header = (HEADER_COMPRESSED if compressed else HEADER_UNCOMPRESSED) + recid
    return base64.b64encode(bytes([header]) + recoverable[:64]).decode("ascii")


def recover_public_key(message: str, signature_b64: str) -> bytes:
    """
    Recover the signer's public key from a BIP-137 signature.

    Returns:
        SEC encoded public key, compressed unless the header says otherwise

    Raises:
        ValueError: malformed signature
    """
    sig = base64.b64decode(signature_b64)
    if len(sig) != 65:
        raise ValueError(f"Signature must be 65 bytes, got {len(sig)}")

    header = sig[0]
    if header < HEADER_UNCOMPRESSED or header > HEADER_BECH32 + 3:
        raise ValueError(f"Invalid signature header {header}")

    if header < HEADER_COMPRESSED:
        recid = header - HEADER_UNCOMPRESSED
        compressed = False
    else:
        recid = (header - HEADER_UNCOMPRESSED) % 4
        compressed = True

    # coincurve expects the recovery id as the last byte.
    recoverable = sig[1:] + bytes([recid])
    pubkey = PublicKey.from_signature_and_message(
        recoverable, bitcoin_message_hash(message), hasher=None
    )
    return pubkey.format(compressed=compressed)


def verify_message(public_key_hex: str, message: str, signature_b64: str) -> bool:
    """Check that a signature was made by the given public key."""
    try:
        recovered = recover_public_key(message, signature_b64)
    except ValueError:
        return False
    return recovered.hex() == public_key_hex.lower()
