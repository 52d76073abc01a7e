"""
Tests for the local Bitcoin signer.
"""

import base64

import pytest
from bitcoinutils.keys import PrivateKey
from bitcoinutils.setup import setup

from bithive_relayer import signer as signer_module
from bithive_relayer.errors import InvalidKeyError, SigningError, UnimplementedSignatureError
from bithive_relayer.signer import (
    AddressType,
    BitcoinSigner,
    Bip322Full,
    SignPsbtOptions,
    ToSignInput,
    psbt_base64_to_hex,
    psbt_hex_to_base64,
)
from bithive_relayer.signmessage import verify_message

# Private key 1, the generator point
WIF_ONE_MAINNET = "KwDiBf89QgGbjEhKnhXJuH7LrciVrZi3qYjgd9M7rFU73sVHnoWn"
PUBKEY_ONE = "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"


class FakePSBT:
    """Records what the signer does with a parsed PSBT."""

    instances: list["FakePSBT"] = []

    def __init__(self, raw: bytes):
        self.raw = raw
        self.inputs = [object(), object(), object()]
        self.signed: list[int] = []
        self.finalized = False

    @classmethod
    def from_base64(cls, psbt_b64: str) -> "FakePSBT":
        instance = cls(base64.b64decode(psbt_b64))
        cls.instances.append(instance)
        return instance

    def sign_input(self, private_key: PrivateKey, index: int) -> bool:
        self.signed.append(index)
        return True

    def finalize(self) -> bool:
        self.finalized = True
        return True

    def to_base64(self) -> str:
        return base64.b64encode(self.raw + b"-signed").decode()


class FailingFinalizePSBT(FakePSBT):
    def finalize(self) -> bool:
        self.finalized = True
        return False


@pytest.fixture
def fake_psbt(monkeypatch: pytest.MonkeyPatch) -> type[FakePSBT]:
    FakePSBT.instances = []
    monkeypatch.setattr(signer_module, "PSBT", FakePSBT)
    return FakePSBT


class TestKeysAndAddresses:
    def test_mainnet_addresses(self) -> None:
        signer = BitcoinSigner.from_wif(WIF_ONE_MAINNET, "mainnet")

        assert signer.get_public_key() == PUBKEY_ONE
        assert signer.get_address() == "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4"
        assert signer.get_address(AddressType.LEGACY) == "1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH"
        assert signer.get_address(AddressType.NESTED_SEGWIT).startswith("3")

    def test_signet_uses_testnet_prefixes(self) -> None:
        setup("testnet")
        signer = BitcoinSigner(PrivateKey(secret_exponent=1), "signet")

        assert signer.get_address() == "tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx"
        assert signer.get_address(AddressType.NESTED_SEGWIT).startswith("2")

    def test_address_type_accepts_plain_string(self) -> None:
        signer = BitcoinSigner.from_wif(WIF_ONE_MAINNET, "mainnet")

        assert signer.get_address("Legacy") == "1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH"  # type: ignore[arg-type]

    def test_raw_private_key(self) -> None:
        signer = BitcoinSigner.from_wif(WIF_ONE_MAINNET, "mainnet")

        assert signer.get_private_key_raw() == (1).to_bytes(32, "big")
        assert signer.get_private_key() == "00" * 31 + "01"

    def test_wif_round_trip(self) -> None:
        signer = BitcoinSigner.from_wif(WIF_ONE_MAINNET, "mainnet")

        assert signer.to_wif() == WIF_ONE_MAINNET

    def test_signet_wif_round_trip(self) -> None:
        setup("testnet")
        signer = BitcoinSigner(PrivateKey(secret_exponent=7), "signet")
        restored = BitcoinSigner.from_wif(signer.to_wif(), "signet")

        assert restored.get_public_key() == signer.get_public_key()
        assert restored.get_address() == signer.get_address()

    def test_unsupported_network(self) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            BitcoinSigner.from_wif(WIF_ONE_MAINNET, "liquid")

    @pytest.mark.parametrize("wif", ["", "   "])
    def test_empty_wif_rejected(self, wif: str) -> None:
        with pytest.raises(InvalidKeyError, match="required"):
            BitcoinSigner.from_wif(wif, "signet")

    def test_malformed_wif_rejected(self) -> None:
        with pytest.raises(InvalidKeyError):
            BitcoinSigner.from_wif("not-a-wif", "signet")


class TestSignMessage:
    @pytest.mark.asyncio
    async def test_ecdsa_signature_verifies(self) -> None:
        signer = BitcoinSigner.from_wif(WIF_ONE_MAINNET, "mainnet")

        signature = await signer.sign_message("unstake 1 deposit")

        assert len(base64.b64decode(signature)) == 65
        assert verify_message(PUBKEY_ONE, "unstake 1 deposit", signature)
        assert not verify_message(PUBKEY_ONE, "unstake 2 deposits", signature)

    @pytest.mark.asyncio
    async def test_bip322_is_not_implemented(self) -> None:
        signer = BitcoinSigner.from_wif(WIF_ONE_MAINNET, "mainnet")

        with pytest.raises(NotImplementedError):
            await signer.sign_message("hello", Bip322Full(address=signer.get_address()))

    @pytest.mark.asyncio
    async def test_unknown_signature_type(self) -> None:
        signer = BitcoinSigner.from_wif(WIF_ONE_MAINNET, "mainnet")

        with pytest.raises(UnimplementedSignatureError, match="Unknown"):
            await signer.sign_message("hello", "Schnorr")


class TestSignPsbt:
    @pytest.mark.asyncio
    async def test_signs_all_inputs_and_finalizes(self, fake_psbt: type[FakePSBT]) -> None:
        signer = BitcoinSigner.from_wif(WIF_ONE_MAINNET, "mainnet")

        signed = await signer.sign_psbt("70736274ff")

        psbt = fake_psbt.instances[0]
        assert psbt.raw == bytes.fromhex("70736274ff")
        assert psbt.signed == [0, 1, 2]
        assert psbt.finalized
        assert signed == (b"\x70\x73\x62\x74\xff" + b"-signed").hex()

    @pytest.mark.asyncio
    async def test_signs_selected_inputs_without_finalizing(self, fake_psbt: type[FakePSBT]) -> None:
        signer = BitcoinSigner.from_wif(WIF_ONE_MAINNET, "mainnet")
        options = SignPsbtOptions(
            auto_finalized=False,
            to_sign_inputs=[ToSignInput(index=1, public_key=PUBKEY_ONE)],
        )

        await signer.sign_psbt("70736274ff", options)

        psbt = fake_psbt.instances[0]
        assert psbt.signed == [1]
        assert not psbt.finalized

    @pytest.mark.asyncio
    async def test_empty_selection_signs_nothing(self, fake_psbt: type[FakePSBT]) -> None:
        signer = BitcoinSigner.from_wif(WIF_ONE_MAINNET, "mainnet")

        await signer.sign_psbt("70736274ff", SignPsbtOptions(auto_finalized=False, to_sign_inputs=[]))

        assert fake_psbt.instances[0].signed == []

    @pytest.mark.asyncio
    async def test_finalize_failure_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(signer_module, "PSBT", FailingFinalizePSBT)
        signer = BitcoinSigner.from_wif(WIF_ONE_MAINNET, "mainnet")

        with pytest.raises(SigningError):
            await signer.sign_psbt("70736274ff")


def test_psbt_encoding_helpers() -> None:
    assert psbt_hex_to_base64("70736274ff") == "cHNidP8="
    assert psbt_base64_to_hex("cHNidP8=") == "70736274ff"
