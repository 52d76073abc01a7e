from decimal import Decimal

import pytest

from bithive_relayer.helpers import btc_to_sats, get_bitcoin_network, sats_to_btc, tx_url


class TestAmounts:
    def test_sats_to_btc(self) -> None:
        assert sats_to_btc(5000) == Decimal("0.00005")
        assert sats_to_btc(100_000_000) == Decimal("1")

    def test_btc_to_sats(self) -> None:
        assert btc_to_sats("0.00005") == 5000
        assert btc_to_sats(1) == 100_000_000

    def test_fractional_sats_rejected(self) -> None:
        with pytest.raises(ValueError, match="fractional"):
            btc_to_sats("0.000000001")


class TestNetworks:
    @pytest.mark.parametrize("name", ["mainnet", "Signet", " testnet4 "])
    def test_supported(self, name: str) -> None:
        assert get_bitcoin_network(name) == name.strip().lower()

    def test_unsupported(self) -> None:
        with pytest.raises(ValueError):
            get_bitcoin_network("liquid")

    def test_tx_url(self) -> None:
        assert tx_url("mainnet", "ab") == "https://mempool.space/tx/ab"
        assert tx_url("signet", "ab") == "https://mempool.space/signet/tx/ab"


def test_scenario_amounts_in_sats() -> None:
    from bithive_relayer.scenarios import PARTIAL_AMOUNT, STAKE_AMOUNT

    assert STAKE_AMOUNT == 5000
    assert PARTIAL_AMOUNT == 3000
