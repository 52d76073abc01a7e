"""
Small helpers shared by the examples.
"""

from decimal import Decimal
from typing import Union

SATS_PER_BTC = Decimal("100000000")

SUPPORTED_NETWORKS = ("mainnet", "testnet", "testnet4", "signet", "regtest")


def sats_to_btc(sats: int) -> Decimal:
    """
    Convert satoshis to BTC with exact precision.

    Examples:
        >>> sats_to_btc(5000)
        Decimal('0.00005')
    """
    return (Decimal(sats) / SATS_PER_BTC).normalize()


def btc_to_sats(value: Union[int, str, Decimal]) -> int:
    """Convert a BTC amount to satoshis, rejecting fractional satoshis."""
    sats = Decimal(str(value)) * SATS_PER_BTC
    if sats != sats.to_integral_value():
        raise ValueError(f"BTC value {value} results in fractional satoshis: {sats}")
    return int(sats)


def get_bitcoin_network(name: str) -> str:
    """Validate and normalize a network name."""
    network = name.strip().lower()
    if network not in SUPPORTED_NETWORKS:
        raise ValueError(f"Unsupported Bitcoin network: {name}")
    return network


def tx_url(network: str, tx_hash: str) -> str:
    """mempool.space explorer link for a transaction."""
    if network == "mainnet":
        return f"https://mempool.space/tx/{tx_hash}"
    return f"https://mempool.space/{network}/tx/{tx_hash}"
