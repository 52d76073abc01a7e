"""
Example scenarios runnable from the command line.

Each scenario drives the relayer end to end with the configured key:

    stake               stake 0.00005 BTC and list the user's deposits
    unstake             stake, unstake and withdraw 0.00005 BTC
    fee                 the same with a custom fee of 400 sats
    staker              the same through BitHiveStaker
    deposits            list the user's deposits
    partial-withdrawal  stake 0.00005 BTC, unstake and withdraw 0.00003 BTC by amount
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import structlog

from .config import Settings
from .helpers import btc_to_sats, tx_url
from .rpc import RelayerClient
from .signer import BitcoinSigner
from .staker import BitHiveStaker
from .transactions import list_deposits, stake, unstake, withdraw
from .waiter import DepositWaiter

logger = structlog.get_logger()

STAKE_AMOUNT = btc_to_sats("0.00005")
PARTIAL_AMOUNT = btc_to_sats("0.00003")
CUSTOM_FEE = 400


@dataclass
class ScenarioContext:
    """Everything a scenario needs, built once from settings."""

    settings: Settings
    signer: BitcoinSigner
    client: RelayerClient
    waiter: DepositWaiter

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScenarioContext":
        client = RelayerClient.from_url(
            settings.bithive_relayer_rpc_url, timeout=settings.rpc_timeout_seconds
        )
        return cls(
            settings=settings,
            signer=BitcoinSigner.from_wif(
                settings.bitcoin_wif_private_key, settings.bitcoin_network
            ),
            client=client,
            waiter=DepositWaiter.from_settings(client, settings),
        )

    @property
    def public_key(self) -> str:
        return self.signer.get_public_key()

    def tx_url(self, tx_hash: str) -> str:
        return tx_url(self.signer.network, tx_hash)


async def run_stake(ctx: ScenarioContext) -> None:
    address = ctx.signer.get_address()

    logger.info("staking", btc="0.00005")
    result = await stake(ctx.client, ctx.signer, ctx.public_key, address, STAKE_AMOUNT)
    await ctx.waiter.wait_until_staked(ctx.public_key, result.tx_hash)
    logger.info("staked_btc_confirmed", url=ctx.tx_url(result.tx_hash))

    await run_deposits(ctx)


async def _stake_unstake_withdraw(ctx: ScenarioContext, fee: Optional[int] = None) -> None:
    address = ctx.signer.get_address()

    logger.info("staking", btc="0.00005", fee=fee)
    staked = await stake(ctx.client, ctx.signer, ctx.public_key, address, STAKE_AMOUNT, fee=fee)
    await ctx.waiter.wait_until_staked(ctx.public_key, staked.tx_hash)
    logger.info("staked_btc_confirmed", url=ctx.tx_url(staked.tx_hash))

    logger.info("unstaking", deposit=staked.tx_hash)
    await unstake(ctx.client, ctx.signer, ctx.public_key, staked.tx_hash)
    await ctx.waiter.wait_until_unstaked(ctx.public_key, staked.tx_hash)
    logger.info("unstaked_btc_confirmed")

    logger.info("withdrawing", deposit=staked.tx_hash, fee=fee)
    withdrawal = await withdraw(
        ctx.client, ctx.signer, ctx.public_key, address, staked.tx_hash, fee=fee
    )
    await ctx.waiter.wait_until_withdrawn(ctx.public_key, staked.tx_hash)
    logger.info("withdrawn_btc_confirmed", url=ctx.tx_url(withdrawal.tx_hash))


async def run_unstake(ctx: ScenarioContext) -> None:
    await _stake_unstake_withdraw(ctx)


async def run_fee(ctx: ScenarioContext) -> None:
    await _stake_unstake_withdraw(ctx, fee=CUSTOM_FEE)


async def run_staker(ctx: ScenarioContext) -> None:
    staker = BitHiveStaker(ctx.signer, ctx.client, ctx.waiter)
    tx_hash = await staker.stake(STAKE_AMOUNT)
    await staker.unstake(tx_hash)
    await staker.withdraw(tx_hash)


async def run_deposits(ctx: ScenarioContext) -> None:
    deposits = await list_deposits(ctx.client, ctx.public_key)
    for deposit in deposits:
        logger.info("deposit", **deposit.model_dump(exclude_none=True))
    logger.info("deposits_listed", public_key=ctx.public_key, count=len(deposits))


async def run_partial_withdrawal(ctx: ScenarioContext) -> None:
    address = ctx.signer.get_address()

    logger.info("staking", btc="0.00005")
    staked = await stake(ctx.client, ctx.signer, ctx.public_key, address, STAKE_AMOUNT)
    await ctx.waiter.wait_until_staked(ctx.public_key, staked.tx_hash)
    logger.info("staked_btc_confirmed", url=ctx.tx_url(staked.tx_hash))

    # Unstake by amount rather than by deposit
    logger.info("unstaking", btc="0.00003")
    await unstake(ctx.client, ctx.signer, ctx.public_key, PARTIAL_AMOUNT)
    await ctx.waiter.wait_until_unstaked(ctx.public_key, PARTIAL_AMOUNT)
    logger.info("unstaked_btc_confirmed")

    # The remaining 0.00002 BTC is redeposited by the relayer
    logger.info("withdrawing", btc="0.00003")
    withdrawal = await withdraw(ctx.client, ctx.signer, ctx.public_key, address, PARTIAL_AMOUNT)
    await ctx.waiter.wait_until_withdrawn(ctx.public_key, withdrawal.deposits)
    logger.info("withdrawn_btc_confirmed", url=ctx.tx_url(withdrawal.tx_hash))


SCENARIOS: dict[str, Callable[[ScenarioContext], Awaitable[None]]] = {
    "stake": run_stake,
    "unstake": run_unstake,
    "fee": run_fee,
    "staker": run_staker,
    "deposits": run_deposits,
    "partial-withdrawal": run_partial_withdrawal,
}
