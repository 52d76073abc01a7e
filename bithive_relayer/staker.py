"""
High level staker bound to one signer.
"""

from typing import Optional

import structlog

from .deposits import ByAmount, DepositsOrAmount, select_deposits
from .helpers import sats_to_btc, tx_url
from .rpc import RelayerClient
from .signer import BitcoinSigner
from .transactions import WithdrawResult, stake, unstake, withdraw
from .waiter import DepositWaiter

logger = structlog.get_logger()


class BitHiveStaker:
    """
    Stakes, unstakes and withdraws with a local signer, and by default
    waits for each operation to be confirmed by the relayer.
    """

    def __init__(
        self,
        signer: BitcoinSigner,
        client: RelayerClient,
        waiter: Optional[DepositWaiter] = None,
    ):
        self.signer = signer
        self.client = client
        self.waiter = waiter or DepositWaiter(client)

    @property
    def public_key(self) -> str:
        return self.signer.get_public_key()

    async def stake(
        self,
        amount: int,
        fee: Optional[int] = None,
        fee_rate: Optional[float] = None,
        wait: bool = True,
    ) -> str:
        """Stake `amount` sats. Returns the staking tx hash."""
        address = self.signer.get_address()
        logger.info("staking", btc=str(sats_to_btc(amount)), address=address)

        result = await stake(
            self.client,
            self.signer,
            self.public_key,
            address,
            amount,
            fee=fee,
            fee_rate=fee_rate,
        )
        logger.info("staking_tx_broadcasted", url=tx_url(self.signer.network, result.tx_hash))

        if wait:
            await self.waiter.wait_until_staked(self.public_key, result.tx_hash)
        return result.tx_hash

    async def unstake(self, deposits: DepositsOrAmount, wait: bool = True) -> None:
        """Unstake deposits, or an amount in sats."""
        selection = select_deposits(deposits)
        if isinstance(selection, ByAmount):
            logger.info("unstaking", btc=str(sats_to_btc(selection.sats)))
        else:
            logger.info("unstaking", deposits=len(selection.refs))

        await unstake(self.client, self.signer, self.public_key, deposits)

        if wait:
            await self.waiter.wait_until_unstaked(self.public_key, deposits)

    async def withdraw(
        self,
        deposits: DepositsOrAmount,
        fee: Optional[int] = None,
        fee_rate: Optional[float] = None,
        wait: bool = True,
    ) -> WithdrawResult:
        """Withdraw unstaked deposits, or an amount in sats, to the signer's address."""
        address = self.signer.get_address()
        logger.info("withdrawing", address=address)

        result = await withdraw(
            self.client,
            self.signer,
            self.public_key,
            address,
            deposits,
            fee=fee,
            fee_rate=fee_rate,
        )
        logger.info(
            "withdrawal_tx_broadcasted", url=tx_url(self.signer.network, result.tx_hash)
        )

        if wait and result.deposits:
            await self.waiter.wait_until_withdrawn(self.public_key, result.deposits)
        return result
