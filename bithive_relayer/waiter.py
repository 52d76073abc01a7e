"""
Wait for deposits to finish staking, unstaking or withdrawal.

The relayer owns the deposit state machine. The waiter polls the status of
each deposit until none of them is pending for the requested operation, or
until the timeout is reached.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Sequence

import structlog

from .deposits import (
    ByAmount,
    DepositRef,
    DepositsInput,
    DepositsOrAmount,
    format_deposit,
    format_deposits,
    parse_deposits_input,
    select_deposits,
)
from .errors import DepositNotFoundError, DepositStatusError, WaitTimeoutError
from .models import Deposit
from .operations import DEPOSIT_STATUS_MAP, OPERATION_NAME_MAP, Operation, StatusBucket
from .rpc import RelayerClient, Seconds, to_seconds

if TYPE_CHECKING:
    from .config import Settings

logger = structlog.get_logger()

DEFAULT_WAIT_INTERVAL = timedelta(minutes=2)
DEFAULT_WAIT_TIMEOUT = timedelta(hours=1)


@dataclass
class WaitOutcome:
    """Counts of deposits per terminal classification."""

    success: int = 0
    failure: int = 0
    invalid: int = 0

    @property
    def total(self) -> int:
        return self.success + self.failure + self.invalid


async def query_deposits(
    client: RelayerClient, public_key: str, deposits: Sequence[DepositRef]
) -> list[Deposit]:
    """Fetch the relayer records of the given deposits concurrently."""
    return list(
        await asyncio.gather(
            *(client.user.get_deposit(public_key, d.tx_hash, d.vout) for d in deposits)
        )
    )


class DepositWaiter:
    """Polls the relayer until deposits leave the pending state of an operation."""

    def __init__(
        self,
        client: RelayerClient,
        interval: Seconds = DEFAULT_WAIT_INTERVAL,
        default_timeout: Seconds = DEFAULT_WAIT_TIMEOUT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.interval = to_seconds(interval)
        self.default_timeout = to_seconds(default_timeout)
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, client: RelayerClient, settings: "Settings") -> "DepositWaiter":
        return cls(
            client,
            interval=settings.wait_interval_seconds,
            default_timeout=settings.wait_timeout_seconds,
        )

    async def wait_for_operation(
        self,
        operation: Operation,
        public_key: str,
        deposits: DepositsInput,
        timeout: Optional[Seconds] = None,
    ) -> WaitOutcome:
        """
        Wait until every deposit leaves the pending state of the operation.

        Raises:
            DepositNotFoundError: no deposit matched
            DepositStatusError: a deposit has not started the operation
            WaitTimeoutError: deposits still pending when the timeout elapsed
        """
        operation = Operation(operation)
        statuses = DEPOSIT_STATUS_MAP[operation]
        names = OPERATION_NAME_MAP[operation]
        timeout_s = self.default_timeout if timeout is None else to_seconds(timeout)

        pending = parse_deposits_input(deposits)
        records = await query_deposits(self.client, public_key, pending)
        if not records:
            raise DepositNotFoundError(f"The deposits ({format_deposits(pending)}) are not found")
        for record in records:
            if record.status not in statuses.pending:
                raise DepositStatusError(
                    f"The deposit ({format_deposit(record.ref)}) with status "
                    f"({record.status}) hasn't started {names.doing}",
                    tx_hash=record.deposit_tx_hash,
                    vout=record.deposit_vout,
                    status=record.status,
                )

        outcome = WaitOutcome()
        start = self._clock()
        while True:
            if self._clock() - start > timeout_s:
                raise WaitTimeoutError(
                    f"Waiting timeout {timeout_s}s reached for {names.doing} "
                    f"({format_deposits(pending)})",
                    pending=pending,
                    timeout=timeout_s,
                )

            records = await query_deposits(self.client, public_key, pending)
            still_pending: list[DepositRef] = []
            for ref, record in zip(pending, records):
                bucket = statuses.classify(record.status)
                if bucket is StatusBucket.SUCCESS:
                    logger.info(
                        "deposit_operation_succeeded",
                        deposit=format_deposit(ref),
                        operation=names.done,
                    )
                    outcome.success += 1
                elif bucket is StatusBucket.PENDING:
                    still_pending.append(ref)
                elif bucket is StatusBucket.FAILURE:
                    logger.error(
                        "deposit_operation_failed",
                        deposit=format_deposit(ref),
                        operation=names.do,
                        status=record.status,
                    )
                    outcome.failure += 1
                else:
                    logger.error(
                        "deposit_status_invalid",
                        deposit=format_deposit(ref),
                        operation=names.doing,
                        status=record.status,
                    )
                    outcome.invalid += 1

            if not still_pending:
                break

            logger.info(
                "deposits_still_pending",
                operation=names.doing,
                deposits=format_deposits(still_pending),
                retry_in_seconds=self.interval,
            )
            pending = still_pending
            await self._sleep(self.interval)

        logger.info(
            "deposit_wait_finished",
            operation=names.doing,
            success=outcome.success,
            failure=outcome.failure,
            invalid=outcome.invalid,
        )
        return outcome

    async def wait_until_staked(
        self, public_key: str, deposits: DepositsInput, timeout: Optional[Seconds] = None
    ) -> WaitOutcome:
        return await self.wait_for_operation(Operation.STAKE, public_key, deposits, timeout)

    async def wait_until_unstaked(
        self, public_key: str, deposits: DepositsOrAmount, timeout: Optional[Seconds] = None
    ) -> Optional[WaitOutcome]:
        """
        Wait until deposits are unstaked.

        An amount-based unstake is tracked by the relayer itself, so it is
        delegated to the relayer's wait endpoint and returns None.
        """
        selection = select_deposits(deposits)
        if isinstance(selection, ByAmount):
            timeout_s = self.default_timeout if timeout is None else to_seconds(timeout)
            logger.info("waiting_for_unstake_amount", amount=selection.sats)
            await self.client.unstake.wait_until_unstaked(public_key, selection.sats, timeout_s)
            return None
        return await self.wait_for_operation(
            Operation.UNSTAKE, public_key, list(selection.refs), timeout
        )

    async def wait_until_withdrawn(
        self, public_key: str, deposits: DepositsInput, timeout: Optional[Seconds] = None
    ) -> WaitOutcome:
        return await self.wait_for_operation(Operation.WITHDRAW, public_key, deposits, timeout)
