"""
Build, sign and submit staking, unstaking and withdrawal requests.

The relayer builds the PSBT (or the unstaking message), the provider signs it
locally, and the relayer broadcasts it and relays it to the BitHive contract.
"""

import base64
from dataclasses import dataclass, field
from typing import Optional, Sequence

import structlog

from .deposits import (
    ByAmount,
    DepositRef,
    DepositsInput,
    DepositsOrAmount,
    format_deposit,
    format_deposits,
    parse_amount,
    parse_deposits_input,
    select_deposits,
)
from .errors import DepositNotFoundError, DepositStatusError, UnsupportedCapabilityError
from .models import Deposit
from .operations import OPERATION_NAME_MAP, READY_STATUS_MAP, Operation
from .rpc import RelayerClient
from .signer import BitcoinProvider, SignPsbtOptions, ToSignInput
from .waiter import query_deposits

logger = structlog.get_logger()


@dataclass
class StakeResult:
    tx_hash: str


@dataclass
class WithdrawResult:
    tx_hash: str
    deposits: list[DepositRef] = field(default_factory=list)


def _require(provider: BitcoinProvider, method: str) -> None:
    if not callable(getattr(provider, method, None)):
        raise UnsupportedCapabilityError(f"{method} is not supported")


async def ensure_ready(
    client: RelayerClient,
    operation: Operation,
    public_key: str,
    deposits: Sequence[DepositRef],
) -> list[Deposit]:
    """
    Check that every deposit exists and can start the operation.

    Raises:
        DepositNotFoundError: no deposit matched
        DepositStatusError: a deposit is not ready for the operation
    """
    records = await query_deposits(client, public_key, deposits)
    if not records:
        raise DepositNotFoundError(f"The deposits ({format_deposits(deposits)}) are not found")

    ready = READY_STATUS_MAP[operation]
    for record in records:
        if record.status not in ready:
            raise DepositStatusError(
                f"The deposit ({format_deposit(record.ref)}) with status ({record.status}) "
                f"is not ready to {OPERATION_NAME_MAP[operation].do}",
                tx_hash=record.deposit_tx_hash,
                vout=record.deposit_vout,
                status=record.status,
            )
    return records


async def stake(
    client: RelayerClient,
    provider: BitcoinProvider,
    public_key: str,
    address: str,
    amount: int,
    fee: Optional[int] = None,
    fee_rate: Optional[float] = None,
) -> StakeResult:
    """
    Stake BTC to BitHive.

    Args:
        provider: wallet with `sign_psbt`
        public_key: user public key (compressed)
        address: user address (native segwit, nested segwit, taproot or legacy)
        amount: amount in sats within the relayer's accepted range
        fee: optional fee in sats
        fee_rate: optional fee rate in sat/vB
    """
    _require(provider, "sign_psbt")
    amount = parse_amount(amount)

    # 1. Build the PSBT that is ready for signing
    unsigned_psbt = await client.deposit.build_unsigned_psbt(
        public_key, address, amount, fee=fee, fee_rate=fee_rate
    )

    # 2. Sign and finalize the PSBT with the wallet
    signed_psbt = await provider.sign_psbt(unsigned_psbt)

    # 3. Submit the finalized PSBT for broadcasting and relaying
    tx_hash = await client.deposit.submit_finalized_psbt(signed_psbt, public_key)

    logger.info("stake_submitted", tx_hash=tx_hash, amount=amount)
    return StakeResult(tx_hash=tx_hash)


async def unstake(
    client: RelayerClient,
    provider: BitcoinProvider,
    public_key: str,
    deposits: DepositsOrAmount,
) -> None:
    """
    Unstake BTC from BitHive, by deposits or by amount.

    Args:
        provider: wallet with `sign_message`
        deposits: deposit tx hash(es), explicit deposits, or an amount in sats
    """
    _require(provider, "sign_message")
    selection = select_deposits(deposits)

    refs: Optional[list[DepositRef]] = None
    amount: Optional[int] = None
    if isinstance(selection, ByAmount):
        amount = selection.sats
    else:
        refs = list(selection.refs)
        await ensure_ready(client, Operation.UNSTAKE, public_key, refs)

    # 1. Build the unstaking message that is ready for signing
    message = await client.unstake.build_unsigned_message(public_key, deposits=refs, amount=amount)

    # 2. Sign the unstaking message with the wallet
    signature = await provider.sign_message(message)

    # 3. Submit the signature; the relayer forwards it to the BitHive contract
    await client.unstake.submit_signature(
        public_key,
        signature=base64_to_hex(signature),
        deposits=refs,
        amount=amount,
    )

    logger.info(
        "unstake_submitted",
        deposits=format_deposits(refs) if refs else None,
        amount=amount,
    )


async def withdraw(
    client: RelayerClient,
    provider: BitcoinProvider,
    public_key: str,
    address: str,
    deposits: DepositsOrAmount,
    fee: Optional[int] = None,
    fee_rate: Optional[float] = None,
    chain_sign_interval: float = 5.0,
    chain_sign_timeout: float = 600.0,
) -> WithdrawResult:
    """
    Withdraw unstaked BTC from BitHive, by deposits or by amount.

    Only one withdrawal PSBT may wait for the chain signature per account:
    if the account already has one, it is resumed instead of building a new
    PSBT.

    Args:
        provider: wallet with `sign_psbt`
        address: recipient address (can differ from the user address)
        deposits: deposit tx hash(es), explicit deposits, or an amount in sats
    """
    selection = select_deposits(deposits)

    refs: Optional[list[DepositRef]] = None
    amount: Optional[int] = None
    if isinstance(selection, ByAmount):
        amount = selection.sats
    else:
        refs = list(selection.refs)
        await ensure_ready(client, Operation.WITHDRAW, public_key, refs)

    account = await client.user.get_account(public_key)

    if account.pending_sign_psbt is not None:
        # A pending PSBT blocks signing a new one
        partially_signed_psbt = account.pending_sign_psbt.psbt
        withdrawn = [d.ref for d in account.pending_sign_psbt.deposits] or list(refs or [])
        logger.warning("resuming_pending_withdrawal", deposits=format_deposits(withdrawn))
    else:
        _require(provider, "sign_psbt")

        # 1. Build the PSBT that is ready for signing
        unsigned_psbt, withdrawn = await client.withdraw.build_unsigned_psbt(
            public_key,
            address,
            deposits=refs,
            amount=amount,
            fee=fee,
            fee_rate=fee_rate,
        )
        # The user inputs come first, one per withdrawn deposit
        if not withdrawn:
            raise DepositNotFoundError(
                f"The relayer selected no deposits to withdraw (amount: {amount})"
            )

        # 2. Sign the user inputs with the wallet. Don't finalize it.
        partially_signed_psbt = await provider.sign_psbt(
            unsigned_psbt,
            SignPsbtOptions(
                auto_finalized=False,
                to_sign_inputs=[
                    ToSignInput(index=index, public_key=public_key)
                    for index in range(len(withdrawn))
                ],
            ),
        )

    # 3. Request the BitHive chain signature asynchronously
    request_id = await client.withdraw.chain_sign_psbt_async(partially_signed_psbt)

    # 4. Poll until the PSBT is co-signed
    fully_signed_psbt = await client.withdraw.poll_chain_signed_psbt(
        request_id, interval=chain_sign_interval, timeout=chain_sign_timeout
    )

    # 5. Submit the finalized PSBT for broadcasting and relaying
    tx_hash = await client.withdraw.submit_finalized_psbt(fully_signed_psbt)

    logger.info("withdrawal_submitted", tx_hash=tx_hash, deposits=format_deposits(withdrawn))
    return WithdrawResult(tx_hash=tx_hash, deposits=withdrawn)


async def list_deposits(
    client: RelayerClient,
    public_key: str,
    deposits: Optional[DepositsInput] = None,
) -> list[Deposit]:
    """List all deposits of the user, or only the given ones."""
    if deposits is None:
        return await client.user.get_deposits(public_key)
    return await query_deposits(client, public_key, parse_deposits_input(deposits))


def base64_to_hex(signature_b64: str) -> str:
    return base64.b64decode(signature_b64).hex()
