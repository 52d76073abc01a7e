"""
BitHive relayer JSON-RPC client.
"""

import asyncio
import time
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

import httpx
import structlog
from pydantic import BaseModel

from .deposits import DepositRef
from .errors import RelayerRPCError, WaitTimeoutError
from .models import Account, Deposit

logger = structlog.get_logger()

Seconds = Union[float, timedelta]


def to_seconds(value: Seconds) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class RelayerRPCConfig(BaseModel):
    """Configuration for the relayer connection."""

    url: str
    timeout: float = 30.0


def _compact(params: dict[str, Any]) -> dict[str, Any]:
    """Drop unset optional parameters."""
    return {k: v for k, v in params.items() if v is not None}


class _Namespace:
    def __init__(self, client: "RelayerClient"):
        self._client = client

    async def _call(self, method: str, params: dict[str, Any]) -> Any:
        return await self._client.call(method, params)


class DepositApi(_Namespace):
    """Staking (deposit) endpoints."""

    async def build_unsigned_psbt(
        self,
        public_key: str,
        address: str,
        amount: int,
        fee: Optional[int] = None,
        fee_rate: Optional[float] = None,
    ) -> str:
        result = await self._call(
            "deposit.buildUnsignedPsbt",
            _compact(
                {
                    "publicKey": public_key,
                    "address": address,
                    "amount": amount,
                    "fee": fee,
                    "feeRate": fee_rate,
                }
            ),
        )
        return result["psbt"]

    async def submit_finalized_psbt(self, psbt: str, public_key: str) -> str:
        result = await self._call(
            "deposit.submitFinalizedPsbt", {"psbt": psbt, "publicKey": public_key}
        )
        return result["txHash"]


class UnstakeApi(_Namespace):
    """Unstaking endpoints."""

    async def build_unsigned_message(
        self,
        public_key: str,
        deposits: Optional[Sequence[DepositRef]] = None,
        amount: Optional[int] = None,
    ) -> str:
        params = _compact(
            {
                "publicKey": public_key,
                "deposits": [d.to_params() for d in deposits] if deposits else None,
                "amount": amount,
            }
        )
        result = await self._call("unstake.buildUnsignedMessage", params)
        return result["message"]

    async def submit_signature(
        self,
        public_key: str,
        signature: str,
        deposits: Optional[Sequence[DepositRef]] = None,
        amount: Optional[int] = None,
    ) -> None:
        params = _compact(
            {
                "publicKey": public_key,
                "signature": signature,
                "deposits": [d.to_params() for d in deposits] if deposits else None,
                "amount": amount,
            }
        )
        await self._call("unstake.submitSignature", params)

    async def wait_until_unstaked(self, public_key: str, amount: int, timeout: Seconds) -> None:
        """Wait on the relayer side until an amount-based unstake is confirmed."""
        await self._call(
            "unstake.waitUntilUnstaked",
            {
                "publicKey": public_key,
                "amount": amount,
                "timeout": int(to_seconds(timeout) * 1000),
            },
        )


class WithdrawApi(_Namespace):
    """Withdrawal endpoints."""

    async def build_unsigned_psbt(
        self,
        public_key: str,
        recipient_address: str,
        deposits: Optional[Sequence[DepositRef]] = None,
        amount: Optional[int] = None,
        fee: Optional[int] = None,
        fee_rate: Optional[float] = None,
    ) -> tuple[str, list[DepositRef]]:
        """
        Build the withdrawal PSBT.

        Returns:
            (psbt, deposits) where deposits are the inputs the relayer selected
        """
        params = _compact(
            {
                "publicKey": public_key,
                "recipientAddress": recipient_address,
                "deposits": [d.to_params() for d in deposits] if deposits else None,
                "amount": amount,
                "fee": fee,
                "feeRate": fee_rate,
            }
        )
        result = await self._call("withdraw.buildUnsignedPsbt", params)
        selected = result.get("deposits")
        if selected:
            refs = [DepositRef(d["txHash"], d.get("vout", 0)) for d in selected]
        else:
            refs = list(deposits or [])
        return result["psbt"], refs

    async def chain_sign_psbt_async(self, psbt: str) -> str:
        """Request the chain signature. Returns the signing request id."""
        result = await self._call("withdraw.chainSignPsbtAsync", {"psbt": psbt})
        return result["id"]

    async def get_chain_signed_psbt(self, request_id: str) -> Optional[str]:
        result = await self._call("withdraw.getChainSignedPsbt", {"id": request_id})
        if not result:
            return None
        return result.get("psbt")

    async def poll_chain_signed_psbt(
        self,
        request_id: str,
        interval: Seconds = 5.0,
        timeout: Seconds = 600.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> str:
        """Poll until the chain signature is ready and return the signed PSBT."""
        deadline = time.monotonic() + to_seconds(timeout)
        while True:
            psbt = await self.get_chain_signed_psbt(request_id)
            if psbt:
                return psbt
            if time.monotonic() > deadline:
                raise WaitTimeoutError(
                    f"Chain signature request {request_id} not fulfilled in {to_seconds(timeout)}s",
                    timeout=to_seconds(timeout),
                )
            logger.debug("chain_signature_pending", request_id=request_id)
            await sleep(to_seconds(interval))

    async def submit_finalized_psbt(self, psbt: str) -> str:
        result = await self._call("withdraw.submitFinalizedPsbt", {"psbt": psbt})
        return result["txHash"]


class UserApi(_Namespace):
    """Account and deposit queries."""

    async def get_deposit(self, public_key: str, tx_hash: str, vout: int = 0) -> Deposit:
        result = await self._call(
            "user.getDeposit", {"publicKey": public_key, "txHash": tx_hash, "vout": vout}
        )
        return Deposit.model_validate(result["deposit"])

    async def get_deposits(self, public_key: str) -> list[Deposit]:
        result = await self._call("user.getDeposits", {"publicKey": public_key})
        return [Deposit.model_validate(d) for d in result["deposits"]]

    async def get_account(self, public_key: str) -> Account:
        result = await self._call("user.getAccount", {"publicKey": public_key})
        return Account.model_validate(result["account"])


class RelayerClient:
    """
    Async BitHive relayer client.

    Requests are JSON-RPC 2.0 calls; endpoints are grouped the way the
    relayer groups them (deposit, unstake, withdraw, user).
    """

    def __init__(
        self,
        config: RelayerRPCConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport
        self._request_id = 0

        self.deposit = DepositApi(self)
        self.unstake = UnstakeApi(self)
        self.withdraw = WithdrawApi(self)
        self.user = UserApi(self)

    @classmethod
    def from_url(cls, url: str, timeout: float = 30.0) -> "RelayerClient":
        return cls(RelayerRPCConfig(url=url, timeout=timeout))

    async def call(self, method: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Make RPC call."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or {},
        }

        async with httpx.AsyncClient(
            timeout=self.config.timeout, transport=self._transport
        ) as client:
            response = await client.post(self.config.url, json=payload)
            response.raise_for_status()
            result = response.json()

        if result.get("error"):
            error = result["error"]
            logger.warning("relayer_rpc_error", method=method, error=error)
            raise RelayerRPCError(error.get("code", -1), error.get("message", "Unknown error"))

        return result.get("result")
