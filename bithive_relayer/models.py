"""
Pydantic models for relayer responses.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .deposits import DepositRef


class RelayerModel(BaseModel):
    """Base model accepting the relayer's camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Deposit(RelayerModel):
    """A deposit tracked by the relayer."""

    deposit_tx_hash: str = Field(..., description="Deposit transaction hash")
    deposit_vout: int = Field(0, ge=0, description="Deposit output index")
    deposit_tx_block_hash: Optional[str] = None
    deposit_tx_block_height: Optional[int] = None
    deposit_tx_block_timestamp: Optional[int] = None
    deposit_tx_broadcast_timestamp: Optional[int] = None
    withdraw_tx_hash: Optional[str] = None
    withdraw_vin: Optional[int] = None
    withdraw_tx_block_hash: Optional[str] = None
    withdraw_tx_block_height: Optional[int] = None
    withdraw_tx_block_timestamp: Optional[int] = None
    withdraw_tx_broadcast_timestamp: Optional[int] = None
    status: str = Field(..., description="Relayer deposit status")
    amount: int = Field(0, ge=0, description="Deposit amount in sats")
    points_multiplier: Optional[int] = None

    @property
    def ref(self) -> DepositRef:
        return DepositRef(self.deposit_tx_hash, self.deposit_vout)


class PendingSignPsbt(RelayerModel):
    """A withdrawal PSBT waiting for the chain signature."""

    psbt: str = Field(..., description="Partially signed PSBT (hex)")
    deposits: list[Deposit] = Field(default_factory=list)


class Account(RelayerModel):
    """Relayer account of a user public key."""

    public_key: Optional[str] = None
    pending_sign_psbt: Optional[PendingSignPsbt] = None
