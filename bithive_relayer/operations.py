"""
Relayer operations and the deposit statuses that belong to each of them.

Statuses are plain strings owned by the relayer. A status that is not listed
for an operation is classified as invalid for that operation.
"""

from dataclasses import dataclass
from enum import Enum


class Operation(str, Enum):
    STAKE = "stake"
    UNSTAKE = "unstake"
    WITHDRAW = "withdraw"


class StatusBucket(str, Enum):
    SUCCESS = "success"
    PENDING = "pending"
    FAILURE = "failure"
    INVALID = "invalid"


@dataclass(frozen=True)
class OperationStatuses:
    """Status sets of one operation."""

    success: frozenset[str]
    pending: frozenset[str]
    failure: frozenset[str]

    def classify(self, status: str) -> StatusBucket:
        if status in self.success:
            return StatusBucket.SUCCESS
        if status in self.pending:
            return StatusBucket.PENDING
        if status in self.failure:
            return StatusBucket.FAILURE
        return StatusBucket.INVALID


@dataclass(frozen=True)
class OperationNames:
    """Verb forms used in log lines and error messages."""

    do: str
    doing: str
    done: str


DEPOSIT_STATUS_MAP: dict[Operation, OperationStatuses] = {
    Operation.STAKE: OperationStatuses(
        success=frozenset({"DepositConfirmed", "DepositConfirmedInvalid"}),
        pending=frozenset({"DepositProcessing"}),
        failure=frozenset({"DepositFailed"}),
    ),
    Operation.UNSTAKE: OperationStatuses(
        success=frozenset({"UnstakeConfirmed"}),
        pending=frozenset({"UnstakeProcessing"}),
        failure=frozenset(),
    ),
    Operation.WITHDRAW: OperationStatuses(
        success=frozenset({"WithdrawConfirmed"}),
        pending=frozenset({"WithdrawProcessing", "ChainSignProcessing"}),
        failure=frozenset({"WithdrawFailed"}),
    ),
}

OPERATION_NAME_MAP: dict[Operation, OperationNames] = {
    Operation.STAKE: OperationNames(do="stake", doing="staking", done="staked"),
    Operation.UNSTAKE: OperationNames(do="unstake", doing="unstaking", done="unstaked"),
    Operation.WITHDRAW: OperationNames(do="withdraw", doing="withdrawing", done="withdrawn"),
}

# Statuses a deposit must be in before the operation can be requested
READY_STATUS_MAP: dict[Operation, frozenset[str]] = {
    Operation.UNSTAKE: frozenset({"DepositConfirmed", "DepositConfirmedInvalid"}),
    Operation.WITHDRAW: frozenset({"UnstakeConfirmed", "ChainSignProcessing"}),
}


def classify_status(operation: Operation, status: str) -> StatusBucket:
    """Classify a deposit status for an operation."""
    return DEPOSIT_STATUS_MAP[Operation(operation)].classify(status)
