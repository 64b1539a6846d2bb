"""
Transaction Execution Layer

Provides the infrastructure for sponsored execution:
- TransactionBuilder: Builds approval/transfer/quote calls
- TransactionSubmitter: Submits one call through the paymaster
- ConfirmationTracker: Polls an operation handle to a final status

Usage:
    from gasless_agentkit.core.execution import (
        TransactionBuilder,
        TransactionSubmitter,
        ConfirmationTracker,
    )

    request = TransactionBuilder.build_erc20_transfer(token, recipient, amount)
    result = await TransactionSubmitter().submit(account, request)
    if result.success:
        status = await ConfirmationTracker(account, result.operation_handle).wait()
"""

from typing import TYPE_CHECKING

from .models import (
    AllowanceState,
    BatchItem,
    ConfirmationParams,
    ConfirmationStatus,
    Confirmed,
    Failed,
    OperationHandle,
    Pending,
    SendResult,
    SponsorshipMode,
    SubmissionResult,
    TokenBalance,
    TransactionRequest,
)
from .tx_builder import MAX_UINT256, TransactionBuilder

if TYPE_CHECKING:  # pragma: no cover
    from .submitter import TransactionSubmitter
    from .tracker import ConfirmationTracker, wait_for_transaction

__all__ = [
    "AllowanceState",
    "BatchItem",
    "ConfirmationParams",
    "ConfirmationStatus",
    "ConfirmationTracker",
    "Confirmed",
    "Failed",
    "MAX_UINT256",
    "OperationHandle",
    "Pending",
    "SendResult",
    "SponsorshipMode",
    "SubmissionResult",
    "TokenBalance",
    "TransactionBuilder",
    "TransactionRequest",
    "TransactionSubmitter",
    "wait_for_transaction",
]


def __getattr__(name: str):  # pragma: no cover - simple thunk
    if name == "TransactionSubmitter":
        from .submitter import TransactionSubmitter as _TransactionSubmitter

        return _TransactionSubmitter
    if name in ("ConfirmationTracker", "wait_for_transaction"):
        from . import tracker as _tracker

        return getattr(_tracker, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
