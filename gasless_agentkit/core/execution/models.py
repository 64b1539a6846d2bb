"""
Transaction submission and confirmation models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from ..errors import AgentkitError


OperationHandle = str


class SponsorshipMode(str, Enum):
    """How gas is paid for a user operation."""
    SPONSORED = "SPONSORED"


@dataclass(frozen=True)
class TransactionRequest:
    """A single call made from the smart account. Built fresh for every submission."""
    to: str
    data: str = "0x"
    value: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"to": self.to, "data": self.data, "value": hex(self.value)}


@dataclass(frozen=True)
class SendResult:
    """Raw answer of the smart-account service to a send request."""
    operation_handle: Optional[OperationHandle] = None
    error: Optional[str] = None


@dataclass
class SubmissionResult:
    """Outcome of handing a TransactionRequest to the sponsor."""
    success: bool
    operation_handle: Optional[OperationHandle] = None
    error: Optional[AgentkitError] = None
    message: str = ""

    @property
    def error_message(self) -> str:
        if self.error is None:
            return ""
        return self.error.message

    @classmethod
    def skipped(cls, message: str = "") -> "SubmissionResult":
        """Success without any submission (nothing needed to be sent)."""
        return cls(success=True, operation_handle=None, message=message)


@dataclass(frozen=True)
class ConfirmationParams:
    """Polling parameters for a confirmation wait."""
    confirmations: int = 1
    max_duration_ms: int = 30000
    interval_ms: int = 5000

    def __post_init__(self):
        if self.interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        if self.max_duration_ms <= 0:
            raise ValueError("max_duration_ms must be positive")


@dataclass(frozen=True)
class Confirmed:
    """Operation included and buried under enough blocks."""
    block_number: int
    confirmations: int
    receipt: Dict[str, Any] = field(default_factory=dict)
    status: Literal["confirmed"] = "confirmed"

    @property
    def is_final(self) -> bool:
        return True

    @property
    def transaction_hash(self) -> Optional[str]:
        inner = self.receipt.get("receipt") or {}
        return inner.get("transactionHash")


@dataclass(frozen=True)
class Pending:
    """
    No final outcome observed yet.

    `final` marks a pending answer that ends a wait (timeout or cancellation);
    it never means the operation will eventually succeed.
    """
    reason: Optional[str] = None
    final: bool = False
    status: Literal["pending"] = "pending"

    @property
    def is_final(self) -> bool:
        return self.final


@dataclass(frozen=True)
class Failed:
    """Operation reverted, or the status query itself failed."""
    reason: str
    status: Literal["failed"] = "failed"

    @property
    def is_final(self) -> bool:
        return True


ConfirmationStatus = Union[Confirmed, Pending, Failed]


@dataclass(frozen=True)
class AllowanceState:
    """Allowance snapshot; computed per check and never cached."""
    current: int
    required: int
    spender: str
    token: str

    @property
    def is_sufficient(self) -> bool:
        return self.current >= self.required


@dataclass(frozen=True)
class BatchItem:
    """One recipient of a batch transfer; amount is the caller's decimal string."""
    recipient: str
    amount: str


@dataclass(frozen=True)
class TokenBalance:
    address: str
    formatted_amount: str
