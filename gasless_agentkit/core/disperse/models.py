"""Typed models used by the batch transfer flow."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from ..execution.models import BatchItem


@dataclass
class DisperseParams:
    recipients: List[BatchItem]
    token_address: str


@dataclass
class TransferOutcome:
    """Result of one recipient's transfer."""

    recipient: str
    amount: str
    success: bool
    operation_handle: Optional[str] = None
    error: Optional[str] = None


@dataclass
class DisperseResult:
    status: str  # completed | invalid | error
    message: str
    outcomes: List[TransferOutcome] = field(default_factory=list)
    total_requested: Decimal = Decimal(0)
    total_sent: Decimal = Decimal(0)

    @property
    def submitted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)
