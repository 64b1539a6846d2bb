"""Typed models used by the bridge subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class BridgeParams:
    """A cross-chain transfer through a deBridge DLN order."""

    from_chain_id: int
    to_chain_id: int
    token_in_address: str
    token_out_address: str
    amount: str
    recipient_address: Optional[str] = None
    slippage: str = "1"
    approve_max: bool = False
    pay_protocol_fee: bool = True
    wait: bool = False


@dataclass
class PreliminaryApproval:
    """Spender/amount a quote asks to be approved before it can be executed."""

    spender: str
    amount: int


@dataclass
class BridgeResult:
    """Structured bridge outcome; `message` is what the agent sees."""

    status: str  # submitted | confirmed | pending | failed | error
    message: str
    operation_handle: Optional[str] = None
    quote_requests: int = 0
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status in {"submitted", "confirmed", "pending"}
