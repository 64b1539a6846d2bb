"""Typed models used by the swap flow."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class SwapParams:
    """One swap request; either addresses or symbols identify the tokens."""

    amount: str
    token_in: Optional[str] = None
    token_out: Optional[str] = None
    token_in_symbol: Optional[str] = None
    token_out_symbol: Optional[str] = None
    slippage: str = "auto"
    approve_max: bool = False
    wait: bool = False


@dataclass
class SwapResult:
    """Outcome of a swap; `message` is what the agent sees."""

    status: str  # submitted | confirmed | pending | estimation | failed | error
    message: str
    operation_handle: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status in {"submitted", "confirmed", "pending", "estimation"}
