"""
ERC-4337 Paymaster Provider.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from .base import JsonRpcProvider, ProviderError
from ..config import settings
from ..core.execution.models import SponsorshipMode
from ..core.execution.userop import SponsorshipData, UserOperation


class PaymasterError(ProviderError):
    """Paymaster provider error."""
    pass


class PaymasterProvider(JsonRpcProvider):
    name = "paymaster"
    timeout_s = 20
    error_class = PaymasterError

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        rpc_method: Optional[str] = None,
    ) -> None:
        super().__init__(rpc_url or settings.paymaster_url, client)
        self.rpc_method = rpc_method or settings.paymaster_rpc_method

    async def sponsor_user_operation(
        self,
        user_op: UserOperation,
        entry_point: str,
        mode: SponsorshipMode = SponsorshipMode.SPONSORED,
        context: Optional[Dict[str, Any]] = None,
    ) -> SponsorshipData:
        sponsorship_context = {"mode": mode.value}
        if context:
            sponsorship_context.update(context)

        result = await self._rpc_call(
            self.rpc_method,
            [user_op.to_rpc_dict(), entry_point, sponsorship_context],
        )
        sponsorship = SponsorshipData.from_rpc(result)
        if sponsorship is None:
            raise PaymasterError("Invalid paymaster response")
        return sponsorship
