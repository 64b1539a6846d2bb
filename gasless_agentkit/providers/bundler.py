"""
ERC-4337 Bundler Provider.
"""

from __future__ import annotations

from typing import Optional

import httpx

from .base import JsonRpcProvider, ProviderError
from ..config import settings
from ..core.execution.userop import UserOperation, UserOpGasEstimate, UserOpReceipt


class BundlerError(ProviderError):
    """Bundler provider error."""
    pass


class BundlerProvider(JsonRpcProvider):
    name = "bundler"
    timeout_s = 20
    error_class = BundlerError

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(rpc_url or settings.bundler_url, client)

    def get_bundler_url(self) -> str:
        return self.rpc_url

    async def send_user_operation(
        self,
        user_op: UserOperation,
        entry_point: str,
    ) -> str:
        result = await self._rpc_call(
            "eth_sendUserOperation",
            [user_op.to_rpc_dict(), entry_point],
        )
        if not isinstance(result, str):
            raise BundlerError("Invalid bundler response for eth_sendUserOperation")
        return result

    async def estimate_user_operation_gas(
        self,
        user_op: UserOperation,
        entry_point: str,
    ) -> UserOpGasEstimate:
        result = await self._rpc_call(
            "eth_estimateUserOperationGas",
            [user_op.to_rpc_dict(), entry_point],
        )
        if not isinstance(result, dict):
            raise BundlerError("Invalid bundler response for eth_estimateUserOperationGas")
        return UserOpGasEstimate.from_rpc(result)

    async def get_user_operation_receipt(self, user_op_hash: str) -> Optional[UserOpReceipt]:
        """Receipt for an operation handle, or None while it is not yet included."""
        result = await self._rpc_call(
            "eth_getUserOperationReceipt",
            [user_op_hash],
        )
        if not result:
            return None
        if not isinstance(result, dict):
            raise BundlerError("Invalid bundler response for eth_getUserOperationReceipt")
        return UserOpReceipt.from_rpc(user_op_hash, result)
