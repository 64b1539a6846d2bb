"""
Bundler-backed ERC-4337 smart account.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Optional

from .base import SmartAccount
from .signer import UserOperationSigner
from ..execution.models import SendResult, SponsorshipMode, TransactionRequest
from ..execution.nonce_manager import NonceManager
from ..execution.userop import UserOperation
from ..execution.userop_builder import (
    build_entrypoint_get_nonce_call,
    build_execute_call_data,
    get_user_operation_hash,
)
from ...config import settings
from ...providers.base import ProviderError
from ...providers.bundler import BundlerError, BundlerProvider
from ...providers.paymaster import PaymasterError, PaymasterProvider
from ...providers.rpc import ChainRpcProvider

logger = logging.getLogger(__name__)


# Placeholder signature so bundlers can simulate validation during estimation.
DUMMY_SIGNATURE = "0x" + "ff" * 64 + "1c"

# Starting gas limits, replaced by the bundler estimate.
DEFAULT_CALL_GAS_LIMIT = 200_000
DEFAULT_VERIFICATION_GAS_LIMIT = 150_000
DEFAULT_PRE_VERIFICATION_GAS = 60_000


class BundlerSmartAccount(SmartAccount):
    """
    Smart account that sends sponsored user operations through a bundler.

    The account contract is expected to be deployed already; `init_code` is
    always empty.
    """

    def __init__(
        self,
        address: str,
        signer: UserOperationSigner,
        rpc_provider: ChainRpcProvider,
        bundler: BundlerProvider,
        paymaster: PaymasterProvider,
        entry_point: Optional[str] = None,
        execute_signature: Optional[str] = None,
        *,
        nonce_manager: Optional[NonceManager] = None,
    ) -> None:
        self.address = address
        self.signer = signer
        self.rpc_provider = rpc_provider
        self.bundler = bundler
        self.paymaster = paymaster
        self.entry_point = entry_point or settings.entry_point_address
        self.execute_signature = execute_signature or settings.account_execute_signature
        self.nonce_manager = nonce_manager or NonceManager()

    async def get_address(self) -> str:
        return self.address

    async def get_nonce(self, key: int = 0) -> int:
        """On-chain EntryPoint nonce; does not count operations still pending."""
        result = await self.rpc_provider.call(
            self.entry_point,
            build_entrypoint_get_nonce_call(self.address, key),
        )
        return int(result, 16)

    async def build_user_operation(self, request: TransactionRequest, nonce: int) -> UserOperation:
        gas_price = await self.rpc_provider.get_gas_price()
        priority_fee = await self.rpc_provider.get_max_priority_fee()
        return UserOperation(
            sender=self.address,
            nonce=nonce,
            init_code="0x",
            call_data=build_execute_call_data(
                request.to,
                request.value,
                request.data,
                signature=self.execute_signature,
            ),
            call_gas_limit=DEFAULT_CALL_GAS_LIMIT,
            verification_gas_limit=DEFAULT_VERIFICATION_GAS_LIMIT,
            pre_verification_gas=DEFAULT_PRE_VERIFICATION_GAS,
            max_fee_per_gas=gas_price + priority_fee,
            max_priority_fee_per_gas=priority_fee,
            signature=DUMMY_SIGNATURE,
        )

    async def send_transaction(
        self,
        request: TransactionRequest,
        sponsorship: SponsorshipMode = SponsorshipMode.SPONSORED,
    ) -> SendResult:
        try:
            nonce = await self.nonce_manager.reserve(self.address, self.chain_id, self.get_nonce)
        except ProviderError as exc:
            return SendResult(error=exc.message)

        try:
            user_op = await self.build_user_operation(request, nonce)
            estimate = await self.bundler.estimate_user_operation_gas(user_op, self.entry_point)
            user_op = user_op.with_gas(estimate)

            sponsored = await self.paymaster.sponsor_user_operation(
                user_op, self.entry_point, mode=sponsorship
            )
            user_op = replace(user_op, paymaster_and_data=sponsored.paymaster_and_data)
            if sponsored.gas is not None:
                user_op = user_op.with_gas(sponsored.gas)

            user_op_hash = get_user_operation_hash(user_op, self.entry_point, self.chain_id)
            user_op = replace(user_op, signature=self.signer.sign_user_op_hash(user_op_hash))

            operation_handle = await self.bundler.send_user_operation(user_op, self.entry_point)
        except (BundlerError, PaymasterError) as exc:
            await self.nonce_manager.release(self.address, self.chain_id, nonce)
            logger.warning(f"Sponsored send rejected by {exc.__class__.__name__}: {exc.message}")
            return SendResult(error=exc.message)
        except ProviderError as exc:
            # Chain reads needed to build the operation failed.
            await self.nonce_manager.release(self.address, self.chain_id, nonce)
            return SendResult(error=exc.message)
        except Exception:
            await self.nonce_manager.release(self.address, self.chain_id, nonce)
            raise

        logger.info(f"User operation submitted: {operation_handle} (nonce {nonce})")
        return SendResult(operation_handle=operation_handle)

    async def sign_typed_data(self, payload: Dict[str, Any]) -> str:
        return self.signer.sign_typed_data(payload)
