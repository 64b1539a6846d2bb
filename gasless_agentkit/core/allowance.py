"""
Token allowance management.

Decides whether a spender may already move the account's tokens and, when
not, submits an approval through the TransactionSubmitter.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import httpx

from .errors import NetworkError
from .execution.models import AllowanceState, Confirmed, ConfirmationParams, SubmissionResult
from .execution.submitter import TransactionSubmitter
from .execution.tracker import ConfirmationTracker
from .execution.tx_builder import MAX_UINT256, TransactionBuilder
from ..providers.base import ProviderError
from ..services.address import NATIVE_TOKEN_ADDRESSES, is_native_token
from ..services.tokens import ERC20_METADATA_ABI

if TYPE_CHECKING:
    from .account.base import SmartAccount

logger = logging.getLogger(__name__)

__all__ = ["AllowanceManager", "NATIVE_TOKEN_ADDRESSES"]


class AllowanceManager:
    """
    Approve-if-needed logic for ERC-20 spenders.

    | current vs required | approve_max | action                 |
    |---------------------|-------------|------------------------|
    | current >= required | False       | nothing, success       |
    | current >= required | True        | approve max anyway     |
    | current <  required | False       | approve exactly needed |
    | current <  required | True        | approve max            |

    Allowances are read fresh on every call.
    """

    def __init__(
        self,
        submitter: Optional[TransactionSubmitter] = None,
        confirmation_params: Optional[ConfirmationParams] = None,
    ):
        self.submitter = submitter or TransactionSubmitter()
        self.confirmation_params = confirmation_params

    async def check_allowance(
        self,
        account: "SmartAccount",
        token: str,
        spender: str,
        required: int,
    ) -> AllowanceState:
        owner = await account.get_address()
        current = await account.read_contract(ERC20_METADATA_ABI, token, "allowance", [owner, spender])
        return AllowanceState(current=int(current), required=required, spender=spender, token=token)

    async def ensure_allowance(
        self,
        account: "SmartAccount",
        token: str,
        spender: str,
        required_amount: int,
        approve_max: bool = False,
        wait: bool = False,
    ) -> SubmissionResult:
        """
        Make sure `spender` can move `required_amount` of `token`.

        Args:
            account: Token owner
            token: ERC-20 address; native sentinels need no approval
            spender: Contract that will pull the tokens
            required_amount: Amount in base units
            approve_max: Approve 2**256-1 regardless of the current allowance
            wait: Track the approval until it is confirmed

        Returns:
            SubmissionResult; `operation_handle` is None when nothing was sent
        """
        if is_native_token(token):
            return SubmissionResult.skipped("Native token, no approval needed")

        try:
            state = await self.check_allowance(account, token, spender, required_amount)
        except (ProviderError, httpx.HTTPError) as exc:
            return SubmissionResult(
                success=False,
                error=NetworkError(f"Could not read allowance for {token}: {exc}"),
            )

        logger.info(f"Current allowance: {state.current}, Required: {state.required}")
        if state.is_sufficient and not approve_max:
            logger.info("Allowance is sufficient, no need to approve")
            return SubmissionResult.skipped("Allowance is sufficient")

        amount = MAX_UINT256 if approve_max else required_amount
        request = TransactionBuilder.build_erc20_approve(token, spender, amount)
        result = await self.submitter.submit(account, request)
        if not result.success:
            return result

        logger.info(f"Approval submitted for {token} to {spender}: {result.operation_handle}")
        if not wait:
            return result

        tracker = ConfirmationTracker(account, result.operation_handle, self.confirmation_params)
        status = await tracker.wait()
        if isinstance(status, Confirmed):
            return result
        reason = getattr(status, "reason", None) or "Approval was not confirmed"
        return SubmissionResult(
            success=False,
            operation_handle=result.operation_handle,
            error=NetworkError(f"Approval {result.operation_handle} not confirmed: {reason}"),
        )
