"""DisperseManager sends one sponsored transfer per recipient."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, List, Optional, Tuple

import httpx

from ...config import settings
from ...providers.base import ProviderError
from ...services.address import is_native_token, is_valid_evm_address
from ...services.tokens import NATIVE_DECIMALS, TokenLookupError, get_decimals, parse_units
from ..errors import ValidationError
from ..execution.models import BatchItem, TransactionRequest
from ..execution.submitter import TransactionSubmitter
from ..execution.tx_builder import TransactionBuilder
from .models import DisperseParams, DisperseResult, TransferOutcome

if TYPE_CHECKING:
    from ..account.base import SmartAccount


def _parse_amount(amount: str) -> Optional[Decimal]:
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


def validate_batch(items: List[BatchItem], max_recipients: Optional[int] = None) -> Optional[ValidationError]:
    """
    Check every item before anything is sent.

    Returns one error listing every problem found, or None when the whole
    batch is valid.
    """
    limit = max_recipients or settings.max_disperse_recipients
    if not items:
        return ValidationError("At least one recipient is required", "recipients")
    if len(items) > limit:
        return ValidationError(f"Maximum {limit} recipients allowed per batch", "recipients")

    problems = []
    for index, item in enumerate(items, start=1):
        if not is_valid_evm_address(item.recipient):
            problems.append(f"Invalid address format for recipient {index}: {item.recipient}")
        if _parse_amount(item.amount) is None:
            problems.append(
                f"Invalid amount for recipient {index}: {item.amount}. Amount must be a positive number."
            )
    if problems:
        return ValidationError("; ".join(problems), "recipients")
    return None


class DisperseManager:
    """Validate a batch as a whole, then transfer to each recipient in order.

    Validation is all-or-nothing; execution is not. A failed transfer is
    recorded and the remaining recipients are still paid.
    """

    def __init__(
        self,
        *,
        submitter: Optional[TransactionSubmitter] = None,
        max_recipients: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._submitter = submitter or TransactionSubmitter()
        self._max_recipients = max_recipients or settings.max_disperse_recipients

    async def disperse(self, account: "SmartAccount", params: DisperseParams) -> DisperseResult:
        error = validate_batch(params.recipients, self._max_recipients)
        if error is not None:
            return DisperseResult(status="invalid", message=f"Validation error: {error.message}")

        native = is_native_token(params.token_address)
        if not native and not is_valid_evm_address(params.token_address):
            return DisperseResult(
                status="invalid",
                message=f"Validation error: Invalid token address: {params.token_address}",
            )

        try:
            decimals = NATIVE_DECIMALS if native else await get_decimals(account.rpc_provider, params.token_address)
        except (TokenLookupError, ProviderError, httpx.HTTPError) as exc:
            return DisperseResult(
                status="error",
                message=f"Error executing batch transfer: could not read token decimals: {exc}",
            )

        try:
            planned = self._plan(params, decimals, native)
        except ValueError as exc:
            return DisperseResult(status="invalid", message=f"Validation error: {exc}")

        outcomes: List[TransferOutcome] = []
        total_requested = Decimal(0)
        total_sent = Decimal(0)
        for item, request in planned:
            amount = Decimal(str(item.amount).strip())
            total_requested += amount
            submission = await self._submitter.submit(account, request)
            if submission.success:
                total_sent += amount
                outcomes.append(TransferOutcome(
                    recipient=item.recipient,
                    amount=item.amount,
                    success=True,
                    operation_handle=submission.operation_handle,
                ))
            else:
                self._logger.warning(f"Transfer to {item.recipient} failed: {submission.error_message}")
                outcomes.append(TransferOutcome(
                    recipient=item.recipient,
                    amount=item.amount,
                    success=False,
                    error=submission.error_message or "Unknown error",
                ))

        result = DisperseResult(
            status="completed",
            message="",
            outcomes=outcomes,
            total_requested=total_requested,
            total_sent=total_sent,
        )
        result.message = self._summary(result, params.token_address, native)
        return result

    @staticmethod
    def _plan(
        params: DisperseParams,
        decimals: int,
        native: bool,
    ) -> List[Tuple[BatchItem, TransactionRequest]]:
        """Build every request up front so a bad amount stops the batch before any send."""
        planned = []
        for index, item in enumerate(params.recipients, start=1):
            base_units = parse_units(item.amount, decimals)
            if base_units <= 0:
                raise ValueError(
                    f"Invalid amount for recipient {index}: {item.amount}. "
                    f"Amount is below the token's smallest unit."
                )
            if native:
                request = TransactionBuilder.build_native_transfer(item.recipient, base_units)
            else:
                request = TransactionBuilder.build_erc20_transfer(params.token_address, item.recipient, base_units)
            planned.append((item, request))
        return planned

    @staticmethod
    def _summary(result: DisperseResult, token_address: str, native: bool) -> str:
        unit = "ETH" if native else "tokens"
        token_type = "ETH" if native else f"tokens from contract {token_address}"
        lines = [
            "Gasless Batch Transfer Completed!",
            "",
            "Summary:",
            f"- Total Recipients: {result.submitted}",
            f"- Successful Transfers: {result.succeeded}",
            f"- Failed Transfers: {result.failed}",
            f"- Total Amount Requested: {result.total_requested} {unit}",
            f"- Total Amount Sent: {result.total_sent} {unit}",
            f"- Token Type: {token_type}",
            "",
            "Transfer Details:",
        ]
        for outcome in result.outcomes:
            if outcome.success:
                lines.append(f"[OK] {outcome.recipient}: {outcome.amount} {unit} - {outcome.operation_handle}")
            else:
                lines.append(f"[FAILED] {outcome.recipient}: {outcome.amount} {unit} - {outcome.error}")
        if result.failed:
            lines.extend([
                "",
                f"Note: {result.failed} transfer(s) failed. Please check recipient addresses and account balances.",
            ])
        return "\n".join(lines)
