"""
Sponsored transaction submission.

Hands one TransactionRequest to the smart account with paymaster
sponsorship and returns immediately with the operation handle. Waiting for
inclusion is the caller's decision (see ConfirmationTracker).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import NetworkError, classify_submission_error
from .models import SponsorshipMode, SubmissionResult, TransactionRequest

if TYPE_CHECKING:
    from ..account.base import SmartAccount

logger = logging.getLogger(__name__)


class TransactionSubmitter:
    """
    Submits sponsored transactions.

    There is no self-funded fallback and no retry: a sponsor rejection is
    returned verbatim so the caller can decide what to do with it.
    """

    def __init__(self, sponsorship: SponsorshipMode = SponsorshipMode.SPONSORED):
        self.sponsorship = sponsorship

    async def submit(self, account: "SmartAccount", request: TransactionRequest) -> SubmissionResult:
        """
        Submit `request` through `account`.

        Args:
            account: Smart account performing the call
            request: A request built for this submission only

        Returns:
            SubmissionResult with the operation handle on acceptance
        """
        logger.info(f"Submitting sponsored transaction to {request.to} (value={request.value})")
        try:
            response = await account.send_transaction(request, self.sponsorship)
        except Exception as exc:
            logger.error(f"Transaction submission failed: {exc}")
            return SubmissionResult(
                success=False,
                error=NetworkError(f"Transaction Error: {exc}"),
            )

        if response.error:
            logger.warning(f"Sponsor rejected transaction: {response.error}")
            return SubmissionResult(
                success=False,
                operation_handle=response.operation_handle,
                error=classify_submission_error(str(response.error), provider="sponsor"),
            )

        if not response.operation_handle:
            return SubmissionResult(
                success=False,
                error=classify_submission_error("Sponsor returned no operation handle", provider="sponsor"),
            )

        handle = response.operation_handle
        logger.info(f"Transaction submitted: {handle}")
        return SubmissionResult(
            success=True,
            operation_handle=handle,
            message=(
                "Transaction submitted successfully!\n"
                f"User Operation Hash: {handle}\n\n"
                "You can check the transaction status using the 'check_transaction_status' action."
            ),
        )
