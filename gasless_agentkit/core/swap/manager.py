"""SwapManager runs the quote, approve and submit sequence for single-chain swaps."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from ...providers.base import ProviderError
from ...providers.debridge import DebridgeProvider, QuoteResponse
from ...services.address import is_native_token
from ...services.tokens import TokenLookupError, format_token_amount, resolve_token_symbol
from ..allowance import AllowanceManager
from ..errors import (
    ChainRevert,
    NetworkError,
    QuoteIncomplete,
    RevertKind,
    classify_revert,
    describe_exception,
)
from ..execution.models import Confirmed, ConfirmationParams
from ..execution.submitter import TransactionSubmitter
from ..execution.tracker import ConfirmationTracker, format_status
from ..execution.tx_builder import TransactionBuilder
from .models import SwapParams, SwapResult

if TYPE_CHECKING:
    from ..account.base import SmartAccount


BAD_REQUEST_GUIDANCE = """Invalid request parameters. Please check your token addresses and amount.

Make sure:
1. The token amount is not too small (try at least 0.01 USDT)
2. There is sufficient liquidity for this pair
3. You have enough balance of the input token"""


class SwapManager:
    """Quote a swap on deBridge, approve the router if needed, then submit.

    A quote without an executable transaction is an estimation and is
    returned as such; nothing is submitted in that case.
    """

    def __init__(
        self,
        *,
        debridge: Optional[DebridgeProvider] = None,
        allowance: Optional[AllowanceManager] = None,
        submitter: Optional[TransactionSubmitter] = None,
        confirmation_params: Optional[ConfirmationParams] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._debridge = debridge or DebridgeProvider()
        self._submitter = submitter or TransactionSubmitter()
        self._allowance = allowance or AllowanceManager(self._submitter, confirmation_params)
        self._confirmation_params = confirmation_params

    async def swap(self, account: "SmartAccount", params: SwapParams) -> SwapResult:
        chain_id = account.chain_id

        token_in = params.token_in
        token_out = params.token_out
        if params.token_in_symbol and not token_in:
            token_in = resolve_token_symbol(chain_id, params.token_in_symbol)
            if not token_in:
                return self._error(
                    f'Could not resolve token symbol "{params.token_in_symbol}" to an address on chain {chain_id}'
                )
        if params.token_out_symbol and not token_out:
            token_out = resolve_token_symbol(chain_id, params.token_out_symbol)
            if not token_out:
                return self._error(
                    f'Could not resolve token symbol "{params.token_out_symbol}" to an address on chain {chain_id}'
                )
        if not token_in or not token_out:
            return self._error("Both input and output token addresses are required")

        try:
            amount = await format_token_amount(account.rpc_provider, token_in, params.amount)
        except (ValueError, TokenLookupError, ProviderError, httpx.HTTPError) as exc:
            return self._error(f"Could not format token amount for {token_in}: {exc}")
        if amount <= 0:
            return self._error(f"Invalid amount: {params.amount}. Amount must be greater than 0.")

        recipient = await account.get_address()
        query = {
            "chainId": str(chain_id),
            "tokenIn": token_in,
            "tokenInAmount": str(amount),
            "tokenOut": token_out,
            "tokenOutRecipient": recipient,
            "slippage": params.slippage or "auto",
        }

        try:
            quote = await self._debridge.get_swap_transaction(query)
        except httpx.HTTPError as exc:
            return self._error(NetworkError(f"Error calling deBridge API: {exc}", provider="debridge").message)
        except ProviderError as exc:
            return self._error(QuoteIncomplete(exc.message, provider="debridge").message)

        if not quote.ok or quote.body.get("errorMessage"):
            return self._quote_error(quote)

        tx = quote.tx
        if not tx or not tx.get("to"):
            return self._estimation(quote, params)

        if not is_native_token(token_in):
            approval = await self._allowance.ensure_allowance(
                account,
                token_in,
                tx["to"],
                amount,
                approve_max=params.approve_max,
            )
            if not approval.success:
                reason = describe_exception(approval.error) if approval.error else "unknown error"
                return self._error(f"Failed to approve token spending: {reason}")
            if approval.operation_handle:
                self._logger.info(f"Token approval submitted. UserOpHash: {approval.operation_handle}")

        request = TransactionBuilder.build_from_quote_tx(tx)
        submission = await self._submitter.submit(account, request)
        if not submission.success:
            return SwapResult(
                status="failed",
                message=self._submission_failure(submission.error_message),
                operation_handle=submission.operation_handle,
            )

        token_in_info = quote.body.get("tokenIn") or {}
        token_out_info = quote.body.get("tokenOut") or {}
        in_symbol = token_in_info.get("symbol") or params.token_in_symbol or "tokens"
        out_symbol = token_out_info.get("symbol") or params.token_out_symbol or "tokens"
        message = (
            "Swap successful!\n"
            f"Input: {params.amount} {in_symbol}\n"
            f"(Approximate) Output: {token_out_info.get('amount') or '?'} {out_symbol}\n"
            f"User Operation Hash: {submission.operation_handle}"
        )
        result = SwapResult(
            status="submitted",
            message=message,
            operation_handle=submission.operation_handle,
            payload={"quote": quote.body},
        )
        if params.wait:
            status = await ConfirmationTracker(
                account, submission.operation_handle, self._confirmation_params
            ).wait()
            result.status = status.status
            result.message = f"{message}\n\n{format_status(status)}"
            if not isinstance(status, Confirmed):
                self._logger.info(f"Swap {submission.operation_handle} ended as {status.status}")
        return result

    def _error(self, message: str) -> SwapResult:
        self._logger.warning(f"Swap error: {message}")
        return SwapResult(status="error", message=f"Error: {message}")

    def _quote_error(self, quote: QuoteResponse) -> SwapResult:
        error_text = quote.error_message or f"HTTP {quote.status_code}"
        revert = classify_revert(error_text)
        if revert is not None and revert.kind in (
            RevertKind.INSUFFICIENT_LIQUIDITY,
            RevertKind.AMOUNT_TOO_SMALL,
            RevertKind.INSUFFICIENT_ALLOWANCE,
        ):
            return SwapResult(status="failed", message=f"Swap failed: {revert.remediation}")
        if "bad request" in error_text.lower():
            return SwapResult(status="failed", message=f"Swap failed: {BAD_REQUEST_GUIDANCE}")
        details = quote.body.get("details")
        suffix = f"\nDetails: {details}" if details else ""
        return SwapResult(status="failed", message=f"Swap failed: {error_text}{suffix}")

    def _estimation(self, quote: QuoteResponse, params: SwapParams) -> SwapResult:
        body: Dict[str, Any] = quote.body
        estimation = body.get("estimation") if isinstance(body.get("estimation"), dict) else body
        token_in = estimation.get("tokenIn") or body.get("tokenIn")
        token_out = estimation.get("tokenOut") or body.get("tokenOut")
        if not isinstance(token_in, dict) or not isinstance(token_out, dict):
            error = QuoteIncomplete(
                "Swap quote is incomplete: no transaction and no estimation returned.",
                provider="debridge",
            )
            return SwapResult(status="error", message=f"Error: {error.message}")

        in_symbol = token_in.get("symbol") or params.token_in_symbol or "tokens"
        out_symbol = token_out.get("symbol") or params.token_out_symbol or "tokens"
        slippage = estimation.get("recommendedSlippage", body.get("recommendedSlippage"))
        message = (
            "Swap estimation:\n"
            f"Input: {token_in.get('amount')} {in_symbol}\n"
            f"Expected Output: {token_out.get('amount')} {out_symbol}\n"
            f"Min Output: {token_out.get('minAmount')} {out_symbol}\n"
            f"Recommended Slippage: {slippage}%"
        )
        return SwapResult(status="estimation", message=message, payload={"quote": body})

    def _submission_failure(self, error_text: str) -> str:
        revert = classify_revert(error_text)
        if isinstance(revert, ChainRevert) and revert.kind == RevertKind.INSUFFICIENT_ALLOWANCE:
            return f"Swap failed: {revert.remediation}"
        return f"Swap failed: {error_text}"
