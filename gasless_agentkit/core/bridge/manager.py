"""BridgeManager orchestrates deBridge DLN orders from the smart account."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from ...config import settings
from ...providers.base import ProviderError
from ...providers.debridge import DebridgeProvider, QuoteResponse
from ...services.address import is_native_token
from ...services.tokens import NATIVE_DECIMALS, TokenLookupError, format_token_amount, format_units
from ..allowance import AllowanceManager
from ..errors import QuoteIncomplete, describe_exception
from ..execution.models import ConfirmationParams
from ..execution.submitter import TransactionSubmitter
from ..execution.tracker import ConfirmationTracker, format_status
from ..execution.tx_builder import TransactionBuilder, parse_value
from .models import BridgeParams, BridgeResult, PreliminaryApproval

if TYPE_CHECKING:
    from ..account.base import SmartAccount


class BridgeManager:
    """Quote, approve and submit a cross-chain order.

    Some routes first need an approval for an internal pre-swap: the quote
    then carries `allowanceTarget`/`allowanceValue` instead of a usable
    transaction. The manager approves that spender, re-issues the identical
    quote request once and gives up with QuoteIncomplete if the second answer
    is still not executable.
    """

    def __init__(
        self,
        *,
        debridge: Optional[DebridgeProvider] = None,
        allowance: Optional[AllowanceManager] = None,
        submitter: Optional[TransactionSubmitter] = None,
        confirmation_params: Optional[ConfirmationParams] = None,
        wait_for_preliminary_approval: Optional[bool] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._debridge = debridge or DebridgeProvider()
        self._submitter = submitter or TransactionSubmitter()
        self._allowance = allowance or AllowanceManager(self._submitter, confirmation_params)
        self._confirmation_params = confirmation_params
        if wait_for_preliminary_approval is None:
            wait_for_preliminary_approval = settings.bridge_wait_for_preliminary_approval
        self._wait_for_preliminary_approval = wait_for_preliminary_approval

    async def bridge(self, account: "SmartAccount", params: BridgeParams) -> BridgeResult:
        current_chain_id = account.chain_id
        if current_chain_id != params.from_chain_id:
            return self._error(
                f"Wallet is connected to chain {current_chain_id}, but the 'fromChainId' is "
                f"{params.from_chain_id}. Please ensure the wallet is on the correct source chain."
            )

        sender = await account.get_address()
        recipient = params.recipient_address or sender

        try:
            amount = await format_token_amount(account.rpc_provider, params.token_in_address, params.amount)
        except (ValueError, TokenLookupError, ProviderError, httpx.HTTPError) as exc:
            return self._error(
                f"Could not format token amount for {params.token_in_address}. "
                f"Ensure it's a valid token address. Error: {exc}"
            )

        query = {
            "srcChainId": str(params.from_chain_id),
            "dstChainId": str(params.to_chain_id),
            "srcChainTokenIn": params.token_in_address,
            "srcChainTokenInAmount": str(amount),
            "dstChainTokenOut": params.token_out_address,
            "dstChainTokenOutRecipient": recipient,
            "slippage": params.slippage,
            "senderAddress": sender,
            "srcChainOrderAuthorityAddress": sender,
            "dstChainOrderAuthorityAddress": recipient,
        }

        requests_made = 0
        try:
            quote = await self._debridge.create_bridge_order(dict(query))
        except (httpx.HTTPError, ProviderError) as exc:
            return self._error(f"Error calling Debridge API: {exc}")
        requests_made += 1
        if not quote.ok:
            return self._api_error(quote, requests_made)

        preliminary = self._preliminary_approval(quote.body)
        if preliminary is not None:
            self._logger.info(
                f"Preliminary approval needed: token={params.token_in_address} "
                f"spender={preliminary.spender} amount={preliminary.amount}"
            )
            approval = await self._allowance.ensure_allowance(
                account,
                params.token_in_address,
                preliminary.spender,
                preliminary.amount,
                approve_max=True,
                wait=self._wait_for_preliminary_approval,
            )
            if not approval.success:
                reason = describe_exception(approval.error) if approval.error else "unknown error"
                return self._error(
                    f"Failed to approve preliminary token spending for {params.token_in_address} "
                    f"to {preliminary.spender}: {reason}",
                    requests_made,
                )

            # Fresh request, identical parameters; stale calldata must not be reused.
            try:
                quote = await self._debridge.create_bridge_order(dict(query))
            except (httpx.HTTPError, ProviderError) as exc:
                return self._error(
                    f"Error calling Debridge API after preliminary approval: {exc}", requests_made
                )
            requests_made += 1
            if not quote.ok:
                return self._api_error(quote, requests_made, second_call=True)
            if self._preliminary_approval(quote.body) is not None or not (quote.tx or {}).get("to"):
                error = QuoteIncomplete(
                    "Debridge API response after preliminary approval is still incomplete. "
                    "Missing proper transaction data.",
                    provider="debridge",
                )
                return self._error(error.message, requests_made)

        tx = quote.tx
        if not tx or not tx.get("to"):
            error = QuoteIncomplete(
                "Debridge API response is incomplete. Missing transaction data.",
                provider="debridge",
            )
            return self._error(error.message, requests_made)

        native_fee = self._protocol_fee(quote.body, tx)
        spender = tx["to"]

        if not is_native_token(params.token_in_address):
            approval = await self._allowance.ensure_allowance(
                account,
                params.token_in_address,
                spender,
                amount,
                approve_max=params.approve_max,
            )
            if not approval.success:
                reason = describe_exception(approval.error) if approval.error else "unknown error"
                return self._error(
                    f"Failed to approve token spending for {params.token_in_address} "
                    f"to main contract {spender}: {reason}",
                    requests_made,
                )

        value = native_fee if params.pay_protocol_fee else 0
        if not params.pay_protocol_fee and native_fee > 0:
            self._logger.warning(
                f"payProtocolFee is false: overriding transaction value from {native_fee} to 0; "
                "the bridge contract may reject the order"
            )

        request = TransactionBuilder.build_from_quote_tx(tx, value_override=value)
        submission = await self._submitter.submit(account, request)
        if not submission.success:
            return BridgeResult(
                status="failed",
                message=f"Bridge transaction failed: {self._failure_details(submission.error_message, params, quote.body, native_fee)}",
                operation_handle=submission.operation_handle,
                quote_requests=requests_made,
            )

        message = self._success_message(params, recipient, submission.operation_handle, quote.body, native_fee)
        result = BridgeResult(
            status="submitted",
            message=message,
            operation_handle=submission.operation_handle,
            quote_requests=requests_made,
            payload={"quote": quote.body},
        )
        if params.wait:
            status = await ConfirmationTracker(
                account, submission.operation_handle, self._confirmation_params
            ).wait()
            result.status = status.status
            result.message = f"{message}\n\n{format_status(status)}"
        return result

    def _error(self, message: str, requests_made: int = 0) -> BridgeResult:
        self._logger.warning(f"Bridge error: {message}")
        return BridgeResult(status="error", message=f"Error: {message}", quote_requests=requests_made)

    def _api_error(self, quote: QuoteResponse, requests_made: int, second_call: bool = False) -> BridgeResult:
        detail = quote.error_message or str(quote.body)
        lowered = detail.lower()
        where = " on second call" if second_call else ""
        if "minimum trade amount is" in lowered:
            message = f"Error from Debridge API{where}: {detail}. The amount might be too small."
        elif "can not estimate with 0 amount" in lowered:
            message = f"Error from Debridge API{where}: {detail}. The input amount seems to be zero after formatting."
        else:
            message = f"Error from Debridge API{where} ({quote.status_code}): {detail}"
        self._logger.warning(message)
        return BridgeResult(status="error", message=message, quote_requests=requests_made)

    @staticmethod
    def _preliminary_approval(body: Dict[str, Any]) -> Optional[PreliminaryApproval]:
        tx = body.get("tx") if isinstance(body.get("tx"), dict) else {}
        for source in (tx, body):
            target = source.get("allowanceTarget")
            value = source.get("allowanceValue")
            if target and value:
                return PreliminaryApproval(spender=target, amount=parse_value(value))
        return None

    def _protocol_fee(self, body: Dict[str, Any], tx: Dict[str, Any]) -> int:
        """Native fee: fixFee, or tx.value when the two disagree or fixFee is absent."""
        fix_fee = parse_value(body.get("fixFee")) if body.get("fixFee") else 0
        tx_value = parse_value(tx.get("value"))
        native_fee = fix_fee
        if fix_fee:
            self._logger.info(f"deBridge fixed protocol fee: {fix_fee} wei")
        if tx_value:
            if not fix_fee:
                native_fee = tx_value
            elif tx_value != fix_fee:
                self._logger.warning(
                    f"tx.value ({tx_value}) differs from fixFee ({fix_fee}); using tx.value"
                )
                native_fee = tx_value
        return native_fee

    @staticmethod
    def _failure_details(
        error_text: str,
        params: BridgeParams,
        body: Dict[str, Any],
        native_fee: int,
    ) -> str:
        if "execution reverted" not in error_text and "missing response" not in error_text:
            return error_text
        estimation = body.get("estimation") or {}
        token_in = estimation.get("srcChainTokenIn") or {}
        fee_text = (
            f"{format_units(native_fee, NATIVE_DECIMALS)} native currency."
            if native_fee > 0 else "(not detected or set to 0)."
        )
        return (
            f"{error_text}\n\nThis may be due to one of the following issues:\n"
            f"1. Insufficient token allowance for the deBridge contract to spend {params.token_in_address}.\n"
            "2. Insufficient NATIVE currency balance in the smart account to cover the deBridge "
            f"protocol fee (if payProtocolFee is true). Current fee: {fee_text}\n"
            f"3. Insufficient underlying {token_in.get('symbol') or params.token_in_address} balance.\n"
            "4. Issues with the paymaster or bundler (e.g., account not funded with paymaster, "
            "or network congestion)."
        )

    @staticmethod
    def _success_message(
        params: BridgeParams,
        recipient: str,
        operation_handle: Optional[str],
        body: Dict[str, Any],
        native_fee: int,
    ) -> str:
        estimation = body.get("estimation") or {}
        token_in = estimation.get("srcChainTokenIn") or {}
        token_out = estimation.get("dstChainTokenOut") or {}
        slippage = estimation.get("recommendedSlippage") or params.slippage
        lines = [
            "Bridge transaction submitted successfully!",
            f"User Operation Hash: {operation_handle}",
            f"Sending: {params.amount} {token_in.get('symbol') or params.token_in_address} (from chain {params.from_chain_id})",
            f"Est. Receiving: {token_out.get('amount') or 'Unknown'} {token_out.get('symbol') or params.token_out_address} (on chain {params.to_chain_id})",
            f"Recipient: {recipient}",
            f"Slippage: {slippage}%",
        ]
        if native_fee > 0:
            fee = format_units(native_fee, NATIVE_DECIMALS)
            if params.pay_protocol_fee:
                lines.append(f"deBridge protocol fee: {fee} native currency (included in transaction)")
            else:
                lines.append(
                    f"deBridge protocol fee: {fee} native currency "
                    "(detected, but EXCLUDED from transaction as payProtocolFee is false)"
                )
        lines.append("Note: Actual received amount may vary. Check the order status via Debridge for updates.")
        return "\n".join(lines)
