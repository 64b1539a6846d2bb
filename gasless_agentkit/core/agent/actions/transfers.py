"""Transfer actions: one recipient (smart_transfer) or many (disperse_tokens)."""

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ....services.address import is_native_token, is_valid_evm_address
from ....services.tokens import format_token_amount
from ...disperse.manager import DisperseManager
from ...disperse.models import DisperseParams
from ...errors import describe_exception
from ...execution.models import BatchItem, Confirmed, TransactionRequest
from ...execution.submitter import TransactionSubmitter
from ...execution.tracker import ConfirmationTracker
from ...execution.tx_builder import TransactionBuilder
from ..registry import ActionDescriptor, ResourceRequirement

logger = logging.getLogger(__name__)


SMART_TRANSFER_PROMPT = """
This tool will transfer an ERC20 token or native currency from the wallet to another onchain address using gasless transactions.

It takes the following inputs:
- amount: The amount to transfer
- tokenAddress: The token contract address (use 'eth' for native currency transfers)
- destination: Where to send the funds (must be a valid onchain address)
- wait: Optional. Wait for the transfer to be confirmed before answering
"""

DISPERSE_PROMPT = """
This tool enables gasless batch transfers of tokens or native currency to multiple recipients.

It takes the following inputs:
- recipients: An array of recipient objects, each containing an address and amount
- tokenAddress: The token contract address (use 'eth' for native currency transfers)

Important notes:
- All recipients receive the same token type; each recipient can receive a different amount
- Maximum 50 recipients per batch
- The whole batch is validated before anything is sent; one failed transfer does not stop the others
"""


class SmartTransferInput(BaseModel):
    """Instructions for transferring tokens from a smart account to an onchain address"""

    model_config = ConfigDict(populate_by_name=True)

    amount: str = Field(description="The amount of tokens to transfer")
    token_address: str = Field(
        alias="tokenAddress",
        description="The token contract address or 'eth' for native transfers",
    )
    destination: str = Field(description="The recipient address")
    wait: bool = Field(default=False, description="Whether to wait for transaction confirmation")


class Recipient(BaseModel):
    address: str = Field(description="The recipient wallet address")
    amount: str = Field(description="The amount to send to this recipient")


class DisperseInput(BaseModel):
    """Instructions for batch transferring tokens to multiple recipients"""

    model_config = ConfigDict(populate_by_name=True)

    recipients: List[Recipient] = Field(
        description="Array of recipients with their addresses and amounts",
    )
    token_address: str = Field(
        alias="tokenAddress",
        description="The token contract address or 'eth' for native currency transfers",
    )


async def build_transfer_request(account, token_address: str, destination: str, amount: str) -> TransactionRequest:
    """Single transfer request: native value transfer or ERC-20 `transfer` calldata."""
    base_units = await format_token_amount(account.rpc_provider, token_address, amount)
    if base_units <= 0:
        raise ValueError(f"Amount must be greater than zero: {amount}")
    if is_native_token(token_address):
        return TransactionBuilder.build_native_transfer(destination, base_units)
    return TransactionBuilder.build_erc20_transfer(token_address, destination, base_units)


async def smart_transfer(account, args: SmartTransferInput) -> str:
    if not is_valid_evm_address(args.destination):
        logger.warning(f"Rejected transfer to invalid destination: {args.destination}")
        return f"Validation error: Invalid destination address: {args.destination}"

    try:
        native = is_native_token(args.token_address)
        asset = "ETH" if native else f"tokens from contract {args.token_address}"

        request = await build_transfer_request(account, args.token_address, args.destination, args.amount)
        result = await TransactionSubmitter().submit(account, request)
        if not result.success:
            return f"Transaction failed: {result.error_message or 'Unknown error'}"

        if getattr(args, "wait", False):
            status = await ConfirmationTracker(account, result.operation_handle).wait()
            if isinstance(status, Confirmed):
                return (
                    f"Successfully transferred {args.amount} {asset} to {args.destination}.\n"
                    f"Transaction confirmed in block {status.block_number}!"
                )
            return f"Transaction status: {status.status}\n{status.reason or ''}"

        return (
            f"Successfully submitted transfer of {args.amount} {asset} to {args.destination}.\n"
            f"{result.message}"
        )
    except Exception as exc:
        logger.error(f"Error transferring the asset: {exc}")
        return f"Error transferring the asset: {describe_exception(exc)}"


def _batch_item(recipient: Any) -> BatchItem:
    # Unvalidated input arrives as plain dicts.
    if isinstance(recipient, dict):
        return BatchItem(recipient=str(recipient.get("address", "")), amount=str(recipient.get("amount", "")))
    return BatchItem(recipient=recipient.address, amount=recipient.amount)


async def disperse_tokens(account, args: DisperseInput) -> str:
    try:
        recipients: Optional[List[Any]] = getattr(args, "recipients", None)
        params = DisperseParams(
            recipients=[_batch_item(item) for item in recipients or []],
            token_address=args.token_address,
        )
        result = await DisperseManager().disperse(account, params)
        return result.message
    except Exception as exc:
        logger.error(f"Error executing batch transfer: {exc}")
        return f"Error executing batch transfer: {describe_exception(exc)}"


SMART_TRANSFER = ActionDescriptor(
    name="smart_transfer",
    description=SMART_TRANSFER_PROMPT,
    input_schema=SmartTransferInput,
    resource=ResourceRequirement.VALUE_ACCOUNT,
    handler=smart_transfer,
)

DISPERSE_TOKENS = ActionDescriptor(
    name="disperse_tokens",
    description=DISPERSE_PROMPT,
    input_schema=DisperseInput,
    resource=ResourceRequirement.VALUE_ACCOUNT,
    handler=disperse_tokens,
)
