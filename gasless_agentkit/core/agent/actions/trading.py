"""Swap and bridge actions backed by the deBridge flows."""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ...bridge.manager import BridgeManager
from ...bridge.models import BridgeParams
from ...errors import describe_exception
from ...swap.manager import SwapManager
from ...swap.models import SwapParams
from ..registry import ActionDescriptor, ResourceRequirement

logger = logging.getLogger(__name__)


SWAP_PROMPT = """
This tool allows you to perform gasless token swaps on supported chains.

You can swap tokens in two ways:
1. Using token addresses (e.g., "0x...")
2. Using token symbols (e.g., "ETH", "USDC", "USDT", "WETH", etc.)

USAGE GUIDANCE:
- Provide either tokenIn/tokenOut addresses OR tokenInSymbol/tokenOutSymbol
- Specify the amount to swap (in the input token's units)
- Optionally set a custom slippage (default is "auto")
- Optionally set 'approveMax: true' to approve maximum token allowance (default is false)
- Optionally set 'wait: true' to wait for confirmation before answering

EXAMPLES:
- Swap by address: "Swap 10 from 0x123... to 0x456..."
- Swap by symbol: "Swap 10 USDC to ETH"
- With max approval: "Swap 10 USDT to ETH with approveMax: true"

All swaps are gasless - no native tokens needed for gas fees.
"""

BRIDGE_PROMPT = """
This tool allows you to bridge tokens cross-chain using Debridge DLN.

You need to provide:
- Source and destination chain IDs (e.g., 1 for Ethereum, 137 for Polygon)
- Token addresses for the input and output tokens
- The amount of the input token to bridge

USAGE GUIDANCE:
- Specify 'fromChainId', 'toChainId', 'tokenInAddress', 'tokenOutAddress', and 'amount'.
- Optionally provide a 'recipientAddress' on the destination chain. Defaults to the agent's wallet address.
- Optionally set a custom 'slippage' (e.g., "0.5" for 0.5%). Default is "1".
- Optionally set 'approveMax: true' to approve maximum token allowance for the input token. Default is false.
- Optionally set 'payProtocolFee: false' to exclude the deBridge protocol fee. Default is true.
  NOTE: The smart account MUST hold enough NATIVE currency (e.g., BNB, ETH) to cover this fee.

Transactions on the source chain are gasless, BUT the deBridge protocol itself charges a fixed
native currency fee that must be available in the smart account.
"""


class SmartSwapInput(BaseModel):
    """Instructions for swapping tokens"""

    model_config = ConfigDict(populate_by_name=True)

    token_in: Optional[str] = Field(
        default=None,
        alias="tokenIn",
        description="The address of the input token (token you're selling)",
    )
    token_out: Optional[str] = Field(
        default=None,
        alias="tokenOut",
        description="The address of the output token (token you're buying)",
    )
    token_in_symbol: Optional[str] = Field(
        default=None,
        alias="tokenInSymbol",
        description="The symbol of the input token (e.g., 'ETH', 'USDC')",
    )
    token_out_symbol: Optional[str] = Field(
        default=None,
        alias="tokenOutSymbol",
        description="The symbol of the output token (e.g., 'ETH', 'USDC')",
    )
    amount: str = Field(description="The amount of input token to swap")
    slippage: Optional[str] = Field(
        default="auto",
        description="Slippage tolerance in percentage (e.g., '0.5') or 'auto'",
    )
    approve_max: Optional[bool] = Field(
        default=False,
        alias="approveMax",
        description="Whether to approve maximum token allowance",
    )
    wait: Optional[bool] = Field(default=False, description="Whether to wait for transaction confirmation")


class SmartBridgeInput(BaseModel):
    """Instructions for bridging tokens cross-chain via Debridge DLN"""

    model_config = ConfigDict(populate_by_name=True)

    from_chain_id: int = Field(alias="fromChainId", gt=0, description="The ID of the source chain (e.g., 1 for Ethereum)")
    to_chain_id: int = Field(alias="toChainId", gt=0, description="The ID of the destination chain (e.g., 137 for Polygon)")
    token_in_address: str = Field(
        alias="tokenInAddress",
        pattern=r"^0x[a-fA-F0-9]{40}$",
        description="The address of the input token on the source chain",
    )
    token_out_address: str = Field(
        alias="tokenOutAddress",
        pattern=r"^0x[a-fA-F0-9]{40}$",
        description="The address of the output token on the destination chain",
    )
    amount: str = Field(description="The amount of input token to bridge (human-readable, e.g., '100')")
    recipient_address: Optional[str] = Field(
        default=None,
        alias="recipientAddress",
        pattern=r"^0x[a-fA-F0-9]{40}$",
        description="Optional: The address to receive tokens on the destination chain. Defaults to your wallet address.",
    )
    slippage: str = Field(default="1", description="Optional: Slippage tolerance in percentage (e.g., '0.5' for 0.5%)")
    approve_max: bool = Field(
        default=False,
        alias="approveMax",
        description="Optional: Whether to approve maximum token allowance for the input token",
    )
    pay_protocol_fee: bool = Field(
        default=True,
        alias="payProtocolFee",
        description="Optional: Whether to include the deBridge protocol fee. Smart account needs NATIVE currency for this.",
    )
    wait: bool = Field(default=False, description="Whether to wait for transaction confirmation")


async def smart_swap(account, args: SmartSwapInput) -> str:
    try:
        params = SwapParams(
            amount=args.amount,
            token_in=getattr(args, "token_in", None),
            token_out=getattr(args, "token_out", None),
            token_in_symbol=getattr(args, "token_in_symbol", None),
            token_out_symbol=getattr(args, "token_out_symbol", None),
            slippage=getattr(args, "slippage", None) or "auto",
            approve_max=bool(getattr(args, "approve_max", False)),
            wait=bool(getattr(args, "wait", False)),
        )
        result = await SwapManager().swap(account, params)
        return result.message
    except Exception as exc:
        logger.error(f"Swap error: {exc}")
        return f"Error: Swap failed: {describe_exception(exc)}"


async def smart_bridge(account, args: SmartBridgeInput) -> str:
    try:
        params = BridgeParams(
            from_chain_id=int(args.from_chain_id),
            to_chain_id=int(args.to_chain_id),
            token_in_address=args.token_in_address,
            token_out_address=args.token_out_address,
            amount=args.amount,
            recipient_address=getattr(args, "recipient_address", None),
            slippage=getattr(args, "slippage", None) or "1",
            approve_max=bool(getattr(args, "approve_max", False)),
            pay_protocol_fee=bool(getattr(args, "pay_protocol_fee", True)),
            wait=bool(getattr(args, "wait", False)),
        )
        result = await BridgeManager().bridge(account, params)
        return result.message
    except Exception as exc:
        logger.error(f"Bridge error: {exc}")
        return f"Error: Bridge failed: {describe_exception(exc)}"


SMART_SWAP = ActionDescriptor(
    name="smart_swap",
    description=SWAP_PROMPT,
    input_schema=SmartSwapInput,
    resource=ResourceRequirement.VALUE_ACCOUNT,
    handler=smart_swap,
)

SMART_BRIDGE = ActionDescriptor(
    name="smart_bridge",
    description=BRIDGE_PROMPT,
    input_schema=SmartBridgeInput,
    resource=ResourceRequirement.VALUE_ACCOUNT,
    handler=smart_bridge,
)
