"""Read-only actions about the configured smart account."""

import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ....services.tokens import resolve_token_symbol
from ...errors import describe_exception
from ..registry import ActionDescriptor, ResourceRequirement

logger = logging.getLogger(__name__)


GET_ADDRESS_PROMPT = """
This tool retrieves the smart account address that is already configured with the SDK.
No additional wallet setup or private key generation is needed.

USAGE GUIDANCE:
- When a user asks for their wallet address, account address, or smart account address, use this tool immediately
- No parameters are needed to retrieve the address
- This is a read-only operation that doesn't modify any blockchain state
"""

GET_BALANCE_PROMPT = """
This tool gets the balance of the smart account that is already configured with the SDK.

When no tokens are provided, it returns the native token balance by default.
When token addresses or symbols are provided, it returns the balance for each of them.

USAGE GUIDANCE:
- When a user asks to check or get balances, use this tool immediately without asking for confirmation
- If the user doesn't specify tokens, call the tool with no parameters to get the native balance
- Token symbols (e.g. USDT, WETH) are resolved on the account's chain
"""


class GetAddressInput(BaseModel):
    """No input required to get the smart account address"""


class GetBalanceInput(BaseModel):
    """Instructions for getting smart account balance"""

    model_config = ConfigDict(populate_by_name=True)

    token_addresses: Optional[List[str]] = Field(
        default=None,
        alias="tokenAddresses",
        description="Optional list of token addresses to get balances for",
    )
    token_symbols: Optional[List[str]] = Field(
        default=None,
        alias="tokenSymbols",
        description="Optional list of token symbols (e.g. USDT, WETH) to get balances for",
    )


async def get_address(account, args: GetAddressInput) -> str:
    try:
        address = await account.get_address()
        return f"Smart Account: {address}"
    except Exception as exc:
        logger.error(f"Error getting address: {exc}")
        return f"Error getting address: {describe_exception(exc)}"


async def get_balance(account, args: GetBalanceInput) -> str:
    try:
        tokens = list(getattr(args, "token_addresses", None) or [])
        unresolved = []
        for symbol in getattr(args, "token_symbols", None) or []:
            address = resolve_token_symbol(account.chain_id, symbol)
            if address:
                tokens.append(address)
            else:
                unresolved.append(symbol)
        if unresolved and not tokens:
            return (
                f"Error getting balance: Could not resolve token symbol(s) "
                f"{', '.join(unresolved)} on chain {account.chain_id}"
            )

        balances = await account.get_balances(tokens or None)
        if not balances:
            return "No balances found for the requested tokens"

        lines = [f"{balance.address}: {balance.formatted_amount}" for balance in balances]
        message = "Smart Account Balances:\n" + "\n".join(lines)
        if unresolved:
            message += f"\nUnknown token symbol(s) skipped: {', '.join(unresolved)}"
        return message
    except Exception as exc:
        logger.error(f"Balance fetch error: {exc}")
        return f"Error getting balance: {describe_exception(exc)}"


GET_ADDRESS = ActionDescriptor(
    name="get_address",
    description=GET_ADDRESS_PROMPT,
    input_schema=GetAddressInput,
    resource=ResourceRequirement.VALUE_ACCOUNT,
    handler=get_address,
)

GET_BALANCE = ActionDescriptor(
    name="get_balance",
    description=GET_BALANCE_PROMPT,
    input_schema=GetBalanceInput,
    resource=ResourceRequirement.VALUE_ACCOUNT,
    handler=get_balance,
)
