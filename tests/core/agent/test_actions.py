"""
Built-in actions exercised through the default registry.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from gasless_agentkit.config import settings
from gasless_agentkit.core.agent.registry import ActionContext, default_registry
from gasless_agentkit.core.execution.models import SendResult, TokenBalance
from gasless_agentkit.core.execution.userop import UserOpReceipt
from gasless_agentkit.core.swap.models import SwapResult

TOKEN = "0x2222222222222222222222222222222222222222"
DEST = "0x4444444444444444444444444444444444444444"

ERC20_TRANSFER_ABI = json.dumps([
    {
        "type": "function",
        "name": "transfer",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
    }
])


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def context(account):
    return ActionContext(read_client=account.rpc_provider, account=account)


@pytest.mark.asyncio
async def test_get_address(registry, context, account):
    assert await registry.dispatch("get_address", {}, context) == f"Smart Account: {account.address}"


@pytest.mark.asyncio
async def test_get_balance_resolves_symbols(registry, context, account):
    account.get_balances = AsyncMock(return_value=[TokenBalance(address="0xabc", formatted_amount="1.5")])

    result = await registry.dispatch("get_balance", {"tokenSymbols": ["ETH", "NOPE"]}, context)

    assert result.startswith("Smart Account Balances:\n0xabc: 1.5")
    assert "Unknown token symbol(s) skipped: NOPE" in result
    (tokens,) = account.get_balances.await_args.args
    assert tokens == ["0x0000000000000000000000000000000000000000"]


@pytest.mark.asyncio
async def test_get_token_details(registry, context, account):
    account.contract_values.update(name="USD Coin", symbol="USDC", decimals=6)

    result = await registry.dispatch("get_token_details", {"tokenAddress": TOKEN}, context)

    assert result.startswith("Token Details:\nName: USD Coin\nSymbol: USDC\nDecimals: 6")
    assert "Chain ID: 8453" in result


@pytest.mark.asyncio
async def test_encode_function_data(registry):
    result = await registry.dispatch(
        "encode_function_data",
        {"abiString": ERC20_TRANSFER_ABI, "functionName": "transfer", "argsString": json.dumps([DEST, "5"])},
        ActionContext(),
    )

    assert result.startswith("Encoded Data: 0xa9059cbb")
    assert result.endswith("5".rjust(64, "0"))


@pytest.mark.asyncio
async def test_encode_function_data_unknown_function(registry):
    result = await registry.dispatch(
        "encode_function_data",
        {"abiString": ERC20_TRANSFER_ABI, "functionName": "mint", "argsString": "[]"},
        ActionContext(),
    )

    assert result.startswith("Error: Failed to encode function data:")


@pytest.mark.asyncio
async def test_read_contract_formats_result(registry, context, account):
    account.contract_values["transfer"] = [1, 2]

    result = await registry.dispatch(
        "read_contract",
        {"contractAddress": TOKEN, "abiString": ERC20_TRANSFER_ABI, "functionName": "transfer", "argsString": "[]"},
        context,
    )

    assert result == "Result: [1, 2]"


@pytest.mark.asyncio
async def test_send_transaction(registry, context, account):
    result = await registry.dispatch("send_transaction", {"to": DEST, "data": "0x", "value": "7"}, context)

    assert result.startswith("Transaction submitted successfully!")
    assert account.sent[0].value == 7


@pytest.mark.asyncio
async def test_smart_transfer_native(registry, context, account):
    result = await registry.dispatch(
        "smart_transfer",
        {"amount": "0.5", "tokenAddress": "eth", "destination": DEST},
        context,
    )

    assert result.startswith(f"Successfully submitted transfer of 0.5 ETH to {DEST}.")
    (request,) = account.sent
    assert request.to == DEST
    assert request.value == 5 * 10**17


@pytest.mark.asyncio
async def test_smart_transfer_erc20(registry, context, account):
    account.contract_values["decimals"] = 6

    result = await registry.dispatch(
        "smart_transfer",
        {"amount": "2", "tokenAddress": TOKEN, "destination": DEST},
        context,
    )

    assert f"tokens from contract {TOKEN}" in result
    (request,) = account.sent
    assert request.to == TOKEN
    assert int(request.data[-64:], 16) == 2_000_000


@pytest.mark.asyncio
async def test_smart_transfer_waits_for_confirmation(registry, context, account, monkeypatch):
    account.bundler.get_user_operation_receipt = AsyncMock(
        return_value=UserOpReceipt(user_op_hash="0x01", success=True, block_number=12, raw={})
    )
    monkeypatch.setattr(settings, "confirmation_interval_ms", 1)

    result = await registry.dispatch(
        "smart_transfer",
        {"amount": "1", "tokenAddress": "eth", "destination": DEST, "wait": True},
        context,
    )

    assert result.endswith("Transaction confirmed in block 12!")


@pytest.mark.asyncio
async def test_smart_transfer_sponsor_rejection(make_account, registry):
    account = make_account(responses=[SendResult(error="paymaster: policy rejected")])

    result = await registry.dispatch(
        "smart_transfer",
        {"amount": "1", "tokenAddress": "eth", "destination": DEST},
        ActionContext(account=account),
    )

    assert result == "Transaction failed: paymaster: policy rejected"


@pytest.mark.asyncio
async def test_smart_transfer_zero_amount(registry, context, account):
    result = await registry.dispatch(
        "smart_transfer",
        {"amount": "0", "tokenAddress": "eth", "destination": DEST},
        context,
    )

    assert result.startswith("Error transferring the asset:")
    assert account.sent == []


@pytest.mark.asyncio
@pytest.mark.parametrize("destination", ["0x1234", "vitalik.eth", ""])
async def test_smart_transfer_rejects_invalid_destination(registry, context, account, destination):
    result = await registry.dispatch(
        "smart_transfer",
        {"amount": "1", "tokenAddress": "eth", "destination": destination},
        context,
    )

    assert result == f"Validation error: Invalid destination address: {destination}"
    assert account.sent == []


@pytest.mark.asyncio
async def test_disperse_tokens_invalid_amount(registry, context, account):
    result = await registry.dispatch(
        "disperse_tokens",
        {
            "recipients": [{"address": DEST, "amount": "-1"}],
            "tokenAddress": "eth",
        },
        context,
    )

    assert result == "Validation error: Invalid amount for recipient 1: -1. Amount must be a positive number."
    assert account.sent == []


@pytest.mark.asyncio
async def test_disperse_tokens_sends_each_recipient(registry, context, account):
    result = await registry.dispatch(
        "disperse_tokens",
        {
            "recipients": [
                {"address": DEST, "amount": "1"},
                {"address": TOKEN, "amount": "2"},
            ],
            "tokenAddress": "eth",
        },
        context,
    )

    assert result.startswith("Gasless Batch Transfer Completed!")
    assert [request.to for request in account.sent] == [DEST, TOKEN]


@pytest.mark.asyncio
async def test_smart_swap_delegates_to_manager(registry, context):
    manager = AsyncMock()
    manager.swap.return_value = SwapResult(status="submitted", message="Swap successful!")

    with patch("gasless_agentkit.core.agent.actions.trading.SwapManager", return_value=manager):
        result = await registry.dispatch(
            "smart_swap",
            {"tokenInSymbol": "USDC", "tokenOutSymbol": "WETH", "amount": "1", "approveMax": True},
            context,
        )

    assert result == "Swap successful!"
    params = manager.swap.await_args.args[1]
    assert params.token_in_symbol == "USDC"
    assert params.approve_max is True


@pytest.mark.asyncio
async def test_check_transaction_status_times_out_as_pending(registry, context):
    result = await registry.dispatch(
        "check_transaction_status",
        {"userOpHash": "0x" + "ab" * 32, "maxDuration": 10, "interval": 5},
        context,
    )

    assert result.startswith("Transaction is still pending.")
    assert "Exceeded maximum duration" in result


@pytest.mark.asyncio
async def test_value_actions_need_an_account(registry, account):
    result = await registry.dispatch(
        "smart_transfer",
        {"amount": "1", "tokenAddress": "eth", "destination": DEST},
        ActionContext(read_client=account.rpc_provider),
    )

    assert "A Smart Account is required" in result
