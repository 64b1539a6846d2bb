"""
Tests for the owner signer and the bundler-backed smart account send flow.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data

from gasless_agentkit.core.account.signer import EthAccountSigner
from gasless_agentkit.core.account.smart_account import BundlerSmartAccount
from gasless_agentkit.core.execution.models import SponsorshipMode, TransactionRequest
from gasless_agentkit.core.execution.userop import SponsorshipData, UserOpGasEstimate
from gasless_agentkit.core.execution.userop_builder import get_user_operation_hash
from gasless_agentkit.core.swap.manager import SwapManager
from gasless_agentkit.core.swap.models import SwapParams
from gasless_agentkit.providers.bundler import BundlerError
from gasless_agentkit.providers.debridge import QuoteResponse
from gasless_agentkit.providers.paymaster import PaymasterError
from gasless_agentkit.providers.rpc import RpcError

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
ACCOUNT_ADDRESS = "0x1111111111111111111111111111111111111111"
ENTRY_POINT = "0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789"
DEST = "0x4444444444444444444444444444444444444444"
PAYMASTER_AND_DATA = "0x" + "cd" * 20
TOKEN_IN = "0x2222222222222222222222222222222222222222"
TOKEN_OUT = "0x5555555555555555555555555555555555555555"
ROUTER = "0x6666666666666666666666666666666666666666"


@pytest.fixture
def signer():
    return EthAccountSigner(PRIVATE_KEY)


@pytest.fixture
def providers():
    rpc = MagicMock()
    rpc.chain_id = 8453
    rpc.call = AsyncMock(return_value="0x" + "0" * 63 + "7")
    rpc.get_gas_price = AsyncMock(return_value=1_000)
    rpc.get_max_priority_fee = AsyncMock(return_value=100)

    bundler = MagicMock()
    bundler.estimate_user_operation_gas = AsyncMock(return_value=UserOpGasEstimate(90_000, 80_000, 50_000))
    bundler.send_user_operation = AsyncMock(return_value="0x" + "ab" * 32)

    paymaster = MagicMock()
    paymaster.sponsor_user_operation = AsyncMock(return_value=SponsorshipData(paymaster_and_data=PAYMASTER_AND_DATA))
    return rpc, bundler, paymaster


@pytest.fixture
def smart_account(signer, providers):
    rpc, bundler, paymaster = providers
    return BundlerSmartAccount(
        address=ACCOUNT_ADDRESS,
        signer=signer,
        rpc_provider=rpc,
        bundler=bundler,
        paymaster=paymaster,
        entry_point=ENTRY_POINT,
    )


def test_signer_requires_a_key():
    with pytest.raises(ValueError):
        EthAccountSigner("")


def test_user_op_hash_signature_recovers_owner(signer):
    user_op_hash = "0x" + "12" * 32

    signature = signer.sign_user_op_hash(user_op_hash)

    recovered = Account.recover_message(encode_defunct(hexstr=user_op_hash), signature=signature)
    assert recovered == signer.address


def test_typed_data_signature_recovers_owner(signer):
    payload = {
        "types": {
            "EIP712Domain": [{"name": "name", "type": "string"}, {"name": "chainId", "type": "uint256"}],
            "Mail": [{"name": "contents", "type": "string"}],
        },
        "domain": {"name": "Agentkit", "chainId": 8453},
        "primaryType": "Mail",
        "message": {"contents": "hello"},
    }

    signature = signer.sign_typed_data(payload)

    recovered = Account.recover_message(encode_typed_data(full_message=payload), signature=signature)
    assert recovered == signer.address


@pytest.mark.asyncio
async def test_send_builds_sponsors_signs_and_submits(smart_account, providers, signer):
    rpc, bundler, paymaster = providers
    request = TransactionRequest(to=DEST, data="0x", value=5)

    result = await smart_account.send_transaction(request)

    assert result.error is None
    assert result.operation_handle == "0x" + "ab" * 32

    paymaster_op, entry_point, context = (
        paymaster.sponsor_user_operation.await_args.args[0],
        paymaster.sponsor_user_operation.await_args.args[1],
        paymaster.sponsor_user_operation.await_args.kwargs["mode"],
    )
    assert entry_point == ENTRY_POINT
    assert context is SponsorshipMode.SPONSORED
    assert paymaster_op.call_gas_limit == 90_000

    sent_op = bundler.send_user_operation.await_args.args[0]
    assert sent_op.nonce == 7
    assert sent_op.init_code == "0x"
    assert sent_op.paymaster_and_data == PAYMASTER_AND_DATA
    assert sent_op.max_fee_per_gas == 1_100
    assert sent_op.call_data.startswith("0xb61d27f6")

    user_op_hash = get_user_operation_hash(sent_op, ENTRY_POINT, 8453)
    recovered = Account.recover_message(encode_defunct(hexstr=user_op_hash), signature=sent_op.signature)
    assert recovered == signer.address


@pytest.mark.asyncio
async def test_paymaster_rejection_is_returned_not_raised(smart_account, providers):
    _, bundler, paymaster = providers
    paymaster.sponsor_user_operation.side_effect = PaymasterError({"code": -32000, "message": "policy rejected"})

    result = await smart_account.send_transaction(TransactionRequest(to=DEST))

    assert result.operation_handle is None
    assert result.error == "policy rejected"
    bundler.send_user_operation.assert_not_awaited()


@pytest.mark.asyncio
async def test_bundler_rejection_is_returned_not_raised(smart_account, providers):
    _, bundler, _ = providers
    bundler.send_user_operation.side_effect = BundlerError("AA21 didn't pay prefund")

    result = await smart_account.send_transaction(TransactionRequest(to=DEST))

    assert result.error == "AA21 didn't pay prefund"


@pytest.mark.asyncio
async def test_back_to_back_sends_use_consecutive_nonces(smart_account, providers):
    _, bundler, _ = providers

    await smart_account.send_transaction(TransactionRequest(to=DEST))
    await smart_account.send_transaction(TransactionRequest(to=DEST))

    nonces = [call.args[0].nonce for call in bundler.send_user_operation.await_args_list]
    assert nonces == [7, 8]


@pytest.mark.asyncio
async def test_concurrent_sends_use_distinct_nonces(smart_account, providers):
    _, bundler, _ = providers

    await asyncio.gather(*(smart_account.send_transaction(TransactionRequest(to=DEST)) for _ in range(3)))

    nonces = sorted(call.args[0].nonce for call in bundler.send_user_operation.await_args_list)
    assert nonces == [7, 8, 9]


@pytest.mark.asyncio
async def test_rejected_send_gives_its_nonce_back(smart_account, providers):
    _, bundler, paymaster = providers
    paymaster.sponsor_user_operation.side_effect = [
        PaymasterError({"code": -32000, "message": "policy rejected"}),
        SponsorshipData(paymaster_and_data=PAYMASTER_AND_DATA),
    ]

    failed = await smart_account.send_transaction(TransactionRequest(to=DEST))
    sent = await smart_account.send_transaction(TransactionRequest(to=DEST))

    assert failed.error == "policy rejected"
    assert sent.error is None
    assert bundler.send_user_operation.await_args.args[0].nonce == 7


@pytest.mark.asyncio
async def test_nonce_read_failure_is_returned_not_raised(smart_account, providers):
    rpc, bundler, _ = providers
    rpc.call.side_effect = RpcError("execution reverted")

    result = await smart_account.send_transaction(TransactionRequest(to=DEST))

    assert result.error == "execution reverted"
    bundler.send_user_operation.assert_not_awaited()


@pytest.mark.asyncio
async def test_swap_approval_and_swap_get_distinct_nonces(smart_account, providers):
    rpc, bundler, _ = providers
    reads = {"decimals": 18, "allowance": 0}
    rpc.read_contract = AsyncMock(side_effect=lambda abi, address, fn, args=None: reads[fn])

    debridge = MagicMock()
    debridge.get_swap_transaction = AsyncMock(return_value=QuoteResponse(200, {
        "tokenIn": {"symbol": "USDT", "amount": "1000000000000000000"},
        "tokenOut": {"symbol": "WETH", "amount": "420000000000000"},
        "tx": {"to": ROUTER, "data": "0xdeadbeef", "value": "0"},
    }))
    manager = SwapManager(debridge=debridge)

    result = await manager.swap(smart_account, SwapParams(amount="1", token_in=TOKEN_IN, token_out=TOKEN_OUT))

    assert result.status == "submitted"
    nonces = [call.args[0].nonce for call in bundler.send_user_operation.await_args_list]
    assert nonces == [7, 8]


@pytest.mark.asyncio
async def test_sign_typed_data_delegates_to_signer(smart_account):
    signer = MagicMock()
    signer.sign_typed_data.return_value = "0xsig"
    smart_account.signer = signer

    assert await smart_account.sign_typed_data({"message": {}}) == "0xsig"
