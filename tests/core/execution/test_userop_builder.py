"""
Tests for ERC-4337 UserOperation calldata builders.
"""

from eth_abi import encode
from eth_utils import keccak

from gasless_agentkit.core.execution.userop import UserOperation, UserOpReceipt
from gasless_agentkit.core.execution.userop_builder import (
    build_entrypoint_get_nonce_call,
    build_execute_call_data,
    get_execute_selector,
    get_user_operation_hash,
)

ENTRY_POINT = "0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789"


def _user_op(**overrides) -> UserOperation:
    fields = dict(
        sender="0x1111111111111111111111111111111111111111",
        nonce=3,
        init_code="0x",
        call_data="0x1234",
        call_gas_limit=100_000,
        verification_gas_limit=150_000,
        pre_verification_gas=50_000,
        max_fee_per_gas=2_000_000_000,
        max_priority_fee_per_gas=1_000_000_000,
        paymaster_and_data="0xabcdef",
    )
    fields.update(overrides)
    return UserOperation(**fields)


def test_build_execute_call_data_encodes_execute() -> None:
    selector = get_execute_selector("execute(address,uint256,bytes)", None)
    call_data = build_execute_call_data(
        to_address="0x1111111111111111111111111111111111111111",
        value_wei=1,
        data="0x1234",
        signature="execute(address,uint256,bytes)",
    )

    assert selector == "0xb61d27f6"
    assert call_data.startswith(selector)
    # 4-byte selector + 3 words (address, value, offset) + bytes length + data padded
    assert len(call_data) == len(selector) + 64 * 4 + 64
    assert call_data.endswith("1234" + "0" * 60)


def test_selector_override_wins() -> None:
    assert get_execute_selector("execute(address,uint256,bytes)", "0x12345678") == "0x12345678"


def test_get_nonce_call() -> None:
    call = build_entrypoint_get_nonce_call("0x1111111111111111111111111111111111111111")
    assert call.startswith("0x35567e1a")
    assert len(call) == 10 + 128


def test_user_operation_hash_matches_manual_encoding() -> None:
    op = _user_op()
    inner = encode(
        ["address", "uint256", "bytes32", "bytes32", "uint256", "uint256", "uint256", "uint256", "uint256", "bytes32"],
        [
            op.sender,
            op.nonce,
            keccak(b""),
            keccak(bytes.fromhex("1234")),
            op.call_gas_limit,
            op.verification_gas_limit,
            op.pre_verification_gas,
            op.max_fee_per_gas,
            op.max_priority_fee_per_gas,
            keccak(bytes.fromhex("abcdef")),
        ],
    )
    expected = keccak(encode(["bytes32", "address", "uint256"], [keccak(inner), ENTRY_POINT, 8453]))

    assert get_user_operation_hash(op, ENTRY_POINT, 8453) == f"0x{expected.hex()}"


def test_user_operation_hash_ignores_signature_but_not_chain() -> None:
    base = get_user_operation_hash(_user_op(), ENTRY_POINT, 8453)

    assert get_user_operation_hash(_user_op(signature="0xdead"), ENTRY_POINT, 8453) == base
    assert get_user_operation_hash(_user_op(), ENTRY_POINT, 56) != base


def test_rpc_dict_uses_hex_quantities() -> None:
    payload = _user_op().to_rpc_dict()
    assert payload["nonce"] == "0x3"
    assert payload["callGasLimit"] == hex(100_000)
    assert payload["paymasterAndData"] == "0xabcdef"


def test_receipt_from_rpc() -> None:
    receipt = UserOpReceipt.from_rpc(
        "0xhash",
        {"success": False, "reason": "AA23 reverted", "receipt": {"blockNumber": "0x10", "transactionHash": "0xtx"}},
    )
    assert receipt.success is False
    assert receipt.block_number == 16
    assert receipt.reason == "AA23 reverted"

    by_status = UserOpReceipt.from_rpc("0xhash", {"receipt": {"status": "0x1", "blockNumber": 5}})
    assert by_status.success is True
    assert by_status.block_number == 5
