"""
Calldata and hashing for ERC-4337 user operations (EntryPoint v0.6).

Everything a smart account sends is wrapped in its `execute` function; the
owner signs the EntryPoint hash of the finished operation.
"""

from __future__ import annotations

from typing import Optional

from eth_abi import encode
from eth_utils import keccak, to_bytes

from ...config import settings
from .userop import UserOperation

GET_NONCE_SIGNATURE = "getNonce(address,uint192)"


def function_selector(signature: str) -> str:
    """0x-prefixed 4-byte selector of a canonical function signature."""
    return f"0x{keccak(text=signature)[:4].hex()}"


def get_execute_selector(
    signature: Optional[str] = None,
    selector_override: Optional[str] = None,
) -> str:
    """Selector of the account's execute function; a configured override wins."""
    override = selector_override or settings.account_execute_selector
    if override:
        if not override.startswith("0x") or len(override) != 10:
            raise ValueError("Execute selector override must be 4 bytes (0x........)")
        return override
    return function_selector(signature or settings.account_execute_signature)


def build_execute_call_data(
    to_address: str,
    value_wei: int,
    data: str,
    *,
    signature: Optional[str] = None,
    selector_override: Optional[str] = None,
) -> str:
    """Wrap one call in the smart account's execute(address,uint256,bytes)."""
    selector = get_execute_selector(signature, selector_override)
    args = encode(
        ["address", "uint256", "bytes"],
        [to_address, value_wei, to_bytes(hexstr=data or "0x")],
    )
    return selector + args.hex()


def build_entrypoint_get_nonce_call(sender: str, key: int = 0) -> str:
    return function_selector(GET_NONCE_SIGNATURE) + encode(["address", "uint192"], [sender, key]).hex()


def _hash_hex(data: str) -> bytes:
    return keccak(to_bytes(hexstr=data or "0x"))


def get_user_operation_hash(user_op: UserOperation, entry_point: str, chain_id: int) -> str:
    """
    Compute the EntryPoint v0.6 hash a smart account owner signs.

    keccak256(abi.encode(keccak256(pack(userOp)), entryPoint, chainId)), where
    the dynamic fields of the user operation are hashed before packing.
    """
    packed = encode(
        [
            "address", "uint256", "bytes32", "bytes32",
            "uint256", "uint256", "uint256", "uint256", "uint256",
            "bytes32",
        ],
        [
            user_op.sender,
            user_op.nonce,
            _hash_hex(user_op.init_code),
            _hash_hex(user_op.call_data),
            user_op.call_gas_limit,
            user_op.verification_gas_limit,
            user_op.pre_verification_gas,
            user_op.max_fee_per_gas,
            user_op.max_priority_fee_per_gas,
            _hash_hex(user_op.paymaster_and_data),
        ],
    )
    digest = keccak(encode(["bytes32", "address", "uint256"], [keccak(packed), entry_point, chain_id]))
    return f"0x{digest.hex()}"
