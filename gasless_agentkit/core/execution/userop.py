"""
ERC-4337 UserOperation models and helpers.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional


def _to_hex(value: int) -> str:
    return hex(value)


def _parse_quantity(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = str(value)
    return int(text, 16) if text.startswith("0x") else int(text)


@dataclass
class UserOperation:
    """
    ERC-4337 (EntryPoint v0.6) UserOperation payload.

    Values should be supplied in raw units (wei / gas units) and are encoded
    as hex for RPC calls.
    """
    sender: str
    nonce: int
    init_code: str
    call_data: str
    call_gas_limit: int
    verification_gas_limit: int
    pre_verification_gas: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    paymaster_and_data: str = "0x"
    signature: str = "0x"

    def to_rpc_dict(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "nonce": _to_hex(self.nonce),
            "initCode": self.init_code,
            "callData": self.call_data,
            "callGasLimit": _to_hex(self.call_gas_limit),
            "verificationGasLimit": _to_hex(self.verification_gas_limit),
            "preVerificationGas": _to_hex(self.pre_verification_gas),
            "maxFeePerGas": _to_hex(self.max_fee_per_gas),
            "maxPriorityFeePerGas": _to_hex(self.max_priority_fee_per_gas),
            "paymasterAndData": self.paymaster_and_data,
            "signature": self.signature,
        }

    def with_gas(self, estimate: "UserOpGasEstimate") -> "UserOperation":
        return replace(
            self,
            call_gas_limit=estimate.call_gas_limit or self.call_gas_limit,
            verification_gas_limit=estimate.verification_gas_limit or self.verification_gas_limit,
            pre_verification_gas=estimate.pre_verification_gas or self.pre_verification_gas,
        )


@dataclass
class UserOpGasEstimate:
    call_gas_limit: int
    verification_gas_limit: int
    pre_verification_gas: int

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "UserOpGasEstimate":
        return cls(
            call_gas_limit=_parse_quantity(data.get("callGasLimit")) or 0,
            verification_gas_limit=_parse_quantity(data.get("verificationGasLimit")) or 0,
            pre_verification_gas=_parse_quantity(data.get("preVerificationGas")) or 0,
        )


@dataclass
class SponsorshipData:
    """Paymaster answer: paymasterAndData plus any gas limits it re-estimated."""
    paymaster_and_data: str
    gas: Optional[UserOpGasEstimate] = None

    @classmethod
    def from_rpc(cls, result: Any) -> Optional["SponsorshipData"]:
        if isinstance(result, str):
            return cls(paymaster_and_data=result)
        if not isinstance(result, dict):
            return None
        paymaster_and_data = result.get("paymasterAndData") or result.get("paymaster_and_data")
        if not paymaster_and_data:
            return None
        gas = None
        if result.get("callGasLimit") is not None:
            gas = UserOpGasEstimate.from_rpc(result)
        return cls(paymaster_and_data=paymaster_and_data, gas=gas)


@dataclass
class UserOpReceipt:
    """Bundler receipt for an included user operation."""
    user_op_hash: str
    success: bool
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    reason: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None

    @classmethod
    def from_rpc(cls, user_op_hash: str, result: Dict[str, Any]) -> "UserOpReceipt":
        receipt = result.get("receipt") or {}
        if "success" in result:
            success = bool(result.get("success"))
        else:
            success = _parse_quantity(receipt.get("status")) == 1
        return cls(
            user_op_hash=user_op_hash,
            success=success,
            transaction_hash=receipt.get("transactionHash"),
            block_number=_parse_quantity(receipt.get("blockNumber")),
            reason=result.get("reason"),
            raw=result,
        )
