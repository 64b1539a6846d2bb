"""
Signers for smart account owners.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from eth_utils import to_bytes


class UserOperationSigner(ABC):
    """Produces owner signatures for a smart account."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Owner EOA address"""
        pass

    @abstractmethod
    def sign_user_op_hash(self, user_op_hash: str) -> str:
        """Sign a user operation hash, returning a 0x-prefixed signature"""
        pass

    @abstractmethod
    def sign_typed_data(self, payload: Dict[str, Any]) -> str:
        """Sign an EIP-712 payload ({types, domain, primaryType, message})"""
        pass


class EthAccountSigner(UserOperationSigner):
    """Local private-key signer backed by eth-account."""

    def __init__(self, private_key: str) -> None:
        if not private_key:
            raise ValueError("A private key is required for EthAccountSigner")
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    def sign_user_op_hash(self, user_op_hash: str) -> str:
        # EIP-191 personal-sign over the raw 32-byte hash.
        message = encode_defunct(primitive=to_bytes(hexstr=user_op_hash))
        signed = self._account.sign_message(message)
        return f"0x{bytes(signed.signature).hex()}"

    def sign_typed_data(self, payload: Dict[str, Any]) -> str:
        message = encode_typed_data(full_message=payload)
        signed = self._account.sign_message(message)
        return f"0x{bytes(signed.signature).hex()}"
