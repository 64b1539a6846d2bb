"""Helpers for validating EVM addresses and recognising native-currency sentinels."""

from __future__ import annotations

import re
from functools import lru_cache

from eth_utils import to_checksum_address

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_PLACEHOLDER = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

# Both sentinels mean "native currency, no approval needed".
NATIVE_TOKEN_ADDRESSES = frozenset({ZERO_ADDRESS.lower(), NATIVE_PLACEHOLDER.lower()})

# Shorthand accepted by transfer actions in place of a token address.
NATIVE_ALIASES = frozenset({"eth", "native"})


@lru_cache(maxsize=256)
def is_valid_evm_address(address: str) -> bool:
    if not address:
        return False
    return bool(_EVM_ADDRESS_RE.match(address))


def is_native_token(token: str | None) -> bool:
    """True for either native sentinel address or the `eth` shorthand."""

    if not token:
        return False
    normalized = token.strip().lower()
    return normalized in NATIVE_TOKEN_ADDRESSES or normalized in NATIVE_ALIASES


def checksum(address: str) -> str:
    if not is_valid_evm_address(address):
        raise ValueError(f"Invalid address: {address}")
    return to_checksum_address(address)
