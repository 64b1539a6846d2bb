"""Service layer helpers"""

from .address import is_native_token, is_valid_evm_address
from .tokens import (
    TokenDetails,
    TokenLookupError,
    fetch_token_details,
    format_token_amount,
    format_units,
    parse_units,
    resolve_token_symbol,
)

__all__ = [
    "is_native_token",
    "is_valid_evm_address",
    "TokenDetails",
    "TokenLookupError",
    "fetch_token_details",
    "format_token_amount",
    "format_units",
    "parse_units",
    "resolve_token_symbol",
]
