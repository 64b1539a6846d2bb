"""Built-in actions, registered by `default_registry()`."""

from .account import GET_ADDRESS, GET_BALANCE
from .contracts import ENCODE_FUNCTION_DATA, GET_TOKEN_DETAILS, READ_CONTRACT, SEND_TRANSACTION
from .status import CHECK_TRANSACTION_STATUS
from .trading import SMART_BRIDGE, SMART_SWAP
from .transfers import DISPERSE_TOKENS, SMART_TRANSFER

BUILTIN_ACTIONS = [
    GET_ADDRESS,
    GET_BALANCE,
    GET_TOKEN_DETAILS,
    READ_CONTRACT,
    ENCODE_FUNCTION_DATA,
    SEND_TRANSACTION,
    SMART_TRANSFER,
    SMART_SWAP,
    SMART_BRIDGE,
    DISPERSE_TOKENS,
    CHECK_TRANSACTION_STATUS,
]

__all__ = ["BUILTIN_ACTIONS"]
