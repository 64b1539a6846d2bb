"""
Transaction builder for the calls the smart account submits.
"""

from typing import Any, Dict

from .models import TransactionRequest


# Common contract selectors (minimal for encoding)
ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)
ERC20_TRANSFER_SELECTOR = "0xa9059cbb"  # transfer(address,uint256)

# Maximum uint256 for unlimited approval
MAX_UINT256 = 2**256 - 1


def _encode_uint256(value: int) -> str:
    """Encode a uint256 as a 32-byte hex string (without 0x prefix)."""
    if value < 0 or value > MAX_UINT256:
        raise ValueError(f"Value out of uint256 range: {value}")
    return format(value, "064x")


def _encode_address(address: str) -> str:
    """Encode an address as a 32-byte hex string (without 0x prefix)."""
    addr = address.lower()
    if addr.startswith("0x"):
        addr = addr[2:]
    if len(addr) != 40:
        raise ValueError(f"Invalid address length: {address}")
    return addr.zfill(64)


def parse_value(value: Any) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, int):
        return value
    text = str(value)
    return int(text, 16) if text.startswith("0x") else int(text)


class TransactionBuilder:
    """
    Builds TransactionRequests for the calls the flows need.

    Handles:
    - ERC20 approvals and transfers
    - Native token transfers
    - Executable transactions returned by quote services
    """

    @staticmethod
    def build_erc20_approve(
        token_address: str,
        spender_address: str,
        amount: int = MAX_UINT256,
    ) -> TransactionRequest:
        """
        Build an ERC20 approval call.

        Args:
            token_address: The ERC20 token contract
            spender_address: The address being approved to spend
            amount: The amount to approve (default: unlimited)
        """
        calldata = (
            ERC20_APPROVE_SELECTOR +
            _encode_address(spender_address) +
            _encode_uint256(amount)
        )
        return TransactionRequest(to=token_address, data=calldata, value=0)

    @staticmethod
    def build_erc20_transfer(
        token_address: str,
        to_address: str,
        amount: int,
    ) -> TransactionRequest:
        """Build an ERC20 transfer(to, amount) call; amount in smallest units."""
        calldata = (
            ERC20_TRANSFER_SELECTOR +
            _encode_address(to_address) +
            _encode_uint256(amount)
        )
        return TransactionRequest(to=token_address, data=calldata, value=0)

    @staticmethod
    def build_native_transfer(to_address: str, amount_wei: int) -> TransactionRequest:
        """Build a native currency transfer."""
        return TransactionRequest(to=to_address, data="0x", value=amount_wei)

    @staticmethod
    def build_from_quote_tx(tx_data: Dict[str, Any], value_override: Any = None) -> TransactionRequest:
        """
        Build a TransactionRequest from a quote service `tx` object.

        Args:
            tx_data: The quote's {to, data, value} object
            value_override: Replace the quoted value (e.g. protocol fee handling)
        """
        to_address = tx_data.get("to")
        if not to_address:
            raise ValueError("Quote transaction has no target address")
        data = tx_data.get("data") or "0x"
        value = parse_value(tx_data.get("value")) if value_override is None else parse_value(value_override)
        return TransactionRequest(
            to=to_address,
            data=data if data.startswith("0x") else f"0x{data}",
            value=value,
        )
