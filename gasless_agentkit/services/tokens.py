"""
Token lookup and amount formatting.

Symbol resolution is a chain-scoped lookup table; amounts are converted
between human-readable decimal strings and base units using the token's
on-chain decimals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Dict, Optional

from .address import ZERO_ADDRESS, is_native_token

if TYPE_CHECKING:
    from ..providers.rpc import ChainRpcProvider

logger = logging.getLogger(__name__)


NATIVE_DECIMALS = 18

SUPPORTED_CHAINS: Dict[int, str] = {
    8453: "Base",
    250: "Fantom",
    1284: "Moonbeam",
    1088: "Metis",
    43114: "Avalanche",
    56: "BNB Smart Chain",
}

NATIVE_SYMBOLS: Dict[int, str] = {
    8453: "ETH",
    250: "FTM",
    1284: "GLMR",
    1088: "METIS",
    43114: "AVAX",
    56: "BNB",
}

DEFAULT_RPC_URLS: Dict[int, str] = {
    8453: "https://mainnet.base.org",
    250: "https://rpc.ftm.tools",
    1284: "https://rpc.api.moonbeam.network",
    1088: "https://andromeda.metis.io/?owner=1088",
    43114: "https://api.avax.network/ext/bc/C/rpc",
    56: "https://bsc-dataseed.bnbchain.org",
}

TOKEN_MAPPINGS: Dict[int, Dict[str, str]] = {
    43114: {
        "USDT": "0x9702230a8ea53601f5cd2dc00fdbc13d4df4a8c7",
        "USDC": "0xb97ef9ef8734c71904d8002f8b6bc66dd9c48a6e",
        "WAVAX": "0xb31f66aa3c1e785363f0875a1b74e27b85fd66c7",
        "BTC.E": "0x152b9d0fdc40c096757f570a51e494bd4b943e50",
        "BUSD": "0x9c9e5fd8bbc25984b178fdce6117defa39d2db39",
        "WETH": "0x49d5c2bdffac6ce2bfdb6640f4f80f226bc10bab",
        "USDC.E": "0xa7d7079b0fead91f3e65f86e8915cb59c1a4c664",
        "WBTC": "0x50b7545627a5162f82a992c33b87adc75187b218",
        "DAI": "0xd586e7f844cea2f87f50152665bcbc2c279d8d70",
    },
    56: {
        "USDT": "0x55d398326f99059ff775485246999027b3197955",
        "WBNB": "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c",
        "WETH": "0x2170ed0880ac9a755fd29b2688956bd959f933f8",
        "BUSD": "0xe9e7cea3dedca5984780bafc599bd69add087d56",
        "CAKE": "0x0e09fabb73bd3ade0a17ecc321fd13a19e81ce82",
        "SOL": "0x570a5d26f7765ecb712c0924e4de545b89fd43df",
        "TST": "0x86bb94ddd16efc8bc58e6b056e8df71d9e666429",
        "DAI": "0x1af3f329e8be154074d8769d1ffa4ee058b1dbc3",
        "TON": "0x76a797a59ba2c17726896976b7b3747bfd1d220f",
        "PEPE": "0x25d887ce7a35172c62febfd67a1856f20faebb00",
    },
    8453: {},
    250: {},
    1284: {},
    1088: {},
}

ERC20_METADATA_ABI = [
    {
        "type": "function",
        "name": "name",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "symbol",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "type": "function",
        "name": "allowance",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]


class TokenLookupError(Exception):
    """Raised when token metadata cannot be read."""
    pass


@dataclass
class TokenDetails:
    name: str
    symbol: str
    decimals: int
    address: str
    chain_id: int

    def describe(self) -> str:
        return (
            f"Name: {self.name}\n"
            f"Symbol: {self.symbol}\n"
            f"Decimals: {self.decimals}\n"
            f"Address: {self.address}\n"
            f"Chain ID: {self.chain_id}"
        )


def get_default_rpc_url(chain_id: int) -> str:
    return DEFAULT_RPC_URLS.get(chain_id, "")


def resolve_token_symbol(chain_id: int, symbol: str) -> Optional[str]:
    """
    Resolve a ticker symbol to a token address on `chain_id`.

    Native currency symbols resolve to the zero address. Returns None for
    unknown chains or symbols.
    """
    chain_tokens = TOKEN_MAPPINGS.get(chain_id)
    if chain_tokens is None:
        logger.warning(f"Chain ID {chain_id} not found in token mappings")
        return None

    normalized = symbol.strip().upper()
    if normalized in chain_tokens:
        return chain_tokens[normalized]
    if normalized in set(NATIVE_SYMBOLS.values()):
        return ZERO_ADDRESS

    logger.warning(f"Token symbol {normalized} not found for chain ID {chain_id}")
    return None


def parse_units(amount: str, decimals: int) -> int:
    """
    Convert a human decimal string into base units.

    Digits beyond `decimals` are truncated. Raises ValueError on malformed
    or negative input.
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {amount}") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount}")
    if value < 0:
        raise ValueError(f"Amount must not be negative: {amount}")
    scaled = (value * (Decimal(10) ** decimals)).quantize(Decimal(1), rounding=ROUND_DOWN)
    return int(scaled)


def format_units(value: int, decimals: int) -> str:
    """Base units to a plain decimal string without trailing zeros."""
    quantized = Decimal(value) / (Decimal(10) ** decimals)
    text = format(quantized, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


async def get_decimals(reader: "ChainRpcProvider", token_address: str) -> int:
    if is_native_token(token_address):
        return NATIVE_DECIMALS
    decimals = await reader.read_contract(ERC20_METADATA_ABI, token_address, "decimals")
    if not decimals:
        raise TokenLookupError(f"Could not get decimals for token {token_address}")
    return int(decimals)


async def format_token_amount(reader: "ChainRpcProvider", token_address: str, amount: str) -> int:
    """
    Human amount to base units for `token_address`.

    A failed decimals read is raised rather than guessed: assuming 18 for a
    6-decimal token would move a trillion times the requested amount.
    """
    decimals = await get_decimals(reader, token_address)
    return parse_units(amount, decimals)


async def fetch_token_details(reader: "ChainRpcProvider", token_address: str) -> TokenDetails:
    name: Any = await reader.read_contract(ERC20_METADATA_ABI, token_address, "name")
    symbol: Any = await reader.read_contract(ERC20_METADATA_ABI, token_address, "symbol")
    decimals: Any = await reader.read_contract(ERC20_METADATA_ABI, token_address, "decimals")
    if not name or not symbol or decimals is None:
        raise TokenLookupError(f"Incomplete token metadata for {token_address}")
    return TokenDetails(
        name=name,
        symbol=symbol,
        decimals=int(decimals),
        address=token_address,
        chain_id=reader.chain_id,
    )
