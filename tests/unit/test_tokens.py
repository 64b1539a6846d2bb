from unittest.mock import AsyncMock, MagicMock

import pytest

from gasless_agentkit.services.address import ZERO_ADDRESS
from gasless_agentkit.services.tokens import (
    TokenLookupError,
    fetch_token_details,
    format_token_amount,
    format_units,
    parse_units,
    resolve_token_symbol,
)

TOKEN = "0x2222222222222222222222222222222222222222"


def test_parse_units_truncates_extra_digits():
    assert parse_units("1.5", 6) == 1_500_000
    assert parse_units("0.0000001", 6) == 0
    assert parse_units("2", 18) == 2 * 10**18


@pytest.mark.parametrize("amount", ["-1", "abc", "NaN", ""])
def test_parse_units_rejects_bad_input(amount):
    with pytest.raises(ValueError):
        parse_units(amount, 18)


def test_format_units_strips_trailing_zeros():
    assert format_units(1_500_000, 6) == "1.5"
    assert format_units(10**18, 18) == "1"
    assert format_units(0, 18) == "0"


def test_resolve_token_symbol():
    assert resolve_token_symbol(56, "usdt") == "0x55d398326f99059ff775485246999027b3197955"
    assert resolve_token_symbol(56, "BNB") == ZERO_ADDRESS
    assert resolve_token_symbol(56, "NOPE") is None
    assert resolve_token_symbol(999999, "USDT") is None


@pytest.mark.asyncio
async def test_format_token_amount_reads_decimals():
    reader = MagicMock()
    reader.read_contract = AsyncMock(return_value=6)

    assert await format_token_amount(reader, TOKEN, "2.5") == 2_500_000
    reader.read_contract.assert_awaited_once()


@pytest.mark.asyncio
async def test_format_token_amount_native_needs_no_read():
    reader = MagicMock()
    reader.read_contract = AsyncMock()

    assert await format_token_amount(reader, "eth", "1") == 10**18
    reader.read_contract.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_decimals_is_an_error_not_a_guess():
    reader = MagicMock()
    reader.read_contract = AsyncMock(return_value=0)

    with pytest.raises(TokenLookupError):
        await format_token_amount(reader, TOKEN, "1")


@pytest.mark.asyncio
async def test_fetch_token_details():
    values = {"name": "Tether USD", "symbol": "USDT", "decimals": 6}
    reader = MagicMock()
    reader.chain_id = 56
    reader.read_contract = AsyncMock(side_effect=lambda abi, address, fn, args=None: values[fn])

    details = await fetch_token_details(reader, TOKEN)

    assert details.symbol == "USDT"
    assert details.decimals == 6
    assert "Chain ID: 56" in details.describe()
