"""Shared fixtures: an in-memory smart account that records every submission."""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from gasless_agentkit.core.account.base import SmartAccount
from gasless_agentkit.core.execution.models import SendResult, SponsorshipMode, TransactionRequest

OWNER = "0x1111111111111111111111111111111111111111"
TOKEN = "0x2222222222222222222222222222222222222222"
SPENDER = "0x3333333333333333333333333333333333333333"
RECIPIENT = "0x4444444444444444444444444444444444444444"


class FakeSmartAccount(SmartAccount):
    """
    Smart account double.

    `send_transaction` answers from `responses` in order (an exception in the
    list is raised), then falls back to accepting with a fresh handle.
    Contract reads are served from `contract_values` keyed by function name.
    """

    def __init__(self, address: str = OWNER, chain_id: int = 8453, responses: Optional[List[Any]] = None):
        self.address = address
        self.sent: List[TransactionRequest] = []
        self.sponsorships: List[SponsorshipMode] = []
        self.responses = list(responses or [])
        self.contract_values: Dict[str, Any] = {"decimals": 18, "allowance": 0}

        self.rpc_provider = MagicMock()
        self.rpc_provider.chain_id = chain_id
        self.rpc_provider.get_block_number = AsyncMock(return_value=0)
        self.rpc_provider.get_native_balance = AsyncMock(return_value=0)
        self.rpc_provider.read_contract = AsyncMock(side_effect=self._read)

        self.bundler = MagicMock()
        self.bundler.get_user_operation_receipt = AsyncMock(return_value=None)
        self.bundler.get_bundler_url = MagicMock(return_value="https://bundler.test")

    def _read(self, abi, address, function_name, args=None):
        value = self.contract_values[function_name]
        if isinstance(value, Exception):
            raise value
        return value

    async def get_address(self) -> str:
        return self.address

    async def send_transaction(
        self,
        request: TransactionRequest,
        sponsorship: SponsorshipMode = SponsorshipMode.SPONSORED,
    ) -> SendResult:
        self.sent.append(request)
        self.sponsorships.append(sponsorship)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return SendResult(operation_handle=f"0x{len(self.sent):064x}")

    async def sign_typed_data(self, payload: Dict[str, Any]) -> str:
        return "0x"


@pytest.fixture
def account() -> FakeSmartAccount:
    return FakeSmartAccount()


@pytest.fixture
def make_account():
    def _make(**kwargs) -> FakeSmartAccount:
        return FakeSmartAccount(**kwargs)

    return _make
