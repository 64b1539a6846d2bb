"""
Smart account interface.

Everything value-moving goes through a SmartAccount. Callers choose the
implementation (a bundler-backed account, or a fake in tests) and hand it to
the session; nothing in the package picks one based on the environment.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ..execution.models import SendResult, SponsorshipMode, TokenBalance, TransactionRequest
from ...providers.bundler import BundlerProvider
from ...providers.rpc import ChainRpcProvider
from ...services.address import is_native_token
from ...services.tokens import ERC20_METADATA_ABI, NATIVE_DECIMALS, format_units, get_decimals


class SmartAccount(ABC):
    """ERC-4337 smart account capable of sponsored sends."""

    rpc_provider: ChainRpcProvider
    bundler: BundlerProvider

    @property
    def chain_id(self) -> int:
        return self.rpc_provider.chain_id

    @abstractmethod
    async def get_address(self) -> str:
        pass

    @abstractmethod
    async def send_transaction(
        self,
        request: TransactionRequest,
        sponsorship: SponsorshipMode = SponsorshipMode.SPONSORED,
    ) -> SendResult:
        """
        Submit a single call through the sponsor.

        Sponsor rejections come back as `SendResult.error`; transport
        failures are raised.
        """
        pass

    @abstractmethod
    async def sign_typed_data(self, payload: Dict[str, Any]) -> str:
        pass

    async def read_contract(
        self,
        abi: Sequence[Dict[str, Any]],
        address: str,
        function_name: str,
        args: Optional[Sequence[Any]] = None,
    ) -> Any:
        return await self.rpc_provider.read_contract(abi, address, function_name, args)

    async def get_balances(self, token_addresses: Optional[List[str]] = None) -> List[TokenBalance]:
        """Native balance when no tokens are given, otherwise one entry per token."""
        owner = await self.get_address()
        if not token_addresses:
            wei = await self.rpc_provider.get_native_balance(owner)
            return [TokenBalance(address="native", formatted_amount=format_units(wei, NATIVE_DECIMALS))]

        balances: List[TokenBalance] = []
        for token in token_addresses:
            if is_native_token(token):
                wei = await self.rpc_provider.get_native_balance(owner)
                balances.append(TokenBalance(address=token, formatted_amount=format_units(wei, NATIVE_DECIMALS)))
                continue
            raw = await self.rpc_provider.read_contract(ERC20_METADATA_ABI, token, "balanceOf", [owner])
            decimals = await get_decimals(self.rpc_provider, token)
            balances.append(TokenBalance(address=token, formatted_amount=format_units(int(raw), decimals)))
        return balances
