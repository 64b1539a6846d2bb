"""
AgentkitSession

Owns the shared HTTP client, the read-only chain client and, when a wallet
is configured, the value-moving smart account. Actions receive these from
the session at dispatch time instead of reaching for process-wide state.

Usage:
    async with AgentkitSession.from_settings() as session:
        reply = await session.dispatch("get_balance", {})
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from ...config import Settings, settings
from ...providers.bundler import BundlerProvider
from ...providers.paymaster import PaymasterProvider
from ...providers.rpc import ChainRpcProvider
from .base import SmartAccount
from .signer import EthAccountSigner, UserOperationSigner
from .smart_account import BundlerSmartAccount

if TYPE_CHECKING:
    from ..agent.registry import ActionRegistry

logger = logging.getLogger(__name__)


class AgentkitSession:
    def __init__(
        self,
        read_client: ChainRpcProvider,
        account: Optional[SmartAccount] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        owns_client: bool = False,
    ) -> None:
        self.read_client = read_client
        self.account = account
        self._http_client = http_client
        self._owns_client = owns_client
        self._registry: Optional["ActionRegistry"] = None

    @classmethod
    def from_settings(
        cls,
        config: Settings = settings,
        signer: Optional[UserOperationSigner] = None,
    ) -> "AgentkitSession":
        """
        Build a session from configuration.

        The smart account is only created when the wallet settings are
        complete (or a signer is passed in); otherwise the session serves
        read-only actions and value-moving ones report the missing account.
        """
        client = httpx.AsyncClient(timeout=config.request_timeout_seconds)
        read_client = ChainRpcProvider(config.rpc_url or None, client, chain_id=config.chain_id)

        account: Optional[SmartAccount] = None
        if config.has_wallet or (signer is not None and config.smart_account_address):
            account = BundlerSmartAccount(
                address=config.smart_account_address,
                signer=signer or EthAccountSigner(config.private_key),
                rpc_provider=read_client,
                bundler=BundlerProvider(config.bundler_url, client),
                paymaster=PaymasterProvider(
                    config.paymaster_url,
                    client,
                    rpc_method=config.paymaster_rpc_method,
                ),
                entry_point=config.entry_point_address,
                execute_signature=config.account_execute_signature,
            )
            logger.info(f"Smart account {config.smart_account_address} ready on chain {config.chain_id}")
        else:
            logger.info("No wallet configured; value-moving actions are unavailable")

        return cls(read_client, account, http_client=client, owns_client=True)

    @property
    def has_account(self) -> bool:
        return self.account is not None

    @property
    def registry(self) -> "ActionRegistry":
        if self._registry is None:
            from ..agent.registry import default_registry

            self._registry = default_registry()
        return self._registry

    async def dispatch(
        self,
        name: str,
        args: Optional[Dict[str, Any]] = None,
        registry: Optional["ActionRegistry"] = None,
    ) -> str:
        """Run one action against this session's resources."""
        return await (registry or self.registry).dispatch(name, args, self)

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def __aenter__(self) -> "AgentkitSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
