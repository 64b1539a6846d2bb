from abc import ABC, abstractmethod
from typing import Any, Optional, Type

import httpx


class ProviderError(Exception):
    """Base error raised by external service providers"""

    def __init__(self, message: Any, code: Optional[int] = None):
        if isinstance(message, dict):
            code = message.get("code", code)
            message = message.get("message") or str(message)
        super().__init__(str(message))
        self.message = str(message)
        self.code = code


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass


class JsonRpcProvider(Provider):
    """
    Provider speaking JSON-RPC 2.0 over HTTP.

    The httpx client is owned by the session that created the provider; a
    provider built without one lazily creates its own.
    """

    error_class: Type[ProviderError] = ProviderError

    def __init__(self, rpc_url: str, client: Optional[httpx.AsyncClient] = None) -> None:
        self.rpc_url = rpc_url
        self._client = client
        self._request_id = 0

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def _rpc_call(self, method: str, params: list[Any]) -> Any:
        if not await self.ready():
            raise self.error_class(f"{self.name} provider is not configured")
        if not self._client or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)

        self._request_id += 1
        response = await self._client.post(
            self.rpc_url,
            json={"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params},
        )
        response.raise_for_status()
        payload = response.json()
        if payload.get("error"):
            raise self.error_class(payload["error"])
        return payload.get("result")
