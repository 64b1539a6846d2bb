"""Async client for the deBridge DLN quote API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from .base import Provider, ProviderError
from ..config import settings

logger = logging.getLogger(__name__)


class DebridgeError(ProviderError):
    """deBridge API error."""
    pass


@dataclass
class QuoteResponse:
    """
    Raw quote answer.

    Error statuses are returned rather than raised: the body carries the
    errorMessage text the flows turn into guidance.
    """
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def tx(self) -> Optional[Dict[str, Any]]:
        tx = self.body.get("tx")
        return tx if isinstance(tx, dict) else None

    @property
    def error_message(self) -> str:
        body = self.body
        message = body.get("errorMessage") or body.get("error") or body.get("message")
        if message:
            return str(message)
        details = body.get("details")
        return str(details) if details else ""


class DebridgeProvider(Provider):
    """Thin wrapper around the https://dln.debridge.finance endpoints."""

    name = "debridge"
    timeout_s = 20

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        referral_code: Optional[str] = None,
    ) -> None:
        self.base_url = (base_url or settings.debridge_api_base_url).rstrip("/")
        self.referral_code = referral_code if referral_code is not None else settings.debridge_referral_code
        self._client = client

    async def ready(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> Dict[str, str]:
        return {"accept": "application/json"}

    async def _get(self, path: str, params: Dict[str, Any]) -> QuoteResponse:
        url = f"{self.base_url}{path}"
        logger.debug(f"Calling deBridge API: {url} params={params}")
        if self._client is not None and not self._client.is_closed:
            response = await self._client.get(url, params=params, headers=self._headers())
        else:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                response = await client.get(url, params=params, headers=self._headers())
        try:
            body = response.json()
        except ValueError as exc:
            raise DebridgeError(
                f"deBridge API returned a non-JSON response ({response.status_code})"
            ) from exc
        if not isinstance(body, dict):
            raise DebridgeError(f"Unexpected deBridge API response ({response.status_code})")
        return QuoteResponse(status_code=response.status_code, body=body)

    async def get_swap_transaction(self, params: Dict[str, Any]) -> QuoteResponse:
        """Single-chain swap quote; the body holds `tx` when executable."""
        query = {"affiliateFeePercent": "0", **params}
        return await self._get("/chain/transaction", query)

    async def create_bridge_order(self, params: Dict[str, Any]) -> QuoteResponse:
        """Cross-chain DLN order; may ask for a preliminary approval first."""
        query = dict(params)
        if self.referral_code:
            query.setdefault("referralCode", self.referral_code)
        return await self._get("/dln/order/create-tx", query)
