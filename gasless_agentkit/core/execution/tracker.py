"""
Confirmation tracking for submitted user operations.

ConfirmationTracker is an explicit state machine: each `poll()` performs one
tick against the bundler (and, for deeper confirmation, the chain head).
`wait()` drives the ticks on the caller's event loop and can be stopped with
an asyncio.Event. Stopping only ends the wait; the operation itself is
already broadcast and cannot be undone.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from ...config import settings
from ..errors import ConfirmationTimeout
from .models import (
    ConfirmationParams,
    ConfirmationStatus,
    Confirmed,
    Failed,
    OperationHandle,
    Pending,
)
from .userop import UserOpReceipt

if TYPE_CHECKING:
    from ..account.base import SmartAccount

logger = logging.getLogger(__name__)

STOPPED_WAITING = "Stopped waiting for the transaction; it may still be included later"


def default_params(
    confirmations: Optional[int] = None,
    max_duration_ms: Optional[int] = None,
    interval_ms: Optional[int] = None,
) -> ConfirmationParams:
    """ConfirmationParams with unset values taken from settings."""
    return ConfirmationParams(
        confirmations=confirmations if confirmations is not None else settings.confirmation_blocks,
        max_duration_ms=max_duration_ms if max_duration_ms is not None else settings.confirmation_max_duration_ms,
        interval_ms=interval_ms if interval_ms is not None else settings.confirmation_interval_ms,
    )


class ConfirmationTracker:
    """
    Polls one operation handle until it is confirmed, fails or times out.

    Elapsed time is counted in ticks of `interval_ms`, so a tracker with
    interval 5000 and max duration 15000 gives up after exactly three polls
    without a receipt. Several trackers may poll the same handle; polling
    has no side effects.
    """

    def __init__(
        self,
        account: "SmartAccount",
        operation_handle: OperationHandle,
        params: Optional[ConfirmationParams] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.account = account
        self.operation_handle = operation_handle
        self.params = params or default_params()
        self.elapsed_ms = 0
        self.ticks = 0
        self._sleep = sleep
        self._receipt: Optional[UserOpReceipt] = None
        self._status: ConfirmationStatus = Pending()

    @property
    def status(self) -> ConfirmationStatus:
        return self._status

    async def poll(self) -> ConfirmationStatus:
        """Run one tick. Once a final status is reached it is returned without I/O."""
        if self._status.is_final:
            return self._status

        self.ticks += 1
        try:
            status = await self._tick()
        except Exception as exc:
            # No internal retry: one failed query ends the wait.
            logger.warning(f"Status query for {self.operation_handle} failed: {exc}")
            status = Failed(reason=str(exc) or exc.__class__.__name__)

        self._status = status
        return status

    async def _tick(self) -> ConfirmationStatus:
        if self._receipt is None:
            receipt = await self.account.bundler.get_user_operation_receipt(self.operation_handle)
            if receipt is not None and not receipt.success:
                return Failed(reason=receipt.reason or "User operation execution failed")
            if receipt is not None and receipt.block_number is not None:
                self._receipt = receipt

        if self._receipt is None:
            return self._elapse()

        receipt = self._receipt
        raw = receipt.raw or {}
        if self.params.confirmations <= 1:
            return Confirmed(block_number=receipt.block_number, confirmations=1, receipt=raw)

        head = await self.account.rpc_provider.get_block_number()
        depth = head - receipt.block_number
        if depth >= self.params.confirmations:
            return Confirmed(block_number=receipt.block_number, confirmations=depth, receipt=raw)

        logger.debug(
            f"{self.operation_handle}: {depth}/{self.params.confirmations} confirmations"
        )
        return self._elapse()

    def _elapse(self) -> Pending:
        self.elapsed_ms += self.params.interval_ms
        if self.elapsed_ms >= self.params.max_duration_ms:
            timeout = ConfirmationTimeout(self.operation_handle, self.params.max_duration_ms)
            return Pending(reason=timeout.message, final=True)
        return Pending()

    async def _pause(self, cancel_event: Optional[asyncio.Event]) -> None:
        seconds = self.params.interval_ms / 1000
        if cancel_event is None:
            await self._sleep(seconds)
            return
        if cancel_event.is_set():
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def wait(self, cancel_event: Optional[asyncio.Event] = None) -> ConfirmationStatus:
        """
        Poll every `interval_ms` until a final status.

        The first poll happens after one interval and at least one poll is
        always made, even when `max_duration_ms < interval_ms` or the cancel
        event is already set.
        """
        while True:
            await self._pause(cancel_event)
            status = await self.poll()
            if status.is_final:
                return status
            if cancel_event is not None and cancel_event.is_set():
                # The tracker itself stays pollable.
                return Pending(reason=STOPPED_WAITING, final=True)


async def wait_for_transaction(
    account: "SmartAccount",
    operation_handle: OperationHandle,
    confirmations: Optional[int] = None,
    max_duration_ms: Optional[int] = None,
    interval_ms: Optional[int] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> ConfirmationStatus:
    tracker = ConfirmationTracker(
        account,
        operation_handle,
        default_params(confirmations, max_duration_ms, interval_ms),
    )
    return await tracker.wait(cancel_event)


def format_status(status: ConfirmationStatus) -> str:
    """Human-readable report of a confirmation status."""
    if isinstance(status, Confirmed):
        receipt = json.dumps(status.receipt, indent=2, default=str)
        return (
            "Transaction confirmed!\n"
            f"Block Number: {status.block_number}\n"
            f"Block Confirmations: {status.confirmations}\n"
            f"Receipt: {receipt}"
        )
    if isinstance(status, Failed):
        return f"Transaction failed!\nError: {status.reason}"
    note = f"\nNote: {status.reason}" if status.reason else ""
    return (
        f"Transaction is still pending.{note}\n"
        "You can try checking again with a longer maxDuration."
    )
