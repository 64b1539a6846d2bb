"""
Nonce reservation for user operations.

A smart account may submit an approval and the call that depends on it
back to back, before either is included. The EntryPoint's on-chain nonce
does not move until inclusion, so both would be built with the same nonce.
The manager hands out consecutive nonces above the on-chain value and
takes back the ones whose send never reached the bundler.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional, Set


@dataclass
class NonceState:
    """Tracks nonce state for one sender on one chain."""
    sender: str
    chain_id: int
    on_chain_nonce: int                         # Last value read from the EntryPoint
    next_nonce: int                             # Next candidate to hand out
    reserved_nonces: Set[int] = field(default_factory=set)


class NonceManager:
    """
    Hands out nonces for concurrent user operations from the same sender.

    Every reservation re-reads the on-chain nonce, so nonces consumed
    elsewhere (or included since the last send) are never handed out again.
    """

    def __init__(self) -> None:
        self._states: Dict[str, NonceState] = {}  # key: "{chain_id}:{sender}"
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_key(self, chain_id: int, sender: str) -> str:
        return f"{chain_id}:{sender.lower()}"

    def _get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def reserve(
        self,
        sender: str,
        chain_id: int,
        fetch_on_chain_nonce: Callable[[], Awaitable[int]],
    ) -> int:
        """
        Reserve the next nonce for `sender`.

        Args:
            sender: Smart account address
            chain_id: Chain the account operates on
            fetch_on_chain_nonce: Reads the EntryPoint nonce

        Returns:
            max(on-chain nonce, last reserved + 1), skipping reserved values
        """
        key = self._get_key(chain_id, sender)
        async with self._get_lock(key):
            on_chain = await fetch_on_chain_nonce()

            state = self._states.get(key)
            if state is None:
                state = NonceState(
                    sender=sender.lower(),
                    chain_id=chain_id,
                    on_chain_nonce=on_chain,
                    next_nonce=on_chain,
                )
                self._states[key] = state

            state.on_chain_nonce = on_chain
            # Anything below the on-chain value has been included.
            state.reserved_nonces = {n for n in state.reserved_nonces if n >= on_chain}

            nonce = max(on_chain, state.next_nonce)
            while nonce in state.reserved_nonces:
                nonce += 1

            state.reserved_nonces.add(nonce)
            state.next_nonce = nonce + 1
            return nonce

    async def release(self, sender: str, chain_id: int, nonce: int) -> None:
        """Give back a nonce whose user operation was never accepted by the bundler."""
        key = self._get_key(chain_id, sender)
        async with self._get_lock(key):
            state = self._states.get(key)
            if state is None:
                return
            state.reserved_nonces.discard(nonce)
            # Step back only when nothing above it is still reserved.
            if state.next_nonce == nonce + 1:
                state.next_nonce = nonce

    def get_state(self, sender: str, chain_id: int) -> Optional[NonceState]:
        return self._states.get(self._get_key(chain_id, sender))
