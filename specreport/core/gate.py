"""
One-shot synchronization gates.

A gate orders two handlers that have a causal but not a temporal guarantee:
the producer resolves it exactly once, any number of consumers wait on it,
and consumers arriving after resolution pass straight through.
"""

from __future__ import annotations

import asyncio
from collections.abc import Hashable, Iterator
from typing import Generic, TypeVar

from loguru import logger

from specreport.datastructures.type_aliases import DurationSeconds

from .exceptions import GateTimeoutError


class DeferredGate:
    """An unsettled future resolved by one producer and awaited by many."""

    __slots__ = ("name", "_event")

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._event = asyncio.Event()

    @property
    def resolved(self) -> bool:
        return self._event.is_set()

    def resolve(self) -> bool:
        """Resolve the gate. Returns False if it was already resolved."""
        if self._event.is_set():
            return False
        self._event.set()
        return True

    async def wait(self, timeout: DurationSeconds | None = None) -> None:
        """Suspend until resolved; with ``timeout`` raise GateTimeoutError."""
        if self._event.is_set():
            return

        if timeout is None:
            await self._event.wait()
            return

        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except TimeoutError as e:
            raise GateTimeoutError(self.name, timeout) from e

    def __repr__(self) -> str:
        state = "resolved" if self.resolved else "pending"
        return f"DeferredGate({self.name!r}, {state})"


K = TypeVar("K", bound=Hashable)


class GateTable(Generic[K]):
    """Gates keyed by identity, created on first reference and never replaced."""

    def __init__(self, name: str, timeout: DurationSeconds | None = None) -> None:
        self.name = name
        self.timeout = timeout
        self._gates: dict[K, DeferredGate] = {}

    def ensure(self, key: K) -> DeferredGate:
        gate = self._gates.get(key)
        if gate is None:
            gate = DeferredGate(f"{self.name}[{key}]")
            self._gates[key] = gate
        return gate

    def resolve(self, key: K) -> bool:
        resolved = self.ensure(key).resolve()
        if not resolved:
            logger.debug(f"[{self.name}] gate for {key} was already resolved")
        return resolved

    async def wait(self, key: K) -> None:
        await self.ensure(key).wait(self.timeout)

    def is_resolved(self, key: K) -> bool:
        gate = self._gates.get(key)
        return gate is not None and gate.resolved

    def pending(self) -> list[K]:
        """Keys whose gate was referenced but never resolved."""
        return [key for key, gate in self._gates.items() if not gate.resolved]

    def __contains__(self, key: object) -> bool:
        return key in self._gates

    def __iter__(self) -> Iterator[K]:
        return iter(self._gates)

    def __len__(self) -> int:
        return len(self._gates)
