"""Explicit handle on the shared registry state passed to every workflow."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from namebridge.domain.model import normalize_key

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from namebridge.domain.consistency.views import RemoteViews
    from namebridge.domain.ports import DisambiguationCallback, NameParser
    from namebridge.domain.registry.registry import Registry


@dataclass(slots=True, kw_only=True)
class RegistryContext:
    """Registry, remote views and collaborators for one session.

    Mutations of the same identity are serialized through per-key locks;
    different identities proceed concurrently. A key's lock lives only while
    some task holds or waits for it. ``exclusive()`` closes the mutation gate
    entirely, e.g. while a duplicate-key conflict awaits a human.
    """

    registry: Registry
    views: RemoteViews | None = None
    disambiguate: DisambiguationCallback | None = None
    name_parser: NameParser | None = None
    _locks: dict[str, asyncio.Lock] = field(
        default_factory=dict[str, asyncio.Lock], init=False, repr=False
    )
    # Tasks holding or waiting for each key's lock.
    _holders: dict[str, int] = field(default_factory=dict[str, int], init=False, repr=False)
    _gate: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def gate_closed(self) -> bool:
        return self._gate.locked()

    @property
    def active_keys(self) -> tuple[str, ...]:
        return tuple(sorted(self._locks))

    @asynccontextmanager
    async def locked(self, *keys: str, gated: bool = True) -> AsyncIterator[None]:
        """Hold the locks of ``keys`` (sorted, so lock order is global)."""

        ordered = sorted({normalize_key(key) for key in keys})
        async with AsyncExitStack() as stack:
            if gated:
                async with self._gate:
                    for key in ordered:
                        await stack.enter_async_context(self._hold(key))
            else:
                for key in ordered:
                    await stack.enter_async_context(self._hold(key))
            yield

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """Block every gated mutation until the block exits."""

        async with self._gate:
            yield

    @asynccontextmanager
    async def _hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]
