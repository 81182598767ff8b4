from __future__ import annotations

import asyncio

from namebridge.domain.registry import Registry, RegistryContext


def test_same_key_mutations_are_serialized() -> None:
    ctx = RegistryContext(registry=Registry())
    events: list[str] = []

    async def mutate(name: str) -> None:
        async with ctx.locked("john smith"):
            events.append(f"{name}-start")
            await asyncio.sleep(0)
            events.append(f"{name}-end")

    async def run() -> None:
        await asyncio.gather(mutate("a"), mutate("b"))

    asyncio.run(run())

    assert events == ["a-start", "a-end", "b-start", "b-end"]


def test_different_keys_proceed_concurrently() -> None:
    ctx = RegistryContext(registry=Registry())
    events: list[str] = []

    async def mutate(key: str) -> None:
        async with ctx.locked(key):
            events.append(f"{key}-start")
            await asyncio.sleep(0)
            events.append(f"{key}-end")

    async def run() -> None:
        await asyncio.gather(mutate("A"), mutate("B"))

    asyncio.run(run())

    assert events == ["A-start", "B-start", "A-end", "B-end"]


def test_exclusive_blocks_gated_mutations() -> None:
    ctx = RegistryContext(registry=Registry())
    events: list[str] = []

    async def hold() -> None:
        async with ctx.exclusive():
            events.append("exclusive-start")
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            events.append("exclusive-end")

    async def mutate() -> None:
        async with ctx.locked("A"):
            events.append("mutation")

    async def run() -> None:
        await asyncio.gather(hold(), mutate())

    asyncio.run(run())

    assert events == ["exclusive-start", "exclusive-end", "mutation"]


def test_idle_key_locks_are_released() -> None:
    ctx = RegistryContext(registry=Registry())
    seen: list[tuple[str, ...]] = []

    async def mutate(key: str) -> None:
        async with ctx.locked(key, "shared"):
            seen.append(ctx.active_keys)
            await asyncio.sleep(0)

    async def run() -> None:
        await asyncio.gather(*(mutate(f"key {number}") for number in range(3)))

    asyncio.run(run())

    assert seen[0] == ("KEY 0", "SHARED")
    assert len(seen) == 3
    assert all("SHARED" in keys for keys in seen)
    assert ctx.active_keys == ()
