# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for KeyedMutex."""

import asyncio

from docuflow_wopi.locks import KeyedMutex


async def test_same_key_serializes():
    """Holders of the same key run one after the other."""
    mutex = KeyedMutex()
    events = []

    async def worker(name):
        async with mutex.hold("doc1"):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert events in (
        ["a-in", "a-out", "b-in", "b-out"],
        ["b-in", "b-out", "a-in", "a-out"],
    )


async def test_different_keys_do_not_contend():
    """A held key does not block another key."""
    mutex = KeyedMutex()

    async with mutex.hold("doc1"):
        await asyncio.wait_for(_enter(mutex, "doc2"), timeout=1)


async def _enter(mutex, key):
    async with mutex.hold(key):
        return True


async def test_entries_dropped_when_idle():
    """The key table shrinks back once holders leave."""
    mutex = KeyedMutex()

    async with mutex.hold("doc1"):
        assert len(mutex) == 1

    assert len(mutex) == 0


async def test_entry_released_on_exception():
    """An exception inside the block still frees the key."""
    mutex = KeyedMutex()

    try:
        async with mutex.hold("doc1"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    assert len(mutex) == 0
    async with mutex.hold("doc1"):
        pass
