"""Tests for the in-process session store."""

import asyncio

import pytest

from hospital_match.services.session_store import SessionStore, Turn

pytestmark = pytest.mark.asyncio


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


async def test_open_creates_empty_session():
    store = SessionStore()
    async with store.open("s1") as session:
        assert session.is_empty
        session.append("user", "hello")

    assert "s1" in store
    assert store.transcript("s1") == [Turn(role="user", text="hello")]


async def test_transcript_of_unknown_session_is_empty():
    assert SessionStore().transcript("missing") == []


async def test_idle_sessions_expire():
    clock = FakeClock()
    store = SessionStore(ttl_seconds=60, clock=clock)
    async with store.open("old"):
        pass

    clock.now = 61
    async with store.open("new"):
        pass

    assert "old" not in store
    assert "new" in store


async def test_active_sessions_do_not_expire():
    clock = FakeClock()
    store = SessionStore(ttl_seconds=60, clock=clock)
    async with store.open("s1"):
        pass
    clock.now = 50
    async with store.open("s1"):
        pass
    clock.now = 100
    async with store.open("s2"):
        pass

    assert "s1" in store


async def test_least_recently_used_session_is_evicted():
    store = SessionStore(max_sessions=2)
    for sid in ("a", "b"):
        async with store.open(sid):
            pass
    # Touch "a" so "b" becomes the oldest.
    async with store.open("a"):
        pass
    async with store.open("c"):
        pass

    assert len(store) == 2
    assert "a" in store
    assert "b" not in store
    assert "c" in store


async def test_locked_session_is_not_evicted():
    store = SessionStore(max_sessions=1)
    async with store.open("busy"):
        async with store.open("other"):
            pass
        assert "busy" in store


async def test_turns_for_one_session_are_serialized():
    store = SessionStore()

    async def turn(label: str, delay: float) -> None:
        async with store.open("shared") as session:
            session.append("user", f"{label}-start")
            await asyncio.sleep(delay)
            session.append("user", f"{label}-end")

    await asyncio.gather(turn("first", 0.05), turn("second", 0.0))

    texts = [t.text for t in store.transcript("shared")]
    assert texts == ["first-start", "first-end", "second-start", "second-end"]
