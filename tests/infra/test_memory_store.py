"""Tests for InMemorySessionStore."""

from datetime import datetime, timedelta, timezone

import pytest

from novachat.core.budget import Message, Role
from novachat.infra.store import EMPTY_PREVIEW, InMemorySessionStore, make_preview

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_message(content: str, role: Role = Role.USER, minute: int = 0) -> Message:
    return Message(
        role=role, content=content, timestamp=BASE_TIME + timedelta(minutes=minute)
    )


def _make_store(clock, **kwargs) -> InMemorySessionStore:
    return InMemorySessionStore(clock=clock, **kwargs)


# =========================================================================
# append / list_messages
# =========================================================================


class TestAppendAndList:
    @pytest.mark.asyncio
    async def test_unknown_session_is_empty(self, clock):
        store = _make_store(clock)
        assert await store.list_messages("nope") == []

    @pytest.mark.asyncio
    async def test_insertion_order(self, clock):
        store = _make_store(clock)
        messages = [make_message(f"m{i}", minute=i) for i in range(3)]
        for m in messages:
            await store.append("s1", m)
        assert await store.list_messages("s1") == messages

    @pytest.mark.asyncio
    async def test_limit_returns_most_recent(self, clock):
        store = _make_store(clock)
        messages = [make_message(f"m{i}", minute=i) for i in range(5)]
        for m in messages:
            await store.append("s1", m)
        assert await store.list_messages("s1", limit=2) == messages[3:]
        assert await store.list_messages("s1", limit=10) == messages
        assert await store.list_messages("s1", limit=0) == []

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self, clock):
        store = _make_store(clock)
        await store.append("a", make_message("for a"))
        await store.append("b", make_message("for b"))
        assert [m.content for m in await store.list_messages("a")] == ["for a"]

    @pytest.mark.asyncio
    async def test_returned_list_is_a_copy(self, clock):
        store = _make_store(clock)
        await store.append("s1", make_message("hi"))
        listed = await store.list_messages("s1")
        listed.clear()
        assert len(await store.list_messages("s1")) == 1


# =========================================================================
# clear / discard
# =========================================================================


class TestClearAndDiscard:
    @pytest.mark.asyncio
    async def test_clear_then_fresh_start(self, clock):
        store = _make_store(clock)
        for i in range(3):
            await store.append("s1", make_message(f"old {i}"))

        assert await store.clear("s1") == 3
        assert await store.list_messages("s1") == []

        fresh = make_message("new")
        await store.append("s1", fresh)
        assert await store.list_messages("s1") == [fresh]

    @pytest.mark.asyncio
    async def test_clear_unknown_session(self, clock):
        store = _make_store(clock)
        assert await store.clear("ghost") == 0

    @pytest.mark.asyncio
    async def test_discard_removes_only_that_message(self, clock):
        store = _make_store(clock)
        keep = make_message("keep")
        drop = make_message("drop")
        await store.append("s1", keep)
        await store.append("s1", drop)

        assert await store.discard("s1", drop.id) is True
        assert await store.list_messages("s1") == [keep]
        assert await store.discard("s1", drop.id) is False

    @pytest.mark.asyncio
    async def test_discard_last_message_removes_session(self, clock):
        store = _make_store(clock)
        only = make_message("only")
        await store.append("s1", only)
        await store.discard("s1", only.id)
        assert await store.list_sessions() == []


# =========================================================================
# list_sessions
# =========================================================================


class TestListSessions:
    @pytest.mark.asyncio
    async def test_newest_first_with_preview_and_count(self, clock):
        store = _make_store(clock, preview_length=5)
        await store.append("old", make_message("first session", minute=0))
        await store.append("new", make_message("hello", minute=1))
        await store.append(
            "new", make_message("a long assistant reply", Role.ASSISTANT, minute=2)
        )

        summaries = await store.list_sessions()
        assert [s.id for s in summaries] == ["new", "old"]
        assert summaries[0].last_message_preview == "a lon"
        assert summaries[0].count == 2
        assert summaries[0].last_timestamp == make_message("", minute=2).timestamp

    @pytest.mark.asyncio
    async def test_limit(self, clock):
        store = _make_store(clock)
        for i in range(25):
            await store.append(f"s{i}", make_message(f"m{i}", minute=i))
        summaries = await store.list_sessions()
        assert len(summaries) == 20
        assert summaries[0].id == "s24"
        assert len(await store.list_sessions(limit=3)) == 3

    def test_empty_content_preview(self):
        assert make_preview("") == EMPTY_PREVIEW
        assert make_preview("x" * 80) == "x" * 50


# =========================================================================
# Eviction
# =========================================================================


class TestEviction:
    @pytest.mark.asyncio
    async def test_idle_session_expires(self, clock):
        store = _make_store(clock, session_ttl=timedelta(minutes=10))
        await store.append("s1", make_message("hi"))
        clock.advance(599)
        assert len(await store.list_messages("s1")) == 1
        clock.advance(601)
        assert await store.list_messages("s1") == []

    @pytest.mark.asyncio
    async def test_activity_refreshes_ttl(self, clock):
        store = _make_store(clock, session_ttl=timedelta(minutes=10))
        await store.append("s1", make_message("hi"))
        for _ in range(3):
            clock.advance(500)
            await store.list_messages("s1")
        assert len(await store.list_messages("s1")) == 1

    @pytest.mark.asyncio
    async def test_least_recently_active_evicted(self, clock):
        store = _make_store(clock, max_sessions=2)
        await store.append("a", make_message("a"))
        clock.advance(1)
        await store.append("b", make_message("b"))
        clock.advance(1)
        await store.list_messages("a")  # a is now more recent than b
        clock.advance(1)
        await store.append("c", make_message("c"))

        assert await store.list_messages("b") == []
        assert len(await store.list_messages("a")) == 1
        assert len(await store.list_messages("c")) == 1
