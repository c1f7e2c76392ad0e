"""Tests for the SQLite-backed owner snapshot store."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from tests.conftest import make_engine, run_finished_session
from unseen.engine.identity import IdentityGuard
from unseen.engine.session import SessionEngine
from unseen.storage.db import dispose_engines, get_session
from unseen.storage.models import IntentRow, VaultEntryRow
from unseen.storage.snapshot import SnapshotStore


@pytest_asyncio.fixture
async def store(db_url):
    yield SnapshotStore(db_url)
    await dispose_engines()


class TestSnapshotRoundTrip:
    @pytest.mark.asyncio
    async def test_unknown_owner_is_empty(self, store):
        snapshot = await store.load_snapshot("nobody")
        assert snapshot.owner_id == "nobody"
        assert snapshot.active_intent is None
        assert snapshot.vault_entries == []
        assert snapshot.aura.score == 0

    @pytest.mark.asyncio
    async def test_full_state_survives(self, store, clock):
        engine = make_engine("alice", clock=clock)
        engine.complete_onboarding("Alice", "alice@example.com", "compilers")
        engine.mark_verified()
        run_finished_session(engine)
        engine.submit_reflection("done", "rushed", "slow down")
        engine.add_project_log("unseen", "tracker", decisions=["sqlite"])
        engine.declare_intent("Next thing")

        await store.save_snapshot(engine.snapshot())
        loaded = await store.load_snapshot("alice")

        assert loaded.profile.name == "Alice"
        assert loaded.profile.email_verified is True
        assert loaded.mode == "ACTIVE"
        assert loaded.active_intent.declaration == "Next thing"
        assert loaded.active_intent.declared_at.tzinfo is not None
        assert [i.resolution for i in loaded.intent_history] == ["reflected"]
        assert loaded.focus_history[0].proof == "Parser handles escapes"
        assert len(loaded.focus_history[0].artifacts) == 1
        assert loaded.reflections[0].insight == "slow down"
        assert loaded.project_logs[0].decisions == ["sqlite"]
        assert loaded.aura.score == engine.aura_score
        assert loaded.aura.history == engine.aura_history()

    @pytest.mark.asyncio
    async def test_order_preserved(self, store, clock):
        engine = make_engine("alice", clock=clock)
        titles = ["one", "two", "three"]
        for title in titles:
            engine.add_vault_entry("learning", title, "x")

        await store.save_snapshot(engine.snapshot())
        loaded = await store.load_snapshot("alice")
        assert [e.title for e in loaded.vault_entries] == ["three", "two", "one"]

    @pytest.mark.asyncio
    async def test_save_replaces_previous(self, store, clock):
        engine = make_engine("alice", clock=clock)
        entry = engine.add_vault_entry("learning", "temp", "x")
        await store.save_snapshot(engine.snapshot())
        engine.delete_vault_entry(entry.id)
        await store.save_snapshot(engine.snapshot())

        loaded = await store.load_snapshot("alice")
        assert loaded.vault_entries == []

    @pytest.mark.asyncio
    async def test_owners_are_isolated(self, store, clock):
        alice = make_engine("alice", clock=clock)
        alice.add_vault_entry("learning", "alice only", "x")
        bob = make_engine("bob", clock=clock)
        bob.add_vault_entry("learning", "bob only", "x")
        await store.save_snapshot(alice.snapshot())
        await store.save_snapshot(bob.snapshot())

        loaded = await store.load_snapshot("bob")
        assert [e.title for e in loaded.vault_entries] == ["bob only"]
        assert await store.owners() == ["alice", "bob"]

    @pytest.mark.asyncio
    async def test_active_session_not_persisted(self, store, clock):
        engine = make_engine("alice", clock=clock)
        engine.declare_intent("Deep work")
        engine.begin_focus()
        engine.add_artifact("note", "draft", "x")

        snapshot = engine.snapshot()
        assert not hasattr(snapshot, "active_focus_session")
        await store.save_snapshot(snapshot)
        loaded = await store.load_snapshot("alice")
        assert loaded.focus_history == []
        assert loaded.active_intent.status == "in_focus"


class TestTolerantLoad:
    @pytest.mark.asyncio
    async def test_malformed_row_skipped(self, store, clock, db_url):
        engine = make_engine("alice", clock=clock)
        engine.add_vault_entry("learning", "good", "x")
        await store.save_snapshot(engine.snapshot())

        async with get_session(db_url) as session:
            session.add(VaultEntryRow(
                id="broken", owner_id="alice", position=5, type="learning",
                title="no timestamps", content="x",
            ))

        loaded = await store.load_snapshot("alice")
        assert [e.title for e in loaded.vault_entries] == ["good"]

    @pytest.mark.asyncio
    async def test_newest_open_intent_wins(self, store, db_url):
        await store.save_snapshot(make_engine("alice").snapshot())
        async with get_session(db_url) as session:
            for i, day in enumerate((1, 3, 2)):
                session.add(IntentRow(
                    id=f"intent-{day}", owner_id="alice", position=i, declaration=f"day {day}",
                    status="declared", declared_at=datetime(2026, 3, day, tzinfo=timezone.utc),
                ))

        loaded = await store.load_snapshot("alice")
        assert loaded.active_intent.id == "intent-3"


class TestRehydration:
    @pytest.mark.asyncio
    async def test_orphaned_in_focus_intent_reverts(self, store, clock):
        engine = make_engine("alice", clock=clock)
        engine.declare_intent("Deep work")
        engine.begin_focus()
        await store.save_snapshot(engine.snapshot())

        loaded = await store.load_snapshot("alice")
        rebuilt = SessionEngine.from_snapshot(loaded, IdentityGuard("alice"), engine.settings, clock)
        assert rebuilt.active_intent.status == "declared"
        assert rebuilt.begin_focus() is True

    @pytest.mark.asyncio
    async def test_intent_with_deferred_reflection_stays_in_focus(self, store, clock):
        engine = make_engine("alice", clock=clock)
        session = run_finished_session(engine)
        engine.defer_reflection()
        await store.save_snapshot(engine.snapshot())

        loaded = await store.load_snapshot("alice")
        rebuilt = SessionEngine.from_snapshot(loaded, IdentityGuard("alice"), engine.settings, clock)
        assert rebuilt.active_intent.status == "in_focus"
        assert [s.id for s in rebuilt.pending_reflections()] == [session.id]
        assert rebuilt.submit_deferred_reflection(session.id, "late", "", "") is not None
        assert rebuilt.active_intent is None
