"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from unseen.config import Settings
from unseen.engine.identity import IdentityGuard
from unseen.engine.models import EngineState, FocusArtifact, Intent, VaultEntry
from unseen.engine.session import SessionEngine


class FakeClock:
    """Deterministic clock; call ``advance`` to move time forward."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **delta):
        self.now = self.now + timedelta(**delta)
        return self.now


def make_engine(owner_id="alice", verified=True, clock=None, guard=None, settings=None, score=0.0):
    """Build an engine for ``owner_id`` whose guard already points at that owner."""
    guard = guard or IdentityGuard(owner_id)
    state = EngineState(owner_id=owner_id)
    state.profile = state.profile.model_copy(update={"email_verified": verified, "email": f"{owner_id}@example.com"})
    state.aura = state.aura.model_copy(update={"score": score})
    return SessionEngine(owner_id, guard, state, settings or Settings(), clock or FakeClock())


def make_intent(**overrides):
    defaults = {
        "owner_id": "alice",
        "declaration": "Write the parser",
        "declared_at": datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc),
    }
    defaults.update(overrides)
    return Intent(**defaults)


def make_artifact(**overrides):
    now = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
    defaults = {
        "owner_id": "alice",
        "focus_session_id": "session-1",
        "type": "note",
        "title": "Tokenizer edge case",
        "content": "Trailing backslash must be escaped",
        "created_at": now,
        "updated_at": now,
    }
    defaults.update(overrides)
    return FocusArtifact(**defaults)


def make_vault_entry(**overrides):
    now = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)
    defaults = {
        "owner_id": "alice",
        "type": "learning",
        "title": "Escape rules",
        "content": "Backslash escapes the next character",
        "created_at": now,
        "updated_at": now,
    }
    defaults.update(overrides)
    return VaultEntry(**defaults)


def run_finished_session(engine, declaration="Write the parser", proof="Parser handles escapes"):
    """Declare, focus, add one note and finish. Leaves the reflection owed."""
    engine.declare_intent(declaration)
    engine.begin_focus()
    engine.add_artifact("note", "Escapes", "Backslash handling")
    engine.finish_focus(proof)
    return engine.active_focus_session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return make_engine("alice", clock=clock)


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'unseen.db'}"
