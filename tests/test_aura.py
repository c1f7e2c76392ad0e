"""Tests for aura scoring, history and inactivity decay.

Uses a fake clock so day boundaries are deterministic.
"""

from datetime import date, timedelta

from tests.conftest import make_engine, make_vault_entry
from unseen.config import Settings
from unseen.engine.aura import decay_amount, upsert_history
from unseen.engine.models import AuraPoint


def _with_last_record(engine, days_ago):
    created = engine.clock() - timedelta(days=days_ago)
    entry = make_vault_entry(owner_id=engine.owner_id, created_at=created, updated_at=created)
    engine.state.commit(vault_entries=[entry])


class TestDecayAmount:
    def test_within_grace(self):
        assert decay_amount(40, 0, 5) == 0
        assert decay_amount(40, 1, 5) == 0

    def test_after_grace(self):
        assert decay_amount(40, 2, 5) == 5
        assert decay_amount(40, 3, 5) == 10

    def test_never_below_zero(self):
        assert decay_amount(7, 10, 5) == 7

    def test_custom_grace(self):
        assert decay_amount(40, 3, 5, grace_days=2) == 5


class TestUpsertHistory:
    def test_replaces_same_day(self):
        today = date(2026, 3, 2)
        history = [AuraPoint(day=today, score=10), AuraPoint(day=today - timedelta(days=1), score=8)]
        result = upsert_history(history, today, 12, cap=14)
        assert [p.score for p in result] == [12, 8]

    def test_caps_length(self):
        today = date(2026, 3, 20)
        history = [AuraPoint(day=today - timedelta(days=i), score=i) for i in range(1, 20)]
        result = upsert_history(history, today, 50, cap=14)
        assert len(result) == 14
        assert result[0] == AuraPoint(day=today, score=50)


class TestRewards:
    def test_vault_entry_reward(self, clock):
        engine = make_engine(clock=clock)
        engine.add_vault_entry("learning", "Title", "Body")
        assert engine.aura_score == 2
        assert engine.aura_history()[0].day == clock.now.date()

    def test_project_log_reward(self, clock):
        engine = make_engine(clock=clock)
        engine.add_project_log("unseen", "focus tracker")
        assert engine.aura_score == 3

    def test_clamped_at_max(self, clock):
        engine = make_engine(clock=clock, score=99)
        engine.add_project_log("unseen", "focus tracker")
        assert engine.aura_score == 100

    def test_unverified_never_changes(self, clock):
        engine = make_engine(verified=False, clock=clock, score=20)
        engine.add_vault_entry("learning", "Title", "Body")
        engine.add_project_log("unseen", "idea")
        assert engine.aura_score == 20
        assert engine.aura_history() == []

    def test_streak(self, clock):
        engine = make_engine(clock=clock)
        engine.add_vault_entry("learning", "Day one", "x")
        clock.advance(days=1)
        engine.add_vault_entry("learning", "Day two", "x")
        engine.add_vault_entry("learning", "Day two again", "x")
        assert engine.state.aura.current_streak == 2
        clock.advance(days=3)
        engine.add_vault_entry("learning", "After a gap", "x")
        assert engine.state.aura.current_streak == 1
        assert engine.state.aura.longest_streak == 2


class TestDecay:
    def test_three_days_missed(self, clock):
        engine = make_engine(clock=clock, score=40)
        _with_last_record(engine, days_ago=3)

        decayed, amount = engine.check_and_apply_decay()

        assert decayed is True
        assert amount == 10
        assert engine.aura_score == 30
        assert engine.aura_history()[0] == AuraPoint(day=clock.now.date(), score=30)
        assert engine.state.aura.last_decay_check == clock.now.date()

    def test_once_per_day(self, clock):
        engine = make_engine(clock=clock, score=40)
        _with_last_record(engine, days_ago=3)
        engine.check_and_apply_decay()
        assert engine.check_and_apply_decay() == (False, 0.0)
        assert engine.aura_score == 30

    def test_record_today_no_decay(self, clock):
        engine = make_engine(clock=clock, score=40)
        _with_last_record(engine, days_ago=0)
        assert engine.check_and_apply_decay() == (False, 0.0)
        assert engine.aura_score == 40
        assert engine.state.aura.last_decay_check == clock.now.date()

    def test_within_grace_no_decay(self, clock):
        engine = make_engine(clock=clock, score=40)
        _with_last_record(engine, days_ago=1)
        assert engine.check_and_apply_decay() == (False, 0.0)
        assert engine.aura_score == 40

    def test_no_records_no_decay(self, clock):
        engine = make_engine(clock=clock, score=40)
        assert engine.check_and_apply_decay() == (False, 0.0)

    def test_unverified_no_decay(self, clock):
        engine = make_engine(verified=False, clock=clock, score=40)
        _with_last_record(engine, days_ago=5)
        assert engine.check_and_apply_decay() == (False, 0.0)
        assert engine.aura_score == 40

    def test_floor_at_zero(self, clock):
        engine = make_engine(clock=clock, score=4)
        _with_last_record(engine, days_ago=10)
        decayed, amount = engine.check_and_apply_decay()
        assert decayed is True
        assert amount == 4
        assert engine.aura_score == 0

    def test_configured_rate(self, clock):
        settings = Settings()
        settings.aura.decay_per_missed_day = 10
        engine = make_engine(clock=clock, score=40, settings=settings)
        _with_last_record(engine, days_ago=3)
        assert engine.check_and_apply_decay() == (True, 20)


class TestStatusAndTrend:
    def test_status_tiers(self, clock):
        assert make_engine(clock=clock, score=10).aura_status() == "weak"
        assert make_engine(clock=clock, score=30).aura_status() == "forming"
        assert make_engine(clock=clock, score=60).aura_status() == "solid"
        assert make_engine(clock=clock, score=90).aura_status() == "strong"

    def test_trend(self, clock):
        engine = make_engine(clock=clock, score=40)
        assert engine.aura_trend() == "stable"
        engine.add_vault_entry("learning", "x", "y")
        clock.advance(days=1)
        engine.add_vault_entry("learning", "x", "y")
        assert engine.aura_trend() == "up"

    def test_at_risk(self, clock):
        engine = make_engine(clock=clock, score=40)
        _with_last_record(engine, days_ago=1)
        assert engine.aura_at_risk() is True
        assert engine.days_missed() == 1
        engine.add_vault_entry("learning", "x", "y")
        assert engine.aura_at_risk() is False
        assert engine.days_missed() == 0
