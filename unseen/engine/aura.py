"""Aura scoring — bounded engagement score, rewards, and inactivity decay."""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from unseen.config import AuraSettings
from unseen.engine.models import AuraPoint, AuraState, AuraStatus, AuraTrend, EngineState

logger = logging.getLogger(__name__)


def upsert_history(history: list[AuraPoint], today: date, score: float, cap: int) -> list[AuraPoint]:
    """Replace today's point (if any) with a fresh one at the front."""
    rest = [point for point in history if point.day != today]
    return [AuraPoint(day=today, score=score), *rest][:cap]


def decay_amount(score: float, days_missed: int, per_day: float, grace_days: int = 1) -> float:
    """Points lost after ``days_missed`` days without a record.

    The first ``grace_days`` are free; each further day costs ``per_day``.
    Never more than the current score.
    """
    if days_missed <= grace_days:
        return 0.0
    return min(score, (days_missed - grace_days) * per_day)


class AuraEngine:
    """Reads and mutates the ``aura`` section of an owner's state."""

    def __init__(self, state: EngineState, settings: AuraSettings, clock: Callable[[], datetime]) -> None:
        self.state = state
        self.settings = settings
        self.clock = clock

    def _today(self) -> date:
        return self.clock().date()

    def _clamp(self, score: float) -> float:
        return max(0.0, min(self.settings.max_score, score))

    @property
    def verified(self) -> bool:
        return self.state.profile.email_verified

    def last_record_date(self) -> Optional[date]:
        """Date of the most recent permanent record, if any."""
        dates = [entry.created_at.date() for entry in self.state.vault_entries]
        dates += [log.created_at.date() for log in self.state.project_logs]
        return max(dates) if dates else None

    def reward(self, delta: float) -> float:
        """Apply a reward for a verified record. Returns the resulting score."""
        aura = self.state.aura
        if not self.verified:
            logger.debug("Aura reward skipped: owner %s is unverified", self.state.owner_id)
            return aura.score

        today = self._today()
        new_score = self._clamp(aura.score + delta)

        streak = aura.current_streak
        if aura.last_active_date == today:
            streak = max(streak, 1)
        elif aura.last_active_date == today - timedelta(days=1):
            streak += 1
        else:
            streak = 1

        self.state.commit(aura=aura.model_copy(update={
            "score": new_score,
            "history": upsert_history(aura.history, today, new_score, self.settings.history_days),
            "current_streak": streak,
            "longest_streak": max(aura.longest_streak, streak),
            "last_active_date": today,
        }))
        logger.debug("Aura +%.1f -> %.1f", delta, new_score)
        return new_score

    def check_and_apply_decay(self) -> tuple[bool, float]:
        """Evaluate inactivity decay at most once per calendar day.

        Returns (decayed, amount).
        """
        aura = self.state.aura
        today = self._today()

        # Decay only applies once the owner has confirmed identity
        if not self.verified:
            return False, 0.0

        if aura.last_decay_check == today:
            return False, 0.0

        last_record = self.last_record_date()
        if last_record is None or last_record == today:
            self.state.commit(aura=aura.model_copy(update={"last_decay_check": today}))
            return False, 0.0

        days_missed = abs((today - last_record).days)
        amount = decay_amount(
            aura.score, days_missed, self.settings.decay_per_missed_day, self.settings.grace_days
        )
        if amount <= 0:
            self.state.commit(aura=aura.model_copy(update={"last_decay_check": today}))
            return False, 0.0

        new_score = max(0.0, aura.score - amount)
        history = [AuraPoint(day=today, score=new_score), *aura.history][: self.settings.history_days]
        self.state.commit(aura=aura.model_copy(update={
            "score": new_score,
            "history": history,
            "last_decay_check": today,
            "current_streak": 0,
        }))
        logger.info(
            "Aura decayed by %.1f after %d missed days (%.1f -> %.1f)",
            amount, days_missed, aura.score, new_score,
        )
        return True, amount

    def seed_history(self) -> None:
        """Start the history with today's score if it is empty."""
        aura = self.state.aura
        if not aura.history:
            point = AuraPoint(day=self._today(), score=aura.score)
            self.state.commit(aura=aura.model_copy(update={"history": [point]}))

    def status(self) -> AuraStatus:
        score = self.state.aura.score
        if score < 25:
            return "weak"
        if score < 50:
            return "forming"
        if score < 75:
            return "solid"
        return "strong"

    def trend(self) -> AuraTrend:
        history = self.state.aura.history
        if len(history) < 2:
            return "stable"
        recent, previous = history[0].score, history[1].score
        if recent > previous:
            return "up"
        if recent < previous:
            return "down"
        return "stable"

    def days_missed(self) -> int:
        last_record = self.last_record_date()
        if last_record is None:
            return 0
        return abs((self._today() - last_record).days)

    def at_risk(self) -> bool:
        """True when the score would be exposed to decay if the day ends now."""
        if not self.verified:
            return False
        return self.last_record_date() != self._today() and self.state.aura.score > 0
