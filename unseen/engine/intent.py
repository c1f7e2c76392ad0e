"""Intent lifecycle — the single active declaration of what to work on."""

import logging
from datetime import datetime
from typing import Callable, Optional

from unseen.engine.models import EngineState, Intent, IntentResolution

logger = logging.getLogger(__name__)


def resolve(intent: Intent, now: datetime, resolution: IntentResolution) -> Intent:
    """Return the resolved, immutable form of ``intent``."""
    return intent.model_copy(update={
        "status": "resolved",
        "resolved_at": now,
        "resolution": resolution,
    })


def auto_abandon_prior_intent(intent: Intent, now: datetime) -> Intent:
    """Transition for changing one's mind before starting.

    Only an intent that never entered focus may be auto-abandoned; it goes
    to history with no penalty.
    """
    if intent.status != "declared":
        raise ValueError(f"cannot auto-abandon intent in status {intent.status!r}")
    return resolve(intent, now, "auto_abandoned")


class IntentManager:
    def __init__(self, state: EngineState, clock: Callable[[], datetime]) -> None:
        self.state = state
        self.clock = clock

    @property
    def active(self) -> Optional[Intent]:
        return self.state.active_intent

    def declare(self, declaration: str) -> Optional[Intent]:
        state = self.state
        trimmed = (declaration or "").strip()
        if not trimmed:
            logger.warning("Blocked declare intent: declaration is empty.")
            return None

        now = self.clock()
        history = state.intent_history
        current = state.active_intent

        if current is not None:
            if current.status != "declared":
                logger.warning("Blocked declare intent: finish the current intent first.")
                return None
            history = [auto_abandon_prior_intent(current, now), *history]
            logger.info("Intent %s auto-abandoned before focus", current.id)

        intent = Intent(owner_id=state.owner_id, declaration=trimmed, declared_at=now)
        state.commit(active_intent=intent, intent_history=history, mode="ACTIVE")
        logger.info("Intent declared: %s", intent.id)
        return intent

    def resolve_without_focus(self) -> bool:
        state = self.state
        current = state.active_intent

        if current is None:
            logger.warning("Blocked resolve intent: no active intent.")
            return False
        if current.status != "declared":
            logger.warning("Blocked resolve intent: only declared intents can be resolved directly.")
            return False

        resolved = resolve(current, self.clock(), "without_focus")
        state.commit(
            active_intent=None,
            intent_history=[resolved, *state.intent_history],
            mode="IDLE",
        )
        logger.info("Intent resolved without focus: %s", current.id)
        return True

    def close_active(self, resolution: IntentResolution) -> Optional[Intent]:
        """Compute the resolved form of the active intent without committing it."""
        current = self.state.active_intent
        if current is None:
            return None
        return resolve(current, self.clock(), resolution)
