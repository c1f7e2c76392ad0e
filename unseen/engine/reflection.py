"""Reflection gate — the mandatory step after a focus session ends."""

import logging
from datetime import datetime
from typing import Callable, Optional

from unseen.engine.intent import IntentManager
from unseen.engine.models import EngineState, FocusSession, Reflection

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class ReflectionGate:
    def __init__(self, state: EngineState, intents: IntentManager, clock: Callable[[], datetime]) -> None:
        self.state = state
        self.intents = intents
        self.clock = clock

    @property
    def required(self) -> bool:
        session = self.state.active_focus_session
        return session is not None and session.awaiting_reflection

    def _build(
        self,
        session: FocusSession,
        outcome_description: str,
        mistake_pattern: str,
        insight: str,
    ) -> Reflection:
        return Reflection(
            owner_id=self.state.owner_id,
            focus_session_id=session.id,
            intent_declaration=session.intent_declaration,
            outcome=session.outcome,
            outcome_description=_clean(outcome_description),
            mistake_pattern=_clean(mistake_pattern),
            insight=_clean(insight),
            created_at=self.clock(),
        )

    def submit(self, outcome_description: str, mistake_pattern: str, insight: str) -> Optional[Reflection]:
        state = self.state
        session = state.active_focus_session

        if session is None or not session.awaiting_reflection:
            logger.warning("Blocked submit reflection: no ended focus session awaiting reflection.")
            return None

        reflection = self._build(session, outcome_description, mistake_pattern, insight)
        resolved = self.intents.close_active("reflected")
        state.commit(
            active_focus_session=None,
            focus_history=[session.model_copy(update={"reflection_submitted": True}), *state.focus_history],
            reflections=[reflection, *state.reflections],
            active_intent=None,
            intent_history=[resolved, *state.intent_history] if resolved else state.intent_history,
            mode="IDLE",
        )
        logger.info("Reflection submitted for session %s", session.id)
        return reflection

    def defer(self) -> bool:
        state = self.state
        session = state.active_focus_session

        if session is None or session.status == "active":
            logger.warning("Blocked defer reflection: no ended focus session.")
            return False
        if session.reflection_submitted:
            logger.warning("Blocked defer reflection: session %s already has a reflection.", session.id)
            return False

        state.commit(
            active_focus_session=None,
            focus_history=[session.model_copy(update={"reflection_deferred": True}), *state.focus_history],
        )
        logger.info("Reflection deferred for session %s", session.id)
        return True

    def pending(self) -> list[FocusSession]:
        """Ended sessions whose reflection was deferred and is still owed."""
        return [
            s for s in self.state.focus_history
            if s.reflection_deferred and not s.reflection_submitted
        ]

    def submit_deferred(
        self,
        session_id: str,
        outcome_description: str,
        mistake_pattern: str,
        insight: str,
    ) -> Optional[Reflection]:
        state = self.state
        session = next((s for s in self.pending() if s.id == session_id), None)
        if session is None:
            logger.warning("Blocked deferred reflection: no pending session %s.", session_id)
            return None

        reflection = self._build(session, outcome_description, mistake_pattern, insight)
        history = [
            s.model_copy(update={"reflection_submitted": True}) if s.id == session_id else s
            for s in state.focus_history
        ]
        changes = {"focus_history": history, "reflections": [reflection, *state.reflections]}

        intent = state.active_intent
        if (
            intent is not None
            and intent.id == session.intent_id
            and intent.status == "in_focus"
            and state.active_focus_session is None
        ):
            resolved = self.intents.close_active("reflected")
            changes.update(
                active_intent=None,
                intent_history=[resolved, *state.intent_history],
                mode="IDLE",
            )

        state.commit(**changes)
        logger.info("Deferred reflection submitted for session %s", session_id)
        return reflection
