"""Focus session controller — begin, finish, and abandon a working session.

State machine::

    no-session -> active -> finished | abandoned

Finishing requires proof (at least one artifact and a non-empty proof text).
Abandoning is always available while a session is active.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from unseen.config import AuraSettings
from unseen.engine.artifacts import to_vault_entry
from unseen.engine.aura import AuraEngine
from unseen.engine.models import EngineState, FocusSession

logger = logging.getLogger(__name__)


class FocusController:
    def __init__(
        self,
        state: EngineState,
        aura: AuraEngine,
        settings: AuraSettings,
        clock: Callable[[], datetime],
    ) -> None:
        self.state = state
        self.aura = aura
        self.settings = settings
        self.clock = clock

    @property
    def active(self) -> Optional[FocusSession]:
        session = self.state.active_focus_session
        if session is not None and session.status == "active":
            return session
        return None

    def begin(self) -> bool:
        state = self.state
        intent = state.active_intent

        if intent is None:
            logger.warning("Blocked begin focus: no active intent.")
            return False
        if intent.status == "resolved":
            logger.warning("Blocked begin focus: intent %s is already resolved.", intent.id)
            return False
        if state.active_focus_session is not None:
            # A terminal session still waiting on its reflection also holds the slot
            logger.warning("Blocked begin focus: a focus session is already open.")
            return False

        session = FocusSession(
            owner_id=state.owner_id,
            intent_id=intent.id,
            intent_declaration=intent.declaration,
            started_at=self.clock(),
        )
        state.commit(
            active_focus_session=session,
            active_intent=intent.model_copy(update={"status": "in_focus"}),
            focus_artifacts=[],
        )
        logger.info("Focus begun: session %s on intent %s", session.id, intent.id)
        return True

    def finish(self, proof: str) -> bool:
        state = self.state
        session = self.active

        if session is None:
            logger.warning("Blocked finish focus: no active focus session.")
            return False
        if not state.focus_artifacts:
            logger.warning("Blocked finish focus: at least one artifact is required.")
            return False
        trimmed = (proof or "").strip()
        if not trimmed:
            logger.warning("Blocked finish focus: proof is empty.")
            return False

        now = self.clock()
        artifacts = list(state.focus_artifacts)
        unverified = not self.aura.verified
        entries = [to_vault_entry(a, session.intent_id, now, unverified) for a in artifacts]
        completed = session.model_copy(update={
            "ended_at": now,
            "status": "finished",
            "outcome": "finished",
            "proof": trimmed,
            "artifacts": artifacts,
        })

        state.commit(
            active_focus_session=completed,
            focus_artifacts=[],
            vault_entries=[*entries, *state.vault_entries],
        )
        logger.info("Focus finished: session %s, %d records created", session.id, len(entries))

        if self.settings.reward_focus_conversion:
            for _ in entries:
                self.aura.reward(self.settings.knowledge_delta)
        return True

    def abandon(self) -> bool:
        state = self.state
        session = self.active

        if session is None:
            logger.warning("Blocked abandon focus: no active focus session.")
            return False

        abandoned = session.model_copy(update={
            "ended_at": self.clock(),
            "status": "abandoned",
            "outcome": "abandoned",
            "artifacts": list(state.focus_artifacts),
        })
        state.commit(active_focus_session=abandoned, focus_artifacts=[])
        logger.info("Focus abandoned: session %s", session.id)
        return True
