"""SessionEngine — one owner's intent, focus, reflection, record and aura state.

An engine is built for exactly one owner when that owner logs in and is
dropped on logout. Every public operation goes through ``owner_scoped``, so
an engine kept around after the active owner changed answers with neutral
results instead of leaking its data.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from unseen.config import Settings, get_settings
from unseen.engine.artifacts import ArtifactCollector
from unseen.engine.aura import AuraEngine
from unseen.engine.focus import FocusController
from unseen.engine.identity import IdentityGuard, owner_scoped
from unseen.engine.intent import IntentManager
from unseen.engine.models import (
    AuraPoint,
    AuraStatus,
    AuraTrend,
    EngineState,
    FocusArtifact,
    FocusSession,
    Intent,
    OwnerProfile,
    OwnerSnapshot,
    ProjectLog,
    Reflection,
    UserMode,
    VaultEntry,
)
from unseen.engine.profile import ProfileManager
from unseen.engine.reflection import ReflectionGate
from unseen.engine.vault import RecordSink

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _release_orphaned_intent(state: EngineState) -> EngineState:
    """Return an intent stranded in focus to ``declared``.

    Focus sessions do not survive a reload. An intent still marked
    ``in_focus`` is kept that way only while a deferred reflection for it is
    outstanding.
    """
    intent = state.active_intent
    if intent is None or intent.status != "in_focus":
        return state
    owed = any(
        s.intent_id == intent.id and s.reflection_deferred and not s.reflection_submitted
        for s in state.focus_history
    )
    if not owed:
        logger.info("Intent %s lost its focus session on reload; back to declared", intent.id)
        state.commit(active_intent=intent.model_copy(update={"status": "declared"}))
    return state


class SessionEngine:
    def __init__(
        self,
        owner_id: str,
        guard: IdentityGuard,
        state: Optional[EngineState] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.owner_id = owner_id
        self.guard = guard
        self.generation = guard.generation
        self.closed = False
        self.state = state or EngineState(owner_id=owner_id)
        self.settings = settings or get_settings()
        self.clock = clock or utc_now

        self.aura = AuraEngine(self.state, self.settings.aura, self.clock)
        self.intents = IntentManager(self.state, self.clock)
        self.artifacts = ArtifactCollector(self.state, self.settings.focus, self.clock)
        self.focus = FocusController(self.state, self.aura, self.settings.aura, self.clock)
        self.reflection = ReflectionGate(self.state, self.intents, self.clock)
        self.records = RecordSink(self.state, self.aura, self.settings.aura, self.clock)
        self.profiles = ProfileManager(self.state, self.aura, self.clock)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: OwnerSnapshot,
        guard: IdentityGuard,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "SessionEngine":
        state = EngineState(**snapshot.model_dump())
        return cls(snapshot.owner_id, guard, _release_orphaned_intent(state), settings, clock)

    def close(self) -> None:
        """Drop ephemeral state and retire this engine for good.

        Called by the host when the owner logs out or another owner logs in.
        """
        if self.closed:
            return
        self.state.commit(active_focus_session=None, focus_artifacts=[])
        self.closed = True
        logger.info("Engine for %s closed", self.owner_id)

    @owner_scoped(None)
    def snapshot(self) -> Optional[OwnerSnapshot]:
        """Durable view of this owner's state (no open session, no artifacts)."""
        return OwnerSnapshot.from_state(self.state)

    # --- Intent ---

    @property
    @owner_scoped(None)
    def active_intent(self) -> Optional[Intent]:
        return self.intents.active

    @property
    @owner_scoped("IDLE")
    def mode(self) -> UserMode:
        return self.state.mode

    @owner_scoped(None)
    def declare_intent(self, declaration: str) -> Optional[Intent]:
        return self.intents.declare(declaration)

    @owner_scoped(False)
    def resolve_intent_without_focus(self) -> bool:
        return self.intents.resolve_without_focus()

    @owner_scoped(list)
    def intent_history(self) -> list[Intent]:
        return list(self.state.intent_history)

    # --- Focus ---

    @property
    @owner_scoped(None)
    def active_focus_session(self) -> Optional[FocusSession]:
        return self.state.active_focus_session

    @owner_scoped(False)
    def begin_focus(self) -> bool:
        return self.focus.begin()

    @owner_scoped(False)
    def finish_focus(self, proof: str) -> bool:
        return self.focus.finish(proof)

    @owner_scoped(False)
    def abandon_focus(self) -> bool:
        return self.focus.abandon()

    @owner_scoped(list)
    def focus_history(self) -> list[FocusSession]:
        return list(self.state.focus_history)

    @owner_scoped(0)
    def completed_focus_count(self) -> int:
        """Finished sessions that also have a reflection."""
        return sum(
            1 for s in self.state.focus_history
            if s.status == "finished" and s.reflection_submitted
        )

    # --- Artifacts ---

    @property
    @owner_scoped(list)
    def focus_artifacts(self) -> list[FocusArtifact]:
        return self.artifacts.items()

    @owner_scoped(None)
    def add_artifact(
        self,
        type: str,
        title: str,
        content: str,
        language: Optional[str] = None,
        preview_supported: Optional[bool] = None,
        url: Optional[str] = None,
    ) -> Optional[FocusArtifact]:
        return self.artifacts.add(type, title, content, language, preview_supported, url)

    @owner_scoped(None)
    def update_artifact(self, artifact_id: str, **updates) -> Optional[FocusArtifact]:
        return self.artifacts.update(artifact_id, **updates)

    @owner_scoped(False)
    def delete_artifact(self, artifact_id: str) -> bool:
        return self.artifacts.delete(artifact_id)

    # --- Reflection ---

    @property
    @owner_scoped(False)
    def reflection_required(self) -> bool:
        return self.reflection.required

    @owner_scoped(None)
    def submit_reflection(
        self,
        outcome_description: str = "",
        mistake_pattern: str = "",
        insight: str = "",
    ) -> Optional[Reflection]:
        return self.reflection.submit(outcome_description, mistake_pattern, insight)

    @owner_scoped(False)
    def defer_reflection(self) -> bool:
        return self.reflection.defer()

    @owner_scoped(list)
    def pending_reflections(self) -> list[FocusSession]:
        return self.reflection.pending()

    @owner_scoped(None)
    def submit_deferred_reflection(
        self,
        session_id: str,
        outcome_description: str = "",
        mistake_pattern: str = "",
        insight: str = "",
    ) -> Optional[Reflection]:
        return self.reflection.submit_deferred(session_id, outcome_description, mistake_pattern, insight)

    @owner_scoped(list)
    def reflections(self) -> list[Reflection]:
        return list(self.state.reflections)

    # --- Aura ---

    @property
    @owner_scoped(0.0)
    def aura_score(self) -> float:
        return self.state.aura.score

    @owner_scoped(list)
    def aura_history(self) -> list[AuraPoint]:
        return list(self.state.aura.history)

    @owner_scoped((False, 0.0))
    def check_and_apply_decay(self) -> tuple[bool, float]:
        return self.aura.check_and_apply_decay()

    @owner_scoped("weak")
    def aura_status(self) -> AuraStatus:
        return self.aura.status()

    @owner_scoped("stable")
    def aura_trend(self) -> AuraTrend:
        return self.aura.trend()

    @owner_scoped(0)
    def days_missed(self) -> int:
        return self.aura.days_missed()

    @owner_scoped(False)
    def aura_at_risk(self) -> bool:
        return self.aura.at_risk()

    # --- Permanent records ---

    @owner_scoped(list)
    def vault_entries(self) -> list[VaultEntry]:
        return list(self.state.vault_entries)

    @owner_scoped(None)
    def add_vault_entry(self, type: str, title: str, content: str, **extra) -> Optional[VaultEntry]:
        return self.records.add_vault_entry(type, title, content, **extra)

    @owner_scoped(None)
    def update_vault_entry(self, entry_id: str, **updates) -> Optional[VaultEntry]:
        return self.records.update_vault_entry(entry_id, **updates)

    @owner_scoped(False)
    def delete_vault_entry(self, entry_id: str) -> bool:
        return self.records.delete_vault_entry(entry_id)

    @owner_scoped(list)
    def project_logs(self) -> list[ProjectLog]:
        return list(self.state.project_logs)

    @owner_scoped(None)
    def add_project_log(self, project_name: str, idea: str, **extra) -> Optional[ProjectLog]:
        return self.records.add_project_log(project_name, idea, **extra)

    @owner_scoped(None)
    def update_project_log(self, log_id: str, **updates) -> Optional[ProjectLog]:
        return self.records.update_project_log(log_id, **updates)

    @owner_scoped(False)
    def delete_project_log(self, log_id: str) -> bool:
        return self.records.delete_project_log(log_id)

    # --- Profile ---

    @property
    @owner_scoped(None)
    def profile(self) -> Optional[OwnerProfile]:
        return self.state.profile

    @owner_scoped(None)
    def complete_onboarding(self, name: str, email: str, focus_area: str) -> Optional[OwnerProfile]:
        return self.profiles.complete_onboarding(name, email, focus_area)

    @owner_scoped(None)
    def update_profile(self, **fields) -> Optional[OwnerProfile]:
        return self.profiles.update(**fields)

    @owner_scoped(None)
    def set_verification_challenge(self, code: Optional[str] = None) -> Optional[str]:
        return self.profiles.set_verification_challenge(code)

    @owner_scoped(None)
    def clear_verification_challenge(self) -> None:
        self.profiles.clear_verification_challenge()

    @owner_scoped(False)
    def confirm_verification_code(self, code: str) -> bool:
        return self.profiles.confirm_verification_code(code)

    @owner_scoped(None)
    def mark_verified(self) -> None:
        self.profiles.mark_verified()
