"""Domain models for the session lifecycle and aura engine."""

import uuid
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

IntentStatus = Literal["declared", "in_focus", "resolved"]
IntentResolution = Literal["auto_abandoned", "without_focus", "reflected"]
SessionStatus = Literal["active", "finished", "abandoned"]
SessionOutcome = Literal["finished", "abandoned"]
ArtifactType = Literal["note", "code", "external"]
VaultEntryType = Literal["learning", "solution", "mistake", "note", "code", "external"]
UserMode = Literal["IDLE", "ACTIVE"]
AuraStatus = Literal["weak", "forming", "solid", "strong"]
AuraTrend = Literal["up", "down", "stable"]

ARTIFACT_TYPES = ("note", "code", "external")


def new_id() -> str:
    return str(uuid.uuid4())


class Intent(BaseModel):
    """A user-authored declaration of what to work on."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    owner_id: str
    declaration: str
    status: IntentStatus = "declared"
    declared_at: datetime
    resolved_at: Optional[datetime] = None
    resolution: Optional[IntentResolution] = None


class FocusArtifact(BaseModel):
    """Ephemeral proof-of-work item scoped to the active focus session."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    owner_id: str
    focus_session_id: str
    type: ArtifactType
    title: str
    content: str
    language: Optional[str] = None
    preview_supported: Optional[bool] = None
    url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class FocusSession(BaseModel):
    """One working episode tied to exactly one intent."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    owner_id: str
    intent_id: str
    intent_declaration: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    status: SessionStatus = "active"
    outcome: Optional[SessionOutcome] = None
    reflection_submitted: bool = False
    reflection_deferred: bool = False
    proof: Optional[str] = None
    artifacts: list[FocusArtifact] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in ("finished", "abandoned")

    @property
    def awaiting_reflection(self) -> bool:
        return self.is_terminal and not self.reflection_submitted


class Reflection(BaseModel):
    """Closing statement for a focus session. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    owner_id: str
    focus_session_id: str
    intent_declaration: str
    outcome: SessionOutcome
    outcome_description: str
    mistake_pattern: str
    insight: str
    created_at: datetime


class VaultEntry(BaseModel):
    """Permanent knowledge record, optionally tied to a focus session."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    owner_id: str
    type: VaultEntryType
    title: str
    content: str
    language: Optional[str] = None
    url: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    unverified: bool = False
    focus_session_id: Optional[str] = None
    intent_id: Optional[str] = None


class ProjectLog(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    owner_id: str
    project_name: str
    idea: str
    decisions: list[str] = Field(default_factory=list)
    bugs: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    unverified: bool = False


class AuraPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    score: float


class AuraState(BaseModel):
    """Owner-scoped engagement score and its recent history."""

    score: float = 0.0
    history: list[AuraPoint] = Field(default_factory=list)
    last_decay_check: Optional[date] = None
    current_streak: int = 0
    longest_streak: int = 0
    last_active_date: Optional[date] = None


class OwnerProfile(BaseModel):
    name: str = ""
    email: str = ""
    public_alias: str = ""
    focus_area: str = ""
    email_verified: bool = False
    verification_code: str = ""
    verification_sent_at: Optional[datetime] = None
    join_date: Optional[date] = None


class EngineState(BaseModel):
    """Everything the engine holds for a single owner.

    ``active_focus_session`` and ``focus_artifacts`` are ephemeral and are
    never part of a durable snapshot.
    """

    owner_id: str
    profile: OwnerProfile = Field(default_factory=OwnerProfile)
    mode: UserMode = "IDLE"
    aura: AuraState = Field(default_factory=AuraState)
    active_intent: Optional[Intent] = None
    intent_history: list[Intent] = Field(default_factory=list)
    active_focus_session: Optional[FocusSession] = None
    focus_history: list[FocusSession] = Field(default_factory=list)
    reflections: list[Reflection] = Field(default_factory=list)
    focus_artifacts: list[FocusArtifact] = Field(default_factory=list)
    vault_entries: list[VaultEntry] = Field(default_factory=list)
    project_logs: list[ProjectLog] = Field(default_factory=list)

    def commit(self, **changes) -> None:
        """Apply a fully computed set of field changes in one step."""
        for name, value in changes.items():
            setattr(self, name, value)


EPHEMERAL_FIELDS = {"active_focus_session", "focus_artifacts"}


class OwnerSnapshot(BaseModel):
    """Durable subset of ``EngineState``."""

    owner_id: str
    profile: OwnerProfile = Field(default_factory=OwnerProfile)
    mode: UserMode = "IDLE"
    aura: AuraState = Field(default_factory=AuraState)
    active_intent: Optional[Intent] = None
    intent_history: list[Intent] = Field(default_factory=list)
    focus_history: list[FocusSession] = Field(default_factory=list)
    reflections: list[Reflection] = Field(default_factory=list)
    vault_entries: list[VaultEntry] = Field(default_factory=list)
    project_logs: list[ProjectLog] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: EngineState) -> "OwnerSnapshot":
        return cls(**state.model_dump(exclude=EPHEMERAL_FIELDS))
