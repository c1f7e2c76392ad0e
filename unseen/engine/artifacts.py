"""Artifact collector — proof-of-work items scoped to the active focus session."""

import logging
from datetime import datetime
from typing import Callable, Optional

from unseen.config import FocusSettings
from unseen.engine.models import ARTIFACT_TYPES, EngineState, FocusArtifact, VaultEntry

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"title", "content", "language", "preview_supported", "url"}


def supports_preview(language: Optional[str], preview_languages: list[str]) -> bool:
    return bool(language) and language.strip().lower() in preview_languages


def to_vault_entry(
    artifact: FocusArtifact,
    intent_id: str,
    now: datetime,
    unverified: bool = False,
) -> VaultEntry:
    """Convert an artifact into a permanent record.

    Notes become ``learning`` entries; code and external links keep their type.
    Records made by an unverified owner are flagged like any other record.
    """
    return VaultEntry(
        id=f"vault-{artifact.id}",
        owner_id=artifact.owner_id,
        type="learning" if artifact.type == "note" else artifact.type,
        title=artifact.title,
        content=artifact.content,
        language=artifact.language,
        url=artifact.url,
        tags=[artifact.language] if artifact.language else [],
        created_at=artifact.created_at,
        updated_at=now,
        focus_session_id=artifact.focus_session_id,
        intent_id=intent_id,
        unverified=unverified,
    )


class ArtifactCollector:
    """Create, edit and delete artifacts while a focus session is active."""

    def __init__(self, state: EngineState, settings: FocusSettings, clock: Callable[[], datetime]) -> None:
        self.state = state
        self.settings = settings
        self.clock = clock

    def _active_session_id(self, action: str) -> Optional[str]:
        session = self.state.active_focus_session
        if session is None or session.status != "active":
            logger.warning("Blocked %s: no active focus session.", action)
            return None
        return session.id

    def add(
        self,
        type: str,
        title: str,
        content: str,
        language: Optional[str] = None,
        preview_supported: Optional[bool] = None,
        url: Optional[str] = None,
    ) -> Optional[FocusArtifact]:
        session_id = self._active_session_id("add artifact")
        if session_id is None:
            return None
        if type not in ARTIFACT_TYPES:
            logger.warning("Blocked add artifact: unknown type %r.", type)
            return None

        if preview_supported is None and type == "code":
            preview_supported = supports_preview(language, self.settings.preview_languages)

        now = self.clock()
        artifact = FocusArtifact(
            owner_id=self.state.owner_id,
            focus_session_id=session_id,
            type=type,
            title=title,
            content=content,
            language=language,
            preview_supported=preview_supported,
            url=url,
            created_at=now,
            updated_at=now,
        )
        self.state.commit(focus_artifacts=[*self.state.focus_artifacts, artifact])
        logger.debug("Artifact added: %s (%s)", artifact.id, type)
        return artifact

    def update(self, artifact_id: str, **updates) -> Optional[FocusArtifact]:
        if self._active_session_id("update artifact") is None:
            return None

        unknown = set(updates) - EDITABLE_FIELDS
        if unknown:
            logger.warning("Blocked update artifact: fields %s are not editable.", sorted(unknown))
            return None

        updated = None
        artifacts = []
        for artifact in self.state.focus_artifacts:
            if artifact.id == artifact_id and artifact.owner_id == self.state.owner_id:
                artifact = artifact.model_copy(update={**updates, "updated_at": self.clock()})
                updated = artifact
            artifacts.append(artifact)

        if updated is None:
            logger.warning("Blocked update artifact: %s not found.", artifact_id)
            return None
        self.state.commit(focus_artifacts=artifacts)
        return updated

    def delete(self, artifact_id: str) -> bool:
        if self._active_session_id("delete artifact") is None:
            return False

        kept = [
            a for a in self.state.focus_artifacts
            if not (a.id == artifact_id and a.owner_id == self.state.owner_id)
        ]
        if len(kept) == len(self.state.focus_artifacts):
            logger.warning("Blocked delete artifact: %s not found.", artifact_id)
            return False
        self.state.commit(focus_artifacts=kept)
        return True

    def items(self) -> list[FocusArtifact]:
        return list(self.state.focus_artifacts)
