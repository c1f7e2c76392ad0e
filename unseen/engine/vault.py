"""Permanent record sink — vault entries and project logs."""

import logging
from datetime import datetime
from typing import Callable, Optional

from unseen.config import AuraSettings
from unseen.engine.aura import AuraEngine
from unseen.engine.models import EngineState, ProjectLog, VaultEntry

logger = logging.getLogger(__name__)

VAULT_EDITABLE = {"type", "title", "content", "language", "url", "tags"}
LOG_EDITABLE = {"project_name", "idea", "decisions", "bugs", "improvements"}


class RecordSink:
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

    def add_vault_entry(
        self,
        type: str,
        title: str,
        content: str,
        language: Optional[str] = None,
        url: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> Optional[VaultEntry]:
        # Standalone notes are not evidence of work
        if type == "note":
            logger.warning("Blocked vault entry: standalone notes are not allowed.")
            return None

        now = self.clock()
        entry = VaultEntry(
            owner_id=self.state.owner_id,
            type=type,
            title=title,
            content=content,
            language=language,
            url=url,
            tags=list(tags or []),
            created_at=now,
            updated_at=now,
            unverified=not self.aura.verified,
        )
        self.state.commit(vault_entries=[entry, *self.state.vault_entries])
        self.aura.reward(self.settings.knowledge_delta)
        return entry

    def update_vault_entry(self, entry_id: str, **updates) -> Optional[VaultEntry]:
        unknown = set(updates) - VAULT_EDITABLE
        if unknown:
            logger.warning("Blocked vault update: fields %s are not editable.", sorted(unknown))
            return None
        entries, updated = self._replace(self.state.vault_entries, entry_id, updates)
        if updated is None:
            logger.warning("Blocked vault update: entry %s not found.", entry_id)
            return None
        self.state.commit(vault_entries=entries)
        return updated

    def delete_vault_entry(self, entry_id: str) -> bool:
        kept = self._without(self.state.vault_entries, entry_id)
        if kept is None:
            logger.warning("Blocked vault delete: entry %s not found.", entry_id)
            return False
        self.state.commit(vault_entries=kept)
        return True

    def add_project_log(
        self,
        project_name: str,
        idea: str,
        decisions: Optional[list[str]] = None,
        bugs: Optional[list[str]] = None,
        improvements: Optional[list[str]] = None,
    ) -> ProjectLog:
        now = self.clock()
        log = ProjectLog(
            owner_id=self.state.owner_id,
            project_name=project_name,
            idea=idea,
            decisions=list(decisions or []),
            bugs=list(bugs or []),
            improvements=list(improvements or []),
            created_at=now,
            updated_at=now,
            unverified=not self.aura.verified,
        )
        self.state.commit(project_logs=[log, *self.state.project_logs])
        self.aura.reward(self.settings.project_log_delta)
        return log

    def update_project_log(self, log_id: str, **updates) -> Optional[ProjectLog]:
        unknown = set(updates) - LOG_EDITABLE
        if unknown:
            logger.warning("Blocked project log update: fields %s are not editable.", sorted(unknown))
            return None
        logs, updated = self._replace(self.state.project_logs, log_id, updates)
        if updated is None:
            logger.warning("Blocked project log update: log %s not found.", log_id)
            return None
        self.state.commit(project_logs=logs)
        return updated

    def delete_project_log(self, log_id: str) -> bool:
        kept = self._without(self.state.project_logs, log_id)
        if kept is None:
            logger.warning("Blocked project log delete: log %s not found.", log_id)
            return False
        self.state.commit(project_logs=kept)
        return True

    def _replace(self, items: list, item_id: str, updates: dict):
        updated = None
        result = []
        for item in items:
            if item.id == item_id and item.owner_id == self.state.owner_id:
                item = item.model_copy(update={**updates, "updated_at": self.clock()})
                updated = item
            result.append(item)
        return result, updated

    def _without(self, items: list, item_id: str) -> Optional[list]:
        kept = [i for i in items if not (i.id == item_id and i.owner_id == self.state.owner_id)]
        return None if len(kept) == len(items) else kept
