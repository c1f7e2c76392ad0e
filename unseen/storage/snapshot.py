"""Owner snapshot store — save and rehydrate an owner's durable state."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from unseen.engine.models import (
    AuraState,
    FocusSession,
    Intent,
    OwnerProfile,
    OwnerSnapshot,
    ProjectLog,
    Reflection,
    VaultEntry,
)
from unseen.storage.db import get_session, init_db
from unseen.storage.models import (
    FocusSessionRow,
    IntentRow,
    OwnerStateRow,
    ProjectLogRow,
    ReflectionRow,
    VaultEntryRow,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_ROW_TABLES = (IntentRow, FocusSessionRow, ReflectionRow, VaultEntryRow, ProjectLogRow)


def _as_utc(value: Any) -> Any:
    """SQLite hands timestamps back naive; they were written as UTC."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _row_dict(row: Any) -> dict:
    data = {}
    for column in row.__table__.columns:
        if column.name == "position":
            continue
        value = getattr(row, column.key)
        if value is None:
            # Let the domain model apply its own default
            continue
        data[column.key] = _as_utc(value)
    return data


def _parse(model: Type[M], data: Optional[dict], what: str) -> Optional[M]:
    try:
        return model.model_validate(data or {})
    except ValidationError as exc:
        logger.warning("Skipping malformed %s in snapshot: %s", what, exc.errors()[:1])
        return None


def _parse_session(row: FocusSessionRow) -> Optional[FocusSession]:
    data = _row_dict(row)
    artifacts = []
    for item in data.pop("artifacts", None) or []:
        if isinstance(item, dict):
            item = {k: _as_utc(v) for k, v in item.items()}
        artifacts.append(item)
    data["artifacts"] = artifacts
    return _parse(FocusSession, data, "focus session")


class SnapshotStore:
    """Durable snapshot interface backed by SQLAlchemy.

    Saving replaces all of an owner's rows in one transaction. Loading is
    tolerant: missing fields fall back to defaults and rows that no longer
    validate are skipped with a warning.
    """

    def __init__(self, db_url: Optional[str] = None) -> None:
        self.db_url = db_url
        self._initialized = False

    async def _ensure_schema(self) -> None:
        if not self._initialized:
            await init_db(self.db_url)
            self._initialized = True

    async def load_snapshot(self, owner_id: str) -> OwnerSnapshot:
        await self._ensure_schema()
        async with get_session(self.db_url) as session:
            return await self._load(session, owner_id)

    async def save_snapshot(self, snapshot: OwnerSnapshot) -> None:
        await self._ensure_schema()
        async with get_session(self.db_url) as session:
            await self._save(session, snapshot)
        logger.debug("Snapshot saved for %s", snapshot.owner_id)

    async def owners(self) -> list[str]:
        await self._ensure_schema()
        async with get_session(self.db_url) as session:
            result = await session.execute(select(OwnerStateRow.owner_id).order_by(OwnerStateRow.owner_id))
            return list(result.scalars().all())

    async def _rows(self, session: AsyncSession, table: Any, owner_id: str) -> list:
        result = await session.execute(
            select(table).where(table.owner_id == owner_id).order_by(table.position.asc())
        )
        return list(result.scalars().all())

    async def _load(self, session: AsyncSession, owner_id: str) -> OwnerSnapshot:
        owner_row = await session.get(OwnerStateRow, owner_id)
        if owner_row is None:
            logger.debug("No snapshot for %s; starting empty", owner_id)
            return OwnerSnapshot(owner_id=owner_id)

        profile = _parse(OwnerProfile, owner_row.profile, "profile") or OwnerProfile()
        aura = _parse(AuraState, owner_row.aura, "aura state") or AuraState()

        intents = [_parse(Intent, _row_dict(r), "intent") for r in await self._rows(session, IntentRow, owner_id)]
        intents = [i for i in intents if i is not None]
        open_intents = [i for i in intents if i.status != "resolved"]
        active_intent = None
        if open_intents:
            active_intent = max(open_intents, key=lambda i: i.declared_at)
            if len(open_intents) > 1:
                logger.warning("Snapshot for %s had %d open intents; keeping the newest", owner_id, len(open_intents))

        sessions = [_parse_session(r) for r in await self._rows(session, FocusSessionRow, owner_id)]
        reflections = [
            _parse(Reflection, _row_dict(r), "reflection")
            for r in await self._rows(session, ReflectionRow, owner_id)
        ]
        entries = [
            _parse(VaultEntry, _row_dict(r), "vault entry")
            for r in await self._rows(session, VaultEntryRow, owner_id)
        ]
        logs = [
            _parse(ProjectLog, _row_dict(r), "project log")
            for r in await self._rows(session, ProjectLogRow, owner_id)
        ]

        return OwnerSnapshot(
            owner_id=owner_id,
            profile=profile,
            mode=owner_row.mode or "IDLE",
            aura=aura,
            active_intent=active_intent,
            intent_history=[i for i in intents if i.status == "resolved"],
            # An open session never survives a reload
            focus_history=[s for s in sessions if s is not None and s.status != "active"],
            reflections=[r for r in reflections if r is not None],
            vault_entries=[e for e in entries if e is not None],
            project_logs=[p for p in logs if p is not None],
        )

    async def _save(self, session: AsyncSession, snapshot: OwnerSnapshot) -> None:
        owner_id = snapshot.owner_id
        for table in _ROW_TABLES:
            await session.execute(delete(table).where(table.owner_id == owner_id))

        owner_row = await session.get(OwnerStateRow, owner_id)
        if owner_row is None:
            owner_row = OwnerStateRow(owner_id=owner_id)
            session.add(owner_row)
        owner_row.mode = snapshot.mode
        owner_row.profile = snapshot.profile.model_dump(mode="json")
        owner_row.aura = snapshot.aura.model_dump(mode="json")

        intents = list(snapshot.intent_history)
        if snapshot.active_intent is not None:
            intents.insert(0, snapshot.active_intent)
        for position, intent in enumerate(intents):
            session.add(IntentRow(position=position, **intent.model_dump()))

        for position, focus in enumerate(snapshot.focus_history):
            data = focus.model_dump()
            data["artifacts"] = [a.model_dump(mode="json") for a in focus.artifacts]
            session.add(FocusSessionRow(position=position, **data))

        for position, reflection in enumerate(snapshot.reflections):
            session.add(ReflectionRow(position=position, **reflection.model_dump()))
        for position, entry in enumerate(snapshot.vault_entries):
            session.add(VaultEntryRow(position=position, **entry.model_dump()))
        for position, log in enumerate(snapshot.project_logs):
            session.add(ProjectLogRow(position=position, **log.model_dump()))

        await session.flush()
