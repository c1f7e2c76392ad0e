"""Engine host — the owner identity seam between authentication and the engine."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, Optional

from unseen.config import Settings, get_settings
from unseen.engine.identity import IdentityGuard
from unseen.engine.session import SessionEngine
from unseen.storage.snapshot import SnapshotStore

logger = logging.getLogger(__name__)


class EngineHost:
    """Owns the process-wide owner pointer and the engine built for it.

    Switching owners saves the outgoing owner's snapshot, loads the incoming
    owner's snapshot, and only then closes the outgoing engine and swaps
    pointer and engine together. A closed engine never answers again, even
    if its owner logs back in.
    """

    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store or SnapshotStore(self.settings.general.db_url)
        self.clock = clock
        self.guard = IdentityGuard()
        self._engine: Optional[SessionEngine] = None

    def current_owner_id(self) -> Optional[str]:
        return self.guard.owner_id

    @property
    def engine(self) -> Optional[SessionEngine]:
        return self._engine

    async def set_owner_id(self, owner_id: Optional[str]) -> Optional[SessionEngine]:
        owner_id = owner_id or None
        if owner_id == self.guard.owner_id:
            return self._engine

        await self.save()

        snapshot = None
        if owner_id is not None:
            snapshot = await self.store.load_snapshot(owner_id)

        # Pointer and engine change together
        if self._engine is not None:
            self._engine.close()
        self.guard.adopt(owner_id)
        engine = None
        if snapshot is not None:
            engine = SessionEngine.from_snapshot(snapshot, self.guard, self.settings, self.clock)
        self._engine = engine
        return engine

    async def logout(self) -> None:
        await self.set_owner_id(None)

    async def save(self) -> None:
        """Persist the active owner's durable state, if any."""
        if self._engine is None:
            return
        snapshot = self._engine.snapshot()
        if snapshot is not None:
            await self.store.save_snapshot(snapshot)


@asynccontextmanager
async def open_engine(
    owner_id: str,
    settings: Optional[Settings] = None,
    store: Optional[SnapshotStore] = None,
) -> AsyncIterator[SessionEngine]:
    """Log in, yield the owner's engine, then save and log out."""
    host = EngineHost(store=store, settings=settings)
    engine = await host.set_owner_id(owner_id)
    try:
        yield engine
    finally:
        await host.logout()
