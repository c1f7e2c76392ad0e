"""Identity guard — owner pointer, leak scrubbing, and the owner-scoped API wrapper."""

import functools
import logging
from typing import Any, Callable, Iterable, Optional, TypeVar

from unseen.engine.models import EngineState

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fields holding a single owner-stamped entity
_SINGLE_FIELDS = ("active_intent", "active_focus_session")
# Fields holding lists of owner-stamped entities
_LIST_FIELDS = (
    "focus_artifacts",
    "intent_history",
    "focus_history",
    "reflections",
    "vault_entries",
    "project_logs",
)


class IdentityGuard:
    """Holds the single process-wide "current owner" pointer.

    Every engine built by the host shares one guard. Swapping the pointer
    through ``adopt`` is what makes a previously built engine stale.
    """

    def __init__(self, owner_id: Optional[str] = None) -> None:
        self._owner_id = owner_id or None
        self._generation = 0
        self.leaks = 0

    @property
    def owner_id(self) -> Optional[str]:
        return self._owner_id

    @property
    def is_authenticated(self) -> bool:
        return self._owner_id is not None

    @property
    def generation(self) -> int:
        """Bumped on every owner change. Engines built earlier are stale."""
        return self._generation

    def adopt(self, owner_id: Optional[str]) -> None:
        """Point the guard at a new owner (None on logout)."""
        previous = self._owner_id
        self._owner_id = owner_id or None
        if previous != self._owner_id:
            self._generation += 1
            logger.info("Active owner changed: %s -> %s", previous, self._owner_id)

    def owns(self, entity: Any) -> bool:
        return entity is not None and getattr(entity, "owner_id", None) == self._owner_id

    def owned(self, items: Iterable[T]) -> list[T]:
        """Filter a collection down to entities stamped with the active owner."""
        return [item for item in items if self.owns(item)]

    def scrub(self, state: EngineState) -> int:
        """Discard every foreign-owner entity found in ``state``.

        Only the ids are logged; the entities themselves are dropped.
        Returns the number of entities discarded.
        """
        changes: dict[str, Any] = {}
        discarded = 0

        for name in _SINGLE_FIELDS:
            entity = getattr(state, name)
            if entity is not None and not self.owns(entity):
                logger.warning(
                    "Leak detected: %s %s owned by %s while %s is active. Discarding.",
                    name, getattr(entity, "id", "?"), entity.owner_id, self._owner_id,
                )
                changes[name] = None
                discarded += 1

        for name in _LIST_FIELDS:
            items = getattr(state, name)
            kept = self.owned(items)
            if len(kept) != len(items):
                foreign = [getattr(item, "id", "?") for item in items if not self.owns(item)]
                lost = len(foreign)
                logger.warning("Leak detected: %d foreign entries in %s %s. Discarding.", lost, name, foreign)
                changes[name] = kept
                discarded += lost

        if changes:
            state.commit(**changes)
        self.leaks += discarded
        return discarded


def owner_scoped(default: Any = None) -> Callable:
    """Wrap a public engine operation with the owner invariant check.

    The wrapped method's instance must expose ``guard``, ``owner_id``,
    ``generation``, ``closed`` and ``state``. If the engine is not the engine
    built for the current login (closed, other owner, or built before the
    last owner change) the call is rejected with ``default`` (called first
    when it is a type such as ``list``). Otherwise foreign state is scrubbed
    before the call runs.
    """

    def _fallback() -> Any:
        return default() if isinstance(default, type) else default

    def decorator(method: Callable) -> Callable:
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            guard: IdentityGuard = self.guard
            if not guard.is_authenticated:
                logger.warning("Blocked %s: no authenticated owner.", method.__name__)
                return _fallback()
            if guard.owner_id != self.owner_id:
                logger.warning(
                    "Blocked %s: engine belongs to %s but %s is active.",
                    method.__name__, self.owner_id, guard.owner_id,
                )
                return _fallback()
            if self.closed or self.generation != guard.generation:
                logger.warning(
                    "Blocked %s: engine for %s is stale; a newer login replaced it.",
                    method.__name__, self.owner_id,
                )
                return _fallback()
            guard.scrub(self.state)
            return method(self, *args, **kwargs)

        return wrapper

    return decorator
