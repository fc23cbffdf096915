"""Read-through cache of per-owner derived slug values with explicit invalidation."""

from __future__ import annotations

import threading
from collections import Counter
from typing import Any, Callable

import structlog
from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction

from slugkeeper.core.models import OwnerRef

logger = structlog.get_logger()

_PENDING_KEY = "slugkeeper.cache_pending"


class SlugCache:
    """Thread-safe in-process cache of values derived from an owner's slugs.

    Entries are keyed by OwnerRef and a value name ("slug", "path"). None is a
    cacheable value. A load that races with invalidate() is returned to its
    caller but never stored, so stale values cannot outlive an invalidation.
    Owners with slug writes in an open transaction (see track()) are never
    stored until that transaction commits or rolls back.
    """

    def __init__(self) -> None:
        self._values: dict[OwnerRef, dict[str, Any]] = {}
        self._generations: dict[OwnerRef, int] = {}
        self._pending: Counter[OwnerRef] = Counter()
        self._epoch = 0
        self._lock = threading.Lock()

    def get(self, owner: OwnerRef, key: str, loader: Callable[[], Any]) -> Any:
        """Return the cached value for (owner, key), calling loader on a miss."""
        with self._lock:
            entry = self._values.get(owner)
            if entry is not None and key in entry:
                return entry[key]
            stamp = (self._epoch, self._generations.get(owner, 0))

        value = loader()

        with self._lock:
            unchanged = (self._epoch, self._generations.get(owner, 0)) == stamp
            if unchanged and not self._pending[owner]:
                self._values.setdefault(owner, {})[key] = value
        return value

    def _drop(self, owner: OwnerRef) -> None:
        self._values.pop(owner, None)
        self._generations[owner] = self._generations.get(owner, 0) + 1

    def invalidate(self, owner: OwnerRef) -> None:
        """Drop every cached value for owner."""
        with self._lock:
            self._drop(owner)
        logger.debug("slug_cache_invalidated", owner=str(owner))

    def track(self, session: Session, owner: OwnerRef) -> None:
        """Invalidate owner now and again when session's transaction ends.

        Until then loads for owner bypass the cache, since they may see either
        uncommitted rows or the committed state about to be replaced.
        """
        with self._lock:
            self._drop(owner)
            self._pending[owner] += 1
        session.info.setdefault(_PENDING_KEY, []).append((self, owner))
        logger.debug("slug_cache_invalidated", owner=str(owner), pending=True)

    def _release(self, owner: OwnerRef) -> None:
        with self._lock:
            self._drop(owner)
            self._pending[owner] -= 1
            if self._pending[owner] <= 0:
                del self._pending[owner]

    def clear(self) -> None:
        with self._lock:
            self._epoch += 1
            self._values.clear()
            self._generations.clear()

    def __contains__(self, owner: OwnerRef) -> bool:
        with self._lock:
            return owner in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)


@event.listens_for(Session, "after_transaction_end")
def _release_pending(session: Session, transaction: SessionTransaction) -> None:
    """Settle tracked owners once the outermost transaction commits or rolls back."""
    if transaction.parent is not None:
        return
    for cache, owner in session.info.pop(_PENDING_KEY, []):
        cache._release(owner)
