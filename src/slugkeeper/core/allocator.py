"""Slug allocation: candidate generation, collision resolution and activation

allocate() is called explicitly after an owner record has been persisted. It
either reactivates one of the owner's existing slugs or inserts a new active
one, all inside a SAVEPOINT on the caller's session. Nothing is committed here.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from slugkeeper.core.cache import SlugCache
from slugkeeper.core.models import SlugPolicy
from slugkeeper.crud.slugs import activate_slug, create_slug, deactivate_all, slugs_for, taken_slugs
from slugkeeper.crud.tables import Slug
from slugkeeper.errors import AllocationExhausted, GenerationExhausted, StorageConflict

logger = structlog.get_logger()


def last_resort_slug(first: str, owner_id: Any, separator: str, max_length: int) -> str | None:
    """Append separator and owner id to first, shortening first to fit max_length.

    The suffix is kept intact and at least one character of first survives.
    Returns None when the suffix plus one character cannot fit at all.
    """
    suffix = f"{separator}{owner_id}"
    budget = max_length - len(suffix)
    if budget < 1:
        return None
    return first[:budget] + suffix


def candidate_slugs(owner: Any, policy: SlugPolicy) -> list[str]:
    """Return the owner's slug candidates in priority order.

    Generator outputs are slugified and truncated, the last-resort form of the
    first candidate is appended, blacklisted texts are removed, and duplicates
    keep their first position. Raises GenerationExhausted if every generator
    came up empty.
    """
    ref = policy.ref(owner)
    candidates = []
    for raw in policy.generate(owner):
        if not raw:
            continue
        text = policy.slugifier(raw)[:policy.max_length]
        if text:
            candidates.append(text)
    if not candidates:
        raise GenerationExhausted(ref.owner_type, ref.owner_id)

    fallback = last_resort_slug(candidates[0], ref.owner_id, policy.id_separator, policy.max_length)
    if fallback is None:
        logger.warning("slug_last_resort_unavailable", owner=str(ref), max_length=policy.max_length)
    else:
        candidates.append(fallback)

    return [c for c in dict.fromkeys(candidates) if c not in policy.blacklist]


def _reuse(session: Session, owned: dict[str, Slug], candidates: list[str]) -> Slug | None:
    """Reactivate the highest-priority candidate the owner already holds, if any."""
    for text in candidates:
        if text in owned:
            with session.begin_nested():
                return activate_slug(session, owned[text])
    return None


def _insert(session: Session, owner: Any, policy: SlugPolicy, candidates: list[str], scope: str) -> Slug:
    """Insert the first candidate not taken within (owner_type, scope) as the active slug."""
    ref = policy.ref(owner)
    with session.begin_nested():
        taken = taken_slugs(session, policy.owner_type, scope, candidates)
        available = [c for c in candidates if c not in taken]
        if not available:
            raise AllocationExhausted(ref.owner_type, ref.owner_id, candidates)
        deactivate_all(session, ref)
        try:
            return create_slug(session, ref, available[0], scope=scope)
        except IntegrityError as e:
            raise StorageConflict(ref.owner_type, scope, available[0]) from e


def allocate(
    session: Session,
    owner: Any,
    policy: SlugPolicy,
    cache: SlugCache | None = None,
    retries: int = 1,
    ) -> Slug:
    """Compute and persist the owner's active slug.

    Reuse beats creation: if any candidate is already one of the owner's slugs,
    the highest-priority such slug becomes active and no row is added. Otherwise
    the first candidate free within the owner's scope is inserted. A unique-index
    race on insert is retried up to `retries` times with a fresh collision check,
    then reported as AllocationExhausted. With a cache, the owner's entries are
    dropped now and again when the caller's transaction ends. Returns the active
    Slug row.
    """
    ref = policy.ref(owner)
    retries = max(retries, 0)
    candidates = candidate_slugs(owner, policy)
    owned = {row.slug: row for row in slugs_for(session, ref)}

    slug = _reuse(session, owned, candidates)
    if slug is not None:
        logger.debug("slug_reused", owner=str(ref), slug=slug.slug)
    else:
        scope = policy.scope_for(owner)
        for attempt in range(retries + 1):
            try:
                slug = _insert(session, owner, policy, candidates, scope)
                break
            except StorageConflict as conflict:
                logger.warning("slug_conflict", owner=str(ref), reason=conflict.message, attempt=attempt + 1)
                if attempt >= retries:
                    raise AllocationExhausted(ref.owner_type, ref.owner_id, candidates) from conflict
        logger.info("slug_created", owner=str(ref), slug=slug.slug, scope=slug.scope)

    if cache is not None:
        cache.track(session, ref)
    return slug
