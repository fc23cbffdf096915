"""Slug entity persistence: per-owner queries, validated saves, activation and deletion

Functions flush but never commit; the caller controls the transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

from sqlalchemy import func, inspect
from sqlmodel import Session, select

from slugkeeper.core.models import OwnerRef
from slugkeeper.crud.tables import MAX_SLUG_LENGTH, Slug
from slugkeeper.errors import InvalidActivation

if TYPE_CHECKING:
    from slugkeeper.core.cache import SlugCache


def _for_owner(owner: OwnerRef):
    return select(Slug).where(Slug.owner_type == owner.owner_type).where(Slug.owner_id == owner.owner_id)


def slugs_for(session: Session, owner: OwnerRef) -> list[Slug]:
    """Return every slug row of an owner, oldest first."""
    return list(session.exec(_for_owner(owner).order_by(Slug.id.asc())).all())


def active_slug_for(session: Session, owner: OwnerRef) -> Slug | None:
    """Return the owner's active slug row, or None if it has none yet."""
    return session.exec(_for_owner(owner).where(Slug.active == True)).first()  # noqa: E712


def find_slug(session: Session, owner_type: str, scope: Optional[str], slug: str) -> Slug | None:
    """Return the row with exactly this (owner_type, scope, slug), active or not."""
    return session.exec(
        select(Slug)
        .where(Slug.owner_type == owner_type)
        .where(Slug.scope == (scope or ""))
        .where(Slug.slug == slug)
    ).first()


def find_owner_slug(session: Session, owner: OwnerRef, slug: str) -> Slug | None:
    """Return the owner's row matching slug case-insensitively."""
    return session.exec(_for_owner(owner).where(func.lower(Slug.slug) == slug.lower())).first()


def taken_slugs(session: Session, owner_type: str, scope: Optional[str], candidates: Iterable[str]) -> set[str]:
    """Return the candidates already used by any owner of owner_type within scope."""
    candidates = list(candidates)
    if not candidates:
        return set()
    rows = session.exec(
        select(Slug.slug)
        .where(Slug.owner_type == owner_type)
        .where(Slug.scope == (scope or ""))
        .where(Slug.slug.in_(candidates))
    ).all()
    return set(rows)


def _changes_active(slug: Slug) -> bool:
    """True for new rows and for rows whose active flag differs from the stored one."""
    state = inspect(slug)
    if state.transient or state.pending:
        return True
    return state.attrs.active.history.has_changes()


def _check_fields(slug: Slug) -> None:
    if not slug.slug:
        raise ValueError("slug must not be empty")
    if len(slug.slug) > MAX_SLUG_LENGTH:
        raise ValueError(f"slug longer than {MAX_SLUG_LENGTH} characters: {slug.slug!r}")
    if slug.scope and len(slug.scope) > MAX_SLUG_LENGTH:
        raise ValueError(f"scope longer than {MAX_SLUG_LENGTH} characters: {slug.scope!r}")


def validate_slug(session: Session, slug: Slug) -> None:
    """Check field limits and the single-active-slug-per-owner rule.

    A row whose active flag is not changing passes even when its owner has another
    active row, so metadata edits and idempotent re-saves are never blocked.
    Other rows are judged by their in-session state, so a row deactivated or
    deleted earlier in the same unit of work does not block the activation.
    Raises ValueError for bad text and InvalidActivation for a second active row.
    """
    _check_fields(slug)
    if not slug.active or not _changes_active(slug):
        return

    with session.no_autoflush:
        stored = session.exec(_for_owner(slug.owner).where(Slug.active == True)).all()  # noqa: E712
    pending = [row for row in session.new if isinstance(row, Slug) and row.owner == slug.owner]
    for row in [*stored, *pending]:
        if row is not slug and row.active and row not in session.deleted:
            raise InvalidActivation(slug.owner_type, slug.owner_id, slug.slug)


def save_slug(session: Session, slug: Slug) -> Slug:
    """Validate and flush a new or modified slug row."""
    validate_slug(session, slug)
    session.add(slug)
    session.flush()
    return slug


def create_slug(
    session: Session,
    owner: OwnerRef,
    text: str,
    scope: Optional[str] = None,
    active: bool = True,
    ) -> Slug:
    """Insert a slug row for owner. Unscoped rows are stored with scope ''."""
    slug = Slug(
        owner_type=owner.owner_type,
        owner_id=owner.owner_id,
        slug=text,
        scope=scope or "",
        active=active,
    )
    return save_slug(session, slug)


def deactivate_all(session: Session, owner: OwnerRef, keep: Slug | None = None) -> int:
    """Mark every active row of owner inactive, except keep. Returns count changed."""
    changed = 0
    for row in slugs_for(session, owner):
        if row.active and row is not keep:
            row.active = False
            session.add(row)
            changed += 1
    if changed:
        session.flush()
    return changed


def activate_slug(session: Session, slug: Slug) -> Slug:
    """Make slug the owner's active row, deactivating the others in the same flush."""
    for row in slugs_for(session, slug.owner):
        if row is not slug and row.active:
            row.active = False
            session.add(row)
    slug.active = True
    _check_fields(slug)
    session.add(slug)
    session.flush()
    return slug


def delete_slug(session: Session, slug: Slug, cache: SlugCache | None = None) -> None:
    """Delete one slug row; the owner's cached values are dropped until the transaction ends."""
    owner = slug.owner
    session.delete(slug)
    session.flush()
    if cache is not None:
        cache.track(session, owner)


def delete_slugs_for(session: Session, owner: OwnerRef, cache: SlugCache | None = None) -> int:
    """Delete all slug rows of owner, e.g. when the owner itself is deleted. Returns count."""
    rows = slugs_for(session, owner)
    for row in rows:
        session.delete(row)
    session.flush()
    if cache is not None:
        cache.track(session, owner)
    return len(rows)
