"""Read path: resolve slugs to owners, classify slugs, and report current slug and path"""

from typing import Optional

from sqlmodel import Session

from slugkeeper.core.cache import SlugCache
from slugkeeper.core.models import OwnerRef, SlugState
from slugkeeper.crud.slugs import active_slug_for, find_owner_slug, find_slug
from slugkeeper.errors import SlugNotFound


def resolve(session: Session, owner_type: str, scope: Optional[str], slug: str) -> OwnerRef | None:
    """Return the owner holding slug within (owner_type, scope), or None.

    Matching is case-sensitive; inactive slugs resolve too so old links keep working.
    """
    row = find_slug(session, owner_type, scope, slug)
    return row.owner if row else None


def resolve_or_raise(session: Session, owner_type: str, scope: Optional[str], slug: str) -> OwnerRef:
    """Like resolve(), but raises SlugNotFound when nothing matches."""
    owner = resolve(session, owner_type, scope, slug)
    if owner is None:
        raise SlugNotFound(owner_type, scope or "", slug)
    return owner


def split_path(path: str) -> tuple[str, str]:
    """Split 'a/b/slug' into ('a/b/', 'slug'); a bare slug has scope ''."""
    head, sep, slug = path.rpartition("/")
    return head + sep, slug


def resolve_from_path(session: Session, owner_type: str, path: str, strict: bool = False) -> OwnerRef | None:
    """Resolve a URL path made of scope and slug. strict=True raises SlugNotFound."""
    scope, slug = split_path(path)
    if strict:
        return resolve_or_raise(session, owner_type, scope, slug)
    return resolve(session, owner_type, scope, slug)


def classify(session: Session, owner: OwnerRef, slug: str) -> SlugState:
    """Tell whether slug is the owner's active slug, an old one, or not one of theirs.

    Callers serve active slugs, redirect inactive ones, and 404 unknown ones.
    """
    row = find_owner_slug(session, owner, slug)
    if row is None:
        return SlugState.unknown
    return SlugState.active if row.active else SlugState.inactive


def current_slug(session: Session, owner: OwnerRef, cache: SlugCache | None = None) -> str | None:
    def _load() -> str | None:
        row = active_slug_for(session, owner)
        return row.slug if row else None

    if cache is None:
        return _load()
    return cache.get(owner, "slug", _load)


def current_path(session: Session, owner: OwnerRef, cache: SlugCache | None = None) -> str | None:
    """Scope plus active slug, the owner's canonical URL identifier; None if unslugged."""
    def _load() -> str | None:
        row = active_slug_for(session, owner)
        return row.path if row else None

    if cache is None:
        return _load()
    return cache.get(owner, "path", _load)
