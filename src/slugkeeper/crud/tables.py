"""Database table definition for current and historical slugs of owner records"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Index, String, true
from sqlmodel import Field, SQLModel

from slugkeeper.core.models import OwnerRef


MAX_SLUG_LENGTH = 126


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Slug(SQLModel, table=True):
    """A URL-safe identifier of one owner record; inactive rows keep old links resolving"""
    __tablename__ = "slugs"
    __table_args__ = (
        Index("slugs_for_record", "owner_type", "owner_id", "active"),
        Index("slugs_unique", "owner_type", "scope", "slug", unique=True),
    )
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_type: str = Field(..., sa_column=Column(String(MAX_SLUG_LENGTH), nullable=False))
    owner_id: int = Field(..., nullable=False)
    active: bool = Field(default=True, nullable=False, sa_column_kwargs={"server_default": true()})
    slug: str = Field(..., sa_column=Column(String(MAX_SLUG_LENGTH), nullable=False))
    scope: Optional[str] = Field(default=None, sa_column=Column(String(MAX_SLUG_LENGTH), nullable=True))
    created_at: Optional[datetime] = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=True))

    @property
    def owner(self) -> OwnerRef:
        return OwnerRef(self.owner_type, self.owner_id)

    @property
    def path(self) -> str:
        """Scope and slug joined as they appear in a URL path."""
        return (self.scope or "") + self.slug
