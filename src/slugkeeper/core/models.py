"""Owner references, slug states and per-owner-type slug policies"""

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from slugkeeper.config import Settings
from slugkeeper.core.utils.slug import slugify
from slugkeeper.errors import ConfigurationError


DEFAULT_BLACKLIST = ("new", "edit", "delete")

# An attribute name on the owner, or a callable receiving the owner
Generator = Union[str, Callable[[Any], Optional[str]]]


@dataclass(frozen=True)
class OwnerRef:
    """Tagged reference to a slugged record: (owner_type, owner_id)."""
    owner_type: str
    owner_id: int

    def __str__(self) -> str:
        return f"{self.owner_type}#{self.owner_id}"


class SlugState(str, Enum):
    """Whether a slug is an owner's current one, a historical one, or not theirs at all"""
    active = "active"
    inactive = "inactive"
    unknown = "unknown"


def _accessor(source: Generator, option: str) -> Callable[[Any], Any]:
    if isinstance(source, str):
        return operator.attrgetter(source)
    if callable(source):
        return source
    raise ConfigurationError(
        f"{option} must be an attribute name or a callable, got {type(source).__name__}",
    )


@dataclass(frozen=True)
class SlugPolicy:
    """How slugs are generated and constrained for one owner type.

    generators are tried in declaration order; each is an attribute name or a
    callable returning text (or None to skip). scope, when set, narrows slug
    uniqueness to records sharing the same scope string, which should be the
    URL path portion preceding the slug, trailing slash included.
    """
    owner_type: str
    generators: Sequence[Generator]
    slugifier: Callable[[str], str] = slugify
    id_separator: str = ";"
    scope: Optional[Generator] = None
    blacklist: Union[str, Iterable[str]] = DEFAULT_BLACKLIST
    max_length: int = 126
    id_getter: Callable[[Any], Any] = operator.attrgetter("id")
    _generators: tuple = field(init=False, repr=False)
    _scope: Optional[Callable[[Any], Any]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.owner_type:
            raise ConfigurationError("owner_type must be a non-empty string")
        if not self.generators:
            raise ConfigurationError(
                "Must provide at least one field or callable to slug",
                "Pass attribute names or callables as generators.",
            )
        if self.max_length < 1:
            raise ConfigurationError(f"max_length must be at least 1, got {self.max_length}")
        blacklist = [self.blacklist] if isinstance(self.blacklist, str) else self.blacklist
        object.__setattr__(self, "generators", tuple(self.generators))
        object.__setattr__(self, "blacklist", frozenset(blacklist))
        object.__setattr__(self, "_generators", tuple(_accessor(g, "generator") for g in self.generators))
        object.__setattr__(self, "_scope", None if self.scope is None else _accessor(self.scope, "scope"))

    @classmethod
    def from_settings(
        cls,
        owner_type: str,
        *generators: Generator,
        settings: Settings | None = None,
        **overrides: Any,
        ) -> "SlugPolicy":
        """Build a policy whose separator, blacklist and length come from Settings."""
        settings = settings or Settings()
        options = {
            "id_separator": settings.id_separator,
            "blacklist": settings.blacklist,
            "max_length": settings.max_slug_length,
        }
        options.update(overrides)
        return cls(owner_type, list(generators), **options)

    def ref(self, owner: Any) -> OwnerRef:
        """Return the tagged reference for a persisted owner."""
        owner_id = self.id_getter(owner)
        if owner_id is None:
            raise ValueError(f"{self.owner_type} must be persisted before it can be slugged")
        return OwnerRef(self.owner_type, int(owner_id))

    def scope_for(self, owner: Any) -> str:
        """Scope string for owner; '' is the universal scope of unscoped policies."""
        if self._scope is None:
            return ""
        value = self._scope(owner)
        return "" if value is None else str(value)

    def generate(self, owner: Any) -> list[Optional[str]]:
        """Raw generator outputs in priority order, before slugification."""
        results = []
        for gen in self._generators:
            value = gen(owner)
            results.append(None if value is None else str(value))
        return results
