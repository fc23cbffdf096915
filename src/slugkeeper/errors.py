"""Exception taxonomy for slug generation, allocation, activation and lookup."""

from __future__ import annotations


class SlugError(Exception):
    """Base exception for slug errors with an optional suggestion."""

    label = "Slug Error"

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[{self.label}] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class ConfigurationError(SlugError):
    """Error when a slug policy or setting is unusable."""

    label = "Configuration Error"


class GenerationExhausted(SlugError):
    """Error when every generator returned an empty value for an owner."""

    label = "Generation Error"

    def __init__(self, owner_type: str, owner_id: object) -> None:
        super().__init__(
            f"All slug generators returned nothing for {owner_type} {owner_id}",
            "Make sure at least one generator yields non-empty text for this record.",
        )


class AllocationExhausted(SlugError):
    """Error when no candidate slug is free, last-resort form included."""

    label = "Allocation Error"

    def __init__(self, owner_type: str, owner_id: object, candidates: list[str]) -> None:
        self.candidates = list(candidates)
        tried = ", ".join(self.candidates) or "(none)"
        super().__init__(
            f"Couldn't find a slug for {owner_type} {owner_id}; tried {tried}",
            "Raise max_slug_length or shorten the id separator.",
        )


class InvalidActivation(SlugError):
    """Error when a slug would become active beside another active slug of its owner."""

    label = "Validation Error"

    def __init__(self, owner_type: str, owner_id: object, slug: str) -> None:
        super().__init__(
            f"{owner_type} {owner_id} already has an active slug; cannot activate '{slug}'",
            "Use activate_slug() to switch the active slug atomically.",
        )


class SlugNotFound(SlugError, LookupError):
    """Error when a lookup matches no slug row."""

    label = "Not Found"

    def __init__(self, owner_type: str, scope: str, slug: str) -> None:
        where = f" in scope '{scope}'" if scope else ""
        super().__init__(f"No {owner_type} with slug '{slug}'{where}")


class StorageConflict(SlugError):
    """Error when the unique slug index rejected an insert that looked free."""

    label = "Storage Conflict"

    def __init__(self, owner_type: str, scope: str, slug: str) -> None:
        super().__init__(f"Slug '{slug}' was taken concurrently for {owner_type} in scope '{scope}'")
