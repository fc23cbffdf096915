"""Shared fixtures for core unit tests"""

from dataclasses import dataclass
from itertools import count
from typing import Optional

import pytest

from slugkeeper.core.models import SlugPolicy


@dataclass
class Person:
    """Stand-in owner record; ids are assigned as if already persisted."""
    id: Optional[int]
    first_name: Optional[str] = "Doctor"
    last_name: Optional[str] = "Spaceman"
    callsign: Optional[str] = None
    gender: Optional[str] = None


@pytest.fixture(name="make_person")
def make_person_fixture():
    """Factory for Person owners with sequential ids starting at 1."""
    ids = count(1)

    def _make(**fields) -> Person:
        fields.setdefault("id", next(ids))
        return Person(**fields)

    return _make


@pytest.fixture(name="policy")
def policy_fixture():
    """User policy trying first_name then last_name."""
    return SlugPolicy("User", ["first_name", "last_name"])
