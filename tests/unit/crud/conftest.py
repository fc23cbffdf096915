"""Shared fixtures for crud unit tests"""

import pytest

from slugkeeper.crud.slugs import create_slug


@pytest.fixture(name="slug")
def slug_fixture(session, ref):
    """An active slug persisted for the User#1 owner."""
    return create_slug(session, ref, "test-slug")
