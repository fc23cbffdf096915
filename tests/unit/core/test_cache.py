"""Unit tests for core/cache.py"""

from slugkeeper.core.cache import SlugCache
from slugkeeper.core.models import OwnerRef


OWNER = OwnerRef("User", 1)


def _counting_loader(value):
    calls = []

    def _load():
        calls.append(1)
        return value

    return _load, calls


def test_get_loads_once(ref):
    """A second get for the same key is served from the cache."""
    cache = SlugCache()
    load, calls = _counting_loader("foo")
    assert cache.get(ref, "slug", load) == "foo"
    assert cache.get(ref, "slug", load) == "foo"
    assert len(calls) == 1


def test_get_caches_none(ref):
    """None results are cached like any other value."""
    cache = SlugCache()
    load, calls = _counting_loader(None)
    cache.get(ref, "path", load)
    cache.get(ref, "path", load)
    assert len(calls) == 1


def test_keys_are_independent(ref):
    """slug and path values of one owner are cached separately."""
    cache = SlugCache()
    cache.get(ref, "slug", lambda: "foo")
    assert cache.get(ref, "path", lambda: "blog/foo") == "blog/foo"


def test_invalidate_drops_owner(ref):
    """invalidate forces the next get to reload, leaving other owners alone."""
    cache = SlugCache()
    cache.get(ref, "slug", lambda: "foo")
    cache.get(OwnerRef("User", 2), "slug", lambda: "bar")
    cache.invalidate(ref)
    assert ref not in cache
    assert len(cache) == 1
    assert cache.get(ref, "slug", lambda: "new") == "new"


def test_owner_types_do_not_collide():
    """Owners with equal ids but different types have separate entries."""
    cache = SlugCache()
    cache.get(OwnerRef("User", 1), "slug", lambda: "user")
    assert cache.get(OwnerRef("Post", 1), "slug", lambda: "post") == "post"


def test_clear():
    """clear empties the cache."""
    cache = SlugCache()
    cache.get(OWNER, "slug", lambda: "foo")
    cache.clear()
    assert len(cache) == 0


def test_load_racing_invalidate_is_not_stored():
    """A value loaded while the owner is invalidated is returned but not kept."""
    cache = SlugCache()

    def _load():
        cache.invalidate(OWNER)
        return "stale"

    assert cache.get(OWNER, "slug", _load) == "stale"
    assert OWNER not in cache


def test_load_racing_clear_is_not_stored():
    """clear() during a load also prevents the value from being cached."""
    cache = SlugCache()

    def _load():
        cache.clear()
        return "stale"

    cache.get(OWNER, "slug", _load)
    assert OWNER not in cache


# --- transaction tracking ---

def test_track_bypasses_cache_until_commit(session, ref):
    """Loads for a tracked owner are not stored until its transaction commits."""
    cache = SlugCache()
    cache.get(ref, "slug", lambda: "old")
    session.connection()
    cache.track(session, ref)
    assert ref not in cache

    assert cache.get(ref, "slug", lambda: "old") == "old"
    assert ref not in cache

    session.commit()
    assert cache.get(ref, "slug", lambda: "new") == "new"
    assert cache.get(ref, "slug", lambda: "other") == "new"


def test_track_drops_values_read_before_rollback(session, ref):
    """A rollback also settles the owner, leaving nothing stale behind."""
    cache = SlugCache()
    session.connection()
    cache.track(session, ref)
    cache.get(ref, "slug", lambda: "uncommitted")
    session.rollback()

    assert ref not in cache
    assert cache.get(ref, "slug", lambda: "committed") == "committed"
    assert ref in cache


def test_track_ignores_savepoint_release(session, ref):
    """Ending a nested transaction keeps the owner pending."""
    cache = SlugCache()
    session.connection()
    with session.begin_nested():
        cache.track(session, ref)
    cache.get(ref, "slug", lambda: "uncommitted")
    assert ref not in cache
    session.commit()
    cache.get(ref, "slug", lambda: "committed")
    assert ref in cache
