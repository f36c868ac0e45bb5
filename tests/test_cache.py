from storyshelf.repository import CachedCollection


def test_cold_collection_is_not_warm():
    entry = CachedCollection(ttl=180)
    assert entry.age(1000) is None
    assert not entry.is_warm(1000)


def test_warm_until_ttl():
    entry = CachedCollection(ttl=180)
    entry.store(["a"], now=1000)

    assert entry.is_warm(1000)
    assert entry.is_warm(1179.9)
    assert not entry.is_warm(1180)


def test_invalidate_keeps_items():
    entry = CachedCollection(ttl=180)
    entry.store(["a", "b"], now=1000)

    entry.invalidate()

    assert entry.items == ["a", "b"]
    assert not entry.is_warm(1001)


def test_reset_forgets_everything():
    entry = CachedCollection(ttl=180)
    entry.store(["a"], now=1000)

    entry.reset()

    assert entry.items == []
    assert entry.fetched_at is None


def test_store_copies_input():
    items = ["a"]
    entry = CachedCollection(ttl=180)
    entry.store(items, now=0)
    items.append("b")

    assert entry.items == ["a"]
