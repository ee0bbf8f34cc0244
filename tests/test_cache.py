from aggregator.cache import TTLCache, make_key
from conftest import make_tender


def test_make_key_is_order_independent():
    assert make_key(["usa", "uk"]) == make_key(["uk", "usa"]) == "uk,usa"


def test_make_key_normalises_case_and_duplicates():
    assert make_key(["UK", "usa", "uk"]) == "uk,usa"


def test_get_on_empty_cache_is_a_miss(cache):
    assert cache.get("usa") is None


def test_put_then_get_within_ttl(cache, timer):
    batch = [make_tender(id="a"), make_tender(id="b")]
    cache.put("usa", batch)
    timer.advance(1799)
    assert [t.id for t in cache.get("usa")] == ["a", "b"]


def test_entry_is_stale_at_ttl(cache, timer):
    cache.put("usa", [make_tender()])
    timer.advance(1800)
    assert cache.get("usa") is None
    # Stale entries stay resident until replaced
    assert len(cache) == 1


def test_empty_batch_is_a_hit(cache):
    cache.put("uk", [])
    assert cache.get("uk") == []


def test_put_replaces_whole_entry(cache, timer):
    cache.put("usa", [make_tender(id="old")])
    timer.advance(1900)
    cache.put("usa", [make_tender(id="new")])
    assert [t.id for t in cache.get("usa")] == ["new"]


def test_get_returns_a_new_list(cache):
    cache.put("usa", [make_tender()])
    first = cache.get("usa")
    first.clear()
    assert len(cache.get("usa")) == 1


def test_invalidate_one_key(cache):
    cache.put("usa", [make_tender()])
    cache.put("uk", [make_tender()])
    cache.invalidate("usa")
    assert cache.get("usa") is None
    assert cache.get("uk") is not None


def test_invalidate_all(cache):
    cache.put("usa", [make_tender()])
    cache.put("uk", [make_tender()])
    cache.invalidate()
    assert len(cache) == 0


def test_default_ttl_is_thirty_minutes():
    assert TTLCache().ttl == 30 * 60
