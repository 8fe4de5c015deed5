import threading

import pytest

from radioflexsim.medium.geometry import Line
from radioflexsim.medium.visibility_cache import VisibilityCache


def test_repeated_lookup_hits_cache():
    cache = VisibilityCache(capacity=4)
    calls = {"count": 0}

    def compute():
        calls["count"] += 1
        return [Line(0, 0, 1, 1)]

    key = ((0.0, 0.0), None, None)
    first = cache.get_or_compute(key, compute)
    second = cache.get_or_compute(key, compute)
    assert first == second
    assert calls["count"] == 1
    assert cache.hits == 1 and cache.misses == 1
    cache.clear()
    cache.get_or_compute(key, compute)
    assert calls["count"] == 2


def test_capacity_is_bounded_lru():
    cache = VisibilityCache(capacity=3)
    for i in range(5):
        cache.get_or_compute(((float(i), 0.0), None, None), list)
    assert len(cache) == 3
    assert ((0.0, 0.0), None, None) not in cache
    assert ((4.0, 0.0), None, None) in cache


def test_invalid_capacity():
    with pytest.raises(ValueError):
        VisibilityCache(capacity=0)


def test_concurrent_lookups_compute_once():
    cache = VisibilityCache()
    calls = []

    def compute():
        calls.append(1)
        return []

    threads = [
        threading.Thread(target=cache.get_or_compute, args=(((1.0, 1.0), None, None), compute))
        for _ in range(8)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(calls) == 1
