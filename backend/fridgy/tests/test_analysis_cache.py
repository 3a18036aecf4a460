from fridgy.analysis_cache import AnalysisCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = AnalysisCache(ttl_seconds=10, clock=clock)
    cache.set("a", {"result": 1})

    clock.now = 9.9
    assert cache.get("a") == {"result": 1}

    clock.now = 10
    assert cache.get("a") is None


def test_set_purges_expired_entries():
    clock = FakeClock()
    cache = AnalysisCache(ttl_seconds=10, clock=clock)
    cache.set("old", {})
    clock.now = 20
    cache.set("new", {})

    assert cache.get("old") is None
    assert cache.get("new") == {}


def test_delete_and_clear():
    cache = AnalysisCache(ttl_seconds=10, clock=FakeClock())
    cache.set("a", {})
    cache.set("b", {})
    cache.delete("a")
    cache.delete("missing")
    assert cache.get("a") is None

    cache.clear()
    assert cache.get("b") is None
