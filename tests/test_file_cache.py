import json

from snowscore.core.cache import FileCache, record_cache_stats


def test_file_cache_expired_entry_reads_as_miss(monkeypatch, tmp_path):
    cache = FileCache(tmp_path, enabled=True, default_ttl_seconds=10)

    monkeypatch.setattr("snowscore.core.cache.time.time", lambda: 0)
    cache.set("travel", "zermatt:Hedingen", {"duration_minutes": 170})

    monkeypatch.setattr("snowscore.core.cache.time.time", lambda: 10)
    assert cache.get("travel", "zermatt:Hedingen") == {"duration_minutes": 170}

    monkeypatch.setattr("snowscore.core.cache.time.time", lambda: 11)
    with record_cache_stats() as stats:
        assert cache.get("travel", "zermatt:Hedingen") is None
    assert stats.as_dict() == {"hits": 0, "misses": 1, "expired": 1, "sets": 0}


def test_file_cache_read_ttl_overrides_stored_ttl(monkeypatch, tmp_path):
    cache = FileCache(tmp_path)
    monkeypatch.setattr("snowscore.core.cache.time.time", lambda: 0)
    cache.set("travel", "k", [1, 2], ttl_seconds=5)

    monkeypatch.setattr("snowscore.core.cache.time.time", lambda: 60)
    assert cache.get("travel", "k") is None
    assert cache.get("travel", "k", ttl_seconds=3600) == [1, 2]


def test_file_cache_corrupt_file_is_a_miss(tmp_path):
    cache = FileCache(tmp_path)
    cache.set("travel", "k", {"v": 1})
    (path,) = (tmp_path / "travel").glob("*.json")
    path.write_text("{not json", encoding="utf-8")

    assert cache.get("travel", "k") is None


def test_file_cache_count_clear_and_disabled(tmp_path):
    cache = FileCache(tmp_path)
    with record_cache_stats() as stats:
        cache.set("travel", "a", 1)
        cache.set("travel", "b", 2)
        cache.set("travel", "a", 3)
    assert stats.sets == 3
    assert cache.count("travel") == 2
    assert cache.get("travel", "a") == 3

    stored = json.loads(next((tmp_path / "travel").glob("*.json")).read_text(encoding="utf-8"))
    assert set(stored) == {"created_at_unix", "ttl_seconds", "key", "value"}

    assert cache.clear("travel") == 2
    assert cache.count("travel") == 0

    disabled = FileCache(tmp_path, enabled=False)
    disabled.set("travel", "a", 1)
    assert disabled.get("travel", "a") is None
    assert disabled.count("travel") == 0
