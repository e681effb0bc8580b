"""Tests for the ResponseCache module."""

from __future__ import annotations

import pytest

from typefetch.cache import ResponseCache, hash_code
from typefetch.codec import Blob, FormData
from typefetch.models import CacheConfig


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock: FakeClock) -> ResponseCache:
    return ResponseCache(CacheConfig(enabled=True, max_age_ms=1000, max_entries=100), clock=clock)


# ------------------------------------------------------------------ #
# hash_code
# ------------------------------------------------------------------ #


class TestHashCode:
    def test_known_values(self) -> None:
        assert hash_code("") == 0
        assert hash_code("a") == 97
        assert hash_code("ab") == 97 * 31 + 98

    def test_wraps_to_32_bits(self) -> None:
        value = hash_code("x" * 200)
        assert 0 <= value <= 2**31

    def test_deterministic(self) -> None:
        assert hash_code('{"a":1}') == hash_code('{"a":1}')
        assert hash_code('{"a":1}') != hash_code('{"a":2}')


# ------------------------------------------------------------------ #
# Key computation
# ------------------------------------------------------------------ #


class TestComputeKey:
    def test_layout_without_body(self, cache: ResponseCache) -> None:
        key = cache.compute_key("get", "https://api.example.com/users")
        assert key == "GET|https://api.example.com/users||"

    def test_only_essential_headers_sorted(self, cache: ResponseCache) -> None:
        key = cache.compute_key(
            "GET",
            "https://x",
            {"X-Trace": "1", "Content-Type": "application/json", "Authorization": "Bearer t"},
        )
        assert key == "GET|https://x|authorization:Bearer t|content-type:application/json|"

    def test_deterministic(self, cache: ResponseCache) -> None:
        args = ("POST", "https://x", {"content-type": "application/json"}, '{"a":1}')
        assert cache.compute_key(*args) == cache.compute_key(*args)

    def test_header_name_case_does_not_matter(self, cache: ResponseCache) -> None:
        assert cache.compute_key("GET", "https://x", {"AUTHORIZATION": "t"}) == cache.compute_key(
            "GET", "https://x", {"authorization": "t"}
        )

    def test_string_body_is_hashed(self, cache: ResponseCache) -> None:
        body = '{"a":1}'
        key = cache.compute_key("POST", "https://x", None, body)
        assert key.endswith(f"|{hash_code(body)}")

    def test_different_bodies_differ(self, cache: ResponseCache) -> None:
        assert cache.compute_key("POST", "https://x", None, "a") != cache.compute_key(
            "POST", "https://x", None, "b"
        )

    def test_form_body_lists_pairs(self, cache: ResponseCache) -> None:
        form = FormData({"a": "1", "b": "2"})
        assert cache.compute_key("POST", "https://x", None, form) == "POST|https://x||a:1|b:2"

    def test_form_blob_parts_are_hashed(self, cache: ResponseCache) -> None:
        form = FormData({"file": b"abc"})
        key = cache.compute_key("POST", "https://x", None, form)
        assert key.endswith(f"file:blob:{hash_code('abc')}")

    def test_blob_body_hashes_bytes(self, cache: ResponseCache) -> None:
        key = cache.compute_key("POST", "https://x", None, Blob(b"abc"))
        assert key.endswith(f"|{hash_code('abc')}")

    def test_blob_non_utf8_bytes_differ(self, cache: ResponseCache) -> None:
        assert cache.compute_key("POST", "u", {}, Blob(b"\xff")) != cache.compute_key(
            "POST", "u", {}, Blob(b"\xfe")
        )

    def test_form_blob_non_utf8_bytes_differ(self, cache: ResponseCache) -> None:
        first = FormData({"file": Blob(b"\x80\x81", filename="a")})
        second = FormData({"file": Blob(b"\x90\x91", filename="a")})
        assert cache.compute_key("POST", "u", {}, first) != cache.compute_key("POST", "u", {}, second)

    def test_empty_string_body_is_empty(self, cache: ResponseCache) -> None:
        assert cache.compute_key("POST", "https://x", None, "") == "POST|https://x||"


# ------------------------------------------------------------------ #
# get / put
# ------------------------------------------------------------------ #


class TestGetPut:
    def test_round_trip(self, cache: ResponseCache) -> None:
        cache.put("k", {"id": 1})
        assert cache.get("k") == {"id": 1}

    def test_miss(self, cache: ResponseCache) -> None:
        assert cache.get("missing") is None

    def test_entry_timestamps(self, cache: ResponseCache, clock: FakeClock) -> None:
        cache.put("k", "v", max_age_ms=250)
        entry = cache.entry("k")
        assert entry is not None
        assert entry.timestamp == clock.now
        assert entry.expires_at == clock.now + 250

    def test_replacing_a_key(self, cache: ResponseCache) -> None:
        cache.put("k", 1)
        cache.put("k", 2)
        assert cache.get("k") == 2
        assert len(cache) == 1


class TestExpiry:
    def test_alive_at_expiry_instant(self, cache: ResponseCache) -> None:
        cache.put("k", "v", max_age_ms=1000, now=0)
        assert cache.get("k", now=1000) == "v"

    def test_expired_after_max_age(self, cache: ResponseCache) -> None:
        cache.put("k", "v", max_age_ms=1000, now=0)
        assert cache.get("k", now=1001) is None
        assert "k" not in cache

    def test_default_max_age_from_config(self, cache: ResponseCache, clock: FakeClock) -> None:
        cache.put("k", "v")
        clock.advance(1000)
        assert cache.get("k") == "v"
        clock.advance(1)
        assert cache.get("k") is None

    def test_expiry_is_lazy(self, cache: ResponseCache, clock: FakeClock) -> None:
        cache.put("k", "v")
        clock.advance(5000)
        assert len(cache) == 1
        cache.get("k")
        assert len(cache) == 0


# ------------------------------------------------------------------ #
# Eviction
# ------------------------------------------------------------------ #


class TestEviction:
    def _fill(self, cache: ResponseCache, count: int) -> None:
        for i in range(count):
            cache.put(f"k{i}", i, now=float(i))

    def test_full_store_drops_oldest_quarter(self) -> None:
        cache = ResponseCache(CacheConfig(max_entries=8))
        self._fill(cache, 8)
        cache.put("new", "x", now=100.0)
        assert len(cache) == 7
        assert "k0" not in cache and "k1" not in cache
        assert "k2" in cache and "new" in cache

    def test_below_limit_keeps_everything(self) -> None:
        cache = ResponseCache(CacheConfig(max_entries=8))
        self._fill(cache, 7)
        assert cache.evict_if_full() == 0
        assert len(cache) == 7

    def test_sweep_returns_removed_count(self) -> None:
        cache = ResponseCache(CacheConfig(max_entries=10))
        self._fill(cache, 10)
        assert cache.evict_if_full() == 2
        assert len(cache) == 8

    def test_small_store_can_overshoot(self) -> None:
        cache = ResponseCache(CacheConfig(max_entries=3))
        self._fill(cache, 3)
        cache.put("extra", "x", now=10.0)
        assert len(cache) == 4

    def test_explicit_limit(self) -> None:
        cache = ResponseCache(CacheConfig(max_entries=100))
        self._fill(cache, 4)
        assert cache.evict_if_full(max_entries=4) == 1
        assert "k0" not in cache


# ------------------------------------------------------------------ #
# Maintenance
# ------------------------------------------------------------------ #


class TestMaintenance:
    def test_invalidate(self, cache: ResponseCache) -> None:
        cache.put("k", 1)
        cache.invalidate("k")
        cache.invalidate("never-stored")
        assert cache.get("k") is None

    def test_clear(self, cache: ResponseCache) -> None:
        cache.put("a", 1)
        cache.put("b", 2)
        cache.clear()
        assert len(cache) == 0

    def test_stats(self, cache: ResponseCache) -> None:
        cache.put("a", 1)
        assert cache.stats() == {
            "enabled": True,
            "size": 1,
            "max_entries": 100,
            "max_age_ms": 1000,
        }
