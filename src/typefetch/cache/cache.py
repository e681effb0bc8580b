"""In-memory response caching with lazy expiry and bounded size.

Stores decoded response data keyed by a request fingerprint (see
:meth:`ResponseCache.compute_key`).  Each entry records its creation
instant and its own expiry instant; expired entries are dropped lazily
when they are read, there is no background sweep.

Before every insertion the store runs :meth:`ResponseCache.evict_if_full`:
once the entry count reaches ``max_entries``, the oldest 25% of entries
(by creation timestamp) are removed.  With fewer than four entries a sweep
removes nothing, so a tiny store can sit one entry above its limit right
after an insertion.

See Also:
    :class:`~typefetch.models.CacheConfig` -- the Pydantic model that
    controls ``enabled``, ``max_age_ms``, and ``max_entries``.
"""

from __future__ import annotations

import math
import time
from typing import Any, Callable, Mapping, Optional

from typefetch.codec import Blob, FormData
from typefetch.models import CacheConfig, CacheEntry

_KEY_HEADERS = ("authorization", "content-type")
EVICTION_FRACTION = 0.25


def _now_ms() -> float:
    return time.time() * 1000


def hash_code(text: str) -> int:
    """Return a 32-bit polynomial rolling hash of *text*.

    Computes ``h = h * 31 + ord(ch)`` wrapped to a signed 32-bit integer
    and returns its absolute value.
    """
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return abs(h)


class ResponseCache:
    """Bounded, time-expiring cache for decoded responses.

    Each :class:`~typefetch.client.TypeFetchClient` owns exactly one
    instance; there is no process-wide cache.

    Args:
        config: Cache configuration.  ``max_age_ms`` is the default entry
            lifetime and ``max_entries`` the size that triggers eviction.
        clock: Returns the current instant in epoch milliseconds.  Tests
            inject a fake clock; ``now`` arguments override it per call.

    Example::

        cache = ResponseCache(CacheConfig(enabled=True, max_age_ms=60_000))
        key = cache.compute_key("GET", "https://api.example.com/users", {}, None)
        cache.put(key, [{"id": 1}])
        assert cache.get(key) == [{"id": 1}]
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self._config = config or CacheConfig()
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}

    @property
    def config(self) -> CacheConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Keys
    # ------------------------------------------------------------------ #

    def compute_key(
        self,
        method: str,
        url: Any,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
    ) -> str:
        """Build the fingerprint for a request.

        The key is ``METHOD|URL|HEADERS|BODY``:

        * ``METHOD`` -- uppercased HTTP method.
        * ``URL`` -- ``str(url)``.
        * ``HEADERS`` -- only ``authorization`` and ``content-type``
          (matched case-insensitively) as ``name:value``, sorted by name and
          joined with ``|``.
        * ``BODY`` -- for :class:`~typefetch.codec.FormData` the
          ``key:value`` pairs in order; for a :class:`~typefetch.codec.Blob`
          the :func:`hash_code` of its raw bytes; for any other body the
          :func:`hash_code` of its string form; empty without a body.

        Args:
            method: HTTP method.
            url: Request URL (``str`` or ``httpx.URL``).
            headers: The merged request headers.
            body: The serialized wire body, or ``None``.

        Returns:
            The cache key string.
        """
        essential = sorted(
            (name.lower(), value)
            for name, value in (headers or {}).items()
            if name.lower() in _KEY_HEADERS
        )
        header_part = "|".join(f"{name}:{value}" for name, value in essential)
        return f"{method.upper()}|{url}|{header_part}|{self._body_fingerprint(body)}"

    @staticmethod
    def _body_fingerprint(body: Any) -> str:
        if body is None or body == "":
            return ""
        if isinstance(body, FormData):
            return "|".join(
                f"{name}:{_part_string(value)}" for name, value in body
            )
        if isinstance(body, Blob):
            return str(_blob_hash(body))
        return str(hash_code(str(body)))

    # ------------------------------------------------------------------ #
    # Entries
    # ------------------------------------------------------------------ #

    def get(self, key: str, now: Optional[float] = None) -> Any:
        """Return cached data for *key*, or ``None`` on a miss.

        An entry read after its ``expires_at`` instant is removed and
        reported as a miss.

        Args:
            key: Cache key from :meth:`compute_key`.
            now: Current instant in epoch ms; defaults to the clock.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock() if now is None else now
        if now > entry.expires_at:
            del self._entries[key]
            return None
        return entry.data

    def put(
        self,
        key: str,
        data: Any,
        max_age_ms: Optional[int] = None,
        now: Optional[float] = None,
    ) -> None:
        """Insert or replace the entry for *key*.

        Runs :meth:`evict_if_full` first, then stores ``data`` stamped with
        ``now`` and expiring ``max_age_ms`` later.

        Args:
            key: Cache key from :meth:`compute_key`.
            data: Decoded response data.
            max_age_ms: Entry lifetime; defaults to ``config.max_age_ms``.
            now: Current instant in epoch ms; defaults to the clock.
        """
        self.evict_if_full()

        now = self._clock() if now is None else now
        max_age = self._config.max_age_ms if max_age_ms is None else max_age_ms
        self._entries[key] = CacheEntry(data=data, timestamp=now, expires_at=now + max_age)

    def evict_if_full(self, max_entries: Optional[int] = None) -> int:
        """Remove the oldest quarter of entries once the store is full.

        When the entry count is at least ``max_entries``, entries are sorted
        by ``timestamp`` and the oldest ``floor(size * 0.25)`` are removed.
        Stores with fewer than four entries therefore evict nothing.

        Args:
            max_entries: Size limit; defaults to ``config.max_entries``.

        Returns:
            The number of entries removed.
        """
        limit = self._config.max_entries if max_entries is None else max_entries
        size = len(self._entries)
        if size < limit:
            return 0

        oldest = sorted(self._entries.items(), key=lambda item: item[1].timestamp)
        doomed = [key for key, _ in oldest[: math.floor(size * EVICTION_FRACTION)]]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def entry(self, key: str) -> Optional[CacheEntry[Any]]:
        """Return the raw :class:`~typefetch.models.CacheEntry` without an expiry check."""
        return self._entries.get(key)

    def invalidate(self, key: str) -> None:
        """Remove the entry for *key* if present."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``enabled``, ``size``, ``max_entries``, and
            ``max_age_ms``.
        """
        return {
            "enabled": self._config.enabled,
            "size": len(self._entries),
            "max_entries": self._config.max_entries,
            "max_age_ms": self._config.max_age_ms,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


def _part_string(value: Any) -> str:
    if isinstance(value, Blob):
        return f"blob:{_blob_hash(value)}"
    return str(value)


def _blob_hash(blob: Blob) -> int:
    # Latin-1 maps each byte to one code point, so distinct bytes hash apart.
    return hash_code(blob.content.decode("latin-1"))
