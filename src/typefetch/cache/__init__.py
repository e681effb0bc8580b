"""In-memory response caching for typefetch.

This package provides :class:`ResponseCache`, the bounded, time-expiring
store each :class:`~typefetch.client.TypeFetchClient` owns.  Entries are
keyed by a fingerprint of method, URL, the ``Authorization`` and
``Content-Type`` headers, and the request body.

The cache is controlled by the ``cache`` section of the client
configuration (:class:`~typefetch.models.CacheConfig`) and may be switched
on or off per call with :class:`~typefetch.models.RequestCacheOptions`.
"""

from typefetch.cache.cache import ResponseCache, hash_code

__all__ = ["ResponseCache", "hash_code"]
