"""HTTP client module for typefetch.

Provides :class:`TypeFetchClient`, an asynchronous client that wraps a
fetch-style transport (by default :class:`httpx.AsyncClient`) with typed
request bodies, fixed-delay retry, and an in-memory response cache.

Classes:
    :class:`TypeFetchClient` -- per-verb orchestration returning
        :class:`~typefetch.models.Result` values.
    :class:`RequestExecutor` -- the retry loop behind every call.

Example::

    from typefetch.client import TypeFetchClient
    from typefetch.models import ContentWrapper

    async with TypeFetchClient(cache={"enabled": True}) as client:
        result = await client.post(
            "https://api.example.com/items",
            ContentWrapper("json", {"name": "widget"}),
        )
"""

from typefetch.client.async_client import TypeFetchClient
from typefetch.client.executor import RequestExecutor

__all__ = ["TypeFetchClient", "RequestExecutor"]
