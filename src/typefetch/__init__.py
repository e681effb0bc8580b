"""typefetch -- an async HTTP client with retries, response caching, and typed bodies.

This package wraps a fetch-style transport (by default
:class:`httpx.AsyncClient`) with three pieces of request-pipeline logic:

* **Typed bodies** -- requests carry a
  :class:`~typefetch.models.ContentWrapper` (``json``, ``form``, ``text``,
  ``blob``, ``multipart``, ``xml``, ``html``) that is validated and
  serialized with matching ``Content-Type`` defaults.
* **Retry** -- transport failures are retried a configured number of
  times with a fixed delay; HTTP error responses are returned at once.
* **Caching** -- successful responses can be kept in a bounded,
  time-expiring in-memory cache owned by the client.

Every call returns a :class:`~typefetch.models.Result` holding either
``data`` or an ``error``; nothing is raised across the public API.

Typical usage::

    from typefetch import ContentWrapper, TypeFetchClient

    async with TypeFetchClient(retry={"count": 2}) as client:
        result = await client.post(
            "https://api.example.com/items", ContentWrapper("json", {"a": 1})
        )

Modules:
    app: Typer command-line front end.
    client: The client and its retrying executor.
    cache: In-memory response cache.
    codec: Content-type headers and body serialization.
    config: Configuration merging and environment resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    models: Pydantic configuration models and result shapes.
    output: stdout/stderr formatting with Rich.
    transport: Transport protocols and the httpx transport.
"""

__version__ = "1.0.0"

from typefetch.cache import ResponseCache  # noqa: E402
from typefetch.client import TypeFetchClient  # noqa: E402
from typefetch.codec import Blob, FormData  # noqa: E402
from typefetch.exceptions import (  # noqa: E402
    HttpError,
    InvalidBodyError,
    MaxRetriesExceededError,
    SerializationError,
    TransportError,
    TypeFetchError,
    UnsupportedContentTypeError,
)
from typefetch.models import (  # noqa: E402
    CacheConfig,
    ClientConfig,
    ContentType,
    ContentWrapper,
    DeleteHandling,
    RequestCacheOptions,
    Result,
    RetryConfig,
)

__all__ = [
    "Blob",
    "CacheConfig",
    "ClientConfig",
    "ContentType",
    "ContentWrapper",
    "DeleteHandling",
    "FormData",
    "HttpError",
    "InvalidBodyError",
    "MaxRetriesExceededError",
    "RequestCacheOptions",
    "ResponseCache",
    "Result",
    "RetryConfig",
    "SerializationError",
    "TransportError",
    "TypeFetchError",
    "TypeFetchClient",
    "UnsupportedContentTypeError",
]
