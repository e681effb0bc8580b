"""Asynchronous HTTP client with retry, response caching, and typed bodies.

:class:`TypeFetchClient` composes the pieces of the request pipeline:

1. **Body handling** -- :func:`~typefetch.codec.prepare_body` and
   :func:`~typefetch.codec.serialize_body` turn a
   :class:`~typefetch.models.ContentWrapper` into a wire body.
2. **Header merging** -- config defaults, then the body's content-type
   defaults, then per-call headers; later sources win per header name,
   compared case-insensitively.
3. **Caching** -- the request fingerprint is looked up in the client's
   own :class:`~typefetch.cache.ResponseCache` when caching is enabled for
   the call.
4. **Execution** -- :class:`~typefetch.client.executor.RequestExecutor`
   calls the transport with retry and normalizes the outcome.

Every public method returns a :class:`~typefetch.models.Result` and never
raises: body errors, HTTP errors, and exhausted retries all come back as
``result.error``.

Example::

    async with TypeFetchClient({"retry": {"count": 2}}) as client:
        result = await client.get("https://api.example.com/users")
        if result.error:
            print(result.error.status, result.error.message)
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

import httpx
from pydantic import ValidationError

from typefetch.cache import ResponseCache
from typefetch.client.executor import RequestExecutor
from typefetch.codec import WireBody, headers_for, prepare_body, serialize_body
from typefetch.config import ConfigInput, build_client_config
from typefetch.exceptions import ConfigError, InvalidBodyError, TypeFetchError
from typefetch.models import ClientConfig, ContentWrapper, RequestCacheOptions, Result
from typefetch.output import OutputManager
from typefetch.transport import HttpxTransport, RequestInit, Transport

HeadersInput = Optional[Mapping[str, str]]
CacheInput = Union[RequestCacheOptions, Mapping[str, Any], None]
UrlInput = Union[str, httpx.URL]


class TypeFetchClient:
    """Asynchronous HTTP client returning :class:`~typefetch.models.Result` values.

    Args:
        config: A :class:`~typefetch.models.ClientConfig`, a partial nested
            mapping, or ``None`` for defaults.
        transport: Async transport callable; defaults to an
            :class:`~typefetch.transport.HttpxTransport` that the client
            closes in :meth:`aclose`.
        **overrides: Top-level config fields (``debug=True``,
            ``retry={"count": 3}``) merged over *config*.

    Raises:
        ConfigError: The configuration does not validate.
    """

    def __init__(
        self,
        config: ConfigInput = None,
        *,
        transport: Optional[Transport] = None,
        **overrides: Any,
    ) -> None:
        self.config: ClientConfig = build_client_config(config, overrides)
        self._output = OutputManager(verbose=self.config.debug)
        self._owns_transport = transport is None
        self._transport: Transport = transport if transport is not None else HttpxTransport()
        self._cache = ResponseCache(self.config.cache)
        self._executor = RequestExecutor(
            self.config.retry,
            self.config.delete_handling,
            debug=self._debug,
        )
        self._debug("TypeFetch client initialized")

    @property
    def cache(self) -> ResponseCache:
        """The response cache owned by this client."""
        return self._cache

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> TypeFetchClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the default transport; injected transports are left open."""
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            await self._transport.aclose()

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def get(
        self, url: UrlInput, *, headers: HeadersInput = None, cache: CacheInput = None
    ) -> Result[Any]:
        """Send a GET request."""
        return await self._send("GET", url, None, headers, cache, with_body=False)

    async def post(
        self,
        url: UrlInput,
        body: Union[ContentWrapper, Mapping[str, Any]],
        *,
        headers: HeadersInput = None,
        cache: CacheInput = None,
    ) -> Result[Any]:
        """Send a POST request with a typed body.

        Args:
            url: Request URL.
            body: Content wrapper, e.g. ``ContentWrapper("json", {"a": 1})``.
            headers: Per-call headers, overriding defaults by name.
            cache: Per-call cache options (``enabled``, ``max_age_ms``).
        """
        return await self._send("POST", url, body, headers, cache, with_body=True)

    async def put(
        self,
        url: UrlInput,
        body: Union[ContentWrapper, Mapping[str, Any]],
        *,
        headers: HeadersInput = None,
        cache: CacheInput = None,
    ) -> Result[Any]:
        """Send a PUT request with a typed body."""
        return await self._send("PUT", url, body, headers, cache, with_body=True)

    async def patch(
        self,
        url: UrlInput,
        body: Union[ContentWrapper, Mapping[str, Any]],
        *,
        headers: HeadersInput = None,
        cache: CacheInput = None,
    ) -> Result[Any]:
        """Send a PATCH request with a typed body."""
        return await self._send("PATCH", url, body, headers, cache, with_body=True)

    async def delete(
        self, url: UrlInput, *, headers: HeadersInput = None, cache: CacheInput = None
    ) -> Result[Any]:
        """Send a DELETE request.

        Empty responses are represented according to
        ``config.delete_handling``.
        """
        return await self._send("DELETE", url, None, headers, cache, with_body=False)

    async def head(
        self, url: UrlInput, *, headers: HeadersInput = None, cache: CacheInput = None
    ) -> Result[Any]:
        """Send a HEAD request; the result data is the response header mapping."""
        return await self._send("HEAD", url, None, headers, cache, with_body=False)

    async def request(
        self,
        method: str,
        url: UrlInput,
        body: Union[ContentWrapper, Mapping[str, Any], None] = None,
        *,
        headers: HeadersInput = None,
        cache: CacheInput = None,
    ) -> Result[Any]:
        """Send a request with an arbitrary method and an optional body."""
        return await self._send(
            method.upper(), url, body, headers, cache, with_body=body is not None
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _send(
        self,
        method: str,
        url: UrlInput,
        body: Any,
        headers: HeadersInput,
        cache: CacheInput,
        with_body: bool,
    ) -> Result[Any]:
        try:
            wire_body, content_headers = self._encode_body(body, with_body)
            cache_options = self._resolve_cache_options(cache)
        except TypeFetchError as exc:
            self._debug(f"Rejected {method} {url}: {exc.message}")
            return Result.failure(exc)

        merged_headers = self._merge_headers(self.config.headers, content_headers, headers)
        url_string = str(url)
        cache_enabled, cache_max_age = cache_options
        cache_key = self._cache.compute_key(method, url_string, merged_headers, wire_body)

        if cache_enabled:
            cached = self._cache.get(cache_key)
            if cached is not None:
                self._debug(f"Cached response found for {url_string}")
                return Result.success(cached)

        init = RequestInit(method=method, headers=dict(merged_headers.items()), body=wire_body)
        result = await self._executor.execute(
            lambda: self._transport(url_string, init), method
        )

        if cache_enabled and result.data is not None:
            self._cache.put(cache_key, result.data, cache_max_age)

        return result

    def _encode_body(self, body: Any, with_body: bool) -> tuple[WireBody, dict[str, str]]:
        if not with_body:
            return None, {}
        if body is None:
            raise InvalidBodyError("Invalid body: type and data are required", 400)
        prepared = prepare_body(body)
        return serialize_body(prepared), headers_for(prepared.type)

    def _resolve_cache_options(self, cache: CacheInput) -> tuple[bool, int]:
        """Per-call cache settings take precedence over the client config."""
        if cache is None:
            options = RequestCacheOptions()
        elif isinstance(cache, RequestCacheOptions):
            options = cache
        else:
            try:
                options = RequestCacheOptions.model_validate(dict(cache))
            except ValidationError as exc:
                raise ConfigError(f"Invalid cache options: {exc}") from exc

        enabled = self.config.cache.enabled if options.enabled is None else options.enabled
        max_age = (
            self.config.cache.max_age_ms if options.max_age_ms is None else options.max_age_ms
        )
        return enabled, max_age

    @staticmethod
    def _merge_headers(*sources: HeadersInput) -> httpx.Headers:
        """Merge header sources; later sources override earlier ones by name."""
        merged = httpx.Headers()
        for source in sources:
            if not source:
                continue
            for name, value in httpx.Headers(source).items():
                merged[name] = value
        return merged

    def _debug(self, message: str) -> None:
        self._output.debug(message)
