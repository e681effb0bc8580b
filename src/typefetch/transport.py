"""The transport capability consumed by the client, and its httpx implementation.

The client never talks to the network itself.  It calls a *transport*:
an async callable taking the URL string and a :class:`RequestInit` and
returning a :class:`FetchResponse`.  A transport signals a failure to
connect or transmit by raising; a non-2xx answer is a normal response
with ``ok`` set to ``False``.

:class:`HttpxTransport` is the default transport, backed by
:class:`httpx.AsyncClient`.  Any async callable with the same shape can be
injected instead, which is how tests script failures and retries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Mapping, Optional, Protocol

import httpx

from typefetch.codec import Blob, FormData, WireBody
from typefetch.exceptions import TransportError


@dataclass
class RequestInit:
    """Request descriptor handed to a transport.

    Attributes:
        method: Uppercase HTTP method.
        headers: Merged request headers.
        body: Serialized body from :func:`~typefetch.codec.serialize_body`.
    """

    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: WireBody = None


class FetchResponse(Protocol):
    """Response descriptor returned by a transport."""

    @property
    def ok(self) -> bool: ...

    @property
    def status(self) -> int: ...

    @property
    def headers(self) -> Mapping[str, str]: ...

    async def text(self) -> str: ...

    async def json(self) -> Any: ...


class Transport(Protocol):
    """An async callable performing one HTTP exchange."""

    def __call__(self, url: str, init: RequestInit) -> Awaitable[FetchResponse]: ...


class HttpxResponse:
    """:class:`FetchResponse` view over an :class:`httpx.Response`."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def raw(self) -> httpx.Response:
        return self._response

    @property
    def ok(self) -> bool:
        return self._response.is_success

    @property
    def status(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    async def text(self) -> str:
        await self._response.aread()
        return self._response.text

    async def json(self) -> Any:
        await self._response.aread()
        return self._response.json()


class HttpxTransport:
    """Default transport backed by :class:`httpx.AsyncClient`.

    Translates wire bodies into httpx arguments:

    * ``str`` -- sent as UTF-8 ``content``.
    * :class:`~typefetch.codec.Blob` -- sent as raw ``content``.
    * :class:`~typefetch.codec.FormData` -- URL-encoded ``data``, or a
      multipart body when it holds file parts or the request declares
      ``multipart/form-data``.  In the multipart case the declared
      ``Content-Type`` is dropped so httpx can add the boundary.

    httpx network errors are raised as
    :class:`~typefetch.exceptions.TransportError`.

    Args:
        client: An existing :class:`httpx.AsyncClient` (for example one
            built with :class:`httpx.MockTransport`).  When omitted, a client
            is created lazily and closed by :meth:`aclose`.
        timeout: Timeout in seconds for the lazily created client.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    async def __call__(self, url: str, init: RequestInit) -> HttpxResponse:
        client = self._ensure_client()
        try:
            response = await client.request(init.method, url, **_request_kwargs(init))
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or type(exc).__name__, original_error=exc) from exc
        return HttpxResponse(response)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client


def _request_kwargs(init: RequestInit) -> dict[str, Any]:
    headers = dict(init.headers)
    kwargs: dict[str, Any] = {"headers": headers}
    body = init.body

    if body is None:
        return kwargs
    if isinstance(body, Blob):
        kwargs["content"] = body.content
    elif isinstance(body, FormData):
        content_type = _pop_header(headers, "content-type")
        if body.has_files() or (content_type or "").startswith("multipart/form-data"):
            kwargs["files"] = _multipart_parts(body)
        else:
            if content_type is not None:
                headers["content-type"] = content_type
            kwargs["data"] = _urlencoded_fields(body)
    else:
        kwargs["content"] = str(body).encode("utf-8")
    return kwargs


def _pop_header(headers: dict[str, str], name: str) -> Optional[str]:
    for key in list(headers):
        if key.lower() == name:
            return headers.pop(key)
    return None


def _urlencoded_fields(form: FormData) -> dict[str, list[str]]:
    fields: dict[str, list[str]] = {}
    for name, value in form:
        fields.setdefault(name, []).append(str(value))
    return fields


def _multipart_parts(form: FormData) -> list[tuple[str, tuple[Any, ...]]]:
    parts: list[tuple[str, tuple[Any, ...]]] = []
    for name, value in form:
        if isinstance(value, Blob):
            parts.append((name, (value.filename or name, value.content, value.content_type)))
        else:
            # A part without a filename is a plain form field.
            parts.append((name, (None, value.encode("utf-8"))))
    return parts
