"""Response decoding -- maps a successful transport response to result data.

Most responses are decoded as JSON.  Two methods are special:

* ``HEAD`` responses carry no body, so their data is the response header
  mapping.
* ``DELETE`` responses that are empty (``Content-Length: 0`` or status
  204) are represented according to the client's
  :class:`~typefetch.models.DeleteHandling` mode.  DELETE responses that do
  carry a body are decoded as JSON like any other.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from typefetch.models import DeleteHandling
from typefetch.transport import FetchResponse

HTTP_NO_CONTENT = 204


def header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup that works for plain dicts too."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def is_empty_response(response: FetchResponse) -> bool:
    """Return True when the response declares an empty body."""
    if response.status == HTTP_NO_CONTENT:
        return True
    return header_value(response.headers, "content-length") == "0"


async def decode_response(
    response: FetchResponse,
    method: str,
    delete_handling: DeleteHandling,
) -> Any:
    """Decode the data of a successful response.

    Args:
        response: A response whose ``ok`` flag is set.
        method: Uppercase HTTP method of the request.
        delete_handling: How an empty DELETE response is represented.

    Returns:
        The decoded JSON value, the header mapping for HEAD, or the
        DELETE-mode representation (``None`` or the status code).

    Raises:
        ValueError: The body is not valid JSON (the executor treats this as
            a failed attempt). An empty DELETE in ``json`` mode never
            raises; any decode failure there yields ``None``.
    """
    if method == "HEAD":
        return dict(response.headers.items())

    if method == "DELETE" and is_empty_response(response):
        if delete_handling is DeleteHandling.EMPTY:
            return None
        if delete_handling is DeleteHandling.STATUS:
            return response.status
        try:
            return await response.json()
        except Exception:
            return None

    return await response.json()
