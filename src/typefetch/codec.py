"""Content-type header defaults, body preparation, and wire serialization.

A request body travels as a :class:`~typefetch.models.ContentWrapper` --
a ``type`` tag plus ``data``.  Three pure functions turn it into something
the transport can send:

* :func:`headers_for` -- the default ``Content-Type`` header for a tag.
  Unknown tags yield an empty header set.
* :func:`prepare_body` -- validates the wrapper and normalizes its payload
  (mapping -> :class:`FormData` for ``form``, ``str`` coercion for text
  types, :class:`Blob` wrapping for ``blob``).
* :func:`serialize_body` -- converts a prepared wrapper into the wire body:
  a ``str``, a :class:`FormData`, a :class:`Blob`, or ``None`` for "no
  body".

:func:`prepare_body` and :func:`serialize_body` raise
:class:`~typefetch.exceptions.InvalidBodyError`,
:class:`~typefetch.exceptions.UnsupportedContentTypeError`, or
:class:`~typefetch.exceptions.SerializationError`.  They run before any
network attempt; the client turns these errors into a failed
:class:`~typefetch.models.Result`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Union

from typefetch.exceptions import (
    InvalidBodyError,
    SerializationError,
    UnsupportedContentTypeError,
)
from typefetch.models import ContentType, ContentWrapper

WireBody = Union[str, "FormData", "Blob", None]

_CONTENT_TYPE_HEADERS: dict[ContentType, str] = {
    ContentType.JSON: "application/json",
    ContentType.FORM: "application/x-www-form-urlencoded",
    ContentType.TEXT: "text/plain",
    ContentType.BLOB: "application/octet-stream",
    ContentType.MULTIPART: "multipart/form-data",
    ContentType.XML: "application/xml",
    ContentType.HTML: "text/html",
}

_TEXTUAL_TYPES = frozenset({ContentType.TEXT, ContentType.XML, ContentType.HTML})


@dataclass(frozen=True)
class Blob:
    """An immutable binary payload.

    Attributes:
        content: The raw bytes.
        content_type: MIME type sent for the payload.
        filename: Optional file name used when the blob is a form part.
    """

    content: bytes
    content_type: str = "application/octet-stream"
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

    def text(self) -> str:
        """Decode the content as UTF-8, replacing undecodable bytes."""
        return self.content.decode("utf-8", errors="replace")


class FormData:
    """Ordered multi-value form container.

    Field values are either strings or :class:`Blob` parts.  Appending
    ``bytes`` wraps them in a :class:`Blob`; any other value is converted
    to its string form.

    Example::

        form = FormData()
        form.append("tag", "a")
        form.append("tag", "b")
        form.append("avatar", Blob(b"...", "image/png", "me.png"))
        assert form.get_all("tag") == ["a", "b"]
    """

    def __init__(self, fields: Optional[Mapping[str, Any]] = None) -> None:
        self._items: list[tuple[str, Union[str, Blob]]] = []
        if fields:
            for name, value in fields.items():
                self.append(name, value)

    def append(self, name: str, value: Any) -> None:
        if isinstance(value, (bytes, bytearray)):
            value = Blob(bytes(value), filename=name)
        elif not isinstance(value, Blob):
            value = to_wire_string(value)
        self._items.append((name, value))

    def get(self, name: str) -> Union[str, Blob, None]:
        """Return the first value stored under *name*, or ``None``."""
        for key, value in self._items:
            if key == name:
                return value
        return None

    def get_all(self, name: str) -> list[Union[str, Blob]]:
        return [value for key, value in self._items if key == name]

    def has_files(self) -> bool:
        return any(isinstance(value, Blob) for _, value in self._items)

    def __iter__(self) -> Iterator[tuple[str, Union[str, Blob]]]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FormData):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"FormData({self._items!r})"


def to_wire_string(value: Any) -> str:
    """Coerce *value* to its string form on the wire.

    Booleans and ``None`` use their JSON spellings (``"true"``,
    ``"false"``, ``"null"``); everything else goes through :func:`str`.
    """
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    return str(value)


def headers_for(content_type: Any) -> dict[str, str]:
    """Return the default headers for a content-type tag.

    Args:
        content_type: A :class:`~typefetch.models.ContentType` or its
            string value.

    Returns:
        ``{"Content-Type": <mime>}``, or an empty dict for unknown tags.
    """
    try:
        resolved = ContentType(content_type)
    except ValueError:
        return {}
    return {"Content-Type": _CONTENT_TYPE_HEADERS[resolved]}


def prepare_body(body: Any) -> ContentWrapper:
    """Validate a content wrapper and normalize its payload for its type.

    Accepts a :class:`~typefetch.models.ContentWrapper` or a mapping with
    ``type`` and ``data`` keys.

    Args:
        body: The wrapper to prepare.

    Returns:
        A new wrapper whose ``type`` is a
        :class:`~typefetch.models.ContentType` and whose ``data`` is ready
        for :func:`serialize_body`.

    Raises:
        InvalidBodyError: The wrapper, its type, or its data is missing, or
            the payload has the wrong shape for its type.
        UnsupportedContentTypeError: The type tag is unknown.
        SerializationError: A ``blob`` payload cannot be JSON-encoded.
    """
    wrapper = _coerce_wrapper(body)
    kind = _resolve_type(wrapper.type, "Unsupported content type")
    data = wrapper.data

    if kind is ContentType.FORM:
        if isinstance(data, Mapping):
            form = FormData()
            for key, value in data.items():
                if isinstance(value, Blob):
                    form.append(key, value if value.filename else _named(value, key))
                else:
                    form.append(key, value)
            return ContentWrapper(type=kind, data=form)

    elif kind is ContentType.MULTIPART:
        if not isinstance(data, FormData):
            raise InvalidBodyError("Multipart data must be a FormData instance", 400)

    elif kind is ContentType.JSON:
        if data is None:
            raise InvalidBodyError("JSON body cannot be None", 400)

    elif kind in _TEXTUAL_TYPES:
        return ContentWrapper(type=kind, data="" if data is None else to_wire_string(data))

    elif kind is ContentType.BLOB:
        if isinstance(data, (bytes, bytearray)):
            return ContentWrapper(type=kind, data=Blob(bytes(data)))
        if not isinstance(data, Blob):
            try:
                encoded = _dump_json(data)
            except (TypeError, ValueError) as exc:
                raise SerializationError(
                    "Unable to convert data to Blob", 400, original_error=exc
                ) from exc
            return ContentWrapper(
                type=kind, data=Blob(encoded.encode("utf-8"), "application/json")
            )

    return ContentWrapper(type=kind, data=data)


def serialize_body(body: ContentWrapper) -> WireBody:
    """Convert a prepared wrapper into its wire representation.

    Args:
        body: A wrapper returned by :func:`prepare_body`.

    Returns:
        ``None`` when ``data`` is ``None`` (no body); a compact JSON string
        for ``json``; the :class:`FormData` for ``form``/``multipart``; a
        string for ``text``/``xml``/``html``; the :class:`Blob` for ``blob``.

    Raises:
        SerializationError: JSON encoding failed.
        UnsupportedContentTypeError: The type tag is unknown.
    """
    if body.data is None:
        return None

    kind = _resolve_type(body.type, "Cannot serialize content type")

    if kind is ContentType.JSON:
        try:
            return _dump_json(body.data)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Failed to serialize JSON data: {exc}", 400, original_error=exc
            ) from exc
    if kind in (ContentType.FORM, ContentType.MULTIPART):
        return body.data
    if kind in _TEXTUAL_TYPES:
        return to_wire_string(body.data)
    return body.data


def _coerce_wrapper(body: Any) -> ContentWrapper:
    if isinstance(body, ContentWrapper):
        wrapper = body
    elif isinstance(body, Mapping):
        if "data" not in body:
            raise InvalidBodyError("Invalid body: type and data are required", 400)
        wrapper = ContentWrapper(type=body.get("type"), data=body["data"])
    else:
        raise InvalidBodyError("Invalid body: type and data are required", 400)

    if not wrapper.type:
        raise InvalidBodyError("Invalid body: type and data are required", 400)
    return wrapper


def _resolve_type(tag: Any, prefix: str) -> ContentType:
    try:
        return ContentType(tag)
    except ValueError:
        raise UnsupportedContentTypeError(f"{prefix}: {tag}", 400) from None


def _named(blob: Blob, filename: str) -> Blob:
    return Blob(blob.content, blob.content_type, filename)


def _dump_json(data: Any) -> str:
    # No whitespace between tokens: {"a":1}
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
