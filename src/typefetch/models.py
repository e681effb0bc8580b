"""Canonical data models shared across all typefetch modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Configuration models** -- Pydantic v2, frozen after construction:
    :class:`RetryConfig`, :class:`CacheConfig`, :class:`ClientConfig`, and
    the per-call :class:`RequestCacheOptions`.  Every field at every
    nesting level has a default, so a partial mapping such as
    ``{"retry": {"count": 5}}`` validates into a complete configuration
    without blanking sibling fields.

**Request/response shapes** -- plain dataclasses that never leave the
process: :class:`ContentWrapper`, :class:`CacheEntry`, and
:class:`Result`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from typefetch.exceptions import TypeFetchError

T = TypeVar("T")


# --- Constants ---

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS

DEFAULT_RETRY_COUNT = 0
DEFAULT_RETRY_DELAY_MS = SECOND_MS
DEFAULT_MAX_CACHED_ENTRIES = 5000
DEFAULT_CACHE_MAX_AGE_MS = 5 * MINUTE_MS


# --- Enumerations ---


class ContentType(str, enum.Enum):
    """Body content types understood by :mod:`typefetch.codec`."""

    JSON = "json"
    FORM = "form"
    TEXT = "text"
    BLOB = "blob"
    MULTIPART = "multipart"
    XML = "xml"
    HTML = "html"


class DeleteHandling(str, enum.Enum):
    """How a successful, empty-bodied DELETE response becomes result data.

    * ``EMPTY`` -- ``data`` is ``None``, no decode is attempted.
    * ``STATUS`` -- ``data`` is the numeric HTTP status code.
    * ``JSON`` -- the body is decoded as JSON; ``None`` if that fails.
    """

    EMPTY = "empty"
    STATUS = "status"
    JSON = "json"


# --- Configuration models ---


class RetryConfig(BaseModel):
    """Retry policy for transport-level failures.

    Retries use a fixed delay; every retry waits the same ``delay_ms``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    count: int = Field(
        default=DEFAULT_RETRY_COUNT, ge=0, description="Retries after the first attempt"
    )
    delay_ms: int = Field(
        default=DEFAULT_RETRY_DELAY_MS, ge=0, description="Delay between attempts in ms"
    )
    on_retry: Optional[Callable[[], Any]] = Field(
        default=None, description="Called before each retry delay"
    )


class CacheConfig(BaseModel):
    """In-memory response cache settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(default=False, description="Enable response caching")
    max_age_ms: int = Field(
        default=DEFAULT_CACHE_MAX_AGE_MS, ge=0, description="Entry lifetime in ms"
    )
    max_entries: int = Field(
        default=DEFAULT_MAX_CACHED_ENTRIES,
        ge=0,
        description="Entry count that triggers an eviction sweep of the oldest 25%",
    )


class ClientConfig(BaseModel):
    """Top-level configuration for :class:`~typefetch.client.TypeFetchClient`.

    Immutable after construction.  Nested sections default independently:

    Example::

        config = ClientConfig.model_validate({"retry": {"count": 5}})
        assert config.retry.delay_ms == 1000
        assert config.cache.max_entries == 5000
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    debug: bool = Field(default=False, description="Emit [DEBUG] diagnostics to stderr")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers sent with every request"
    )
    delete_handling: DeleteHandling = Field(
        default=DeleteHandling.EMPTY,
        description="Representation of empty DELETE responses: empty, status, json",
    )
    retry: RetryConfig = Field(default_factory=RetryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


class RequestCacheOptions(BaseModel):
    """Per-call cache overrides; ``None`` falls back to the client config."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: Optional[bool] = None
    max_age_ms: Optional[int] = Field(default=None, ge=0)


# --- Request/response shapes ---


@dataclass
class ContentWrapper:
    """A request body tagged with how it should be serialized.

    Attributes:
        type: One of the :class:`ContentType` values.  Plain strings are
            accepted so that unknown tags reach the codec and fail there.
        data: The payload.
    """

    type: Any
    data: Any


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached response payload.

    Attributes:
        data: The decoded response data.
        timestamp: Creation instant in epoch milliseconds.
        expires_at: Instant (epoch ms) after which the entry is stale.
    """

    data: T
    timestamp: float
    expires_at: float


@dataclass
class Result(Generic[T]):
    """Uniform return value of every public client operation.

    On failure ``error`` holds a :class:`~typefetch.exceptions.TypeFetchError`
    and ``data`` is ``None``.  On success ``error`` is ``None``; ``data`` may
    still be ``None`` (for example a DELETE in ``empty`` mode).
    """

    data: Optional[T] = None
    error: Optional[TypeFetchError] = None

    @property
    def ok(self) -> bool:
        """Whether the operation succeeded."""
        return self.error is None

    @classmethod
    def success(cls, data: Optional[T]) -> Result[T]:
        return cls(data=data, error=None)

    @classmethod
    def failure(cls, error: TypeFetchError) -> Result[T]:
        return cls(data=None, error=error)
