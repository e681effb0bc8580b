"""Retrying request execution with outcome normalization.

:class:`RequestExecutor` runs one logical request through the transport.
Each call moves through ``Attempting -> {Success | Retrying | Failed}``:

* An ``ok`` response is decoded (see :mod:`typefetch.client.response`) and
  returned as a successful :class:`~typefetch.models.Result`.
* A non-ok response fails immediately with an
  :class:`~typefetch.exceptions.HttpError` carrying the body text and
  status.  HTTP-level errors are never retried.
* An exception raised while attempting (a transport failure, or a body
  that does not decode) is retried after a fixed delay while the budget
  lasts, then becomes a
  :class:`~typefetch.exceptions.MaxRetriesExceededError`.

At most ``retry.count + 1`` transport attempts happen per call.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from typefetch.client.response import decode_response
from typefetch.exceptions import HttpError, MaxRetriesExceededError, TypeFetchError
from typefetch.models import DeleteHandling, Result, RetryConfig
from typefetch.transport import FetchResponse

DEFAULT_FAILURE_MESSAGE = "Request failed after max retries"


class RequestExecutor:
    """Executes transport calls with bounded fixed-delay retry.

    Args:
        retry: Retry policy (``count``, ``delay_ms``, ``on_retry``).
        delete_handling: Representation of empty DELETE responses.
        debug: Callable receiving diagnostic messages.
        sleep: Awaitable sleep taking seconds; replaced in tests.
    """

    def __init__(
        self,
        retry: RetryConfig,
        delete_handling: DeleteHandling = DeleteHandling.EMPTY,
        debug: Optional[Callable[[str], None]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._retry = retry
        self._delete_handling = delete_handling
        self._debug = debug or (lambda message: None)
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        """Total number of transport attempts allowed for one call."""
        return self._retry.count + 1

    async def execute(
        self,
        request: Callable[[], Awaitable[FetchResponse]],
        method: str,
    ) -> Result[Any]:
        """Run *request* until it succeeds, fails at the HTTP level, or the budget runs out.

        Args:
            request: Zero-argument coroutine factory performing one attempt.
            method: Uppercase HTTP method, used for response decoding.

        Returns:
            A :class:`~typefetch.models.Result`; this method never raises
            for transport or decoding failures.
        """
        attempts = 0
        max_retries = self._retry.count

        while True:
            try:
                response = await request()
                if not response.ok:
                    error_text = await response.text()
                    self._debug(f"{method} failed with HTTP {response.status}")
                    return Result.failure(HttpError(error_text, response.status))
                data = await decode_response(response, method, self._delete_handling)
                return Result.success(data)
            except Exception as exc:
                if attempts >= max_retries:
                    self._debug(
                        f"{method} failed after {attempts + 1} attempt(s): {exc}"
                    )
                    return Result.failure(self._terminal_error(exc))

                attempts += 1
                self._debug(
                    f"{method} attempt failed: {exc}; retrying in {self._retry.delay_ms}ms "
                    f"(retry {attempts}/{max_retries})"
                )
                if self._retry.on_retry is not None:
                    try:
                        self._retry.on_retry()
                    except Exception as hook_exc:
                        self._debug(f"on_retry callback failed: {hook_exc}")
                await self._sleep(self._retry.delay_ms / 1000)

    @staticmethod
    def _terminal_error(exc: Exception) -> MaxRetriesExceededError:
        status = exc.status if isinstance(exc, TypeFetchError) else None
        return MaxRetriesExceededError(
            str(exc) or DEFAULT_FAILURE_MESSAGE,
            status=status,
            original_error=exc,
        )
