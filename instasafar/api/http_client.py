"""Async HTTP client for the InstaSafar REST backend.

Wraps :class:`httpx.AsyncClient` with:

* **Authentication** - the configured API key is sent as both the ``apikey``
  header and an ``Authorization: Bearer`` token on every request.
* **Automatic retries** - exponential back-off with random jitter via
  :mod:`tenacity`; configurable number of attempts.
* **Rate-limit awareness** - HTTP 429 responses pause retries for the
  duration given by ``Retry-After``, then raise
  :class:`~instasafar.core.exceptions.ApiRateLimitError` once retries are
  exhausted.
* **Error mapping** - transient (5xx, network) errors are retried; other
  4xx responses raise :class:`~instasafar.core.exceptions.ApiRequestError`
  immediately without consuming retry budget.

Typical usage::

    async with ApiHttpClient(base_url="https://example.supabase.co/functions/v1") as c:
        response = await c.get("/hotels", params={"city": "Makkah"})
        hotels = response.json()
"""

from __future__ import annotations

import logging
import random
from types import TracebackType
from typing import Any, Final

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from instasafar.core.exceptions import ApiRateLimitError, ApiRequestError

__all__ = ["ApiHttpClient"]

logger = logging.getLogger(__name__)

#: HTTP status codes that signal a transient server-side fault.
_RETRYABLE_STATUS: Final[frozenset[int]] = frozenset({500, 502, 503, 504})

_DEFAULT_TIMEOUT: Final[float] = 15.0
_DEFAULT_MAX_ATTEMPTS: Final[int] = 3

#: Cap on the exponential back-off base before jitter (seconds).
_MAX_BACKOFF_BASE: Final[float] = 30.0
_MAX_BACKOFF_JITTER: Final[float] = 5.0


class _RetryableServerError(ApiRequestError):
    """Internal: a 5xx status tenacity should retry.

    Escapes :meth:`ApiHttpClient._request_with_retry` only as the final
    error when every attempt failed, where it is still an ``ApiRequestError``.
    """


def _api_wait(retry_state: RetryCallState) -> float:
    """Seconds to sleep before the next attempt.

    Honours a positive ``retry_after`` on :class:`ApiRateLimitError`;
    otherwise 1 s, 2 s, 4 s, ... plus jitter.
    """
    if retry_state.outcome is not None:
        exc = retry_state.outcome.exception()
        if isinstance(exc, ApiRateLimitError) and exc.retry_after and exc.retry_after > 0:
            logger.debug("Honouring Retry-After of %.1f s", exc.retry_after)
            return exc.retry_after

    attempt = max(retry_state.attempt_number, 1)
    base = min(2.0 ** (attempt - 1), _MAX_BACKOFF_BASE)
    jitter = random.uniform(0.0, min(base, _MAX_BACKOFF_JITTER))
    return base + jitter


def _resource_of(url: str) -> str:
    """First path segment of *url*, used as the error's resource label."""
    path = url.split("?", 1)[0].strip("/")
    return path.split("/", 1)[0] or "/"


class ApiHttpClient:
    """Retrying JSON client bound to one backend base URL.

    Each request method returns the :class:`httpx.Response` on HTTP 2xx and
    raises on every other outcome.  Prefer ``async with`` so the connection
    pool is closed on exit.

    Args:
        base_url: Backend root; request paths are relative to it.
        api_key: Sent as ``apikey`` and ``Authorization: Bearer`` when set.
        timeout: Per-request timeout in seconds.
        max_attempts: Total attempts including the first (>= 1).

    Raises:
        ValueError: If ``max_attempts`` is less than 1.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str = "",
        timeout: float = _DEFAULT_TIMEOUT,
        max_attempts: int = _DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts!r}.")

        self._base_url = base_url
        self._api_key = api_key
        self._max_attempts = max_attempts
        self._timeout = httpx.Timeout(timeout, pool=5.0)
        self._http: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "ApiHttpClient":
        await self._ensure_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public request methods
    # ------------------------------------------------------------------

    async def get(self, url: str, *, params: dict[str, Any] | None = None) -> httpx.Response:
        """GET *url* with retries.

        Raises:
            ApiRateLimitError: On HTTP 429 after exhausting retries.
            ApiRequestError: On any other persistent HTTP or network error.
        """
        return await self._request_with_retry("GET", url, params=params)

    async def post(
        self,
        url: str,
        *,
        json: Any | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        return await self._request_with_retry("POST", url, json=json, params=params)

    async def patch(self, url: str, *, json: Any | None = None) -> httpx.Response:
        return await self._request_with_retry("PATCH", url, json=json)

    async def delete(self, url: str) -> httpx.Response:
        return await self._request_with_retry("DELETE", url)

    async def close(self) -> None:
        """Close the underlying client; safe to call repeatedly."""
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()
            logger.debug("ApiHttpClient session closed.")
        self._http = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _auth_headers(self) -> dict[str, str]:
        if not self._api_key:
            return {}
        return {"apikey": self._api_key, "Authorization": f"Bearer {self._api_key}"}

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                follow_redirects=True,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    **self._auth_headers(),
                },
            )
            logger.debug("ApiHttpClient session opened (base_url=%r).", self._base_url)
        return self._http

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
    ) -> httpx.Response:
        retry_types = (_RetryableServerError, ApiRateLimitError, httpx.TransportError)

        def _before_sleep(rs: RetryCallState) -> None:
            exc = rs.outcome.exception() if rs.outcome else None
            logger.warning(
                "HTTP %s %s: attempt %d/%d failed (%s). Retrying in %.1f s",
                method,
                url,
                rs.attempt_number,
                self._max_attempts,
                type(exc).__name__ if exc else "?",
                _api_wait(rs),
            )

        resource = _resource_of(url)
        response: httpx.Response | None = None

        try:
            async for attempt in AsyncRetrying(
                wait=_api_wait,
                stop=stop_after_attempt(self._max_attempts),
                retry=retry_if_exception_type(retry_types),
                reraise=True,
                before_sleep=_before_sleep,
            ):
                with attempt:
                    response = await self._single_request(
                        method, url, params=params, json=json, resource=resource
                    )
        except httpx.TransportError as exc:
            raise ApiRequestError(resource, f"Network error on {method} {url}: {exc}") from exc

        assert response is not None, "tenacity exited without a response or exception"
        return response

    async def _single_request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None,
        json: Any | None,
        resource: str,
    ) -> httpx.Response:
        """Perform exactly one request and map its status to an outcome.

        Raises:
            ApiRateLimitError: On HTTP 429.
            _RetryableServerError: On HTTP 5xx.
            ApiRequestError: On other non-2xx statuses.
            httpx.TransportError: Network failures, propagated for retry.
        """
        client = await self._ensure_client()
        logger.debug("HTTP %s %s params=%s", method, url, params)

        try:
            response = await client.request(method=method, url=url, params=params, json=json)
        except httpx.TransportError:
            logger.debug("Transport error on %s %s.", method, url, exc_info=True)
            raise

        logger.debug("HTTP %s %s -> %d", method, url, response.status_code)

        if response.is_success:
            return response

        if response.status_code == 429:
            retry_after = _parse_retry_after(response)
            logger.warning("Rate limited on %s (HTTP 429), retry_after=%.1f s", resource, retry_after)
            raise ApiRateLimitError(resource, retry_after=retry_after)

        if response.status_code in _RETRYABLE_STATUS:
            raise _RetryableServerError(
                resource,
                f"Transient HTTP {response.status_code} on {method} {url}",
                status_code=response.status_code,
            )

        raise ApiRequestError(
            resource,
            f"HTTP {response.status_code} on {method} {url}: {_error_detail(response)}",
            status_code=response.status_code,
        )


def _parse_retry_after(response: httpx.Response) -> float:
    """Back-off from a 429's ``Retry-After`` header; at least 1 s."""
    header = response.headers.get("retry-after", "")
    if header:
        try:
            return max(float(header), 1.0)
        except ValueError:
            logger.debug("Could not parse Retry-After header %r.", header)
    return 1.0


def _error_detail(response: httpx.Response) -> str:
    """The backend's ``{"error": ...}`` message, or the start of the body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text[:200]
