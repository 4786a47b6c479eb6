"""
Base client for all external data source clients.

Provides: rate limiting, retry with exponential backoff, per-request
timeouts and structured logging. Errors surface as DataSourceError; the
fail-soft policy lives one level up, in the literature providers.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import aiohttp
from pydantic import BaseModel

from evidence_scout.constants import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT

logger = logging.getLogger("evidence_scout.data_sources")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class RetryConfig(BaseModel):
    """Retry behaviour for failed requests."""

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    backoff_factor: float = 2.0
    retryable_status_codes: set[int] = {429, 500, 502, 503, 504}

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (self.backoff_factor**attempt), self.max_delay)


class RateLimitConfig(BaseModel):
    """Token-bucket rate limiter settings."""

    requests_per_second: float = 3.0
    burst: int = 3


class ClientConfig(BaseModel):
    """Top-level config aggregating retry and rate limit."""

    retry: RetryConfig = RetryConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    timeout_seconds: float = DEFAULT_TIMEOUT


# ---------------------------------------------------------------------------
# Rate limiter (async token bucket)
# ---------------------------------------------------------------------------


class TokenBucketRateLimiter:
    """
    Async token-bucket rate limiter.

    Allows `burst` requests immediately, then refills at
    `requests_per_second`.  Callers await `acquire()` before
    making a request; it sleeps only when the bucket is empty.
    """

    def __init__(self, config: RateLimitConfig):
        self.rate = config.requests_per_second
        self.max_tokens = config.burst
        self.tokens = float(config.burst)
        self.last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self.last_refill
            self.tokens = min(self.max_tokens, self.tokens + elapsed * self.rate)
            self.last_refill = now

            if self.tokens < 1.0:
                wait = (1.0 - self.tokens) / self.rate
                logger.debug("Rate limiter: sleeping %.2fs", wait)
                await asyncio.sleep(wait)
                self.tokens = 0.0
                self.last_refill = time.monotonic()
            else:
                self.tokens -= 1.0


# ---------------------------------------------------------------------------
# Request context (for structured logging)
# ---------------------------------------------------------------------------


class RequestContext(BaseModel):
    """Metadata attached to every outgoing request for logging."""

    source: str  # e.g. "pubmed", "openalex"
    method: str  # e.g. "esearch", "works"
    params: dict[str, Any] = {}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DataSourceError(Exception):
    """Base exception for data source failures."""

    def __init__(self, source: str, message: str, status_code: int | None = None):
        self.source = source
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")


class RateLimitError(DataSourceError):
    """Raised when rate limit is exceeded and retries are exhausted."""

    pass


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------


class BaseClient(ABC):
    """
    Abstract base for the PubMed, OpenAlex and Semantic Scholar clients.

    Subclasses implement `_source_name` and their own typed methods that
    call `_rest_get()` (JSON) or `_rest_get_xml()` (raw text).
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
    ):
        config = config or ClientConfig()
        updates: dict[str, Any] = {}
        if timeout_seconds is not None:
            updates["timeout_seconds"] = timeout_seconds
        if max_retries is not None:
            updates["retry"] = config.retry.model_copy(
                update={"max_retries": max_retries}
            )
        self.config = config.model_copy(update=updates) if updates else config
        self.rate_limiter = TokenBucketRateLimiter(self.config.rate_limit)
        self._session: aiohttp.ClientSession | None = None

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Identifier for this data source, e.g. 'pubmed'."""
        ...

    # -- Session management --------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # -- Core request with retry + rate limiting -----------------------------

    async def _request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        as_text: bool = False,
        context: RequestContext | None = None,
    ) -> Any:
        """
        Make a GET request with rate limiting and retry.

        Parameters
        ----------
        url : str
            Full URL.
        params : dict, optional
            Query string parameters.
        headers : dict, optional
            Additional HTTP headers.
        as_text : bool
            Return the raw body instead of decoded JSON (used for XML).
        context : RequestContext, optional
            Logging context.

        Raises
        ------
        DataSourceError
            On a non-retryable HTTP error, or once retries are exhausted.
        """
        ctx = context or RequestContext(source=self._source_name, method="unknown")
        retry = self.config.retry

        last_error: DataSourceError | None = None
        start = time.monotonic()

        for attempt in range(retry.max_retries + 1):
            try:
                await self.rate_limiter.acquire()
                session = await self._get_session()

                logger.info(
                    "Request [%s.%s] attempt=%d url=%s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    url,
                )

                resp = await session.get(url, params=params, headers=headers)

                # --- Handle HTTP errors ---
                if resp.status in retry.retryable_status_codes:
                    body = await resp.text()
                    logger.warning(
                        "Retryable %d from %s.%s: %s",
                        resp.status,
                        ctx.source,
                        ctx.method,
                        (body or "")[:200],
                    )
                    error_cls = RateLimitError if resp.status == 429 else DataSourceError
                    last_error = error_cls(
                        ctx.source,
                        f"HTTP {resp.status}: {(body or '')[:200]}",
                        status_code=resp.status,
                    )
                    if attempt < retry.max_retries:
                        retry_after = (
                            resp.headers.get("Retry-After")
                            if resp.status == 429
                            else None
                        )
                        await asyncio.sleep(
                            float(retry_after)
                            if retry_after
                            else retry.delay_for(attempt)
                        )
                    continue

                if resp.status >= 400:
                    body = await resp.text()
                    raise DataSourceError(
                        ctx.source,
                        f"HTTP {resp.status}: {(body or '')[:500]}",
                        status_code=resp.status,
                    )

                # --- Success ---
                data = await resp.text() if as_text else await resp.json()
                logger.info(
                    "Success [%s.%s] elapsed=%.2fs",
                    ctx.source,
                    ctx.method,
                    time.monotonic() - start,
                )
                return data

            except asyncio.TimeoutError:
                elapsed = time.monotonic() - start
                last_error = DataSourceError(
                    ctx.source, f"Timeout after {elapsed:.1f}s"
                )
                logger.warning(
                    "Timeout [%s.%s] attempt=%d elapsed=%.1fs",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    elapsed,
                )

            except aiohttp.ClientError as e:
                last_error = DataSourceError(ctx.source, f"Connection error: {e}")
                logger.warning(
                    "Connection error [%s.%s] attempt=%d: %s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    e,
                )

            # Exponential backoff before next attempt
            if attempt < retry.max_retries:
                await asyncio.sleep(retry.delay_for(attempt))

        logger.error(
            "All retries exhausted [%s.%s] after %.1fs: %s",
            ctx.source,
            ctx.method,
            time.monotonic() - start,
            last_error,
        )
        raise last_error or DataSourceError(ctx.source, "Request failed")

    # -- Convenience methods for subclasses ----------------------------------

    async def _rest_get(
        self,
        url: str,
        params: dict[str, Any],
        *,
        headers: dict[str, str] | None = None,
        context: RequestContext | None = None,
    ) -> Any:
        """GET returning decoded JSON (E-utilities esearch, OpenAlex, Semantic Scholar)."""
        return await self._request(url, params=params, headers=headers, context=context)

    async def _rest_get_xml(
        self,
        url: str,
        params: dict[str, Any],
        *,
        context: RequestContext | None = None,
    ) -> str:
        """GET returning the raw body (E-utilities efetch XML)."""
        return await self._request(url, params=params, as_text=True, context=context)
