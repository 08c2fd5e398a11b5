"""Shared plumbing for the metadata API clients: lazy httpx client, rate limiting, 429 retry."""

import logging
from typing import Any

import httpx

from djcrate.domain.exceptions import (
    RateLimitExceededError,
    SourceParseError,
    SourceRequestFailedError,
)
from djcrate.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def parse_retry_after(value: str | None) -> float | None:
    """Retry-After header in seconds, or None if missing/unparseable (HTTP-date is ignored)."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


class BaseApiClient:
    """Base class for one external metadata API.

    Subclasses set SOURCE_NAME and API_BASE_URL and may override _client_headers().
    """

    SOURCE_NAME = "unknown"
    API_BASE_URL = ""
    TIMEOUT = 30.0

    def __init__(self, rate_limiter: RateLimiter | None = None) -> None:
        self.rate_limiter = rate_limiter or RateLimiter.for_source(self.SOURCE_NAME)
        self._client: httpx.AsyncClient | None = None

    def _client_headers(self) -> dict[str, str]:
        """Default headers sent with every request."""
        return {"Accept": "application/json"}

    # Hey future me, we DON'T create the httpx client in __init__ - clients are built by the
    # lifecycle module, possibly before an event loop runs. The client gets lazy-loaded here.
    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.API_BASE_URL,
                headers=self._client_headers(),
                timeout=self.TIMEOUT,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # Hey future me - ALL requests go through here. Token bucket first, then the request, and
    # on 429 we honour Retry-After (or back off exponentially) and try again, at most
    # max_retries times. After that the request is given up with RateLimitExceededError so the
    # caller can treat it as a plain miss. Network errors and timeouts become
    # SourceRequestFailedError. Non-429 status codes are returned as-is; callers decide whether
    # 404 means "not found" or "broken".
    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        data: dict[str, Any] | None = None,
        json: Any = None,
        auth: httpx.Auth | tuple[str, str] | None = None,
    ) -> httpx.Response:
        """Make rate-limited request with automatic retry on 429.

        Raises:
            RateLimitExceededError: Still 429 after all retries
            SourceRequestFailedError: Network error or timeout
        """
        client = await self._get_client()
        max_retries = self.rate_limiter.max_retries

        for attempt in range(max_retries + 1):
            await self.rate_limiter.acquire()
            try:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    headers=headers,
                    data=data,
                    json=json,
                    auth=auth if auth is not None else httpx.USE_CLIENT_DEFAULT,
                )
            except httpx.HTTPError as e:
                raise SourceRequestFailedError(
                    f"{self.SOURCE_NAME} request failed: {e}", source=self.SOURCE_NAME
                ) from e

            if response.status_code != 429:
                # Backoff only resets on a real answer, so repeated 429s keep escalating.
                self.rate_limiter.reset_backoff()
                return response

            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            if attempt >= max_retries:
                raise RateLimitExceededError(
                    f"{self.SOURCE_NAME} rate limited (429) after {max_retries} retries. "
                    f"URL: {url}. Retry-After: {retry_after or 'not provided'} seconds.",
                    source=self.SOURCE_NAME,
                    retry_after=retry_after,
                )

            wait_time = await self.rate_limiter.handle_rate_limit_response(retry_after)
            logger.warning(
                f"{self.SOURCE_NAME} 429 Rate Limit (attempt {attempt + 1}/{max_retries}): "
                f"Waited {wait_time:.1f}s, retrying {url}"
            )

        # Unreachable: the loop either returns or raises.
        raise RateLimitExceededError(
            f"{self.SOURCE_NAME} rate limited (429)", source=self.SOURCE_NAME
        )

    def _json(self, response: httpx.Response) -> Any:
        """Decode a successful response body.

        Raises:
            SourceRequestFailedError: Non-2xx status
            SourceParseError: Body is not JSON
        """
        if response.is_error:
            raise SourceRequestFailedError(
                f"{self.SOURCE_NAME} returned HTTP {response.status_code}",
                source=self.SOURCE_NAME,
            )
        try:
            return response.json()
        except ValueError as e:
            raise SourceParseError(
                f"{self.SOURCE_NAME} returned invalid JSON", source=self.SOURCE_NAME
            ) from e

    async def __aenter__(self) -> "BaseApiClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()


__all__ = ["BaseApiClient", "parse_retry_after"]
