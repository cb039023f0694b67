"""HTTP fetcher implementation using httpx."""

import asyncio
import logging
from urllib.parse import urljoin

import httpx

from ..config import DEFAULT_USER_AGENT
from ..errors import FetchTimeout, NetworkError, TooManyRedirects, UpstreamStatus
from .protocols import FetchResult

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "id-ID,id;q=0.9,en;q=0.8",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class HttpFetcher:
    """Async HTTP fetcher with connection reuse and bounded redirect following.

    Redirects are followed by hand so the hop count is explicit; ``timeout``
    bounds each attempt and the whole redirect chain.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        max_redirects: int = 5,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self.max_redirects = max_redirects
        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with double-checked locking."""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        timeout=httpx.Timeout(self.timeout),
                        limits=self.limits,
                        follow_redirects=False,
                    )
        return self._client

    def build_headers(self, extra_headers: dict[str, str] | None = None) -> httpx.Headers:
        """Baseline headers overlaid with ``extra_headers`` (case-insensitive)."""
        headers = httpx.Headers({"User-Agent": self.user_agent, **BASE_HEADERS})
        if extra_headers:
            headers.update(extra_headers)
        return headers

    async def fetch(self, url: str, extra_headers: dict[str, str] | None = None) -> FetchResult:
        """Fetch a URL, following redirects, and return the final response."""
        headers = self.build_headers(extra_headers)
        try:
            return await asyncio.wait_for(self._follow(url, headers), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise FetchTimeout(url=url, timeout=self.timeout) from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise NetworkError(e, url=url) from e

    async def _follow(self, url: str, headers: httpx.Headers) -> FetchResult:
        client = await self._get_client()

        for hop in range(self.max_redirects + 1):
            resp = await client.get(url, headers=headers)

            if resp.status_code in REDIRECT_STATUSES:
                location = resp.headers.get("location")
                if not location:
                    raise UpstreamStatus(resp.status_code, url=url)
                next_url = urljoin(str(resp.url), location)
                logger.debug("Redirect %d %s -> %s (hop %d)", resp.status_code, url, next_url, hop + 1)
                url = next_url
                continue

            if not 200 <= resp.status_code < 300:
                raise UpstreamStatus(resp.status_code, url=url)

            return FetchResult(
                url=str(resp.url),
                status=resp.status_code,
                body=resp.content,
                headers=dict(resp.headers),
            )

        raise TooManyRedirects(self.max_redirects, url=url)

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
