"""HTTP retrieval of article pages."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; ArticleReader/1.0)"


class ArticleFetcher:
    """Fetch raw HTML for a URL, following redirects."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._user_agent = user_agent
        self._timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                follow_redirects=True,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> str:
        """Return the response body as text; raise FetchError on failure."""

        client = self._get_client()
        try:
            response = await client.get(
                url,
                headers={"User-Agent": self._user_agent},
                follow_redirects=True,
            )
        except httpx.InvalidURL as exc:
            raise FetchError(url, f"Invalid URL: {url}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Fetching %s failed: %s", url, exc)
            raise FetchError(url, f"Failed to fetch URL: {exc}") from exc

        if not response.is_success:
            logger.warning("Fetching %s returned HTTP %s", url, response.status_code)
            raise FetchError(
                url,
                f"Failed to fetch URL: {response.status_code}",
                upstream_status=response.status_code,
            )

        logger.info("Fetched %s (%d bytes)", url, len(response.content))
        return response.text


__all__ = ["ArticleFetcher", "DEFAULT_USER_AGENT"]
