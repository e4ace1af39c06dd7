"""Async wrapper for Exa AI SDK with retry logic and error handling.

Serves two collaborator roles of the prediction pipeline: web search
(`search`) and full-content document retrieval (`fetch`).
"""

import asyncio
import logging
from typing import Any, Callable
from urllib.parse import urlparse

from exa_py import Exa

from scenarist.prediction.protocols import SearchDepth, SearchHit

from .config import ExaConfig
from .exceptions import (
    ExaAPIError,
    ExaAuthError,
    ExaBadRequestError,
    ExaRateLimitError,
    ExaServerError,
    ExaTimeoutError,
)

logger = logging.getLogger(__name__)


def hostname(url: str) -> str | None:
    """Return the hostname of a URL, or None if it has none."""
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


class ExaClient:
    """Async wrapper for Exa AI SDK with retry logic and error handling."""

    def __init__(self, api_key: str, config: ExaConfig | None = None):
        self.api_key = api_key
        self.config = config or ExaConfig()
        self._client: Exa | None = None
        logger.info("Initialized ExaClient")

    async def __aenter__(self) -> "ExaClient":
        """Context manager entry - create Exa client."""
        if self.api_key:
            self._client = Exa(api_key=self.api_key)
        else:
            logger.warning("EXA_API_KEY not set - search and retrieval disabled")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - cleanup."""
        self._client = None
        logger.info("Closed ExaClient")

    @property
    def client(self) -> Exa:
        """Get Exa client, raising if not in context."""
        if self._client is None:
            raise RuntimeError("ExaClient must be used as async context manager with an API key")
        return self._client

    @property
    def available(self) -> bool:
        return self._client is not None

    async def _retry_wrapper(self, operation: str, fn: Callable[[], Any]) -> Any:
        """Run a blocking SDK call in a thread, retrying 429/5xx errors."""
        retry_count = 0
        last_error: Exception | None = None

        while retry_count < self.config.max_retries:
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(fn),
                    timeout=self.config.timeout_seconds,
                )

            except asyncio.TimeoutError:
                raise ExaTimeoutError(
                    f"{operation} timed out after {self.config.timeout_seconds}s"
                )
            except Exception as e:
                error_msg = str(e).lower()

                if "401" in error_msg or "unauthorized" in error_msg:
                    raise ExaAuthError("Authentication failed", status_code=401)
                elif "429" in error_msg or "rate limit" in error_msg:
                    wait_time = 2**retry_count
                    logger.warning(f"Rate limited in {operation}, waiting {wait_time}s...")
                    await asyncio.sleep(wait_time)
                    retry_count += 1
                    last_error = ExaRateLimitError(str(e), status_code=429)
                    continue
                elif "400" in error_msg or "bad request" in error_msg:
                    raise ExaBadRequestError(f"Invalid request: {e}", status_code=400)
                elif any(code in error_msg for code in ["500", "502", "503", "504"]):
                    wait_time = 2**retry_count
                    logger.warning(f"Server error in {operation}, retrying in {wait_time}s...")
                    await asyncio.sleep(wait_time)
                    retry_count += 1
                    last_error = ExaServerError(str(e))
                    continue
                else:
                    last_error = e
                    break

        raise ExaAPIError(f"{operation} failed after {retry_count} retries: {last_error}")

    async def search(
        self,
        query: str,
        *,
        max_results: int,
        min_score: float,
        depth: SearchDepth = "basic",
    ) -> list[SearchHit]:
        """Search the web for news articles matching a query.

        Results scoring below `min_score` are dropped. Results without a score
        (some Exa search types do not return one) are kept.
        """
        search_type = (
            self.config.advanced_search_type
            if depth == "advanced"
            else self.config.basic_search_type
        )

        def _search():
            return self.client.search(
                query,
                num_results=max_results,
                type=search_type,
                category=self.config.search_category,
            )

        response = await self._retry_wrapper("search", _search)

        hits: list[SearchHit] = []
        for result in response.results:
            url = getattr(result, "url", None)
            if not url:
                continue
            score = getattr(result, "score", None)
            if score is not None and score < min_score:
                continue
            hits.append(
                SearchHit(
                    url=url,
                    title=getattr(result, "title", None),
                    publisher=hostname(url),
                    published_date=getattr(result, "published_date", None),
                    score=score,
                )
            )

        logger.info(f"Exa search returned {len(hits)} hits (query: {query[:60]!r})")
        return hits[:max_results]

    async def fetch(self, url: str) -> str | None:
        """Retrieve full text for a URL. Returns None on expected failures."""

        def _get_contents():
            return self.client.get_contents([url], text=True)

        try:
            response = await self._retry_wrapper("get_contents", _get_contents)
        except ExaAuthError:
            raise
        except ExaAPIError as e:
            logger.warning(f"Content retrieval failed for {url}: {e}")
            return None

        if not response.results:
            return None
        return getattr(response.results[0], "text", None) or None
