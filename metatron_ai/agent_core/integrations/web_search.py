"""Brave Search API client.

Overview
--------
Thin async HTTP client for the Brave web search endpoint. One method,
``search``, returns a list of ``SearchResult`` items mapped from the
provider's ``web.results`` array (``title``/``url``/``description``).

Errors
------
A non-2xx response raises ``WebSearchError`` carrying the status code and the
response text, e.g. ``"Brave Search API error 429: rate limited"``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel

from metatron_ai.core.config import BraveSearchConfig

from .errors import WebSearchError


class SearchResult(BaseModel):
    """One web search hit as shown to the model."""

    title: str
    url: str
    snippet: str


class BraveSearchClient:
    """Query the Brave web search API with a subscription token."""

    def __init__(
        self,
        api_key: str,
        *,
        config: Optional[BraveSearchConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Create a search client.

        Args:
            api_key: Brave subscription token sent as ``X-Subscription-Token``.
            config: Endpoint, result count and timeout; defaults when omitted.
            client: Optional preconfigured ``httpx.AsyncClient`` (tests inject a
                ``MockTransport`` here). The client is not closed by this class.
        """
        self._api_key = api_key
        self._cfg = config or BraveSearchConfig()
        self._client = client
        self._logger = logging.getLogger(__name__)

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Accept-Encoding": "gzip",
            "X-Subscription-Token": self._api_key,
        }

    async def search(self, query: str, *, count: Optional[int] = None) -> List[SearchResult]:
        """
        Run a web search.

        Args:
            query: The search query.
            count: Number of results to request; configuration default when None.

        Returns:
            The mapped results, possibly empty.

        Raises:
            WebSearchError: On a non-2xx response or a body that is not JSON.
        """
        params = {"q": query, "count": str(count or self._cfg.result_count)}
        if self._client is not None:
            resp = await self._client.get(self._cfg.base_url, params=params, headers=self._headers())
        else:
            async with httpx.AsyncClient(timeout=self._cfg.timeout) as client:
                resp = await client.get(self._cfg.base_url, params=params, headers=self._headers())

        if not resp.is_success:
            text = resp.text or resp.reason_phrase
            self._logger.warning("Brave search failed with status %s", resp.status_code)
            raise WebSearchError(
                f"Brave Search API error {resp.status_code}: {text}",
                status_code=resp.status_code,
                details=text,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise WebSearchError(f"Brave Search API returned invalid JSON: {e}", status_code=resp.status_code) from e

        web = data.get("web") if isinstance(data, dict) else None
        results = (web or {}).get("results") or []
        return [
            SearchResult(
                title=r.get("title") or "",
                url=r.get("url") or "",
                snippet=r.get("description") or "",
            )
            for r in results
            if isinstance(r, dict)
        ]
