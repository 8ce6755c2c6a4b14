"""Google Custom Search client — web search substrate for the plan pipeline.

Returns ``SearchResult`` items (title, link, snippet). Never raises: a missing
key, a non-2xx response, a timeout or a malformed body all yield ``[]``.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

import httpx

from ..agents.plan_agent.schema import SearchResult
from .http_client import get_timeout

logger = logging.getLogger(__name__)

_GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"
_RESULTS_PER_QUERY = 5


def _get_cse_credentials() -> Optional[tuple]:
    """Read the Custom Search key / engine id, or None when not configured."""
    key = os.getenv("GOOGLE_CSE_API_KEY", "").strip()
    cx = os.getenv("GOOGLE_CSE_ID", "").strip()
    if not key or not cx:
        return None
    return key, cx


class SearchClient:
    """Thin async wrapper around the Custom Search JSON API."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # transport is only set by tests (httpx.MockTransport)
        self._transport = transport

    @property
    def configured(self) -> bool:
        return _get_cse_credentials() is not None

    async def search(self, query: str) -> List[SearchResult]:
        credentials = _get_cse_credentials()
        if credentials is None:
            logger.warning("Google Custom Search not configured, skipping query %r", query)
            return []
        key, cx = credentials

        params = {"key": key, "cx": cx, "q": query, "num": _RESULTS_PER_QUERY}
        try:
            async with httpx.AsyncClient(timeout=get_timeout("search"), transport=self._transport) as client:
                response = await client.get(
                    _GOOGLE_CSE_URL, params=params, headers={"Accept": "application/json"}
                )
            if response.status_code != 200:
                logger.error("Google CSE HTTP %s for %r: %s", response.status_code, query, response.text[:200])
                return []
            items = response.json().get("items") or []
        except httpx.TimeoutException:
            logger.error("Google CSE timed out for %r", query)
            return []
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Google CSE error for %r: %s", query, exc)
            return []

        results = [
            SearchResult(
                title=item.get("title") or "",
                link=item.get("link") or "",
                snippet=item.get("snippet") or "",
            )
            for item in items
            if isinstance(item, dict)
        ]
        print(f"🔎 [SEARCH] {len(results)} results for {query!r}")
        return results
