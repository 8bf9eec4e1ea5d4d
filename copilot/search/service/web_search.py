# copilot/search/service/web_search.py
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from copilot.core.config import settings
from copilot.core.logger import get_logger
from copilot.llm.entity.chat import WebSearchResult

logger = get_logger("WebSearchService")

MAX_RELATED_TOPICS = 5
MAX_QUERY_CHARS = 50
USER_AGENT = "BYOK-Research-Copilot/1.0"


def extract_search_query(message: str) -> str:
    """Punctuation stripped, whitespace collapsed, first 50 characters."""
    cleaned = re.sub(r"[^\w\s]", " ", message)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned[:MAX_QUERY_CHARS]


def enhance_prompt_with_results(original_prompt: str, results: List[WebSearchResult]) -> str:
    if not results:
        return original_prompt

    web_context = "\n".join(
        f"[{i}] {r.title}\n{r.snippet}\nSource: {r.source} ({r.url})\n"
        for i, r in enumerate(results, start=1)
    )
    return (
        f"{original_prompt}\n\n"
        f"CURRENT WEB SEARCH CONTEXT:\n{web_context}\n"
        "Please use this current information in your response and cite sources appropriately. "
        "When referencing information from these sources, include the source name and indicate "
        "it's from recent web search."
    )


def fallback_results(query: str) -> List[WebSearchResult]:
    """Static suggestion links. Pure URL construction, so this cannot fail."""
    encoded = quote(query, safe="")
    return [
        WebSearchResult(
            title=f"Search results for: {query}",
            url=f"https://www.google.com/search?q={encoded}",
            snippet=f'Web search functionality is currently limited. For comprehensive results, please search manually for: "{query}"',
            source="Search Suggestion",
        ),
        WebSearchResult(
            title="Wikipedia Search",
            url=f"https://en.wikipedia.org/wiki/Special:Search/{encoded}",
            snippet="Search Wikipedia for authoritative information on this topic.",
            source="Wikipedia",
        ),
        WebSearchResult(
            title="Academic Search",
            url=f"https://scholar.google.com/scholar?q={encoded}",
            snippet="Find academic papers and scholarly articles related to this topic.",
            source="Google Scholar",
        ),
    ]


def parse_instant_answer(data: Dict[str, Any]) -> List[WebSearchResult]:
    results: List[WebSearchResult] = []

    if data.get("Abstract") and data.get("AbstractURL"):
        results.append(WebSearchResult(
            title=data.get("AbstractText") or "Overview",
            url=data["AbstractURL"],
            snippet=data["Abstract"],
            source=data.get("AbstractSource") or "DuckDuckGo",
        ))

    topics = data.get("RelatedTopics")
    if isinstance(topics, list):
        for topic in topics[:MAX_RELATED_TOPICS]:
            if isinstance(topic, dict) and topic.get("Text") and topic.get("FirstURL"):
                results.append(WebSearchResult(
                    title=topic["Text"].split(" - ")[0] or "Related Topic",
                    url=topic["FirstURL"],
                    snippet=topic["Text"],
                    source="DuckDuckGo",
                ))

    if data.get("Answer") and data.get("AnswerType"):
        results.append(WebSearchResult(
            title=f"Answer: {data['AnswerType']}",
            url=data.get("AbstractURL") or "#",
            snippet=str(data["Answer"]),
            source="DuckDuckGo Instant Answer",
        ))

    return results


class WebSearchService:
    """Zero-key web search backed by the DuckDuckGo Instant Answer API."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.endpoint = endpoint or settings.WEB_SEARCH_URL
        self._transport = transport
        self._timeout = timeout if timeout is not None else settings.PROVIDER_TIMEOUT_SECONDS

    async def search(self, query: str) -> List[WebSearchResult]:
        params = {"q": query, "format": "json", "no_html": "1", "skip_disambig": "1"}
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                res = await client.get(self.endpoint, params=params, headers={"User-Agent": USER_AGENT})
            if not res.is_success:
                raise RuntimeError(f"Search failed: {res.status_code}")
            data = res.json()
            results = parse_instant_answer(data) if isinstance(data, dict) else []
        except Exception as e:
            logger.error(f"Web search error: {e}")
            return fallback_results(query)

        return results or fallback_results(query)
