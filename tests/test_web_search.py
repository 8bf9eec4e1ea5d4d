"""Tests for the DuckDuckGo-backed web search service."""
import httpx

from conftest import Upstream
from copilot.llm.entity.chat import WebSearchResult
from copilot.search.service.web_search import (
    WebSearchService,
    enhance_prompt_with_results,
    extract_search_query,
    fallback_results,
)

INSTANT_ANSWER = {
    "Abstract": "Python is a programming language.",
    "AbstractText": "Python (programming language)",
    "AbstractURL": "https://en.wikipedia.org/wiki/Python_(programming_language)",
    "AbstractSource": "Wikipedia",
    "RelatedTopics": [
        {"Text": f"Topic {i} - details", "FirstURL": f"https://duckduckgo.com/t{i}"} for i in range(7)
    ] + [{"Name": "group without text"}],
    "Answer": "42",
    "AnswerType": "calc",
}


def service_for(handler):
    upstream = Upstream(handler)
    return WebSearchService(endpoint="https://api.duckduckgo.com/", transport=upstream.transport), upstream


class TestQueryHelpers:

    def test_extract_search_query(self):
        assert extract_search_query("What's the latest on GPT-5?!") == "What s the latest on GPT 5"

    def test_extract_search_query_truncates(self):
        assert len(extract_search_query("word " * 30)) == 50

    def test_enhance_prompt_without_results(self):
        assert enhance_prompt_with_results("q", []) == "q"

    def test_enhance_prompt_numbers_sources(self):
        results = fallback_results("rust")

        prompt = enhance_prompt_with_results("Tell me about rust", results)

        assert "[1] Search results for: rust" in prompt
        assert "[3] Academic Search" in prompt
        assert "Source: Wikipedia (https://en.wikipedia.org/wiki/Special:Search/rust)" in prompt


class TestWebSearchService:

    async def test_parses_instant_answer(self):
        service, upstream = service_for(lambda request: httpx.Response(200, json=INSTANT_ANSWER))

        results = await service.search("python")

        assert len(results) == 7
        assert results[0].source == "Wikipedia"
        assert results[1].title == "Topic 0"
        assert results[5].url == "https://duckduckgo.com/t4"
        assert results[-1].title == "Answer: calc"
        params = upstream.requests[0].url.params
        assert params["q"] == "python"
        assert params["format"] == "json"
        assert params["no_html"] == "1"
        assert params["skip_disambig"] == "1"

    async def test_empty_answer_uses_fallback(self):
        service, _ = service_for(lambda request: httpx.Response(200, json={"RelatedTopics": []}))

        results = await service.search("obscure thing")

        assert [r.source for r in results] == ["Search Suggestion", "Wikipedia", "Google Scholar"]
        assert results[0].url == "https://www.google.com/search?q=obscure%20thing"

    async def test_http_error_uses_fallback(self):
        service, _ = service_for(lambda request: httpx.Response(503))

        results = await service.search("anything")

        assert len(results) == 3
        assert all(r.url for r in results)

    async def test_network_error_uses_fallback(self):
        def _handler(request):
            raise httpx.ConnectError("offline", request=request)

        service, _ = service_for(_handler)

        results = await service.search("anything")

        assert len(results) == 3
        assert all(isinstance(r, WebSearchResult) for r in results)
