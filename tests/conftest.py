"""Pytest configuration and shared fixtures."""
import json
from typing import Callable, List

import httpx
import pytest

from copilot.llm.entity.chat import ChatMessage, ChatRequest, WebSearchResult
from copilot.llm.service.registry import build_registry
from pkg.queue.local_queue import LocalQueue

VALID_DEEPSEEK_KEY = "sk-0123456789abcdef0123456789abcdef"


def openai_body(content="Hello there", usage=True):
    body = {"id": "chatcmpl-1", "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}
    if usage:
        body["usage"] = {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}
    return body


def anthropic_body(text="Hi from Claude"):
    return {
        "id": "msg_1",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
        "usage": {"input_tokens": 10, "output_tokens": 4},
    }


def gemini_body(text="Hi from Gemini"):
    return {
        "candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}],
        "usageMetadata": {"promptTokenCount": 7, "candidatesTokenCount": 3, "totalTokenCount": 10},
    }


def ollama_body(text="Hi from llama"):
    return {"message": {"role": "assistant", "content": text}, "prompt_eval_count": 6, "eval_count": 2}


class Upstream:
    """Records outgoing requests and answers them from a handler."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def json_sent(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


def make_request(content="Hello", **kwargs) -> ChatRequest:
    messages = kwargs.pop("messages", None) or [ChatMessage(role="user", content=content)]
    kwargs.setdefault("api_key", "test-key")
    return ChatRequest(messages=messages, **kwargs)


class FakeSearch:
    """Stand-in for WebSearchService."""

    def __init__(self, results=None, error=None):
        self.results = results if results is not None else [
            WebSearchResult(title="Result", url="https://example.com", snippet="A snippet", source="Example")
        ]
        self.error = error
        self.queries: List[str] = []

    async def search(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return self.results


@pytest.fixture
def registry_factory():
    def _factory(handler):
        upstream = Upstream(handler)
        return build_registry(local_queue=LocalQueue(), transport=upstream.transport), upstream
    return _factory
