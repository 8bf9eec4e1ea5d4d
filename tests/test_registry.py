"""Tests for provider detection and registry dispatch."""
import pytest

from conftest import make_request
from copilot.llm.entity.chat import ChatResponse
from copilot.llm.service.provider.base_provider import BaseProvider
from copilot.llm.service.registry import ProviderRegistry, build_registry, detect_provider
from pkg.queue.local_queue import LocalQueue


class EchoProvider(BaseProvider):
    def __init__(self, name):
        super().__init__()
        self.name = name

    async def chat(self, request):
        return ChatResponse.from_text(f"{self.name}:{request.messages[-1].content}")


class CountingQueue(LocalQueue):
    def __init__(self):
        super().__init__()
        self.enqueued = 0

    async def enqueue(self, operation):
        self.enqueued += 1
        return await super().enqueue(operation)


class TestDetectProvider:

    @pytest.mark.parametrize("model,expected", [
        ("claude-3-5-sonnet", "anthropic"),
        ("anthropic/claude-instant", "anthropic"),
        ("deepseek-chat", "deepseek"),
        ("deepseek-llm:7b", "deepseek"),
        ("deekseek-typo", "deepseek"),
        ("deepseek-r1", "deepseek"),
        ("gemini-1.5-pro", "gemini"),
        ("google/gemma-7b", "gemini"),
        ("llama3:8b", "local-ollama"),
        ("mistral", "local-ollama"),
        ("qwen2.5-coder", "local-ollama"),
        ("phi3", "local-ollama"),
        ("tinyllama", "local-ollama"),
        ("GPT-4o", "openai"),
        ("", "openai"),
    ])
    def test_detection_order(self, model, expected):
        assert detect_provider(model) == expected


class TestProviderRegistry:

    def test_resolve(self):
        registry = build_registry()

        assert registry.resolve("openai") == "openai"
        assert registry.resolve("local-inference") == "local-ollama"
        assert registry.resolve("auto", "claude-3-haiku") == "anthropic"
        assert registry.resolve("auto", "") == "openai"
        assert registry.resolve("cohere") is None
        assert registry.resolve(None) is None

    def test_default_registry_has_every_provider(self):
        registry = build_registry()
        assert set(registry.names()) == {"openai", "anthropic", "deepseek", "gemini", "local-ollama"}

    def test_is_local(self):
        assert ProviderRegistry.is_local("local-ollama")
        assert ProviderRegistry.is_local("local-inference")
        assert not ProviderRegistry.is_local("openai")

    async def test_only_local_calls_are_queued(self):
        queue = CountingQueue()
        registry = ProviderRegistry(
            {"openai": EchoProvider("openai"), "local-ollama": EchoProvider("local-ollama")},
            queue,
        )

        cloud = await registry.chat("openai", make_request("hi"))
        local = await registry.chat("local-ollama", make_request("hi"))

        assert cloud.message.content == "openai:hi"
        assert local.message.content == "local-ollama:hi"
        assert queue.enqueued == 1
