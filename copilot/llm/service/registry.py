# copilot/llm/service/registry.py
from typing import Dict, List, Optional, Tuple

import httpx

from copilot.core.logger import get_logger
from copilot.llm.entity.chat import ChatRequest, ChatResponse
from copilot.llm.service.provider.anthropic import AnthropicProvider
from copilot.llm.service.provider.base_provider import BaseProvider
from copilot.llm.service.provider.deepseek import DeepSeekProvider
from copilot.llm.service.provider.gemini import GeminiProvider
from copilot.llm.service.provider.ollama import OllamaProvider
from copilot.llm.service.provider.openai_provider import OpenAIProvider
from pkg.queue.local_queue import LocalQueue

logger = get_logger("ProviderRegistry")

LOCAL_PROVIDER = "local-ollama"
PROVIDER_ALIASES = {"local-inference": LOCAL_PROVIDER}

# Checked top to bottom, first hit wins. "deepseek-llama" must land on deepseek.
DETECTION_RULES: List[Tuple[str, Tuple[str, ...]]] = [
    ("anthropic", ("claude", "anthropic")),
    ("deepseek", ("deepseek", "deekseek", "r1")),
    ("gemini", ("gemini", "google")),
    (LOCAL_PROVIDER, ("mistral", "llama", "codellama", "qwen", "phi", "gemma", "tinyllama", "deepseek-llm")),
]
DEFAULT_PROVIDER = "openai"


def detect_provider(model: str) -> str:
    """Map a free-text model name to a provider key."""
    model_lower = (model or "").lower()
    for provider, needles in DETECTION_RULES:
        if any(needle in model_lower for needle in needles):
            return provider
    return DEFAULT_PROVIDER


class ProviderRegistry:
    """Static provider-key -> adapter map plus the queue guarding the local backend."""

    def __init__(self, providers: Dict[str, BaseProvider], local_queue: LocalQueue):
        self.providers = providers
        self.local_queue = local_queue

    def get(self, name: str) -> Optional[BaseProvider]:
        return self.providers.get(PROVIDER_ALIASES.get(name, name))

    def resolve(self, provider: Optional[str], model: str = "") -> Optional[str]:
        """Canonical provider key for a request, or None when it cannot be resolved."""
        if not provider:
            return None
        if provider == "auto":
            return detect_provider(model)
        name = PROVIDER_ALIASES.get(provider, provider)
        return name if name in self.providers else None

    @staticmethod
    def is_local(name: str) -> bool:
        return PROVIDER_ALIASES.get(name, name) == LOCAL_PROVIDER

    def names(self) -> List[str]:
        return list(self.providers)

    async def chat(self, name: str, request: ChatRequest) -> ChatResponse:
        provider = self.providers[name]
        if self.is_local(name):
            logger.debug(f"Queueing local request (pending={self.local_queue.queue_size()})")
            return await self.local_queue.enqueue(lambda: provider.chat(request))
        return await provider.chat(request)


def build_registry(
    local_queue: Optional[LocalQueue] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProviderRegistry:
    """Compose the default adapter set. ``transport`` is shared by every adapter's HTTP client."""
    providers: Dict[str, BaseProvider] = {
        "openai": OpenAIProvider(transport=transport),
        "anthropic": AnthropicProvider(transport=transport),
        "deepseek": DeepSeekProvider(transport=transport),
        "gemini": GeminiProvider(transport=transport),
        LOCAL_PROVIDER: OllamaProvider(transport=transport),
    }
    return ProviderRegistry(providers, local_queue or LocalQueue())
