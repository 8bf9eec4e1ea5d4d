# copilot/llm/service/provider/base_provider.py
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import httpx

from copilot.core.config import settings
from copilot.llm.entity.chat import ChatMessage, ChatRequest, ChatResponse
from copilot.llm.service.errors import ErrorCode, ProviderError


class BaseProvider(ABC):
    """Abstract base provider for all LLM integrations.

    Every adapter exposes a single ``chat(request)`` coroutine and raises only
    ``ProviderError``. Keys arrive with each request, so HTTP clients are built
    per call instead of once at startup.
    """

    name: str = ""
    label: str = ""
    default_temperature: float = 0.7
    default_max_tokens: int = 4000

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url
        self._transport = transport
        self._timeout = timeout if timeout is not None else settings.PROVIDER_TIMEOUT_SECONDS

    @abstractmethod
    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Send the conversation upstream and return the assistant turn."""
        pass

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    def sampling(self, request: ChatRequest) -> Tuple[float, int]:
        """Resolve temperature and max_tokens against this adapter's defaults."""
        temperature = request.temperature if request.temperature is not None else self.default_temperature
        max_tokens = request.max_tokens if request.max_tokens is not None else self.default_max_tokens
        return temperature, max_tokens

    @staticmethod
    def wire_messages(messages: List[ChatMessage]) -> List[Dict[str, str]]:
        return [{"role": m.role, "content": m.content} for m in messages]

    @staticmethod
    def split_system(messages: List[ChatMessage]) -> Tuple[Optional[str], List[ChatMessage]]:
        """Pull system turns out of the list for providers without a system role."""
        system_parts = [m.content for m in messages if m.role == "system"]
        rest = [m for m in messages if m.role != "system"]
        return ("\n\n".join(system_parts) if system_parts else None), rest

    def network_error(self, exc: Exception) -> ProviderError:
        return ProviderError(ErrorCode.HTTP, self.name, f"Network error: {exc}", status=0)

    def error_from_response(self, status: int, reason: str, body_text: str) -> ProviderError:
        """Classify a non-2xx upstream response."""
        if status in (401, 403):
            return ProviderError(ErrorCode.AUTH, self.name, f"Invalid or missing API key for {self.label}", status)
        if status == 429:
            return ProviderError(ErrorCode.RATE_LIMIT, self.name, f"Rate limited by {self.label} API", status)

        message = f"HTTP {status}: {reason}"
        try:
            data = json.loads(body_text)
        except ValueError:
            message += f" - {body_text}"
        else:
            error = data.get("error") if isinstance(data, dict) else None
            if isinstance(error, dict) and error.get("message"):
                message += f" - {error['message']}"
        return ProviderError(ErrorCode.HTTP, self.name, message, status)

    def parse_body(self, status: int, text: str, field: str) -> Dict[str, Any]:
        """Decode a 2xx body and check that ``field`` holds a non-empty list."""
        if not text or not text.strip():
            raise ProviderError(ErrorCode.HTTP, self.name, f"Empty response from {self.label} API", status)
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ProviderError(
                ErrorCode.HTTP, self.name, f"Invalid JSON response from {self.label} API: {exc}", status
            )
        items = data.get(field) if isinstance(data, dict) else None
        if not isinstance(items, list) or not items:
            raise ProviderError(ErrorCode.HTTP, self.name, f"Invalid response structure from {self.label} API", status)
        return data
