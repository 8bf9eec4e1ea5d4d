# copilot/llm/service/provider/openai_provider.py
from typing import Any, Dict, Optional

import openai
from openai import AsyncOpenAI

from copilot.core.config import settings
from copilot.core.logger import get_logger
from copilot.llm.entity.chat import ChatRequest, ChatResponse, Usage
from copilot.llm.service.errors import ErrorCode, ProviderError
from .base_provider import BaseProvider

logger = get_logger("OpenAIProvider")


def _first_choice_text(data: Dict[str, Any]) -> Optional[str]:
    choice = data["choices"][0]
    if not isinstance(choice, dict):
        return None
    message = choice.get("message") or {}
    return message.get("content") if isinstance(message, dict) else None


def _usage(data: Dict[str, Any]) -> Optional[Usage]:
    usage = data.get("usage")
    return Usage.model_validate(usage) if isinstance(usage, dict) else None


class OpenAIProvider(BaseProvider):
    """Handles OpenAI and OpenAI-compatible chat completion endpoints."""

    name = "openai"
    label = "OpenAI"

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        super().__init__(base_url=base_url or settings.OPENAI_BASE_URL, **kwargs)

    def build_payload(self, request: ChatRequest) -> Dict[str, Any]:
        temperature, max_tokens = self.sampling(request)
        return {
            "model": request.model,
            "messages": self.wire_messages(request.messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": False,
        }

    async def complete(self, api_key: str, payload: Dict[str, Any]) -> ChatResponse:
        """One HTTP round trip against ``/chat/completions``; no retries."""
        async with self.http_client() as http_client:
            try:
                client = AsyncOpenAI(api_key=api_key, base_url=self.base_url, http_client=http_client, max_retries=0)
                raw = await client.chat.completions.with_raw_response.create(**payload)
            except openai.APIConnectionError as e:
                logger.warning(f"{self.label} network error: {e}")
                raise self.network_error(e)
            except openai.APIStatusError as e:
                response = e.response
                raise self.error_from_response(response.status_code, response.reason_phrase, response.text)
            except openai.OpenAIError as e:
                raise ProviderError(ErrorCode.HTTP, self.name, f"{self.label} client error: {e}")

            response = raw.http_response
            data = self.parse_body(response.status_code, response.text, "choices")

        return ChatResponse.from_text(_first_choice_text(data), _usage(data))

    async def chat(self, request: ChatRequest) -> ChatResponse:
        return await self.complete(request.api_key or "", self.build_payload(request))
