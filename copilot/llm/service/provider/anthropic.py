# copilot/llm/service/provider/anthropic.py
from typing import Any, Dict, Optional

import anthropic
from anthropic import AsyncAnthropic

from copilot.core.config import settings
from copilot.core.logger import get_logger
from copilot.llm.entity.chat import ChatRequest, ChatResponse, Usage
from copilot.llm.service.errors import ErrorCode, ProviderError
from .base_provider import BaseProvider

logger = get_logger("AnthropicProvider")


def _usage(data: Dict[str, Any]) -> Optional[Usage]:
    usage = data.get("usage")
    if not isinstance(usage, dict):
        return None
    prompt = usage.get("input_tokens") or 0
    completion = usage.get("output_tokens") or 0
    return Usage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion)


class AnthropicProvider(BaseProvider):
    """Handles Claude (Anthropic) models. System turns travel in the top-level ``system`` field."""

    name = "anthropic"
    label = "Anthropic"

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        super().__init__(base_url=base_url or settings.ANTHROPIC_BASE_URL, **kwargs)

    def build_payload(self, request: ChatRequest) -> Dict[str, Any]:
        temperature, max_tokens = self.sampling(request)
        system, conversation = self.split_system(request.messages)
        payload: Dict[str, Any] = {
            "model": request.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": self.wire_messages(conversation),
        }
        if system:
            payload["system"] = system
        return payload

    async def chat(self, request: ChatRequest) -> ChatResponse:
        payload = self.build_payload(request)
        async with self.http_client() as http_client:
            try:
                client = AsyncAnthropic(
                    api_key=request.api_key or "",
                    base_url=self.base_url,
                    http_client=http_client,
                    max_retries=0,
                )
                raw = await client.messages.with_raw_response.create(**payload)
            except anthropic.APIConnectionError as e:
                logger.warning(f"Anthropic network error: {e}")
                raise self.network_error(e)
            except anthropic.APIStatusError as e:
                response = e.response
                raise self.error_from_response(response.status_code, response.reason_phrase, response.text)
            except anthropic.AnthropicError as e:
                raise ProviderError(ErrorCode.HTTP, self.name, f"Anthropic client error: {e}")

            response = raw.http_response
            data = self.parse_body(response.status_code, response.text, "content")

        block = data["content"][0]
        text = block.get("text") if isinstance(block, dict) else None
        return ChatResponse.from_text(text, _usage(data))
