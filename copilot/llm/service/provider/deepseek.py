# copilot/llm/service/provider/deepseek.py
import asyncio
import json
import re
from typing import Any, Dict, Optional

from copilot.core.config import settings
from copilot.core.logger import get_logger
from copilot.llm.entity.chat import ChatRequest, ChatResponse
from copilot.llm.service.errors import ErrorCode, ProviderError
from .openai_provider import OpenAIProvider

logger = get_logger("DeepSeekProvider")

_KEY_CHARSET = re.compile(r"^[A-Za-z0-9_-]+$")


class DeepSeekProvider(OpenAIProvider):
    """Handles DeepSeek through its OpenAI-compatible API.

    A 429 is retried exactly once after a fixed delay; every other failure is final.
    """

    name = "deepseek"
    label = "DeepSeek"

    def __init__(self, base_url: Optional[str] = None, retry_delay_ms: Optional[int] = None, **kwargs):
        base = (base_url or settings.DEEPSEEK_BASE_URL).rstrip("/")
        super().__init__(base_url=f"{base}/v1", **kwargs)
        self.retry_delay_ms = settings.DEEPSEEK_RETRY_DELAY_MS if retry_delay_ms is None else retry_delay_ms

    def check_key(self, api_key: Optional[str]) -> str:
        """Reject keys that are obviously masked or truncated before spending a request."""
        if not api_key or not api_key.strip():
            raise ProviderError(ErrorCode.AUTH, self.name, "DeepSeek API key is required")

        key = api_key.strip()
        if len(key) < 20 or "*" in key or "..." in key or key.endswith("."):
            raise ProviderError(
                ErrorCode.AUTH,
                self.name,
                "DeepSeek API key appears to be truncated, masked, or incomplete. "
                "Please provide the complete key from platform.deepseek.com/api_keys",
            )
        if not _KEY_CHARSET.match(key):
            raise ProviderError(
                ErrorCode.AUTH,
                self.name,
                "DeepSeek API key contains invalid characters. Please verify you copied the complete key correctly.",
            )
        return key

    def error_from_response(self, status: int, reason: str, body_text: str) -> ProviderError:
        try:
            data = json.loads(body_text)
        except ValueError:
            data = None
        error = data.get("error") if isinstance(data, dict) else None
        error = error if isinstance(error, dict) else {}
        error_message = error.get("message") or ""

        if error.get("type") == "authentication_error" or "api key" in error_message or status in (401, 403):
            hint = error_message or "Invalid or missing API key"
            return ProviderError(ErrorCode.AUTH, self.name, f"DeepSeek API Error: {hint}", status)
        if status == 429:
            return ProviderError(ErrorCode.RATE_LIMIT, self.name, "Rate limited by DeepSeek API", status)

        if error_message:
            message = f"DeepSeek API Error: {error_message}"
        else:
            message = f"HTTP {status}: {reason}"
            if body_text:
                message += f" - {body_text}"
        return ProviderError(ErrorCode.HTTP, self.name, message, status)

    def parse_body(self, status: int, text: str, field: str) -> Dict[str, Any]:
        if text and text.strip().startswith("<"):
            raise ProviderError(
                ErrorCode.HTTP,
                self.name,
                "DeepSeek API returned HTML instead of JSON - possible server error or maintenance",
                status,
            )
        return super().parse_body(status, text, field)

    async def chat(self, request: ChatRequest) -> ChatResponse:
        key = self.check_key(request.api_key)
        payload = self.build_payload(request)
        logger.info(f"Making request to {self.base_url}/chat/completions with model {request.model}")

        try:
            return await self.complete(key, payload)
        except ProviderError as e:
            if e.code != ErrorCode.RATE_LIMIT:
                raise
            logger.warning(f"Rate limited, retrying once in {self.retry_delay_ms}ms")

        await asyncio.sleep(self.retry_delay_ms / 1000)
        return await self.complete(key, payload)
