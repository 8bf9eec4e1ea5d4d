import httpx
from typing import Any, Dict, List, Optional

from copilot.core.config import settings
from copilot.core.logger import get_logger
from copilot.llm.entity.chat import ChatMessage, ChatRequest, ChatResponse, Usage
from .base_provider import BaseProvider

DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"


def to_gemini_contents(messages: List[ChatMessage], system: Optional[str]) -> List[Dict[str, Any]]:
    """Gemini has no system role: the system text is folded into the first turn."""
    contents = [
        {"role": "model" if m.role == "assistant" else "user", "parts": [{"text": m.content}]}
        for m in messages
    ]
    if system and contents:
        first = contents[0]["parts"][0]
        first["text"] = f"{system}\n\n{first['text']}"
    return contents


class GeminiProvider(BaseProvider):
    """Handles Google Gemini models."""

    name = "gemini"
    label = "Gemini"

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        super().__init__(base_url=(base_url or settings.GEMINI_BASE_URL).rstrip("/"), **kwargs)
        self._logger = get_logger("GeminiProvider")

    def build_payload(self, request: ChatRequest) -> Dict[str, Any]:
        temperature, max_tokens = self.sampling(request)
        system, conversation = self.split_system(request.messages)
        return {
            "contents": to_gemini_contents(conversation, system),
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_tokens),
            },
        }

    async def chat(self, request: ChatRequest) -> ChatResponse:
        model = request.model or DEFAULT_GEMINI_MODEL
        url = f"{self.base_url}/v1beta/models/{model}:generateContent"
        payload = self.build_payload(request)

        async with self.http_client() as client:
            try:
                res = await client.post(url, params={"key": request.api_key or ""}, json=payload)
            except httpx.RequestError as e:
                # the URL carries the key, so only the exception type and text are logged
                self._logger.warning(f"Gemini network error: {type(e).__name__}: {e}")
                raise self.network_error(e)

        if not res.is_success:
            raise self.error_from_response(res.status_code, res.reason_phrase, res.text)

        data = self.parse_body(res.status_code, res.text, "candidates")
        candidate = data["candidates"][0]
        content = candidate.get("content") if isinstance(candidate, dict) else None
        parts = content.get("parts", []) if isinstance(content, dict) else []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))

        meta = data.get("usageMetadata")
        usage = None
        if isinstance(meta, dict):
            usage = Usage(
                prompt_tokens=meta.get("promptTokenCount"),
                completion_tokens=meta.get("candidatesTokenCount"),
                total_tokens=meta.get("totalTokenCount"),
            )
        return ChatResponse.from_text(text, usage)
