# copilot/llm/entity/chat.py
"""
Request-scoped chat models shared by the adapters, the orchestrator and the API layer.
Nothing here is persisted server-side; the browser client owns conversation storage.
"""

import time
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

NO_RESPONSE_SENTINEL = "No response generated"

ConfidenceLevel = Literal["high", "medium", "low"]


def now_ms() -> int:
    return int(time.time() * 1000)


class ChatMessage(BaseModel):
    """A single conversation turn. Immutable once created."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    role: Literal["system", "user", "assistant"]
    content: str
    timestamp: int = Field(default_factory=now_ms)
    id: Optional[str] = None


class ChatRequest(BaseModel):
    """Inbound chat call. Temperature/max_tokens left as None pick up the adapter defaults."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    messages: List[ChatMessage]
    provider: Optional[str] = None
    model: str = ""
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    api_key: Optional[str] = None
    web_search: bool = False
    show_reasoning: bool = False
    orchestrate: bool = False

    # Local inference only
    base_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("base_url", "baseURL"))
    num_ctx: Optional[int] = Field(default=None, gt=0)


class Usage(BaseModel):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class WebSearchResult(BaseModel):
    title: str
    url: str
    snippet: str
    source: str
    publishDate: Optional[str] = None


class ReportCardItem(BaseModel):
    category: Literal["correctness", "completeness", "evidence", "safety", "clarity", "actionability"]
    status: Literal["pass", "warning"]
    note: Optional[str] = None


class ChatResponse(BaseModel):
    """Response envelope. Optional extras are dropped from the JSON when unset."""
    message: ChatMessage
    usage: Optional[Usage] = None
    webSearchResults: Optional[List[WebSearchResult]] = None
    reasoning: Optional[str] = None
    assumptions: Optional[List[str]] = None
    confidence: Optional[ConfidenceLevel] = None
    followUps: Optional[List[str]] = None
    reportCard: Optional[List[ReportCardItem]] = None

    @classmethod
    def from_text(cls, text: Optional[str], usage: Optional[Usage] = None) -> "ChatResponse":
        return cls(
            message=ChatMessage(role="assistant", content=text or NO_RESPONSE_SENTINEL),
            usage=usage,
        )
