# copilot/llm/api/dto.py
from pydantic import BaseModel
from typing import Optional


class PingRequest(BaseModel):
    provider: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None


class PingResponse(BaseModel):
    ok: bool
    message: Optional[str] = None
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
    provider: Optional[str] = None


class QueueStatusResponse(BaseModel):
    queueSize: int
    processing: bool
