# copilot/llm/api/route.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse

from copilot.core.logger import get_logger
from copilot.llm.api.dto import QueueStatusResponse
from copilot.llm.api.handler import ChatHandler, bad_request

llm_router = APIRouter(prefix="/v1", tags=["LLM"])
logger = get_logger("LLMRouter")


def get_chat_handler(request: Request) -> ChatHandler:
    """Dependency to get the chat handler from app.state."""
    return request.app.state.chat_handler


async def read_json(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None


@llm_router.post("/chat", response_class=JSONResponse)
async def chat_api(request: Request, handler: ChatHandler = Depends(get_chat_handler)):
    """Non-streaming chat completion through the selected provider."""
    body = await read_json(request)
    if body is None:
        return bad_request("Messages array is required")
    return await handler.chat(body)


@llm_router.post("/ping", response_class=JSONResponse)
async def ping_api(request: Request, handler: ChatHandler = Depends(get_chat_handler)):
    """Validate an API key with a minimal completion."""
    body = await read_json(request)
    if body is None:
        return bad_request("Provider is required")
    return await handler.ping(body)


@llm_router.get("/ping", response_class=JSONResponse)
async def probe_api(
    provider: Optional[str] = Query(None),
    base_url: Optional[str] = Query(None, alias="baseURL"),
    api_key: Optional[str] = Query(None),
    authorization: Optional[str] = Header(None),
    handler: ChatHandler = Depends(get_chat_handler),
):
    """Local backend reachability, or a DeepSeek key probe."""
    if not api_key and authorization and authorization.lower().startswith("bearer "):
        api_key = authorization[7:].strip()
    return await handler.probe(provider, base_url, api_key)


@llm_router.get("/queue/status", response_model=QueueStatusResponse)
async def queue_status(handler: ChatHandler = Depends(get_chat_handler)):
    return handler.queue_status()


@llm_router.get("/metrics")
async def metrics(
    base_url: Optional[str] = Query(None, alias="baseURL"),
    handler: ChatHandler = Depends(get_chat_handler),
):
    """Host load and local model status."""
    return await handler.metrics(base_url)
