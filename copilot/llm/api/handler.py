# copilot/llm/api/handler.py
from typing import Any, Optional

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from copilot.core.logger import get_logger
from copilot.llm.api.dto import ErrorResponse, PingRequest, PingResponse
from copilot.llm.entity.chat import ChatMessage, ChatRequest
from copilot.llm.service.errors import ErrorCode, ProviderError
from copilot.llm.service.registry import LOCAL_PROVIDER, ProviderRegistry
from copilot.orchestrator.service.orchestrator import PromptOrchestrator
from pkg.util.redact import redact_secrets

logger = get_logger("ChatHandler")

# HTTP errors carry the upstream status instead of a fixed one.
ERROR_RESPONSES = {
    ErrorCode.AUTH: (status.HTTP_401_UNAUTHORIZED, "Authentication failed"),
    ErrorCode.RATE_LIMIT: (status.HTTP_429_TOO_MANY_REQUESTS, "Rate limited"),
    ErrorCode.CONNECTION: (status.HTTP_502_BAD_GATEWAY, "Connection failed"),
    ErrorCode.API_ERROR: (status.HTTP_502_BAD_GATEWAY, "Provider API error"),
    ErrorCode.HTTP: (None, "HTTP error"),
}


def status_for(error: ProviderError) -> int:
    code, _ = ERROR_RESPONSES[error.code]
    if code is not None:
        return code
    if error.status and 400 <= error.status <= 599:
        return error.status
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def provider_error_response(error: ProviderError) -> JSONResponse:
    _, title = ERROR_RESPONSES[error.code]
    body = ErrorResponse(error=title, details=redact_secrets(error.message), provider=error.provider)
    return JSONResponse(status_code=status_for(error), content=body.model_dump())


def bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


def _first_validation_error(e: ValidationError) -> str:
    err = e.errors()[0]
    location = ".".join(str(part) for part in err.get("loc", ()))
    return f"Invalid request: {location} {err.get('msg', '')}".strip()


class ChatHandler:
    """Validation, provider selection and error mapping for the /v1 endpoints."""

    def __init__(self, registry: ProviderRegistry, orchestrator: PromptOrchestrator):
        self.registry = registry
        self.orchestrator = orchestrator

    async def chat(self, body: Any) -> JSONResponse:
        if not isinstance(body, dict) or not isinstance(body.get("messages"), list):
            return bad_request("Messages array is required")
        try:
            request = ChatRequest.model_validate(body)
        except ValidationError as e:
            return bad_request(_first_validation_error(e))

        provider_name = self.registry.resolve(request.provider, request.model)
        if not provider_name:
            return bad_request(
                "Valid provider is required (openai, anthropic, deepseek, gemini, local-ollama, or auto)"
            )
        if not self.registry.is_local(provider_name) and not request.api_key:
            return bad_request("API key is required")

        logger.info(f"Chat request: {provider_name}/{request.model}, {len(request.messages)} messages")

        try:
            plan = await self.orchestrator.prepare(request)
            response = await self.registry.chat(provider_name, plan.request)
            response = self.orchestrator.finalize(response, plan)
        except ProviderError as e:
            logger.error(f"Chat error for provider {e.provider} [{e.code.value}]: {redact_secrets(e.message)}")
            return provider_error_response(e)
        except Exception as e:
            sanitized = redact_secrets(str(e))
            logger.error(f"Chat error for provider {provider_name}: {sanitized}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=ErrorResponse(error="Internal server error", details=sanitized).model_dump(exclude_none=True),
            )

        return JSONResponse(content=response.model_dump(exclude_none=True))

    async def ping(self, body: Any) -> JSONResponse:
        """Validate a key with a minimal one-token completion."""
        if not isinstance(body, dict):
            return bad_request("Provider is required")
        try:
            ping = PingRequest.model_validate(body)
        except ValidationError as e:
            return bad_request(_first_validation_error(e))

        if not ping.provider:
            return bad_request("Provider is required")
        if not self.registry.is_local(ping.provider) and not ping.api_key:
            return bad_request("API key is required for this provider")

        provider_name = self.registry.resolve(ping.provider, ping.model or "")
        if not provider_name:
            return bad_request("Invalid provider")
        if self.registry.is_local(provider_name):
            return bad_request(f"Use GET /v1/ping with provider={LOCAL_PROVIDER} for Ollama server testing")

        logger.info(f"API key test for {provider_name}")
        test_request = ChatRequest(
            provider=provider_name,
            model=ping.model or "test",
            messages=[ChatMessage(role="user", content="Hello", id="test")],
            api_key=ping.api_key,
            temperature=0.1,
            max_tokens=1,
        )

        try:
            await self.registry.chat(provider_name, test_request)
        except ProviderError as e:
            logger.info(f"API key test failed for {provider_name}: {e.code.value} {redact_secrets(e.message)}")
            if e.code == ErrorCode.AUTH:
                return JSONResponse(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    content=PingResponse(ok=False, message=e.message).model_dump(exclude_none=True),
                )
            if e.code == ErrorCode.RATE_LIMIT:
                return JSONResponse(
                    content=PingResponse(ok=True, message="API key valid (rate limited but functional)").model_dump(exclude_none=True)
                )
            return JSONResponse(
                content=PingResponse(ok=False, message=e.message or f"Test failed for {provider_name}").model_dump(exclude_none=True)
            )
        except Exception as e:
            logger.error(f"Ping error: {redact_secrets(str(e))}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=PingResponse(ok=False, message="Unable to test API key").model_dump(exclude_none=True),
            )

        logger.info(f"API key test successful for {provider_name}")
        return JSONResponse(content=PingResponse(ok=True, message=f"API key valid for {provider_name}").model_dump(exclude_none=True))

    async def probe(self, provider: Optional[str], base_url: Optional[str], api_key: Optional[str]) -> JSONResponse:
        """GET /v1/ping: local reachability or a DeepSeek key probe, outside the chat pipeline."""
        if provider and self.registry.is_local(provider):
            result = await self.registry.get(LOCAL_PROVIDER).ping(base_url)
            return JSONResponse(content=result)

        if provider == "deepseek":
            if not api_key:
                return JSONResponse(content=PingResponse(ok=False, message="API key required").model_dump(exclude_none=True))
            test_request = ChatRequest(
                provider="deepseek",
                model="deepseek-chat",
                messages=[ChatMessage(role="user", content="ping", id="ping")],
                api_key=api_key,
                temperature=0.1,
                max_tokens=5,
            )
            try:
                await self.registry.chat("deepseek", test_request)
            except ProviderError as e:
                message = "Invalid DeepSeek API key" if e.code == ErrorCode.AUTH else "Invalid key or DeepSeek error"
                return JSONResponse(content=PingResponse(ok=False, message=message).model_dump(exclude_none=True))
            return JSONResponse(content=PingResponse(ok=True).model_dump(exclude_none=True))

        return bad_request("DeepSeek and local-ollama providers supported on this endpoint")

    def queue_status(self) -> dict:
        return self.registry.local_queue.status()

    async def metrics(self, base_url: Optional[str]) -> dict:
        return await self.registry.get(LOCAL_PROVIDER).metrics(base_url)
