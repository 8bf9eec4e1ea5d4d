# copilot/llm/service/provider/ollama.py
import json
import os
import re
import sys
from typing import Any, Dict, Optional

import httpx

from copilot.core.config import settings
from copilot.core.logger import get_logger
from copilot.llm.entity.chat import ChatRequest, ChatResponse, Usage
from copilot.llm.service.errors import ErrorCode, ProviderError
from .base_provider import BaseProvider

try:
    import resource
except ImportError:  # Windows
    resource = None

logger = get_logger("OllamaProvider")

# Hard ceilings for the shared local machine; requests may lower them, never raise them.
MAX_NUM_CTX = 4096
MAX_NUM_PREDICT = 1024
DEFAULT_NUM_CTX = 2048
PING_TIMEOUT_SECONDS = 5.0


def normalize_base_url(base_url: Optional[str]) -> str:
    value = (base_url or settings.OLLAMA_BASE_URL).strip().rstrip("/")
    if not re.match(r"^https?://", value, re.IGNORECASE):
        raise ValueError(f"Invalid baseURL: {value}")
    return value


def build_options(temperature: float, max_tokens: int, num_ctx: Optional[int]) -> Dict[str, Any]:
    return {
        "temperature": temperature,
        "num_ctx": min(num_ctx or DEFAULT_NUM_CTX, MAX_NUM_CTX),
        "num_predict": min(max_tokens, MAX_NUM_PREDICT),
        "top_p": 0.9,
        "top_k": 40,
        "num_thread": 4,
        "num_batch": 256,
        "repeat_penalty": 1.1,
        "use_mmap": True,
        "use_mlock": False,
        "num_gpu": 1,
        "low_vram": True,
    }


def process_rss() -> Optional[int]:
    """Resident set size of this process in bytes.

    Current RSS from /proc where it exists, otherwise the peak from getrusage
    (KiB on Linux, bytes on macOS). None when neither is available.
    """
    try:
        with open("/proc/self/statm") as f:
            return int(f.read().split()[1]) * os.sysconf("SC_PAGE_SIZE")
    except (OSError, ValueError, IndexError, AttributeError):
        pass
    if resource is None:
        return None
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    return peak if sys.platform == "darwin" else peak * 1024


def host_metrics() -> Dict[str, Any]:
    """Coarse host load and memory figures; fields are None where the platform lacks them."""
    try:
        load1, load5, load15 = os.getloadavg()
    except (AttributeError, OSError):
        load1 = load5 = load15 = None
    try:
        page = os.sysconf("SC_PAGE_SIZE")
        total = os.sysconf("SC_PHYS_PAGES") * page
        free = os.sysconf("SC_AVPHYS_PAGES") * page
    except (AttributeError, ValueError, OSError):
        total = free = None
    return {
        "cpus": os.cpu_count() or 0,
        "load1": load1,
        "load5": load5,
        "load15": load15,
        "total": total,
        "free": free,
        "rss": process_rss(),
    }


class OllamaProvider(BaseProvider):
    """Handles Ollama (local models) interaction.

    Calls must be dispatched through the LocalQueue by the registry; this class
    performs exactly one HTTP request per ``chat``.
    """

    name = "local-ollama"
    label = "Local (Ollama)"
    default_temperature = 0.2
    default_max_tokens = 512

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        super().__init__(base_url=base_url or settings.OLLAMA_BASE_URL, **kwargs)

    def resolve_base_url(self, request: ChatRequest) -> str:
        try:
            return normalize_base_url(request.base_url or self.base_url)
        except ValueError as e:
            raise ProviderError(ErrorCode.API_ERROR, self.name, str(e))

    def build_payload(self, request: ChatRequest) -> Dict[str, Any]:
        temperature, max_tokens = self.sampling(request)
        return {
            "model": request.model,
            "messages": self.wire_messages(request.messages),
            "options": build_options(temperature, max_tokens, request.num_ctx),
            "stream": False,
        }

    async def chat(self, request: ChatRequest) -> ChatResponse:
        base_url = self.resolve_base_url(request)
        payload = self.build_payload(request)

        async with self.http_client() as client:
            try:
                res = await client.post(f"{base_url}/api/chat", json=payload)
            except httpx.RequestError as e:
                logger.warning(f"Ollama unreachable at {base_url}: {e}")
                raise ProviderError(
                    ErrorCode.CONNECTION,
                    self.name,
                    f"Ollama not reachable at {base_url}. Make sure Ollama is running with 'ollama serve'.",
                )

        if not res.is_success:
            raise ProviderError(
                ErrorCode.API_ERROR, self.name, f"Ollama HTTP {res.status_code}: {res.text[:240]}", res.status_code
            )

        try:
            data = json.loads(res.text)
        except ValueError as e:
            raise ProviderError(ErrorCode.API_ERROR, self.name, f"Invalid JSON response from Ollama: {e}")
        if not isinstance(data, dict):
            raise ProviderError(ErrorCode.API_ERROR, self.name, "Invalid response structure from Ollama")

        message = data.get("message")
        text = message.get("content") if isinstance(message, dict) else None

        usage = None
        if "prompt_eval_count" in data or "eval_count" in data:
            prompt = data.get("prompt_eval_count") or 0
            completion = data.get("eval_count") or 0
            usage = Usage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion)
        return ChatResponse.from_text(text, usage)

    async def ping(self, base_url: Optional[str] = None) -> Dict[str, Any]:
        """Out-of-band reachability probe against ``/api/tags``. Never raises."""
        try:
            url = f"{normalize_base_url(base_url or self.base_url)}/api/tags"
            async with httpx.AsyncClient(transport=self._transport, timeout=PING_TIMEOUT_SECONDS) as client:
                res = await client.get(url)
        except (ValueError, httpx.HTTPError) as e:
            return {"ok": False, "error": str(e)}
        if not res.is_success:
            return {"ok": False, "error": f"HTTP {res.status_code}"}
        return {"ok": True}

    async def metrics(self, base_url: Optional[str] = None) -> Dict[str, Any]:
        """Host figures plus the running (``/api/ps``) and installed (``/api/tags``) models."""
        try:
            root = normalize_base_url(base_url or self.base_url)
            async with httpx.AsyncClient(transport=self._transport, timeout=PING_TIMEOUT_SECONDS) as client:
                ps = await client.get(f"{root}/api/ps")
                tags = await client.get(f"{root}/api/tags")
            ollama = {
                "ps": ps.json() if ps.is_success else None,
                "tags": tags.json() if tags.is_success else None,
                "reachable": True,
            }
        except (ValueError, httpx.HTTPError) as e:
            ollama = {"reachable": False, "error": str(e)}
        return {"host": host_metrics(), "ollama": ollama}
