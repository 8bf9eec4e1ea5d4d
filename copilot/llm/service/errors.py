# copilot/llm/service/errors.py
from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    AUTH = "AUTH"
    RATE_LIMIT = "RATE_LIMIT"
    HTTP = "HTTP"
    CONNECTION = "CONNECTION"
    API_ERROR = "API_ERROR"


class ProviderError(Exception):
    """Classified provider failure. Adapters raise nothing else."""

    def __init__(self, code: ErrorCode, provider: str, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.provider = provider
        self.message = message
        self.status = status

    def __repr__(self):
        return f"<ProviderError {self.code.value} provider={self.provider} status={self.status}>"
