import os
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global configuration for environment variables."""

    APP_NAME: str = "BYOK Research Copilot"
    ENV: str = os.getenv("ENV", "development")

    # Server config
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", 5174))
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Provider endpoints (keys are never configured here, callers bring their own)
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    ANTHROPIC_BASE_URL: str = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
    DEEPSEEK_BASE_URL: str = os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com")
    GEMINI_BASE_URL: str = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")
    OLLAMA_BASE_URL: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    WEB_SEARCH_URL: str = os.getenv("WEB_SEARCH_URL", "https://api.duckduckgo.com/")

    # None keeps upstream calls unbounded; there is no agreed default yet.
    PROVIDER_TIMEOUT_SECONDS: Optional[float] = None
    DEEPSEEK_RETRY_DELAY_MS: int = int(os.getenv("DEEPSEEK_RETRY_DELAY_MS", "1000"))

    # Debug
    DEBUG: bool = os.getenv("DEBUG", "False").lower() in ("1", "true")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")


settings = Settings()
