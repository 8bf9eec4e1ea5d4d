from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from copilot.core.config import settings
from copilot.core.logger import get_logger
from copilot.llm.api.handler import ChatHandler
from copilot.llm.api.route import llm_router
from copilot.llm.service.registry import ProviderRegistry, build_registry
from copilot.orchestrator.service.orchestrator import PromptOrchestrator
from copilot.search.service.web_search import WebSearchService

# Load .env so os.getenv picks up values from your .env file
load_dotenv()

logger = get_logger("byok-copilot")


def create_app(
    registry: Optional[ProviderRegistry] = None,
    search_service: Optional[WebSearchService] = None,
) -> FastAPI:
    """Build the application. Collaborators may be injected; missing ones are built at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{settings.APP_NAME} starting up ({settings.ENV})...")

        app_registry = registry or build_registry()
        orchestrator = PromptOrchestrator(search_service or WebSearchService())

        # Expose on app.state for dependencies
        app.state.registry = app_registry
        app.state.local_queue = app_registry.local_queue
        app.state.chat_handler = ChatHandler(app_registry, orchestrator)
        logger.info(f"Providers available: {', '.join(app_registry.names())}")

        yield

        logger.info(f"{settings.APP_NAME} shutting down...")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Bring-your-own-key multi-provider chat proxy",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Unknown routes and wrong methods answer with the same {error} body as the handlers."""
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    app.include_router(llm_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/")
    async def root():
        """Root endpoint - simple check that app is running"""
        return {
            "service": settings.APP_NAME,
            "version": "1.0.0",
            "status": "running",
            "health_check": "/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
