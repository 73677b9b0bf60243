"""FastAPI application entry point.

Knowledge Hub - personal knowledge base backed by Notion.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from knowledge_hub.routes import api_router
from knowledge_hub.routes.errors import error_response
from knowledge_hub.services.item_client import ItemStoreClient
from knowledge_hub.services.workspace import Workspace
from knowledge_hub.settings import get_settings
from knowledge_hub.stores.notion import close_notion, init_notion

logger = logging.getLogger("uvicorn.error")

IN_PROCESS_BASE_URL = "http://knowledge-hub/api"


def build_workspace(app: FastAPI) -> Workspace:
    """Workspace talking to ITEM_STORE_URL, or to this app in-process when unset."""
    settings = get_settings()
    if settings.item_store_url:
        store = ItemStoreClient(settings.item_store_url, timeout=settings.item_store_timeout)
    else:
        store = ItemStoreClient(
            IN_PROCESS_BASE_URL,
            timeout=settings.item_store_timeout,
            # unhandled route errors arrive as the 500 envelope
            transport=httpx.ASGITransport(app=app, raise_app_exceptions=False),
        )
    return Workspace(store, stale_after=settings.cache_stale_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    await init_notion()
    app.state.workspace = build_workspace(app)

    yield

    # Shutdown
    await app.state.workspace.close()
    await close_notion()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Personal knowledge base: QA entries and reading lists per topic",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Missing/invalid fields are reported as 400, not FastAPI's default 422
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = sorted(
            {str(err["loc"][-1]) for err in exc.errors() if err.get("loc")}
        )
        error = "Missing or invalid fields: " + ", ".join(fields) if fields else "Invalid request"
        return error_response(400, error, "Request validation failed")

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_response(
            500,
            "Internal server error",
            str(exc) if settings.debug else "Unknown error",
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "knowledge_hub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
