"""API routes."""

from fastapi import APIRouter

from knowledge_hub.routes import qa, reading, summarize, ui

api_router = APIRouter()

# REST proxy over Notion
api_router.include_router(qa.router, prefix="/api/qa", tags=["qa"])
api_router.include_router(reading.router, prefix="/api/reading", tags=["reading"])
api_router.include_router(summarize.router, prefix="/api/summarize", tags=["summarize"])

# UI endpoints (workspace view + actions, HTML page)
api_router.include_router(ui.router, tags=["ui"])
