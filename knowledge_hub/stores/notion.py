"""Notion REST store (the remote document database).

Handles:
- Database queries with cursor pagination
- Page creation, property updates, archival

No mapping between Notion pages and entries here - that belongs in services.
"""

import logging
from typing import Any

import httpx

from knowledge_hub.settings import get_settings

logger = logging.getLogger("uvicorn.error")

# Notion caps page_size at 100
QUERY_PAGE_SIZE = 100

# HTTP client (initialized on startup)
_client: httpx.AsyncClient | None = None


class NotionError(RuntimeError):
    """Notion API call failed (transport error or non-2xx response)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotionNotConfigured(NotionError):
    """API key or database id is missing."""


async def init_notion() -> None:
    """Initialize the Notion HTTP client."""
    global _client
    settings = get_settings()
    _client = httpx.AsyncClient(
        base_url=settings.notion_base_url,
        timeout=settings.notion_timeout,
        headers={
            "Authorization": f"Bearer {settings.notion_api_key}",
            "Notion-Version": settings.notion_version,
            "Content-Type": "application/json",
        },
    )
    if settings.notion_api_key and settings.notion_database_id:
        logger.info("Notion client ready")
    else:
        logger.warning("Notion not configured (NOTION_API_KEY / NOTION_DATABASE_ID missing)")


async def close_notion() -> None:
    """Close the Notion HTTP client."""
    global _client
    if _client:
        await _client.aclose()
        _client = None


def _get_client() -> httpx.AsyncClient:
    """Get Notion client instance."""
    if _client is None:
        raise RuntimeError("Notion client not initialized. Call init_notion() first.")
    if not get_settings().notion_api_key:
        raise NotionNotConfigured("NOTION_API_KEY is not set")
    return _client


async def _request(method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
    client = _get_client()
    try:
        resp = await client.request(method, path, json=json)
    except httpx.HTTPError as e:
        raise NotionError(f"Notion request failed: {e}") from e

    if resp.status_code >= 400:
        message = resp.text[:200]
        try:
            message = resp.json().get("message", message)
        except ValueError:
            pass
        logger.error(f"Notion API error: {method} {path} -> {resp.status_code} - {message}")
        raise NotionError(message, status_code=resp.status_code)

    try:
        data = resp.json()
    except ValueError as e:
        logger.error(f"Notion API returned non-JSON: {method} {path} -> {resp.status_code}")
        raise NotionError("Unexpected non-JSON response from Notion", status_code=resp.status_code) from e
    if not isinstance(data, dict):
        raise NotionError("Unexpected response from Notion")
    return data


# ============================================================
# Database operations
# ============================================================


async def query_database(
    database_id: str,
    filter: dict[str, Any] | None = None,
    sorts: list[dict[str, Any]] | None = None,
) -> list[dict[str, Any]]:
    """Query a database and return every matching page.

    Args:
        database_id: Notion database id.
        filter: Optional Notion filter object.
        sorts: Optional Notion sort list.

    Returns:
        Page objects across all result pages, in Notion's order.
    """
    if not database_id:
        raise NotionNotConfigured("NOTION_DATABASE_ID is not set")

    body: dict[str, Any] = {"page_size": QUERY_PAGE_SIZE}
    if filter:
        body["filter"] = filter
    if sorts:
        body["sorts"] = sorts

    pages: list[dict[str, Any]] = []
    while True:
        data = await _request("POST", f"/databases/{database_id}/query", json=body)
        pages.extend(data.get("results") or [])
        cursor = data.get("next_cursor")
        if not data.get("has_more") or not cursor:
            break
        body["start_cursor"] = cursor
    return pages


# ============================================================
# Page operations
# ============================================================


async def create_page(database_id: str, properties: dict[str, Any]) -> dict[str, Any]:
    """Create a page (row) in a database.

    Returns:
        The created page object (carries the assigned `id`).
    """
    if not database_id:
        raise NotionNotConfigured("NOTION_DATABASE_ID is not set")
    return await _request(
        "POST",
        "/pages",
        json={"parent": {"database_id": database_id}, "properties": properties},
    )


async def update_page(page_id: str, properties: dict[str, Any]) -> dict[str, Any]:
    """Update page properties."""
    return await _request("PATCH", f"/pages/{page_id}", json={"properties": properties})


async def archive_page(page_id: str) -> dict[str, Any]:
    """Archive (soft-delete) a page.

    Notion rejects edits to a page that is already archived, so archiving
    twice raises NotionError.
    """
    return await _request("PATCH", f"/pages/{page_id}", json={"archived": True})
