"""HTTP client for the knowledge-base REST proxy (/api/qa, /api/reading, /api/summarize).

This is the boundary where JSON from the remote item store becomes typed
entries: every `{success, data}` envelope is checked and parsed here, and any
failure is raised as ItemStoreError naming the operation.
"""

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from knowledge_hub.schemas.items import Category, QAEntry, ReadingEntry, ReadingKind
from knowledge_hub.schemas.summary import LinkSummary

logger = logging.getLogger("uvicorn.error")

_QA_LIST = TypeAdapter(list[QAEntry])
_READING_LIST = TypeAdapter(list[ReadingEntry])


class ItemStoreError(RuntimeError):
    """A request to the item store failed."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message


class ItemStoreClient:
    """Async client for the REST proxy."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8080/api",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            base_url: Proxy root, e.g. "http://localhost:8080/api".
            timeout: Per-request timeout in seconds.
            transport: Optional transport (in-process ASGI app, tests).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _call(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the envelope's `data`."""
        client = await self._get_client()
        try:
            resp = await client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            raise ItemStoreError(operation, f"request failed: {e}") from e

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if not resp.is_success or not isinstance(payload, dict) or not payload.get("success"):
            message = f"HTTP {resp.status_code}"
            if isinstance(payload, dict):
                message = str(payload.get("message") or payload.get("error") or message)
            logger.warning(f"Item store {operation} failed: {message}")
            raise ItemStoreError(operation, message)

        return payload.get("data")

    # ============================================================
    # Availability
    # ============================================================

    async def ping(self, category: Category = Category.STRATEGY) -> None:
        """Single lightweight request used to decide whether the store is reachable."""
        await self._call("ping", "GET", "/qa", params={"category": category.value})

    # ============================================================
    # QA entries
    # ============================================================

    async def list_qa(self, category: Category) -> list[QAEntry]:
        data = await self._call("load QA entries", "GET", "/qa", params={"category": category.value})
        try:
            return _QA_LIST.validate_python(data)
        except ValidationError as e:
            raise ItemStoreError("load QA entries", f"malformed payload: {e}") from e

    async def create_qa(
        self,
        title: str,
        content: str,
        category: Category,
        tags: list[str] | None = None,
    ) -> QAEntry:
        body: dict[str, Any] = {"title": title, "content": content, "category": category.value}
        if tags:
            body["tags"] = tags
        data = await self._call("create QA entry", "POST", "/qa", json=body)
        try:
            return QAEntry.model_validate(data)
        except ValidationError as e:
            raise ItemStoreError("create QA entry", f"malformed payload: {e}") from e

    async def update_qa(
        self,
        item_id: str,
        title: str,
        content: str,
        category: Category,
        tags: list[str] | None = None,
    ) -> None:
        body: dict[str, Any] = {
            "id": item_id,
            "title": title,
            "content": content,
            "category": category.value,
        }
        if tags is not None:
            body["tags"] = tags
        await self._call("update QA entry", "PUT", "/qa", json=body)

    async def delete_qa(self, item_id: str) -> None:
        await self._call("delete QA entry", "DELETE", "/qa", params={"id": item_id})

    # ============================================================
    # Reading entries
    # ============================================================

    async def list_reading(self, category: Category) -> list[ReadingEntry]:
        data = await self._call(
            "load reading entries", "GET", "/reading", params={"category": category.value}
        )
        try:
            return _READING_LIST.validate_python(data)
        except ValidationError as e:
            raise ItemStoreError("load reading entries", f"malformed payload: {e}") from e

    async def create_reading(
        self,
        text: str,
        kind: ReadingKind,
        category: Category,
        link: str | None = None,
        title: str | None = None,
    ) -> ReadingEntry:
        body: dict[str, Any] = {"text": text, "kind": kind.value, "category": category.value}
        if link:
            body["link"] = link
        if title:
            body["title"] = title
        data = await self._call("create reading entry", "POST", "/reading", json=body)
        try:
            return ReadingEntry.model_validate(data)
        except ValidationError as e:
            raise ItemStoreError("create reading entry", f"malformed payload: {e}") from e

    async def update_reading(
        self,
        item_id: str,
        text: str,
        kind: ReadingKind,
        category: Category,
        link: str | None = None,
    ) -> None:
        body: dict[str, Any] = {
            "id": item_id,
            "text": text,
            "kind": kind.value,
            "category": category.value,
        }
        if link:
            body["link"] = link
        await self._call("update reading entry", "PUT", "/reading", json=body)

    async def delete_reading(self, item_id: str) -> None:
        await self._call("delete reading entry", "DELETE", "/reading", params={"id": item_id})

    # ============================================================
    # Link summaries
    # ============================================================

    async def summarize(self, url: str, category: Category) -> LinkSummary:
        data = await self._call(
            "summarize link", "POST", "/summarize", json={"url": url, "category": category.value}
        )
        try:
            return LinkSummary.model_validate(data)
        except ValidationError as e:
            raise ItemStoreError("summarize link", f"malformed payload: {e}") from e
