"""Reading entry endpoints (REST proxy over Notion).

GET    /api/reading?category=  - list entries, newest first
POST   /api/reading            - create
PUT    /api/reading            - update
DELETE /api/reading?id=        - archive

Routers are thin: call services for mapping and store access.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from knowledge_hub.routes.errors import error_response, store_failure
from knowledge_hub.schemas import ApiResponse, Category, ReadingCreate, ReadingEntry, ReadingUpdate
from knowledge_hub.services import items
from knowledge_hub.stores.notion import NotionError

router = APIRouter()


@router.get("", response_model=ApiResponse[list[ReadingEntry]], response_model_exclude_none=True)
async def list_reading(
    category: Category | None = Query(default=None, description="Topic tab"),
) -> ApiResponse[list[ReadingEntry]] | JSONResponse:
    """List reading entries for a category (all categories when omitted)."""
    try:
        entries = await items.list_reading(category)
    except NotionError as e:
        return store_failure("Failed to fetch reading items", e)
    return ApiResponse[list[ReadingEntry]](data=entries)


@router.post("", response_model=ApiResponse[ReadingEntry], response_model_exclude_none=True)
async def create_reading(body: ReadingCreate) -> ApiResponse[ReadingEntry] | JSONResponse:
    """Create a reading entry; the link defaults to the first URL in the text."""
    try:
        entry = await items.create_reading(body)
    except NotionError as e:
        return store_failure("Failed to create reading item", e)
    return ApiResponse[ReadingEntry](data=entry)


@router.put("", response_model=ApiResponse[None], response_model_exclude_none=True)
async def update_reading(body: ReadingUpdate) -> ApiResponse[None] | JSONResponse:
    try:
        await items.update_reading(body)
    except NotionError as e:
        return store_failure("Failed to update reading item", e)
    return ApiResponse[None](message="Reading item updated successfully")


@router.delete("", response_model=ApiResponse[None], response_model_exclude_none=True)
async def delete_reading(
    id: str = Query(default="", description="Entry id"),
) -> ApiResponse[None] | JSONResponse:
    if not id:
        return error_response(400, "Missing required parameter: id")
    try:
        await items.delete_reading(id)
    except NotionError as e:
        return store_failure("Failed to delete reading item", e)
    return ApiResponse[None](message="Reading item deleted successfully")
