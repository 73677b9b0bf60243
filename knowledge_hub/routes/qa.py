"""QA entry endpoints (REST proxy over Notion).

GET    /api/qa?category=  - list entries, newest first
POST   /api/qa            - create
PUT    /api/qa            - update
DELETE /api/qa?id=        - archive

Routers are thin: call services for mapping and store access.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from knowledge_hub.routes.errors import error_response, store_failure
from knowledge_hub.schemas import ApiResponse, Category, QACreate, QAEntry, QAUpdate
from knowledge_hub.services import items
from knowledge_hub.stores.notion import NotionError

router = APIRouter()


@router.get("", response_model=ApiResponse[list[QAEntry]], response_model_exclude_none=True)
async def list_qa(
    category: Category | None = Query(default=None, description="Topic tab"),
) -> ApiResponse[list[QAEntry]] | JSONResponse:
    """List QA entries for a category (all categories when omitted)."""
    try:
        entries = await items.list_qa(category)
    except NotionError as e:
        return store_failure("Failed to fetch QA items", e)
    return ApiResponse[list[QAEntry]](data=entries)


@router.post("", response_model=ApiResponse[QAEntry], response_model_exclude_none=True)
async def create_qa(body: QACreate) -> ApiResponse[QAEntry] | JSONResponse:
    """Create a QA entry; content over the store limit is truncated."""
    try:
        entry = await items.create_qa(body)
    except NotionError as e:
        return store_failure("Failed to create QA item", e)
    return ApiResponse[QAEntry](data=entry)


@router.put("", response_model=ApiResponse[None], response_model_exclude_none=True)
async def update_qa(body: QAUpdate) -> ApiResponse[None] | JSONResponse:
    try:
        await items.update_qa(body)
    except NotionError as e:
        return store_failure("Failed to update QA item", e)
    return ApiResponse[None](message="QA item updated successfully")


@router.delete("", response_model=ApiResponse[None], response_model_exclude_none=True)
async def delete_qa(
    id: str = Query(default="", description="Entry id"),
) -> ApiResponse[None] | JSONResponse:
    if not id:
        return error_response(400, "Missing required parameter: id")
    try:
        await items.delete_qa(id)
    except NotionError as e:
        return store_failure("Failed to delete QA item", e)
    return ApiResponse[None](message="QA item deleted successfully")
