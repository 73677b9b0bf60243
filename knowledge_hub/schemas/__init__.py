"""Pydantic schemas for API request/response validation."""

from knowledge_hub.schemas.common import ApiResponse, ErrorResponse
from knowledge_hub.schemas.items import (
    CATEGORIES,
    Category,
    QACreate,
    QAEntry,
    QAUpdate,
    ReadingCreate,
    ReadingEntry,
    ReadingKind,
    ReadingUpdate,
)
from knowledge_hub.schemas.summary import LinkSummary, SummarizeRequest
from knowledge_hub.schemas.view import (
    ActionResponse,
    Notice,
    QACard,
    QAForm,
    ReadingEditForm,
    ReadingForm,
    ReadingRow,
    ReorderForm,
    TabStatus,
    ViewResponse,
)

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "CATEGORIES",
    "Category",
    "QACreate",
    "QAEntry",
    "QAUpdate",
    "ReadingCreate",
    "ReadingEntry",
    "ReadingKind",
    "ReadingUpdate",
    "LinkSummary",
    "SummarizeRequest",
    "ActionResponse",
    "Notice",
    "QACard",
    "QAForm",
    "ReadingEditForm",
    "ReadingForm",
    "ReadingRow",
    "ReorderForm",
    "TabStatus",
    "ViewResponse",
]
