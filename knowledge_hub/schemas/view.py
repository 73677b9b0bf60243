"""Schemas for the UI endpoints (/v1/ui/...)."""

from typing import Literal

from pydantic import BaseModel, Field

from knowledge_hub.schemas.items import Category, QAEntry, ReadingEntry


class Notice(BaseModel):
    """A toast shown to the user after an action."""

    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class TabStatus(BaseModel):
    """Per-tab loading indicator data."""

    category: Category
    loading: bool
    cached: bool
    stale: bool
    qa_count: int = Field(alias="qaCount", ge=0)

    model_config = {"populate_by_name": True}


class QACard(BaseModel):
    """A QA entry as displayed (rendered body)."""

    entry: QAEntry
    html: str
    expanded: bool
    source_category: Category = Field(alias="sourceCategory")

    model_config = {"populate_by_name": True}


class ReadingRow(BaseModel):
    """A reading entry as displayed."""

    entry: ReadingEntry
    html: str
    source_category: Category = Field(alias="sourceCategory")

    model_config = {"populate_by_name": True}


class ViewResponse(BaseModel):
    """Everything the page needs to draw itself."""

    active_tab: Category = Field(alias="activeTab")
    search_query: str = Field(alias="searchQuery")
    remote_available: bool = Field(alias="remoteAvailable")
    loading: bool
    tabs: list[TabStatus]
    qa: list[QACard]
    required: list[ReadingRow]
    optional: list[ReadingRow]
    notices: list[Notice] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class ActionResponse(BaseModel):
    """Result of a UI action plus the refreshed view."""

    ok: bool
    view: ViewResponse


class QAForm(BaseModel):
    title: str
    content: str
    tags: list[str] | None = None


class ReadingForm(BaseModel):
    text: str
    kind: Literal["required", "optional"] = "required"


class ReadingEditForm(BaseModel):
    text: str
    kind: Literal["required", "optional"] | None = None


class ReorderForm(BaseModel):
    moved_id: str = Field(alias="movedId", min_length=1)
    target_id: str = Field(alias="targetId", min_length=1)

    model_config = {"populate_by_name": True}
