"""Schemas for the link summarizer (/api/summarize)."""

from pydantic import BaseModel, ConfigDict, Field

from knowledge_hub.schemas.items import Category


class SummarizeRequest(BaseModel):
    """Body for POST /api/summarize."""

    url: str = Field(min_length=1)
    category: Category | None = None


class LinkSummary(BaseModel):
    """Title + short summary scraped from a web page."""

    title: str
    summary: str
    original_url: str = Field(alias="originalUrl")

    model_config = ConfigDict(populate_by_name=True)
