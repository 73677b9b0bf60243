"""Schemas for knowledge entries (QA and reading) and their request bodies."""

from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Category(str, Enum):
    """Topic tab an entry belongs to."""

    STRATEGY = "strategy"
    PRODUCT = "product"
    TECHNOLOGY = "technology"


CATEGORIES: tuple[Category, ...] = (Category.STRATEGY, Category.PRODUCT, Category.TECHNOLOGY)


class ReadingKind(str, Enum):
    """Which reading list an entry sits on."""

    REQUIRED = "required"
    OPTIONAL = "optional"


class QAEntry(BaseModel):
    """A title + body knowledge item."""

    id: str
    title: str
    content: str
    category: Category
    created_at: datetime = Field(alias="createdAt")
    order: int | None = None
    tags: list[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ReadingEntry(BaseModel):
    """A short text/link item on the required or optional list."""

    id: str
    text: str
    link: str | None = None
    kind: ReadingKind
    category: Category
    created_at: datetime = Field(alias="createdAt")
    title: str | None = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class QACreate(BaseModel):
    """Body for POST /api/qa."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    category: Category
    tags: list[str] | None = None


class QAUpdate(BaseModel):
    """Body for PUT /api/qa. Unset fields are left untouched in the store."""

    id: str = Field(min_length=1)
    title: str | None = None
    content: str | None = None
    category: Category | None = None
    tags: list[str] | None = None


class ReadingCreate(BaseModel):
    """Body for POST /api/reading."""

    text: str = Field(min_length=1)
    kind: ReadingKind = Field(validation_alias=AliasChoices("kind", "type"))
    category: Category = Category.STRATEGY
    link: str | None = None
    title: str | None = None


class ReadingUpdate(BaseModel):
    """Body for PUT /api/reading."""

    id: str = Field(min_length=1)
    text: str | None = None
    kind: ReadingKind | None = Field(default=None, validation_alias=AliasChoices("kind", "type"))
    category: Category | None = None
    link: str | None = None
    title: str | None = None
