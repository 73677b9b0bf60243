"""Entry repository over the Notion store.

Maps Notion pages to typed entries and back:
- Category / reading kind <-> Notion select names
- Rich text <-> "**bold**" / "*italic*" markers
- Tags <-> comma-separated rich text
- Long text is truncated to fit Notion's rich-text limit

Routes call these functions; raw Notion payloads never leave this module.
"""

from datetime import datetime, timezone
import logging
import re
from typing import Any

from knowledge_hub.schemas.items import (
    Category,
    QACreate,
    QAEntry,
    QAUpdate,
    ReadingCreate,
    ReadingEntry,
    ReadingKind,
    ReadingUpdate,
)
from knowledge_hub.settings import get_settings
from knowledge_hub.stores import notion

logger = logging.getLogger("uvicorn.error")

# Notion rejects rich text over 2000 chars; keep some room for the marker.
MAX_TEXT_LENGTH = 1950
TRUNCATION_MARKER = "...\n\n[Content truncated; open the app for the full text]"

URL_PATTERN = re.compile(r"https?://[^\s]+")

_CREATED_DESC = [{"property": "Created", "direction": "descending"}]


def truncate_for_store(text: str) -> str:
    """Cut text to MAX_TEXT_LENGTH and append the truncation marker if needed."""
    if len(text) <= MAX_TEXT_LENGTH:
        return text
    return text[:MAX_TEXT_LENGTH] + TRUNCATION_MARKER


def extract_link(text: str) -> str | None:
    """First http(s) URL in text, if any."""
    match = URL_PATTERN.search(text)
    return match.group(0) if match else None


def notion_category(category: Category) -> str:
    return category.value.capitalize()


def notion_kind(kind: ReadingKind) -> str:
    return kind.value.capitalize()


# ============================================================
# Notion page -> entry
# ============================================================


def _plain_text(rich_text: Any) -> str:
    if not isinstance(rich_text, list):
        return ""
    return "".join(str(part.get("plain_text") or "") for part in rich_text if isinstance(part, dict))


def _formatted_text(rich_text: Any) -> str:
    """Flatten rich text, turning bold/italic annotations back into markers."""
    if not isinstance(rich_text, list):
        return ""
    out: list[str] = []
    for part in rich_text:
        if not isinstance(part, dict):
            continue
        content = str(part.get("plain_text") or "")
        annotations = part.get("annotations") or {}
        if content and annotations.get("bold"):
            content = f"**{content}**"
        if content and annotations.get("italic"):
            content = f"*{content}*"
        out.append(content)
    return "".join(out)


def _select_name(prop: Any) -> str:
    if not isinstance(prop, dict):
        return ""
    select = prop.get("select")
    if not isinstance(select, dict):
        return ""
    return str(select.get("name") or "")


def _title_of(props: dict[str, Any]) -> str:
    for name in ("Title", "Name"):
        prop = props.get(name)
        if isinstance(prop, dict) and prop.get("title"):
            return _plain_text(prop["title"])
    return ""


def _created_at(page: dict[str, Any]) -> datetime:
    props = page.get("properties") or {}
    raw = (props.get("Created") or {}).get("created_time") or page.get("created_time")
    if raw:
        try:
            return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
        except ValueError:
            pass
    return datetime.now(timezone.utc)


def _parse_category(name: str, fallback: Category) -> Category:
    try:
        return Category(name.lower())
    except ValueError:
        return fallback


def qa_from_page(page: dict[str, Any], fallback_category: Category = Category.STRATEGY) -> QAEntry:
    props = page.get("properties") or {}
    text_prop = props.get("Text") or props.get("Content") or {}
    tags_raw = _plain_text((props.get("Tags") or {}).get("rich_text"))
    return QAEntry(
        id=str(page["id"]),
        title=_title_of(props),
        content=_formatted_text(text_prop.get("rich_text")),
        category=_parse_category(_select_name(props.get("Category")), fallback_category),
        created_at=_created_at(page),
        tags=[t.strip() for t in tags_raw.split(",") if t.strip()],
    )


def reading_from_page(
    page: dict[str, Any], fallback_category: Category = Category.STRATEGY
) -> ReadingEntry:
    props = page.get("properties") or {}
    text = _plain_text((props.get("Text") or {}).get("rich_text")) or _title_of(props)
    link = extract_link(text) or (props.get("Links") or {}).get("url") or None
    kind_name = _select_name(props.get("Type")).lower()
    title = _title_of(props)
    return ReadingEntry(
        id=str(page["id"]),
        text=text,
        link=link,
        kind=ReadingKind.REQUIRED if kind_name == ReadingKind.REQUIRED.value else ReadingKind.OPTIONAL,
        category=_parse_category(_select_name(props.get("Category")), fallback_category),
        created_at=_created_at(page),
        title=title or None,
    )


# ============================================================
# Entry fields -> Notion properties
# ============================================================


def _rich_text(content: str) -> list[dict[str, Any]]:
    return [{"text": {"content": content}}]


def qa_properties(
    title: str | None = None,
    content: str | None = None,
    category: Category | None = None,
    tags: list[str] | None = None,
) -> dict[str, Any]:
    """Build Notion properties for the given QA fields (unset fields are skipped)."""
    properties: dict[str, Any] = {}
    if title:
        properties["Title"] = {"title": _rich_text(title)}
    if content:
        properties["Text"] = {"rich_text": _rich_text(truncate_for_store(content))}
    if category:
        properties["Category"] = {"select": {"name": notion_category(category)}}
    if tags is not None:
        # an empty list clears the tags
        properties["Tags"] = {"rich_text": _rich_text(", ".join(tags)) if tags else []}
    return properties


def reading_properties(
    text: str | None = None,
    kind: ReadingKind | None = None,
    category: Category | None = None,
    link: str | None = None,
    title: str | None = None,
) -> dict[str, Any]:
    """Build Notion properties for the given reading fields."""
    properties: dict[str, Any] = {}
    if title:
        properties["Title"] = {"title": _rich_text(title)}
    if text:
        properties["Text"] = {"rich_text": _rich_text(truncate_for_store(text))}
    if kind:
        properties["Type"] = {"select": {"name": notion_kind(kind)}}
    if category:
        properties["Category"] = {"select": {"name": notion_category(category)}}
    if link:
        properties["Links"] = {"url": link}
    return properties


# ============================================================
# QA entries
# ============================================================


async def list_qa(category: Category | None = None) -> list[QAEntry]:
    """QA entries, newest first, optionally limited to one category."""
    settings = get_settings()
    filter_ = (
        {"property": "Category", "select": {"equals": notion_category(category)}}
        if category
        else None
    )
    pages = await notion.query_database(settings.notion_database_id, filter=filter_, sorts=_CREATED_DESC)
    fallback = category or Category.STRATEGY
    items = [qa_from_page(page, fallback) for page in pages]
    logger.info(f"Loaded {len(items)} QA entries (category={category.value if category else 'all'})")
    return items


async def create_qa(body: QACreate) -> QAEntry:
    settings = get_settings()
    page = await notion.create_page(
        settings.notion_database_id,
        qa_properties(body.title, body.content, body.category, body.tags),
    )
    return QAEntry(
        id=str(page["id"]),
        title=body.title,
        content=body.content,
        category=body.category,
        created_at=_created_at(page),
        tags=body.tags or [],
    )


async def update_qa(body: QAUpdate) -> None:
    await notion.update_page(body.id, qa_properties(body.title, body.content, body.category, body.tags))


async def delete_qa(item_id: str) -> None:
    await notion.archive_page(item_id)


# ============================================================
# Reading entries
# ============================================================


async def list_reading(category: Category | None = None) -> list[ReadingEntry]:
    """Reading entries (pages with a Type), newest first."""
    settings = get_settings()
    filters: list[dict[str, Any]] = [{"property": "Type", "select": {"is_not_empty": True}}]
    if category:
        filters.append({"property": "Category", "select": {"equals": notion_category(category)}})
    pages = await notion.query_database(
        settings.reading_database_id,
        filter={"and": filters},
        sorts=_CREATED_DESC,
    )
    fallback = category or Category.STRATEGY
    items = [reading_from_page(page, fallback) for page in pages]
    logger.info(f"Loaded {len(items)} reading entries (category={category.value if category else 'all'})")
    return items


async def create_reading(body: ReadingCreate) -> ReadingEntry:
    settings = get_settings()
    link = body.link or extract_link(body.text)
    page = await notion.create_page(
        settings.reading_database_id,
        reading_properties(body.text, body.kind, body.category, link, body.title),
    )
    return ReadingEntry(
        id=str(page["id"]),
        text=body.text,
        link=link,
        kind=body.kind,
        category=body.category,
        created_at=_created_at(page),
        title=body.title or None,
    )


async def update_reading(body: ReadingUpdate) -> None:
    await notion.update_page(
        body.id,
        reading_properties(body.text, body.kind, body.category, body.link, body.title),
    )


async def delete_reading(item_id: str) -> None:
    await notion.archive_page(item_id)
