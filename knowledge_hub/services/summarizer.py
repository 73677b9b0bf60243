"""Best-effort link summarizer.

Fetches a web page and builds a short summary from its <title> and meta
description. Any fetch or parse problem yields a generic fallback summary;
callers never see an exception for an unreachable page.
"""

from dataclasses import dataclass
import html
import logging
import re

import httpx

from knowledge_hub.schemas.items import Category
from knowledge_hub.schemas.summary import LinkSummary
from knowledge_hub.settings import get_settings

logger = logging.getLogger("uvicorn.error")

MAX_TITLE_LENGTH = 100
DEFAULT_TITLE = "Web page"

TITLE_PATTERN = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
DESCRIPTION_PATTERN = re.compile(
    r"<meta[^>]*name=[\"']description[\"'][^>]*content=[\"']([^\"']+)[\"'][^>]*>",
    re.IGNORECASE,
)

CATEGORY_PREFIX: dict[Category, str] = {
    Category.STRATEGY: "From a strategy perspective, ",
    Category.PRODUCT: "From a product design perspective, ",
    Category.TECHNOLOGY: "From a technology perspective, ",
}


class SummarizeError(RuntimeError):
    pass


@dataclass(frozen=True)
class PageInfo:
    title: str
    description: str


def extract_page_info(page_html: str) -> PageInfo:
    """Pull title and meta description out of raw HTML (entities decoded)."""
    title_match = TITLE_PATTERN.search(page_html)
    title = html.unescape(title_match.group(1)).strip() if title_match else ""
    desc_match = DESCRIPTION_PATTERN.search(page_html)
    description = html.unescape(desc_match.group(1)).strip() if desc_match else ""

    title = title or DEFAULT_TITLE
    if len(title) > MAX_TITLE_LENGTH:
        title = title[:MAX_TITLE_LENGTH] + "..."
    return PageInfo(title=title, description=description)


def build_summary(info: PageInfo, url: str, category: Category | None) -> LinkSummary:
    if info.description:
        prefix = CATEGORY_PREFIX.get(category, "") if category else ""
        summary = f"{prefix}{info.description}"
    else:
        summary = f"A web link about {info.title}."
    return LinkSummary(title=info.title, summary=summary, original_url=url)


def fallback_summary(url: str) -> LinkSummary:
    return LinkSummary(
        title=DEFAULT_TITLE,
        summary=f"A saved web link: {url}",
        original_url=url,
    )


async def fetch_page(url: str, client: httpx.AsyncClient | None = None) -> str:
    """GET the page body, raising SummarizeError on transport errors or non-2xx."""
    settings = get_settings()
    headers = {"User-Agent": settings.summarize_user_agent}
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=settings.summarize_timeout, follow_redirects=True)
    try:
        resp = await client.get(url, headers=headers)
        if not resp.is_success:
            raise SummarizeError(f"HTTP error! status: {resp.status_code}")
        return resp.text
    except httpx.HTTPError as e:
        raise SummarizeError(f"Failed to fetch {url}: {e}") from e
    finally:
        if owns_client:
            await client.aclose()


async def summarize(
    url: str,
    category: Category | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> LinkSummary:
    """Summarize a web page.

    Args:
        url: Absolute http(s) URL (validated by the caller).
        category: Adds a category-specific lead-in phrase when given.
        client: Optional HTTP client (tests inject a mock transport).

    Returns:
        LinkSummary; the generic fallback when the page cannot be read.
    """
    try:
        page_html = await fetch_page(url, client=client)
    except SummarizeError as e:
        logger.warning(f"Summarize fallback for {url}: {e}")
        return fallback_summary(url)

    return build_summary(extract_page_info(page_html), url, category)
