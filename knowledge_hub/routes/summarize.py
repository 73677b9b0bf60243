"""Link summary endpoint.

POST /api/summarize {url, category?} -> {title, summary, originalUrl}

Only absolute http(s) URLs are fetched. Unreachable pages still return a
generic summary; only a missing or malformed URL is an error.
"""

from urllib.parse import urlparse

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from knowledge_hub.routes.errors import error_response
from knowledge_hub.schemas import ApiResponse, LinkSummary, SummarizeRequest
from knowledge_hub.services.summarizer import summarize

router = APIRouter()

ALLOWED_SCHEMES = {"http", "https"}


def _is_valid_url(url: str) -> bool:
    """Validate URL is an absolute http(s) URL."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme.lower() in ALLOWED_SCHEMES and bool(parsed.netloc)


@router.post("", response_model=ApiResponse[LinkSummary], response_model_exclude_none=True)
async def summarize_link(body: SummarizeRequest) -> ApiResponse[LinkSummary] | JSONResponse:
    """Fetch the page and build a short summary for a reading entry."""
    url = body.url.strip()
    if not _is_valid_url(url):
        return error_response(400, "Invalid URL format")

    summary = await summarize(url, body.category)
    return ApiResponse[LinkSummary](data=summary)
