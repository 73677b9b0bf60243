"""Failure envelopes shared by the REST proxy routes."""

import logging

from fastapi.responses import JSONResponse

from knowledge_hub.schemas.common import ErrorResponse

logger = logging.getLogger("uvicorn.error")


def error_response(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    """Build a `{success: false, error, message}` response."""
    body = ErrorResponse(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def store_failure(error: str, exc: Exception) -> JSONResponse:
    """500 response for a failed store call."""
    logger.error(f"{error}: {exc}")
    return error_response(500, error, str(exc) or exc.__class__.__name__)
