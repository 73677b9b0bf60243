"""Common schemas used across the API."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope returned by the REST proxy.

    Format: { "success": true, "data": ..., "message": str }
    """

    success: bool = True
    data: T | None = None
    message: str | None = None


class ErrorResponse(BaseModel):
    """Failure envelope (HTTP 400 / 500).

    Format: { "success": false, "error": str, "message": str }
    """

    success: bool = False
    error: str
    message: str | None = None
