"""
Standard API response models and helpers for consistent response formatting.

All endpoints should use these helpers to ensure consistent response envelopes:
- Success: { "success": true, "data": <payload>, "meta": {...} }
- Error: { "success": false, "error": { "code": "...", "message": "...", "details": {...} } }

Listings are cursor-paginated: pass the last item of a page as `start_after`
to get the next one.
"""
from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Standard error detail structure."""
    code: str = Field(..., description="Error code (e.g., 'notfound', 'supplyoverflow')")
    message: str = Field(..., description="Human-readable error message")
    details: Any | None = Field(default=None, description="Additional error context")


class StandardErrorResponse(BaseModel):
    """Standard error response envelope."""
    success: bool = Field(False, description="Always false for errors")
    error: ErrorDetail = Field(..., description="Error details")


class CursorMeta(BaseModel):
    """Cursor pagination metadata."""
    model_config = ConfigDict(populate_by_name=True)

    limit: int = Field(..., description="Effective page size after clamping")
    start_after: str | None = Field(default=None, alias="startAfter", description="Cursor this page started after")
    next_start_after: str | None = Field(default=None, alias="nextStartAfter", description="Cursor for the next page, if full")


def error_response(code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    Create a standardized error body.

    `details` is left out of the body when there is none.
    """
    envelope = StandardErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details)
    )
    body = envelope.model_dump()
    if details is None:
        del body["error"]["details"]
    return body


def success_response(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: The response payload
        meta: Optional metadata (pagination, chain head, etc.)

    Returns:
        dict: { "success": true, "data": <data>, "meta": <meta> }
    """
    response = {"success": True, "data": data}
    if meta:
        response["meta"] = meta
    return response


def cursor_response(
    items: list[Any],
    limit: int,
    start_after: str | None = None,
    cursor_of=None,
) -> dict[str, Any]:
    """
    Create a standardized cursor-paginated response.

    Args:
        items: Items of this page, in listing order
        limit: Effective page size
        start_after: Cursor the page was requested with
        cursor_of: Maps an item to its cursor (defaults to the item itself)

    Returns:
        dict: { "success": true, "data": <items>, "meta": { "limit", "startAfter", "nextStartAfter" } }
    """
    next_cursor = None
    if items and len(items) >= limit:
        last = items[-1]
        next_cursor = cursor_of(last) if cursor_of else last

    meta = CursorMeta(
        limit=limit, start_after=start_after, next_start_after=next_cursor
    ).model_dump(by_alias=True)
    return success_response(data=items, meta=meta)
