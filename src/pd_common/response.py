"""Unified API response wrapper.

All API endpoints return this format:
{
    "success": true,
    "data": { ... },        // null on error
    "error": null,          // human-readable message on error
    "code": 0,              // 0=success, non-0=error code
    "kind": null,           // ErrorKind tag on error
    "timestamp": "...",
    "request_id": "..."
}
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field

from src.pd_common.datetime_utils import utc_now


class ApiResponse(BaseModel):
    success: bool = True
    data: Any = None
    error: str | None = None
    code: int = 0
    kind: str | None = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def success_response(data: Any = None) -> ApiResponse:
    return ApiResponse(success=True, data=data)


def error_response(code: int, message: str, kind: str | None = None) -> ApiResponse:
    return ApiResponse(success=False, data=None, error=message, code=code, kind=kind)


def ok(data: Any, request_id: str | None = None) -> ApiResponse:
    """success_response() stamped with the request id injected by RequestLogMiddleware."""
    resp = success_response(data)
    if request_id:
        resp.request_id = request_id
    return resp
