"""ApiResponse envelope returned by every endpoint.

    {"code": 0, "message": "success", "data": {...},
     "timestamp": "2024-06-01T12:00:00+00:00", "request_id": "req_..."}

code 0 is success; any other value is an AppError code and data is null.
"""

import uuid
from typing import Any

from fastapi import Request
from pydantic import BaseModel, Field

from src.au_common.datetime_utils import utc_now


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=_new_request_id)


def _request_id(request: Request | None) -> str:
    # set by RequestLogMiddleware; absent when a handler is called directly
    if request is None:
        return _new_request_id()
    return getattr(request.state, "request_id", None) or _new_request_id()


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    return ApiResponse(code=0, message="success", data=data, request_id=_request_id(request))


def error_response(code: int, message: str, request: Request | None = None) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=None, request_id=_request_id(request))
