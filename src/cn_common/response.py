"""Response envelope shared by every endpoint and the AppError handler.

    {"code": 0, "message": "success", "data": {...},
     "timestamp": "...", "request_id": "req_..."}

code 0 means success; any other value is an AppError code and ``data``
then carries the error details (or null). The request_id is taken from
RequestLogMiddleware when the request passed through it, so the envelope,
the X-Request-ID header and the access log all agree.
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from src.cn_common.datetime_utils import utc_now


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=_new_request_id)


def _request_id(request: Request | None) -> str:
    if request is None:
        return _new_request_id()
    return getattr(request.state, "request_id", None) or _new_request_id()


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    return ApiResponse(data=data, request_id=_request_id(request))


def error_response(
    code: int, message: str, data: Any = None, request: Request | None = None
) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=data, request_id=_request_id(request))
