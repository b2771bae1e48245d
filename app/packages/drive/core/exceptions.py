"""异常处理模块：定义统一的业务异常与响应格式。

网盘核心抛出的错误都继承 ``AppException``，各自携带默认状态码；
核心逻辑只关心错误种类，状态码映射在全局处理器中落地为统一响应体。
"""

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.packages.drive.core.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_CONFLICT,
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_INTERNAL_SERVER_ERROR,
    HTTP_STATUS_NOT_FOUND,
)
from app.packages.drive.core.responses import create_response


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    default_code = HTTP_STATUS_BAD_REQUEST

    def __init__(self, msg: str, code: int | None = None, data=None) -> None:
        super().__init__(status_code=code or self.default_code, detail=msg)
        self.msg = msg
        self.data = data

    def __str__(self) -> str:
        return self.msg


class ValidationError(AppException):
    """名称或路径格式非法，在任何副作用发生之前拒绝。"""

    default_code = HTTP_STATUS_BAD_REQUEST


class ConflictError(AppException):
    """同一父目录下已存在同名条目。"""

    default_code = HTTP_STATUS_CONFLICT


class UploadWindowClosedError(AppException):
    """上传截止时间已过或计时器已停用。"""

    default_code = HTTP_STATUS_FORBIDDEN

    def __init__(self, msg: str = "上传截止时间已过", code: int | None = None, data=None) -> None:
        super().__init__(msg, code, data)


class NotFoundError(AppException):
    """条目不存在或不属于当前用户（两种情况对调用方不可区分）。"""

    default_code = HTTP_STATUS_NOT_FOUND


class StorageWriteError(AppException):
    default_code = HTTP_STATUS_INTERNAL_SERVER_ERROR


class StorageReadError(AppException):
    default_code = HTTP_STATUS_INTERNAL_SERVER_ERROR


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 FastAPI 的 ``HTTPException`` 转换为统一响应格式。"""
    payload = create_response(exc.detail, getattr(exc, "data", None), exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：将未捕获异常转换为标准的 500 响应结构。"""
    payload = create_response("服务器内部错误", None, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


def _serialize_errors(obj: Any) -> Any:
    if isinstance(obj, Exception):
        return str(obj)
    if isinstance(obj, dict):
        return {key: _serialize_errors(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize_errors(item) for item in obj]
    return obj


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # pragma: no cover - framework glue
    """统一处理请求体验证失败的场景。"""
    payload = create_response(
        "请求参数验证失败", _serialize_errors(exc.errors()), status.HTTP_422_UNPROCESSABLE_ENTITY
    )
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=payload)
