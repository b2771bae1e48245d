"""业务包元数据定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import Logger
from typing import Any, Awaitable, Callable, Mapping

from fastapi import APIRouter
from starlette.requests import Request
from starlette.responses import Response

ExceptionHandler = Callable[[Request, Any], Awaitable[Response]]


@dataclass(frozen=True)
class AppPackage:
    """描述一个业务包暴露给主应用的必要接口。

    ``exception_handlers`` 按异常类型注册到 FastAPI，顺序无关；
    ``create_response`` 供主应用的健康检查等公共接口复用统一响应体。
    """

    name: str
    description: str
    api_router: APIRouter
    get_settings: Callable[[], Any]
    setup_logging: Callable[[], None]
    logger: Logger
    init_db: Callable[[], None]
    create_response: Callable[..., dict]
    exception_handlers: Mapping[type, ExceptionHandler] = field(default_factory=dict)
