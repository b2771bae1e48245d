"""网盘业务包：多租户虚拟文件系统（元数据 + 对象存储）、上传计时器与管理员功能。"""

from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError

from app.packages.types import AppPackage

from .api.v1 import api_router
from .core.config import get_settings
from .core.exceptions import generic_exception_handler, http_exception_handler, validation_exception_handler
from .core.logger import logger, setup_logging
from .core.responses import create_response
from .db.init_db import init_db

package = AppPackage(
    name="drive",
    description="按用户隔离的网盘：文件夹/文件元数据落库，文件内容写入对象存储",
    api_router=api_router,
    get_settings=get_settings,
    setup_logging=setup_logging,
    logger=logger,
    init_db=init_db,
    create_response=create_response,
    exception_handlers={
        HTTPException: http_exception_handler,
        RequestValidationError: validation_exception_handler,
        Exception: generic_exception_handler,
    },
)

__all__ = ["package", "api_router", "get_settings"]
