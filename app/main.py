"""应用入口：按启用的业务包装配 FastAPI 实例（中间件、异常处理、路由与启动钩子）。"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.middleware.request_id import RequestIdMiddleware
from app.packages import get_active_package
from app.packages.types import AppPackage


class AccessTokenHeaderMiddleware(BaseHTTPMiddleware):
    """把本次请求续签的访问令牌写入 ``X-Access-Token`` 响应头，前端可据此替换本地令牌。"""

    async def dispatch(self, request, call_next):  # pragma: no cover - 框架胶水代码
        response = await call_next(request)
        token = getattr(request.state, "refreshed_token", None)
        if token:
            response.headers["X-Access-Token"] = token
        return response


def create_app(package: AppPackage) -> FastAPI:
    package.setup_logging()
    settings = package.get_settings()
    logger = package.logger

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        package.init_db()
        logger.info(
            "SUCCESS - %s [%s] storage=%s listening on port %s",
            settings.project_name, package.name, settings.storage_type, settings.app_port,
        )
        yield

    application = FastAPI(
        title=settings.project_name,
        description=package.description,
        debug=settings.debug,
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Access-Token", "X-Request-ID", "Content-Disposition"],
    )
    application.add_middleware(AccessTokenHeaderMiddleware)
    # 最后注册的中间件最先执行，请求 ID 需要覆盖整个请求链路
    application.add_middleware(RequestIdMiddleware)

    for exc_class, handler in package.exception_handlers.items():
        application.add_exception_handler(exc_class, handler)

    @application.get("/health")
    async def health_check() -> dict:
        return package.create_response("OK", {"status": "healthy"})

    application.include_router(package.api_router, prefix=settings.api_v1_str)
    return application


app = create_app(get_active_package())
