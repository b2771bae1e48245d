"""认证相关路由定义。"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.auth import (
    LoginRequest,
    LogoutResponse,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from app.packages.drive.core.constants import HTTP_STATUS_OK
from app.packages.drive.core.dependencies import get_current_active_user, get_db
from app.packages.drive.core.responses import create_response
from app.packages.drive.core.session import delete_session
from app.packages.drive.models.user import User
from app.packages.drive.services.auth_service import auth_service, serialize_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> UserResponse:
    """调用认证服务完成注册流程并返回统一响应。"""
    return auth_service.register_user(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.firstName,
        last_name=payload.lastName,
    )


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """校验凭证并签发访问令牌。"""
    return auth_service.login(db, email=payload.email, password=payload.password)


@router.post("/logout", response_model=LogoutResponse)
def logout(request: Request, current_user: User = Depends(get_current_active_user)) -> LogoutResponse:
    """注销当前会话，前端需删除本地缓存的令牌。"""
    session_id = getattr(request.state, "session_id", None)
    if session_id:
        delete_session(session_id)
    return create_response("退出登录成功", None, HTTP_STATUS_OK)


@router.get("/me", response_model=UserResponse)
def read_me(current_user: User = Depends(get_current_active_user)) -> UserResponse:
    return create_response("获取当前用户成功", serialize_user(current_user), HTTP_STATUS_OK)
