"""依赖注入模块：数据库会话与当前用户的解析。"""

from collections.abc import Generator
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.packages.drive.core.constants import ACCESS_TOKEN_TYPE, HTTP_STATUS_FORBIDDEN, HTTP_STATUS_UNAUTHORIZED
from app.packages.drive.core.exceptions import AppException
from app.packages.drive.core.security import (
    AccessClaims,
    issue_access_token,
    read_access_token,
    session_ttl_seconds,
)
from app.packages.drive.core.session import touch_session
from app.packages.drive.crud.users import user_crud
from app.packages.drive.db import session as db_session
from app.packages.drive.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """校验 Bearer 令牌与其会话，并为滑动续期签发新令牌。"""
    if credentials is None or credentials.scheme.lower() != ACCESS_TOKEN_TYPE:
        raise AppException("缺少认证信息", HTTP_STATUS_UNAUTHORIZED)

    claims = read_access_token(credentials.credentials)
    if claims is None:
        raise AppException("Token 无效", HTTP_STATUS_UNAUTHORIZED)

    user = user_crud.get(db, claims.user_id)
    if user is None or not touch_session(claims.session_id, user.id, session_ttl_seconds()):
        raise AppException("登录状态已失效，请重新登录", HTTP_STATUS_UNAUTHORIZED)

    request.state.session_id = claims.session_id
    request.state.refreshed_token = issue_access_token(AccessClaims(user.id, user.email, claims.session_id))
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise AppException("账号已被停用，请联系管理员", HTTP_STATUS_FORBIDDEN)
    return current_user


def require_admin(current_user: User = Depends(get_current_active_user)) -> User:
    if not current_user.is_admin:
        raise AppException("需要管理员权限", HTTP_STATUS_FORBIDDEN)
    return current_user
