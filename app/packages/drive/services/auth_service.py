"""认证服务：封装注册、登录等核心业务流程。"""

from typing import Any, Optional

from sqlalchemy.orm import Session

from app.packages.drive.core.constants import (
    ACCESS_TOKEN_TYPE,
    HTTP_STATUS_CONFLICT,
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_OK,
    HTTP_STATUS_UNAUTHORIZED,
)
from app.packages.drive.core.exceptions import AppException
from app.packages.drive.core.logger import logger
from app.packages.drive.core.responses import create_response
from app.packages.drive.core.security import (
    AccessClaims,
    check_password,
    hash_password,
    issue_access_token,
    session_ttl_seconds,
)
from app.packages.drive.core.session import create_session
from app.packages.drive.core.timezone import to_iso
from app.packages.drive.crud.users import user_crud
from app.packages.drive.models.user import User


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "isAdmin": bool(user.is_admin),
        "isActive": bool(user.is_active),
        "createdAt": to_iso(user.create_time),
    }


class AuthService:
    """负责处理用户注册与登录流程，并保持逻辑聚合。"""

    def register_user(
        self,
        db: Session,
        *,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> dict:
        normalized = email.strip().lower()
        if user_crud.get_by_email(db, normalized):
            raise AppException("该邮箱已注册", HTTP_STATUS_CONFLICT)

        user = user_crud.create(
            db,
            {
                "email": normalized,
                "hashed_password": hash_password(password),
                "first_name": first_name,
                "last_name": last_name,
                "is_admin": False,
                "is_active": True,
            },
        )
        logger.info("User registered: %s", user.email)
        return create_response("注册成功", serialize_user(user), HTTP_STATUS_OK)

    def login(self, db: Session, *, email: str, password: str) -> dict:
        user = user_crud.get_by_email(db, email)
        if user is None or not check_password(password, user.hashed_password):
            raise AppException("邮箱或密码错误", HTTP_STATUS_UNAUTHORIZED)
        if not user.is_active:
            raise AppException("账号已被停用，请联系管理员", HTTP_STATUS_FORBIDDEN)

        session_id = create_session(user.id, session_ttl_seconds())
        token = issue_access_token(AccessClaims(user.id, user.email, session_id))
        logger.info("User logged in: %s", user.email)
        return create_response(
            "登录成功",
            {"access_token": token, "token_type": ACCESS_TOKEN_TYPE, "user": serialize_user(user)},
            HTTP_STATUS_OK,
        )


auth_service = AuthService()
