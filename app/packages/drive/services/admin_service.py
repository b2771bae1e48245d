"""管理员服务：全局存储统计与用户启停管理。"""

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.drive.core.constants import HTTP_STATUS_BAD_REQUEST, HTTP_STATUS_NOT_FOUND
from app.packages.drive.core.exceptions import AppException
from app.packages.drive.core.logger import logger
from app.packages.drive.core.session import revoke_user_sessions
from app.packages.drive.crud.entry import entry_crud
from app.packages.drive.crud.users import user_crud
from app.packages.drive.models.user import User


class AdminService:
    def storage_stats(self, db: Session) -> dict:
        """返回全局汇总与按用户统计，文件夹不计入文件数与容量。"""
        per_user = entry_crud.storage_stats(db)
        totals = {
            "totalUsers": len(per_user),
            "totalFiles": sum(row["total_files"] for row in per_user),
            "totalSize": sum(row["total_size"] for row in per_user),
        }
        return {
            "totals": totals,
            "users": [
                {
                    "userId": row["user_id"],
                    "email": row["email"],
                    "firstName": row["first_name"],
                    "lastName": row["last_name"],
                    "totalFiles": row["total_files"],
                    "totalSize": row["total_size"],
                }
                for row in per_user
            ],
        }

    def update_user(
        self,
        db: Session,
        *,
        current_user: User,
        user_id: str,
        is_active: Optional[bool] = None,
        is_admin: Optional[bool] = None,
    ) -> User:
        user = user_crud.get(db, user_id)
        if user is None:
            raise AppException("用户不存在", HTTP_STATUS_NOT_FOUND)
        if user.id == current_user.id and (is_active is False or is_admin is False):
            raise AppException("不能停用自己或撤销自己的管理员权限", HTTP_STATUS_BAD_REQUEST)
        if is_active is not None:
            user.is_active = is_active
        if is_admin is not None:
            user.is_admin = is_admin
        user = user_crud.save(db, user)
        if not user.is_active:
            revoked = revoke_user_sessions(user.id)
            logger.info("Revoked %s session(s) of deactivated user %s", revoked, user.email)
        logger.info("User %s updated by %s: active=%s admin=%s", user.email, current_user.email, user.is_active, user.is_admin)
        return user


admin_service = AdminService()
