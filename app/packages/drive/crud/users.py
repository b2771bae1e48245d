"""用户 CRUD：集中管理用户相关的数据操作。"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.packages.drive.crud.base import CRUDBase
from app.packages.drive.models.user import User


class CRUDUser(CRUDBase[User]):
    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        """邮箱不区分大小写。"""
        normalized = (email or "").strip().lower()
        return self.query(db).filter(func.lower(User.email) == normalized).first()

    def list_all(self, db: Session) -> List[User]:
        return self.query(db).order_by(User.create_time.asc(), User.email.asc()).all()


user_crud = CRUDUser(User)
