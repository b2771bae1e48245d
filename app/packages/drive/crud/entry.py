"""网盘条目 CRUD：命名空间的权威视图。"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.packages.drive.core.exceptions import ConflictError
from app.packages.drive.crud.base import CRUDBase
from app.packages.drive.models.entry import Entry
from app.packages.drive.models.user import User


class CRUDEntry(CRUDBase[Entry]):
    def list_children(self, db: Session, *, owner_id: str, path: str) -> List[Entry]:
        """返回 ``path`` 下的直接子条目，文件夹在前，再按名称升序。"""
        return (
            self.query(db)
            .filter(Entry.owner_id == owner_id, Entry.path == path)
            .order_by(Entry.is_folder.desc(), Entry.name.asc())
            .all()
        )

    def get_for_owner(self, db: Session, *, owner_id: str, entry_id: str) -> Optional[Entry]:
        return (
            self.query(db)
            .filter(Entry.id == entry_id, Entry.owner_id == owner_id)
            .first()
        )

    def find_sibling(self, db: Session, *, owner_id: str, path: str, name: str) -> Optional[Entry]:
        # 文件夹优先：命中同名文件夹时物化流程可以直接复用
        return (
            self.query(db)
            .filter(Entry.owner_id == owner_id, Entry.path == path, Entry.name == name)
            .order_by(Entry.is_folder.desc())
            .first()
        )

    def create_entry(self, db: Session, fields: dict) -> Entry:
        try:
            return self.create(db, fields)
        except IntegrityError as exc:
            # 并发创建同名文件夹时由部分唯一索引兜底
            raise ConflictError(f"同名文件夹已存在: {fields['path']}{fields['name']}") from exc

    def count_by_object_key(self, db: Session, *, owner_id: str, object_key: str) -> int:
        return (
            self.query(db)
            .filter(Entry.owner_id == owner_id, Entry.object_key == object_key)
            .count()
        )

    def delete_tree(self, db: Session, folder: Entry, *, auto_commit: bool = True) -> int:
        """删除文件夹自身及其全部后代，单条语句完成，返回删除行数。"""
        address_prefix = f"{folder.path}{folder.name}/"
        stmt_filter = and_(
            Entry.owner_id == folder.owner_id,
            or_(
                Entry.id == folder.id,
                Entry.path.startswith(address_prefix, autoescape=True),
                Entry.object_key.startswith(folder.object_key, autoescape=True),
            ),
        )
        try:
            deleted = self.query(db).filter(stmt_filter).delete(synchronize_session=False)
            if auto_commit:
                db.commit()
        except Exception:
            db.rollback()
            raise
        db.expire_all()
        return int(deleted or 0)

    def storage_stats(self, db: Session) -> List[dict]:
        """按用户汇总文件数与总字节数（不含文件夹），没有文件的用户计为 0。"""
        file_count = func.count(Entry.id)
        total_size = func.coalesce(func.sum(Entry.size), 0)
        rows = (
            db.query(User, file_count, total_size)
            .outerjoin(Entry, and_(Entry.owner_id == User.id, Entry.is_folder.is_(False)))
            .group_by(User.id)
            .order_by(User.email.asc())
            .all()
        )
        return [
            {
                "user_id": user.id,
                "email": user.email,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "total_files": int(count or 0),
                "total_size": int(size or 0),
            }
            for user, count, size in rows
        ]


entry_crud = CRUDEntry(Entry)
