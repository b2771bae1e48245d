"""CRUD 基类：按主键读取、插入、保存与物理删除，写操作默认立即提交。"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from app.packages.drive.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def query(self, db: Session) -> Query:
        return db.query(self.model)

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return db.get(self.model, id)

    def create(self, db: Session, obj_in: dict[str, Any], *, auto_commit: bool = True) -> ModelType:
        return self.save(db, self.model(**obj_in), auto_commit=auto_commit)

    def save(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> ModelType:
        db.add(db_obj)
        if auto_commit:
            self._commit(db)
            db.refresh(db_obj)
        return db_obj

    def hard_delete(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> None:
        db.delete(db_obj)
        if auto_commit:
            self._commit(db)

    @staticmethod
    def _commit(db: Session) -> None:
        """提交失败时回滚，保证会话可继续使用后再抛出。"""
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
