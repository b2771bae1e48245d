"""网盘核心服务：把面向用户的路径操作翻译为“元数据 + 对象存储”的协同操作。

约束：
- 元数据是“应该存在什么”的唯一依据，列表只读数据库，从不触达对象存储；
- 上传先写对象再落库：中途失败最多留下孤儿对象，不会出现指向缺失对象的元数据；
- 删除先尽力删对象再删元数据：对象删除失败只记录日志，元数据清理照常进行；
- 批量操作（目录树上传、批量删除）逐项独立提交，单项失败不影响其它项。
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.packages.drive.core.constants import DATE_RANGES, DEFAULT_MIME_TYPE, TYPE_CATEGORIES
from app.packages.drive.core.exceptions import (
    AppException,
    ConflictError,
    NotFoundError,
    StorageReadError,
    StorageWriteError,
    UploadWindowClosedError,
    ValidationError,
)
from app.packages.drive.core.logger import logger
from app.packages.drive.core.timezone import now as tz_now
from app.packages.drive.core.timezone import to_iso, to_local
from app.packages.drive.core.upload_gate import TimerUploadGate, UploadGate
from app.packages.drive.crud.entry import entry_crud
from app.packages.drive.models.entry import Entry
from app.packages.drive.services.object_store import ObjectStore, get_object_store
from app.packages.drive.utils.mime_categories import matches_category
from app.packages.drive.utils.path_utils import (
    build_object_key,
    child_path,
    split_relative_path,
    validate_dir_path,
    validate_name,
)


@dataclass
class ListFilters:
    name_substring: Optional[str] = None
    type_category: Optional[str] = "all"
    date_range: Optional[str] = "all"


@dataclass
class TreeUploadItem:
    """目录树上传中的单个文件，``relative_path`` 形如 ``"subdir/photo.png"``。"""

    relative_path: str
    content: bytes
    mime_type: Optional[str] = None


@dataclass
class UploadTreeResult:
    entries: List[Entry] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class BulkDeleteResult:
    deleted_count: int = 0
    errors: List[str] = field(default_factory=list)


def serialize_entry(entry: Entry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "ownerId": entry.owner_id,
        "name": entry.name,
        "path": entry.path,
        "objectKey": entry.object_key,
        "isFolder": bool(entry.is_folder),
        "size": int(entry.size or 0),
        "mimeType": entry.mime_type,
        "createdAt": to_iso(entry.create_time),
        "updatedAt": to_iso(entry.update_time),
    }


class DriveService:
    def __init__(
        self,
        store: ObjectStore,
        gate: Optional[UploadGate] = None,
        clock: Callable[[], datetime] = tz_now,
    ) -> None:
        self.store = store
        self.gate = gate or TimerUploadGate()
        self.clock = clock

    # ----------------------------
    # 查询
    # ----------------------------
    def list_entries(
        self,
        db: Session,
        owner_id: str,
        path: str,
        filters: Optional[ListFilters] = None,
    ) -> List[Entry]:
        """返回 ``path`` 的直接子条目（非递归），再在内存中按名称/类型/日期过滤。"""
        validate_dir_path(path)
        filters = filters or ListFilters()
        category = filters.type_category or "all"
        date_range = filters.date_range or "all"
        if category not in TYPE_CATEGORIES:
            raise ValidationError(f"不支持的文件类型过滤: {category}")
        if date_range not in DATE_RANGES:
            raise ValidationError(f"不支持的日期过滤: {date_range}")

        entries = entry_crud.list_children(db, owner_id=owner_id, path=path)

        needle = (filters.name_substring or "").strip().lower()
        if needle:
            entries = [e for e in entries if needle in e.name.lower()]
        if category != "all":
            entries = [e for e in entries if matches_category(e.mime_type, e.is_folder, category)]
        lower_bound = self._date_lower_bound(date_range)
        if lower_bound is not None:
            entries = [e for e in entries if e.create_time is not None and to_local(e.create_time) >= lower_bound]
        return entries

    def _date_lower_bound(self, date_range: str) -> Optional[datetime]:
        now = to_local(self.clock())
        if date_range == "today":
            return now.replace(hour=0, minute=0, second=0, microsecond=0)
        if date_range == "week":
            return now - timedelta(days=7)
        if date_range == "month":
            return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return None

    # ----------------------------
    # 新建文件夹
    # ----------------------------
    def create_folder(self, db: Session, owner_id: str, parent_path: str, name: str) -> Entry:
        validate_dir_path(parent_path)
        name = validate_name(name)
        self._ensure_upload_window(db)
        folder = self._create_folder_entry(db, owner_id=owner_id, path=parent_path, name=name)
        logger.info("Folder created owner=%s key=%s", owner_id, folder.object_key)
        return folder

    def _create_folder_entry(self, db: Session, *, owner_id: str, path: str, name: str) -> Entry:
        # 空文件夹只存在于元数据中，其前缀在有后代上传后才在对象存储中出现
        if entry_crud.find_sibling(db, owner_id=owner_id, path=path, name=name) is not None:
            raise ConflictError(f"同名文件或文件夹已存在: {path}{name}")
        return entry_crud.create_entry(
            db,
            {
                "owner_id": owner_id,
                "name": name,
                "path": path,
                "object_key": build_object_key(owner_id, path, name, is_folder=True),
                "is_folder": True,
                "size": 0,
                "mime_type": None,
            },
        )

    def _materialize_folder(self, db: Session, *, owner_id: str, path: str, name: str) -> None:
        """目录树上传中的隐式建目录：同名文件夹已存在视为成功，同名文件仍是冲突。"""
        try:
            self._create_folder_entry(db, owner_id=owner_id, path=path, name=name)
        except ConflictError:
            existing = entry_crud.find_sibling(db, owner_id=owner_id, path=path, name=name)
            if existing is None or not existing.is_folder:
                raise

    # ----------------------------
    # 上传
    # ----------------------------
    def upload_file(
        self,
        db: Session,
        owner_id: str,
        path: str,
        filename: str,
        content: bytes,
        mime_type: Optional[str] = None,
    ) -> Entry:
        validate_dir_path(path)
        filename = validate_name(filename)
        self._ensure_upload_window(db)
        return self._store_file(db, owner_id=owner_id, path=path, name=filename, content=content, mime_type=mime_type)

    def _store_file(
        self,
        db: Session,
        *,
        owner_id: str,
        path: str,
        name: str,
        content: bytes,
        mime_type: Optional[str],
    ) -> Entry:
        object_key = build_object_key(owner_id, path, name)
        content_type = mime_type or mimetypes.guess_type(name)[0] or DEFAULT_MIME_TYPE
        # 对象写入必须先于元数据提交
        self.store.put(object_key, content, content_type)
        try:
            entry = entry_crud.create_entry(
                db,
                {
                    "owner_id": owner_id,
                    "name": name,
                    "path": path,
                    "object_key": object_key,
                    "is_folder": False,
                    "size": len(content),
                    "mime_type": content_type,
                },
            )
        except Exception:
            logger.warning("Metadata insert failed after object write, orphan object left at %s", object_key)
            raise
        logger.info("File uploaded owner=%s key=%s size=%s", owner_id, object_key, entry.size)
        return entry

    def upload_tree(
        self,
        db: Session,
        owner_id: str,
        base_path: str,
        items: Sequence[TreeUploadItem],
    ) -> UploadTreeResult:
        """按输入顺序逐项上传，沿相对路径自动物化中间文件夹；单项失败不回滚已提交项。"""
        validate_dir_path(base_path)
        self._ensure_upload_window(db)

        result = UploadTreeResult()
        materialized: set[str] = set()
        for item in items:
            try:
                folders, filename = split_relative_path(item.relative_path)
                current = base_path
                for segment in folders:
                    folder_key = build_object_key(owner_id, current, segment, is_folder=True)
                    if folder_key not in materialized:
                        self._materialize_folder(db, owner_id=owner_id, path=current, name=segment)
                        materialized.add(folder_key)
                    current = child_path(current, segment)
                entry = self._store_file(
                    db,
                    owner_id=owner_id,
                    path=current,
                    name=filename,
                    content=item.content,
                    mime_type=item.mime_type,
                )
                result.entries.append(entry)
            except AppException as exc:
                logger.warning("Tree upload item failed owner=%s item=%s: %s", owner_id, item.relative_path, exc.msg)
                result.errors.append(f"{item.relative_path}: {exc.msg}")
            except Exception:
                logger.exception("Tree upload item failed owner=%s item=%s", owner_id, item.relative_path)
                result.errors.append(f"{item.relative_path}: 上传失败：服务器错误")
        return result

    # ----------------------------
    # 下载
    # ----------------------------
    def open_download(self, db: Session, owner_id: str, entry_id: str) -> tuple[Entry, Iterator[bytes]]:
        entry = self._get_owned(db, owner_id, entry_id)
        if entry.is_folder:
            raise ValidationError("不能下载文件夹")
        return entry, self.store.get(entry.object_key)

    # ----------------------------
    # 删除
    # ----------------------------
    def delete_entry(self, db: Session, owner_id: str, entry_id: str) -> None:
        entry = self._get_owned(db, owner_id, entry_id)
        object_key = entry.object_key

        if entry.is_folder:
            failures = self._delete_objects_under(object_key)
            removed = entry_crud.delete_tree(db, entry)
            logger.info(
                "Folder deleted owner=%s key=%s rows=%s object_failures=%s",
                owner_id, object_key, removed, failures,
            )
            return

        # 同名重复上传的文件共享同一对象键，最后一条元数据删除时才删对象
        if entry_crud.count_by_object_key(db, owner_id=owner_id, object_key=object_key) <= 1:
            try:
                self.store.delete(object_key)
            except StorageWriteError:
                logger.warning("Object delete failed, dangling object left at %s", object_key)
        entry_crud.hard_delete(db, entry)
        logger.info("File deleted owner=%s key=%s", owner_id, object_key)

    def _delete_objects_under(self, prefix: str) -> Optional[int]:
        """尽力删除前缀下的全部对象，返回失败个数；无法列举时返回 ``None``。"""
        try:
            keys = self.store.list_by_prefix(prefix)
        except StorageReadError:
            logger.warning("Object listing failed under %s, objects left in place", prefix)
            return None
        failures = 0
        for key in keys:
            try:
                self.store.delete(key)
            except StorageWriteError:
                failures += 1
                logger.warning("Object delete failed, dangling object left at %s", key)
        return failures

    def bulk_delete(self, db: Session, owner_id: str, entry_ids: Iterable[str]) -> BulkDeleteResult:
        result = BulkDeleteResult()
        for entry_id in entry_ids:
            try:
                self.delete_entry(db, owner_id, entry_id)
                result.deleted_count += 1
            except AppException as exc:
                result.errors.append(f"{entry_id}: {exc.msg}")
            except Exception:
                logger.exception("Bulk delete item failed owner=%s id=%s", owner_id, entry_id)
                result.errors.append(f"{entry_id}: 删除失败：服务器错误")
        return result

    # ----------------------------
    # 内部工具
    # ----------------------------
    def _get_owned(self, db: Session, owner_id: str, entry_id: str) -> Entry:
        entry = entry_crud.get_for_owner(db, owner_id=owner_id, entry_id=entry_id)
        if entry is None:
            raise NotFoundError("文件不存在")
        return entry

    def _ensure_upload_window(self, db: Session) -> None:
        if not self.gate.is_open(db, self.clock()):
            raise UploadWindowClosedError()


def get_drive_service() -> DriveService:
    """FastAPI 依赖：使用全局对象存储与计时器闸门构建核心服务。"""
    return DriveService(get_object_store(), TimerUploadGate())
