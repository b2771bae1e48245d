"""网盘条目模型（文件与文件夹合并）。

存储规则：
- path：条目所在的父目录，以 '/' 开头且以 '/' 结尾，根目录为 '/'；
- name：条目自身的名称（不含 '/'）；
- object_key：对象存储键，文件为 ``{owner}{path}{name}``，文件夹为 ``{owner}{path}{name}/``，
  文件夹键是其所有后代键的前缀；
- 文件夹 size=0、mime_type=NULL，空文件夹只存在于数据库中，不写对象存储。

同一用户、同一父目录下的文件夹名称唯一（部分唯一索引），并发创建同名文件夹时由数据库兜底；
文件允许重名，与既有行为保持一致。
"""

from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.drive.models.base import Base, TimestampMixin, new_uuid


class Entry(TimestampMixin, Base):
    __tablename__ = "drive_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    owner_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    path: Mapped[str] = mapped_column(Text, default="/")
    object_key: Mapped[str] = mapped_column(Text)
    is_folder: Mapped[bool] = mapped_column(Boolean, default=False)
    size: Mapped[int] = mapped_column(BigInteger, default=0)
    mime_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("ix_drive_entries_owner_path", "owner_id", "path"),
        Index(
            "uq_drive_entries_owner_path_folder_name",
            "owner_id",
            "path",
            "name",
            unique=True,
            postgresql_where=text("is_folder"),
            sqlite_where=text("is_folder = 1"),
        ),
    )

    def __repr__(self) -> str:
        kind = "folder" if self.is_folder else "file"
        return f"<Entry {kind} {self.object_key!r}>"
