"""MIME 类型到文件分类的映射。

解析顺序：
1. 精确表 ``_CANONICAL``（常见的文档/压缩包等类型）；
2. 顶层类型前缀：``image/``、``video/``、``audio/``、``text/``；
3. 未知类型按子类型关键字兜底（``pdf``/``document`` 归为文档，``zip``/``compressed``/``tar``/``rar`` 归为压缩包）；
4. 以上都不命中则为 ``OTHER``，只会出现在 ``all`` 过滤结果中。
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FileCategory(str, Enum):
    FOLDER = "folder"
    IMAGE = "image"
    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"
    ARCHIVE = "archive"
    OTHER = "other"


_CANONICAL: dict[str, FileCategory] = {
    "application/pdf": FileCategory.DOCUMENT,
    "application/msword": FileCategory.DOCUMENT,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": FileCategory.DOCUMENT,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": FileCategory.DOCUMENT,
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": FileCategory.DOCUMENT,
    "application/vnd.oasis.opendocument.text": FileCategory.DOCUMENT,
    "application/zip": FileCategory.ARCHIVE,
    "application/x-zip-compressed": FileCategory.ARCHIVE,
    "application/gzip": FileCategory.ARCHIVE,
    "application/x-gzip": FileCategory.ARCHIVE,
    "application/x-tar": FileCategory.ARCHIVE,
    "application/vnd.rar": FileCategory.ARCHIVE,
    "application/x-rar-compressed": FileCategory.ARCHIVE,
    "application/x-7z-compressed": FileCategory.ARCHIVE,
    "application/x-bzip2": FileCategory.ARCHIVE,
}

_PREFIXES: tuple[tuple[str, FileCategory], ...] = (
    ("image/", FileCategory.IMAGE),
    ("video/", FileCategory.VIDEO),
    ("audio/", FileCategory.AUDIO),
    ("text/", FileCategory.DOCUMENT),
)

_KEYWORDS: tuple[tuple[str, FileCategory], ...] = (
    ("pdf", FileCategory.DOCUMENT),
    ("document", FileCategory.DOCUMENT),
    ("zip", FileCategory.ARCHIVE),
    ("compressed", FileCategory.ARCHIVE),
    ("tar", FileCategory.ARCHIVE),
    ("rar", FileCategory.ARCHIVE),
)


def categorize(mime_type: Optional[str], *, is_folder: bool = False) -> FileCategory:
    if is_folder:
        return FileCategory.FOLDER
    mime = (mime_type or "").split(";", 1)[0].strip().lower()
    if not mime:
        return FileCategory.OTHER
    if mime in _CANONICAL:
        return _CANONICAL[mime]
    for prefix, category in _PREFIXES:
        if mime.startswith(prefix):
            return category
    subtype = mime.split("/", 1)[-1]
    for keyword, category in _KEYWORDS:
        if keyword in subtype:
            return category
    return FileCategory.OTHER


def matches_category(mime_type: Optional[str], is_folder: bool, wanted: Optional[str]) -> bool:
    """``wanted`` 为空或 ``all`` 时全部命中。"""
    if not wanted or wanted == "all":
        return True
    return categorize(mime_type, is_folder=is_folder).value == wanted
