"""Path utilities: the namespace rules shared by the API layer and the drive core.

- A directory path always starts and ends with '/'; the root is '/'.
- A name is a single segment: trimmed, non-empty, at most 255 chars, no '/'.
- Object keys are ``{owner}{path}{name}`` for files and carry a trailing '/'
  for folders, so a folder key is a prefix of every descendant key.

Nothing here interprets '.' or '..'; such segments are rejected outright.
"""

from __future__ import annotations

from app.packages.drive.core.constants import MAX_NAME_LENGTH, ROOT_PATH
from app.packages.drive.core.exceptions import ValidationError

_RESERVED_NAMES = {".", ".."}


def normalize_dir_path(p: str | None) -> str:
    """Lenient form used by the API layer: ``docs`` -> ``/docs/``, blank -> ``/``."""
    s = (p or ROOT_PATH).strip() or ROOT_PATH
    if not s.startswith("/"):
        s = "/" + s
    if not s.endswith("/"):
        s += "/"
    return s


def validate_name(name: str | None) -> str:
    """Return the trimmed name or raise ``ValidationError``."""
    candidate = (name or "").strip()
    if not candidate:
        raise ValidationError("名称不能为空")
    if len(candidate) > MAX_NAME_LENGTH:
        raise ValidationError(f"名称长度不能超过 {MAX_NAME_LENGTH} 个字符")
    if "/" in candidate:
        raise ValidationError("名称不能包含 '/'")
    if candidate in _RESERVED_NAMES:
        raise ValidationError(f"非法名称: {candidate}")
    return candidate


def validate_dir_path(path: str | None) -> str:
    """Strict form used by the core: the path must already be normalized."""
    if not path or not path.startswith("/") or not path.endswith("/"):
        raise ValidationError(f"非法路径: {path!r}")
    if path == ROOT_PATH:
        return path
    for segment in path[1:-1].split("/"):
        if segment != segment.strip():
            raise ValidationError(f"非法路径: {path!r}")
        try:
            validate_name(segment)
        except ValidationError as exc:
            raise ValidationError(f"非法路径: {path!r}") from exc
    return path


def split_relative_path(relative_path: str) -> tuple[list[str], str]:
    """``"a/b/x.txt"`` -> ``(["a", "b"], "x.txt")``; a leading '/' is ignored."""
    raw = (relative_path or "").replace("\\", "/").lstrip("/")
    parts = raw.split("/")
    if not raw or any(not part.strip() for part in parts):
        raise ValidationError(f"非法相对路径: {relative_path!r}")
    folders = [validate_name(part) for part in parts[:-1]]
    return folders, validate_name(parts[-1])


def child_path(path: str, name: str) -> str:
    """The directory path addressed by folder ``name`` inside ``path``."""
    return f"{path}{name}/"


def build_object_key(owner_id: str, path: str, name: str, *, is_folder: bool = False) -> str:
    key = f"{owner_id}{path}{name}"
    return key + "/" if is_folder else key
