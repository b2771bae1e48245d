"""网盘文件与文件夹路由：列表、上传、目录树上传、新建文件夹、下载、删除。

路由只负责解析请求（查询参数、multipart）与组装响应，命名空间规则全部交给 ``DriveService``。
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.files import (
    BulkDeleteBody,
    EntryResponse,
    FilesListResponse,
    FilesMutationResponse,
    FolderCreateBody,
)
from app.packages.drive.core.constants import DEFAULT_MIME_TYPE, HTTP_STATUS_OK
from app.packages.drive.core.dependencies import get_current_active_user, get_db
from app.packages.drive.core.exceptions import ValidationError
from app.packages.drive.core.responses import create_response
from app.packages.drive.models.user import User
from app.packages.drive.services.drive_service import (
    DriveService,
    ListFilters,
    TreeUploadItem,
    get_drive_service,
    serialize_entry,
)
from app.packages.drive.utils.path_utils import normalize_dir_path

router = APIRouter(tags=["files"])


@router.get("/files", response_model=FilesListResponse)
def list_files(
    path: Optional[str] = Query("/"),
    search: Optional[str] = Query(None),
    file_type: Optional[str] = Query("all", alias="fileType"),
    date_range: Optional[str] = Query("all", alias="dateRange"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    service: DriveService = Depends(get_drive_service),
):
    """列出目录的直接子条目，文件夹在前、名称升序。"""
    entries = service.list_entries(
        db,
        current_user.id,
        normalize_dir_path(path),
        ListFilters(name_substring=search, type_category=file_type, date_range=date_range),
    )
    return create_response("获取文件列表成功", [serialize_entry(e) for e in entries], HTTP_STATUS_OK)


@router.post("/files/folder", response_model=EntryResponse)
def create_folder(
    payload: FolderCreateBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    service: DriveService = Depends(get_drive_service),
):
    folder = service.create_folder(db, current_user.id, normalize_dir_path(payload.path), payload.name)
    return create_response("文件夹创建成功", serialize_entry(folder), HTTP_STATUS_OK)


@router.post("/files/upload", response_model=FilesListResponse)
async def upload_files(
    path: Optional[str] = Form("/"),
    files: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    service: DriveService = Depends(get_drive_service),
):
    """上传一个或多个文件到同一目录；单文件上传语义，遇到第一个错误即返回。"""
    target = normalize_dir_path(path)
    created = []
    for up in files:
        content = await up.read()
        entry = service.upload_file(db, current_user.id, target, up.filename or "", content, up.content_type)
        created.append(serialize_entry(entry))
    return create_response("上传成功", created, HTTP_STATUS_OK)


@router.post("/files/upload-folder", response_model=FilesMutationResponse)
async def upload_folder(
    path: Optional[str] = Form("/"),
    files: list[UploadFile] = File(...),
    relative_paths: Optional[list[str]] = Form(None, alias="relativePaths"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    service: DriveService = Depends(get_drive_service),
):
    """目录树上传：``relativePaths`` 与 ``files`` 一一对应，缺省时使用文件名本身。"""
    if relative_paths is not None and len(relative_paths) != len(files):
        raise ValidationError("relativePaths 数量与文件数量不一致")

    items: list[TreeUploadItem] = []
    for index, up in enumerate(files):
        rel = relative_paths[index] if relative_paths is not None else (up.filename or "")
        items.append(TreeUploadItem(relative_path=rel, content=await up.read(), mime_type=up.content_type))

    result = service.upload_tree(db, current_user.id, normalize_dir_path(path), items)
    data = {
        "entries": [serialize_entry(e) for e in result.entries],
        "errors": result.errors,
    }
    msg = "上传成功" if not result.errors else f"部分文件上传失败（{len(result.errors)} 项）"
    return create_response(msg, data, HTTP_STATUS_OK)


@router.get("/files/download/{entry_id}")
def download_file(
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    service: DriveService = Depends(get_drive_service),
):
    entry, body = service.open_download(db, current_user.id, entry_id)
    # 同名文件共享对象键，元数据中的 size 可能与对象实际长度不一致，不声明 Content-Length
    headers = {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(entry.name)}"}
    return StreamingResponse(body, media_type=entry.mime_type or DEFAULT_MIME_TYPE, headers=headers)


@router.delete("/files/{entry_id}", response_model=FilesMutationResponse)
def delete_file(
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    service: DriveService = Depends(get_drive_service),
):
    """删除文件或文件夹；文件夹会连同其全部后代一起删除。"""
    service.delete_entry(db, current_user.id, entry_id)
    return create_response("删除成功", {"id": entry_id}, HTTP_STATUS_OK)


@router.post("/files/bulk-delete", response_model=FilesMutationResponse)
def bulk_delete(
    payload: BulkDeleteBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    service: DriveService = Depends(get_drive_service),
):
    result = service.bulk_delete(db, current_user.id, payload.ids)
    data = {"deletedCount": result.deleted_count, "errors": result.errors}
    msg = "删除成功" if not result.errors else f"部分条目删除失败（{len(result.errors)} 项）"
    return create_response(msg, data, HTTP_STATUS_OK)
