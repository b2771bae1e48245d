"""网盘 - 文件/文件夹 操作请求/响应模型。"""

from typing import Any

from pydantic import BaseModel, Field

from app.packages.drive.api.v1.schemas.common import ResponseEnvelope


class FolderCreateBody(BaseModel):
    name: str
    path: str = "/"


class BulkDeleteBody(BaseModel):
    ids: list[str] = Field(..., min_length=1)


FilesListResponse = ResponseEnvelope[list[dict]]
EntryResponse = ResponseEnvelope[dict]
FilesMutationResponse = ResponseEnvelope[Any]
