"""管理员路由：全局存储统计、上传计时器设置、用户启停。"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.admin import (
    StatsResponse,
    TimerResponse,
    TimerUpdateBody,
    UserListResponse,
    UserMutationResponse,
    UserUpdateBody,
)
from app.packages.drive.core.constants import HTTP_STATUS_OK
from app.packages.drive.core.dependencies import get_db, require_admin
from app.packages.drive.core.responses import create_response
from app.packages.drive.crud.users import user_crud
from app.packages.drive.models.user import User
from app.packages.drive.services.admin_service import admin_service
from app.packages.drive.services.auth_service import serialize_user
from app.packages.drive.services.timer_service import serialize_timer, timer_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=StatsResponse)
def read_stats(db: Session = Depends(get_db), _: User = Depends(require_admin)) -> StatsResponse:
    """全局与按用户的文件数量、容量统计（文件夹不计入）。"""
    return create_response("获取存储统计成功", admin_service.storage_stats(db), HTTP_STATUS_OK)


@router.get("/timer", response_model=TimerResponse)
def read_timer(db: Session = Depends(get_db), _: User = Depends(require_admin)) -> TimerResponse:
    config = timer_service.get_or_create(db)
    return create_response("获取计时器配置成功", serialize_timer(config), HTTP_STATUS_OK)


@router.post("/timer", response_model=TimerResponse)
def update_timer(
    payload: TimerUpdateBody,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> TimerResponse:
    config = timer_service.update(db, deadline=payload.deadline, is_active=payload.isActive)
    return create_response("计时器已更新", serialize_timer(config), HTTP_STATUS_OK)


@router.get("/users", response_model=UserListResponse)
def list_users(db: Session = Depends(get_db), _: User = Depends(require_admin)) -> UserListResponse:
    users = user_crud.list_all(db)
    return create_response("获取用户列表成功", [serialize_user(u) for u in users], HTTP_STATUS_OK)


@router.patch("/users/{user_id}", response_model=UserMutationResponse)
def update_user(
    user_id: str,
    payload: UserUpdateBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> UserMutationResponse:
    user = admin_service.update_user(
        db,
        current_user=current_user,
        user_id=user_id,
        is_active=payload.isActive,
        is_admin=payload.isAdmin,
    )
    return create_response("用户已更新", serialize_user(user), HTTP_STATUS_OK)
