"""公开的上传计时器查询路由，前端倒计时组件据此展示剩余时间。"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.admin import TimerResponse
from app.packages.drive.core.constants import HTTP_STATUS_OK
from app.packages.drive.core.dependencies import get_db
from app.packages.drive.core.responses import create_response
from app.packages.drive.services.timer_service import serialize_timer, timer_service

router = APIRouter(tags=["timer"])


@router.get("/timer-config", response_model=TimerResponse)
def read_timer_config(db: Session = Depends(get_db)) -> TimerResponse:
    config = timer_service.get_or_create(db)
    return create_response("获取计时器配置成功", serialize_timer(config), HTTP_STATUS_OK)
