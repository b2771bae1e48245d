"""上传截止计时器服务：读取（缺省时按配置天数创建）与管理员更新。"""

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.packages.drive.core.config import get_settings
from app.packages.drive.core.logger import logger
from app.packages.drive.core.timezone import get_timezone, to_iso, utc_now
from app.packages.drive.crud.timer_config import timer_config_crud
from app.packages.drive.models.timer_config import TimerConfig


def serialize_timer(config: TimerConfig) -> dict[str, Any]:
    return {
        "id": config.id,
        "deadline": to_iso(config.deadline),
        "isActive": bool(config.is_active),
        "updatedAt": to_iso(config.update_time),
    }


class TimerService:
    def get_or_create(self, db: Session) -> TimerConfig:
        config = timer_config_crud.get_current(db)
        if config is None:
            deadline = utc_now() + timedelta(days=get_settings().timer_default_days)
            config = timer_config_crud.upsert(db, deadline=deadline, is_active=True)
            logger.info("Default upload deadline created: %s", deadline.isoformat())
        return config

    def update(self, db: Session, *, deadline: datetime, is_active: bool = True) -> TimerConfig:
        # 未带时区的输入按配置时区解释，库内统一按 UTC 存储
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=get_timezone())
        config = timer_config_crud.upsert(db, deadline=deadline.astimezone(timezone.utc), is_active=is_active)
        logger.info("Upload deadline updated: deadline=%s active=%s", deadline.isoformat(), is_active)
        return config


timer_service = TimerService()
