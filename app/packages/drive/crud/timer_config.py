"""上传截止计时器 CRUD：单行配置的读取与 upsert。"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.packages.drive.core.constants import TIMER_CONFIG_ID
from app.packages.drive.crud.base import CRUDBase
from app.packages.drive.models.timer_config import TimerConfig


class CRUDTimerConfig(CRUDBase[TimerConfig]):
    def get_current(self, db: Session) -> Optional[TimerConfig]:
        return self.get(db, TIMER_CONFIG_ID)

    def upsert(self, db: Session, *, deadline: datetime, is_active: bool = True) -> TimerConfig:
        config = self.get_current(db)
        if config is None:
            return self.create(db, {"id": TIMER_CONFIG_ID, "deadline": deadline, "is_active": is_active})
        config.deadline = deadline
        config.is_active = is_active
        return self.save(db, config)


timer_config_crud = CRUDTimerConfig(TimerConfig)
