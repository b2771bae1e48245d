"""上传窗口闸门：判断当前是否允许写操作（新建文件夹、上传文件、上传目录树）。

闸门作为依赖注入到网盘核心，测试中可以替换为固定开/关的实现。
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.packages.drive.core.timezone import now as tz_now
from app.packages.drive.core.timezone import to_local
from app.packages.drive.crud.timer_config import timer_config_crud


class UploadGate:
    """闸门接口。"""

    def is_open(self, db: Session, now: Optional[datetime] = None) -> bool:  # pragma: no cover - interface definition
        raise NotImplementedError


class TimerUploadGate(UploadGate):
    """读取全局计时器：未配置时放行；否则仅在截止前且计时器启用时放行。"""

    def is_open(self, db: Session, now: Optional[datetime] = None) -> bool:
        config = timer_config_crud.get_current(db)
        if config is None:
            return True
        current = to_local(now) if now is not None else tz_now()
        return bool(config.is_active) and current < to_local(config.deadline)


class FixedUploadGate(UploadGate):
    def __init__(self, open: bool = True) -> None:
        self.open = open

    def is_open(self, db: Session, now: Optional[datetime] = None) -> bool:
        return self.open
