"""上传截止计时器：全局单行配置，主键固定为 ``default``。"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.drive.core.constants import TIMER_CONFIG_ID
from app.packages.drive.models.base import Base, TimestampMixin


class TimerConfig(TimestampMixin, Base):
    __tablename__ = "timer_config"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=TIMER_CONFIG_ID)
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
