"""模型包初始化，便于统一导入 ORM 实体并触发模型注册。"""

from app.packages.drive.models.entry import Entry
from app.packages.drive.models.timer_config import TimerConfig
from app.packages.drive.models.user import User

__all__ = [
    "Entry",
    "TimerConfig",
    "User",
]
