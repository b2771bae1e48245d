"""元数据库引擎与会话工厂。

其它模块通过 ``session.SessionLocal`` 的模块属性访问工厂，测试可以整体替换。
"""

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.packages.drive.core.config import get_settings


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        # 同一连接会被请求线程池中的不同线程使用
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


settings = get_settings()
engine = create_engine(settings.sql_database_url, echo=settings.database_echo, **_engine_options(settings.sql_database_url))
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)
