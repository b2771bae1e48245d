"""配置模块：从环境变量与 .env 文件加载网盘服务的全部设置。

加载顺序：若设置了 ``ENV_FILE`` 则只读取该文件；否则先读 ``.env``，
再叠加 ``.env.<ENVIRONMENT>``（``DEBUG`` 为真且未指定环境时取 ``development``）。
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# app/packages/drive/core/config.py -> 项目根目录
PROJECT_ROOT = Path(__file__).resolve().parents[4]

_TRUTHY = {"1", "true", "yes", "on"}


def _read_env_file(path: Path, *, override: bool) -> None:
    if path.is_file():
        load_dotenv(path, override=override, encoding="utf-8")


def _load_env_files() -> None:
    explicit = os.getenv("ENV_FILE")
    if explicit:
        _read_env_file(PROJECT_ROOT / explicit, override=True)
        return

    _read_env_file(PROJECT_ROOT / ".env", override=False)
    environment = os.getenv("ENVIRONMENT")
    if not environment and (os.getenv("DEBUG") or "").strip().lower() in _TRUTHY:
        environment = "development"
    if environment:
        name = environment if environment.startswith(".env") else f".env.{environment}"
        _read_env_file(PROJECT_ROOT / name, override=True)


_load_env_files()


class Settings(BaseSettings):
    """网盘服务设置，每一项都可以用同名大写环境变量覆盖。"""

    model_config = SettingsConfigDict(extra="ignore")

    # 应用
    project_name: str = Field(default="HackFiles API", alias="PROJECT_NAME")
    api_v1_str: str = Field(default="/api/v1", alias="API_V1_STR")
    debug: bool = Field(default=False, alias="DEBUG")
    app_port: int = Field(default=8000, alias="APP_PORT")
    timezone: str = Field(default="UTC", alias="TIMEZONE")

    # 元数据库：DATABASE_URL 优先，否则由 PostgreSQL 分项拼接
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    database_host: str = Field(default="localhost", alias="DATABASE_HOST")
    database_port: int = Field(default=5432, alias="DATABASE_PORT")
    database_user: str = Field(default="postgres", alias="DATABASE_USER")
    database_password: str = Field(default="postgres", alias="DATABASE_PASSWORD")
    database_name: str = Field(default="hackfiles", alias="DATABASE_NAME")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # 会话与令牌
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_db: int = Field(default=0, alias="REDIS_DB")
    jwt_secret_key: str = Field(default="changeme", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60 * 24 * 7, ge=1, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # 日志
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="log", alias="LOG_DIR")
    log_file_name: str = Field(default="app.log", alias="LOG_FILE_NAME")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    # 对象存储：LOCAL 用于开发与测试，S3 用于生产
    storage_type: str = Field(default="LOCAL", alias="STORAGE_TYPE")
    local_storage_root: str = Field(default="storage", alias="LOCAL_STORAGE_ROOT")
    aws_region: Optional[str] = Field(default=None, alias="AWS_REGION")
    aws_s3_bucket_name: Optional[str] = Field(default=None, alias="AWS_S3_BUCKET_NAME")
    aws_access_key_id: Optional[str] = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = Field(default=None, alias="AWS_SECRET_ACCESS_KEY")
    aws_endpoint_url: Optional[str] = Field(default=None, alias="AWS_ENDPOINT_URL")

    # 上传截止：库中还没有计时器时，首次读取默认截止于 N 天之后
    timer_default_days: int = Field(default=30, ge=1, alias="TIMER_DEFAULT_DAYS")

    # 启动时保证存在的管理员账号
    admin_email: str = Field(default="admin@hackfiles.local", alias="ADMIN_EMAIL")
    admin_password: str = Field(default="admin123", alias="ADMIN_PASSWORD")

    @field_validator("storage_type", "log_level")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def sql_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def redis_url(self) -> str:
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @property
    def log_directory(self) -> Path:
        return _from_project_root(self.log_dir)

    @property
    def log_file_path(self) -> Path:
        return self.log_directory / self.log_file_name

    @property
    def local_storage_path(self) -> Path:
        """LOCAL 对象存储根目录，相对路径以项目根目录为基准。"""
        return _from_project_root(self.local_storage_root)

    @property
    def timezone_info(self) -> ZoneInfo:
        """无法识别的时区名称回退到 UTC。"""
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            return ZoneInfo("UTC")


def _from_project_root(raw: str) -> Path:
    path = Path(raw)
    return path if path.is_absolute() else PROJECT_ROOT / path


@lru_cache
def get_settings() -> Settings:
    return Settings()
