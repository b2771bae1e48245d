"""日志配置模块：统一控制台与按天滚动文件的输出格式，并为每条记录带上请求 ID。"""

import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Optional

from .config import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("drive_request_id", default=None)


class _TZFormatter(logging.Formatter):
    """按配置时区输出毫秒级时间戳。"""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:  # noqa: N802
        stamp = datetime.fromtimestamp(record.created, get_settings().timezone_info)
        return stamp.strftime(datefmt) if datefmt else stamp.isoformat(sep=" ", timespec="milliseconds")


class ColorFormatter(_TZFormatter):
    """终端输出时按级别着色，重定向到文件或管道时保持纯文本。"""

    _LEVEL_COLORS = {
        "DEBUG": "36",
        "INFO": "32",
        "WARNING": "33",
        "ERROR": "31",
        "CRITICAL": "41",
    }

    def __init__(self, fmt: str = LOG_FORMAT, datefmt: Optional[str] = None, use_colors: Optional[bool] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_colors = sys.stderr.isatty() if use_colors is None else use_colors

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        code = self._LEVEL_COLORS.get(record.levelname) if self.use_colors else None
        return f"\033[{code}m{text}\033[0m" if code else text


class JsonFormatter(_TZFormatter):
    """每条记录输出为一行 JSON，便于日志平台采集。"""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", None),
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_ctx.get() or "-"
        return True


def _build_config(settings: Settings) -> dict[str, Any]:
    level = settings.log_level
    console_formatter = "json" if settings.log_json else "color"
    file_formatter = "json" if settings.log_json else "plain"
    handler_names = ["console", "file"]
    module = __name__

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "color": {"()": f"{module}.ColorFormatter", "fmt": LOG_FORMAT},
            "plain": {"()": f"{module}._TZFormatter", "format": LOG_FORMAT},
            "json": {"()": f"{module}.JsonFormatter"},
        },
        "filters": {"request_id": {"()": f"{module}.RequestIdFilter"}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": console_formatter,
                "filters": ["request_id"],
            },
            "file": {
                "class": "logging.handlers.TimedRotatingFileHandler",
                "level": level,
                "formatter": file_formatter,
                "filters": ["request_id"],
                "filename": str(settings.log_file_path),
                "when": "midnight",
                "backupCount": 14,
                "encoding": "utf-8",
                "delay": True,
            },
        },
        "loggers": {
            name: {"handlers": handler_names, "level": level, "propagate": False}
            for name in ("app", "uvicorn", "uvicorn.error", "uvicorn.access")
        },
        "root": {"handlers": handler_names, "level": level},
    }


def setup_logging() -> None:
    """按当前配置初始化日志；日志目录不存在时自动创建。"""
    settings = get_settings()
    settings.log_directory.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(_build_config(settings))


logger = logging.getLogger("app")


def set_request_id(request_id: Optional[str]) -> None:
    _request_id_ctx.set(request_id)
