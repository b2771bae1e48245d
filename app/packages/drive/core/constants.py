"""常量定义：HTTP 状态码、令牌类型与文件分类等共享常量。"""

from fastapi import status

HTTP_STATUS_OK = status.HTTP_200_OK
HTTP_STATUS_BAD_REQUEST = status.HTTP_400_BAD_REQUEST
HTTP_STATUS_UNAUTHORIZED = status.HTTP_401_UNAUTHORIZED
HTTP_STATUS_FORBIDDEN = status.HTTP_403_FORBIDDEN
HTTP_STATUS_NOT_FOUND = status.HTTP_404_NOT_FOUND
HTTP_STATUS_CONFLICT = status.HTTP_409_CONFLICT
HTTP_STATUS_INTERNAL_SERVER_ERROR = status.HTTP_500_INTERNAL_SERVER_ERROR

ACCESS_TOKEN_TYPE = "bearer"

ROOT_PATH = "/"
MAX_NAME_LENGTH = 255
DEFAULT_MIME_TYPE = "application/octet-stream"

TIMER_CONFIG_ID = "default"

# 列表过滤可选值
TYPE_CATEGORIES = ("all", "folder", "image", "document", "video", "audio", "archive")
DATE_RANGES = ("all", "today", "week", "month")
