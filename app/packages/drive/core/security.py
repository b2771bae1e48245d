"""凭证工具：bcrypt 密码哈希与访问令牌（JWT）的签发、解析。

访问令牌只携带身份与会话 ID。真正的有效期由会话存储的滑动 TTL 决定，
因此解析时不校验 ``exp``；会话被吊销后，即使令牌本身未过期也无法通过认证。
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from .config import get_settings
from .logger import logger

_ENCODING = "utf-8"


@dataclass(frozen=True)
class AccessClaims:
    user_id: str
    email: str
    session_id: str


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(_ENCODING), bcrypt.gensalt()).decode(_ENCODING)


def check_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(_ENCODING), hashed_password.encode(_ENCODING))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def session_ttl_seconds() -> int:
    """会话与令牌共用的有效期（秒），至少一分钟。"""
    return max(get_settings().access_token_expire_minutes, 1) * 60


def issue_access_token(claims: AccessClaims, *, ttl: Optional[timedelta] = None) -> str:
    settings = get_settings()
    payload = {
        "sub": claims.user_id,
        "email": claims.email,
        "sid": claims.session_id,
        "exp": datetime.now(timezone.utc) + (ttl or timedelta(seconds=session_ttl_seconds())),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def read_access_token(token: str) -> Optional[AccessClaims]:
    """签名合法且包含用户与会话标识时返回载荷，否则返回 ``None``。"""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False},
        )
    except JWTError as exc:
        logger.warning("Rejected access token: %s", exc)
        return None
    user_id, session_id = payload.get("sub"), payload.get("sid")
    if not user_id or not session_id:
        return None
    return AccessClaims(user_id=str(user_id), email=str(payload.get("email") or ""), session_id=str(session_id))
