"""访问会话存储：滑动过期，优先使用 Redis，连接不上时退回进程内存。

每个会话只记录所属用户；另按用户维护会话集合，管理员停用账号时据此一次性吊销。
"""

from __future__ import annotations

import threading
import time
import uuid
from typing import Optional

import redis

from app.packages.drive.core.config import get_settings
from app.packages.drive.core.logger import logger

SESSION_KEY_PREFIX = "drive:session:"
USER_SESSIONS_KEY_PREFIX = "drive:user-sessions:"


class SessionStore:
    def open(self, user_id: str, ttl_seconds: int) -> str:  # pragma: no cover - interface definition
        raise NotImplementedError

    def refresh(self, session_id: str, user_id: str, ttl_seconds: int) -> bool:  # pragma: no cover
        raise NotImplementedError

    def close(self, session_id: str) -> None:  # pragma: no cover
        raise NotImplementedError

    def close_all(self, user_id: str) -> int:  # pragma: no cover
        raise NotImplementedError


class RedisSessionStore(SessionStore):
    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    @classmethod
    def connect(cls, url: str) -> "RedisSessionStore":
        client = redis.Redis.from_url(url, decode_responses=True, socket_connect_timeout=2)
        client.ping()
        return cls(client)

    def open(self, user_id: str, ttl_seconds: int) -> str:
        session_id = uuid.uuid4().hex
        index_key = USER_SESSIONS_KEY_PREFIX + user_id
        pipe = self._redis.pipeline()
        pipe.set(SESSION_KEY_PREFIX + session_id, user_id, ex=ttl_seconds)
        pipe.sadd(index_key, session_id)
        pipe.expire(index_key, ttl_seconds)
        pipe.execute()
        return session_id

    def refresh(self, session_id: str, user_id: str, ttl_seconds: int) -> bool:
        key = SESSION_KEY_PREFIX + session_id
        if self._redis.get(key) != user_id:
            return False
        pipe = self._redis.pipeline()
        pipe.expire(key, ttl_seconds)
        pipe.expire(USER_SESSIONS_KEY_PREFIX + user_id, ttl_seconds)
        pipe.execute()
        return True

    def close(self, session_id: str) -> None:
        key = SESSION_KEY_PREFIX + session_id
        owner = self._redis.get(key)
        pipe = self._redis.pipeline()
        pipe.delete(key)
        if owner:
            pipe.srem(USER_SESSIONS_KEY_PREFIX + owner, session_id)
        pipe.execute()

    def close_all(self, user_id: str) -> int:
        index_key = USER_SESSIONS_KEY_PREFIX + user_id
        session_ids = self._redis.smembers(index_key)
        pipe = self._redis.pipeline()
        for session_id in session_ids:
            pipe.delete(SESSION_KEY_PREFIX + session_id)
        pipe.delete(index_key)
        pipe.execute()
        return len(session_ids)


class MemorySessionStore(SessionStore):
    """单进程内的会话表，供测试与本地开发使用。"""

    def __init__(self) -> None:
        self._sessions: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def open(self, user_id: str, ttl_seconds: int) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._sessions[session_id] = (user_id, time.monotonic() + ttl_seconds)
        return session_id

    def refresh(self, session_id: str, user_id: str, ttl_seconds: int) -> bool:
        now = time.monotonic()
        with self._lock:
            owner, expires_at = self._sessions.get(session_id, (None, 0.0))
            if owner != user_id or expires_at <= now:
                self._sessions.pop(session_id, None)
                return False
            self._sessions[session_id] = (owner, now + ttl_seconds)
            return True

    def close(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def close_all(self, user_id: str) -> int:
        with self._lock:
            doomed = [sid for sid, (owner, _) in self._sessions.items() if owner == user_id]
            for session_id in doomed:
                del self._sessions[session_id]
        return len(doomed)


_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    global _store
    if _store is None:
        url = get_settings().redis_url
        try:
            _store = RedisSessionStore.connect(url)
            logger.info("Session store backed by Redis at %s", url)
        except redis.RedisError as exc:
            logger.warning("Redis unavailable (%s), keeping sessions in process memory", exc)
            _store = MemorySessionStore()
    return _store


def use_session_store(store: Optional[SessionStore]) -> None:
    """替换全局会话存储；传入 ``None`` 时下次访问重新探测 Redis。"""
    global _store
    _store = store


def create_session(user_id: str, ttl_seconds: int) -> str:
    return get_session_store().open(user_id, ttl_seconds)


def touch_session(session_id: str, user_id: str, ttl_seconds: int) -> bool:
    """续期会话；会话不存在、已过期或不属于该用户时返回 ``False``。"""
    return get_session_store().refresh(session_id, user_id, ttl_seconds)


def delete_session(session_id: str) -> None:
    get_session_store().close(session_id)


def revoke_user_sessions(user_id: str) -> int:
    return get_session_store().close_all(user_id)
