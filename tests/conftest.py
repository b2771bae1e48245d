"""测试夹具：为 pytest 提供数据库、对象存储与客户端的共享配置。"""

import os
import uuid
from typing import Callable, Generator

import pytest

TEST_DB_PATH = os.path.join(os.path.dirname(__file__), "test.db")
TEST_DATABASE_URL = f"sqlite:///{TEST_DB_PATH}"

# 必须在导入应用之前设置，get_settings() 带缓存
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["TIMEZONE"] = "UTC"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from app.main import app  # noqa: E402
from app.packages.drive.core import session as session_store  # noqa: E402
from app.packages.drive.core.config import get_settings  # noqa: E402
from app.packages.drive.core.dependencies import get_db  # noqa: E402
from app.packages.drive.core.security import hash_password  # noqa: E402
from app.packages.drive.core.upload_gate import FixedUploadGate  # noqa: E402
from app.packages.drive.crud.users import user_crud  # noqa: E402
from app.packages.drive.db import session as db_session  # noqa: E402
from app.packages.drive.db.init_db import init_db  # noqa: E402
from app.packages.drive.models.base import Base  # noqa: E402
from app.packages.drive.models.timer_config import TimerConfig  # noqa: E402
from app.packages.drive.models.user import User  # noqa: E402
from app.packages.drive.services.drive_service import DriveService, get_drive_service  # noqa: E402
from app.packages.drive.services.object_store import LocalObjectStore  # noqa: E402

TEST_PASSWORD = "secret123"


@pytest.fixture(scope="session", autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """创建隔离的 SQLite 测试数据库，并在会话结束后清理。"""
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)

    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False)

    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal
    session_store.use_session_store(session_store.MemorySessionStore())

    Base.metadata.create_all(bind=engine)
    init_db()
    yield

    engine.dispose()
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest.fixture()
def db_session_fixture() -> Generator[Session, None, None]:
    """提供给测试用例使用的数据库会话。"""
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db_session_fixture: Session) -> Callable[..., User]:
    """创建带随机邮箱的普通用户，用于隔离各用例的命名空间。"""

    def _make(*, is_admin: bool = False, is_active: bool = True, password: str = TEST_PASSWORD) -> User:
        return user_crud.create(
            db_session_fixture,
            {
                "email": f"user-{uuid.uuid4().hex[:10]}@example.com",
                "hashed_password": hash_password(password),
                "first_name": "Test",
                "last_name": "User",
                "is_admin": is_admin,
                "is_active": is_active,
            },
        )

    return _make


@pytest.fixture()
def upload_gate() -> FixedUploadGate:
    return FixedUploadGate(open=True)


@pytest.fixture()
def object_store(tmp_path) -> LocalObjectStore:
    return LocalObjectStore(tmp_path / "objects")


@pytest.fixture()
def drive_service(object_store: LocalObjectStore, upload_gate: FixedUploadGate) -> DriveService:
    return DriveService(object_store, upload_gate)


@pytest.fixture()
def client(db_session_fixture, drive_service: DriveService):
    """构建 FastAPI TestClient，并注入测试专用的数据库与网盘服务依赖。"""
    def override_get_db() -> Generator[Session, None, None]:
        session = db_session.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_drive_service] = lambda: drive_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def login_as(client: TestClient) -> Callable[..., dict[str, str]]:
    """登录并返回带 Bearer 令牌的请求头。"""

    def _login(email: str, password: str = TEST_PASSWORD) -> dict[str, str]:
        resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}

    return _login


@pytest.fixture()
def user_headers(make_user, login_as) -> tuple[User, dict[str, str]]:
    user = make_user()
    return user, login_as(user.email)


@pytest.fixture()
def admin_headers(login_as) -> dict[str, str]:
    settings = get_settings()
    return login_as(settings.admin_email, settings.admin_password)


@pytest.fixture()
def clean_timer(db_session_fixture):
    """计时器是全局单行配置，用例前后都清空，避免影响其它测试。"""
    db_session_fixture.query(TimerConfig).delete()
    db_session_fixture.commit()
    yield
    db_session_fixture.query(TimerConfig).delete()
    db_session_fixture.commit()
