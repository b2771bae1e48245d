"""上传计时器闸门测试：读取单行配置决定是否允许写操作。"""

from datetime import datetime, timedelta, timezone

from app.packages.drive.core.timezone import utc_now
from app.packages.drive.core.upload_gate import TimerUploadGate
from app.packages.drive.crud.timer_config import timer_config_crud
from app.packages.drive.models.timer_config import TimerConfig
from app.packages.drive.services.timer_service import serialize_timer, timer_service


def test_gate_is_open_without_config(db_session_fixture, clean_timer):
    assert TimerUploadGate().is_open(db_session_fixture) is True


def test_gate_follows_deadline(db_session_fixture, clean_timer):
    deadline = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    timer_config_crud.upsert(db_session_fixture, deadline=deadline, is_active=True)
    gate = TimerUploadGate()

    assert gate.is_open(db_session_fixture, deadline - timedelta(seconds=1)) is True
    assert gate.is_open(db_session_fixture, deadline) is False
    assert gate.is_open(db_session_fixture, deadline + timedelta(days=1)) is False


def test_inactive_timer_closes_gate(db_session_fixture, clean_timer):
    timer_config_crud.upsert(db_session_fixture, deadline=utc_now() + timedelta(days=1), is_active=False)
    assert TimerUploadGate().is_open(db_session_fixture) is False


def test_get_or_create_uses_default_days(db_session_fixture, clean_timer):
    before = utc_now()
    config = timer_service.get_or_create(db_session_fixture)
    again = timer_service.get_or_create(db_session_fixture)

    assert config.id == again.id == "default"
    assert config.is_active is True
    deadline = config.deadline.replace(tzinfo=config.deadline.tzinfo or timezone.utc)
    assert deadline - before >= timedelta(days=29)
    assert db_session_fixture.query(TimerConfig).count() == 1


def test_update_interprets_naive_deadline_in_configured_timezone(db_session_fixture, clean_timer):
    config = timer_service.update(db_session_fixture, deadline=datetime(2031, 5, 1, 8, 30), is_active=True)
    payload = serialize_timer(config)

    # 测试环境时区为 UTC
    assert payload["deadline"].startswith("2031-05-01T08:30:00")
    assert payload["isActive"] is True
    assert TimerUploadGate().is_open(db_session_fixture, datetime(2031, 5, 1, 8, 29, tzinfo=timezone.utc)) is True
