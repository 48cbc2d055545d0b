"""
Pytest 配置和共享 fixtures
"""
import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from roomcore.engine.audit import AuditTrail
from roomcore.engine.clock import ManualClock
from roomcore.engine.errors import RepositoryFailure
from roomcore.engine.event_bus import EventBus
from roomcore.notification.channel import NotificationCenter
from housekeeping.config import Settings
from housekeeping.database import Base
from housekeeping.models import ontology  # noqa
from housekeeping.models.entities import Room, RoomStatus, Staff, StaffRole
from housekeeping.repositories.memory import (
    InMemoryAuditRepository, InMemoryRoomRepository, InMemoryWorkLogRepository
)
from housekeeping.repositories.realtime import RoomChangeFeed
from housekeeping.services.context import build_context
from housekeeping.services.room_registry import RoomRegistry
from housekeeping.services.staff_directory import StaffDirectory
from housekeeping.services.workflow_engine import WorkflowEngine
from housekeeping.main import create_app


def make_room(room_id, room_number, status, building="A", floor=1, room_type="Standard", **extra):
    return Room(
        id=room_id,
        room_number=room_number,
        building=building,
        floor=floor,
        room_type=room_type,
        status=status,
        last_updated=datetime(2024, 1, 1, 7, 0, 0),
        **extra,
    )


def sample_rooms():
    return [
        make_room("r-a101", "A101", RoomStatus.DIRTY),
        make_room("r-a102", "A102", RoomStatus.VACANT_CLEAN),
        make_room("r-a201", "A201", RoomStatus.CHECKOUT_INSPECTED, floor=2),
        make_room("r-b201", "B201", RoomStatus.OCCUPIED, building="B", floor=2, guest_name="Chen Jie", is_vip=True),
        make_room("r-b203", "B203", RoomStatus.OUT_OF_ORDER, building="B", floor=2),
    ]


class FailingAuditRepository(InMemoryAuditRepository):
    """可切换为写入失败的审计仓储"""

    def __init__(self):
        super().__init__()
        self.fail = False

    def append(self, entry):
        if self.fail:
            raise RepositoryFailure("audit_logs.append", ConnectionError("audit store offline"))
        super().append(entry)


class FailingRoomRepository(InMemoryRoomRepository):
    """可切换为写入失败的房间仓储"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail = False

    def patch_status(self, room_id, status, assigned_to=None):
        if self.fail:
            raise ConnectionError("rooms store offline")
        super().patch_status(room_id, status, assigned_to)


# ============== 引擎相关 Fixtures ==============

@pytest.fixture
def clock():
    """手动推进的时钟"""
    return ManualClock(datetime(2024, 1, 1, 8, 0, 0))


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def room_repo(clock, event_bus):
    return FailingRoomRepository(sample_rooms(), feed=RoomChangeFeed(event_bus), clock=clock)


@pytest.fixture
def work_log_repo(clock):
    return InMemoryWorkLogRepository(clock=clock)


@pytest.fixture
def audit_repo():
    return FailingAuditRepository()


@pytest.fixture
def notifications(clock):
    return NotificationCenter(limit=50, clock=clock)


@pytest.fixture
def registry(room_repo, clock):
    return RoomRegistry(room_repo.fetch_all(), now=clock.now)


@pytest.fixture
def engine(registry, room_repo, work_log_repo, audit_repo, notifications, clock, event_bus):
    return WorkflowEngine(
        registry=registry,
        room_repository=room_repo,
        work_log_repository=work_log_repo,
        audit_trail=AuditTrail(audit_repo),
        notifications=notifications,
        clock=clock,
        event_publisher=event_bus.publish,
    )


# ============== 员工 Fixtures ==============

@pytest.fixture
def housekeeper():
    return Staff(id="hk-1", full_name="Maria Lopez", role=StaffRole.HOUSEKEEPING)


@pytest.fixture
def housekeeper2():
    return Staff(id="hk-2", full_name="Ahmed Aziz", role=StaffRole.HOUSEKEEPING)


@pytest.fixture
def supervisor():
    return Staff(id="sv-1", full_name="Lena Park", role=StaffRole.SUPERVISOR)


@pytest.fixture
def engineer():
    return Staff(id="en-1", full_name="Tom Becker", role=StaffRole.ENGINEERING)


@pytest.fixture
def manager():
    return Staff(id="mg-1", full_name="Grace Kim", role=StaffRole.MANAGER)


@pytest.fixture
def staff_directory(housekeeper, housekeeper2, supervisor, engineer, manager):
    return StaffDirectory([housekeeper, housekeeper2, supervisor, engineer, manager])


# ============== 数据库 Fixtures ==============

@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """创建数据库会话工厂"""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


# ============== API Fixtures ==============

@pytest.fixture
def app_context(clock, staff_directory):
    """内存仓储的应用上下文，预置样例房间"""
    context = build_context(
        Settings(TIMER_TICK_SECONDS=0.05, NOTIFICATION_LIMIT=50),
        clock=clock,
        staff=staff_directory,
    )
    for room in sample_rooms():
        context.room_repository.add_room(room)
    return context


@pytest.fixture(scope="function")
def client(app_context):
    """创建测试客户端"""
    app = create_app(app_context)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def headers_for():
    """按员工生成请求头"""
    def _headers(staff):
        return {"X-Staff-Id": staff.id}
    return _headers
