"""
应用上下文 - 组装工作流引擎及其协作方

HTTP 层和测试都通过 build_context() 获得一套完整、相互独立的实例
"""
from dataclasses import dataclass
from typing import Callable, Optional
import logging

from sqlalchemy.orm import Session

from roomcore.engine.audit import AuditTrail
from roomcore.engine.clock import Clock, SystemClock
from roomcore.engine.event_bus import EventBus
from roomcore.notification.channel import NotificationCenter
from housekeeping.config import Settings, settings as default_settings
from housekeeping.repositories.interfaces import AuditRepository, RoomRepository, WorkLogRepository
from housekeeping.repositories.memory import (
    InMemoryAuditRepository, InMemoryRoomRepository, InMemoryWorkLogRepository
)
from housekeeping.repositories.realtime import RoomChangeFeed
from housekeeping.services.inspection_service import InspectionService
from housekeeping.services.room_registry import RoomRegistry
from housekeeping.services.staff_directory import StaffDirectory, load_roster
from housekeeping.services.ticker import TimerTicker
from housekeeping.services.workflow_engine import WorkflowEngine

logger = logging.getLogger(__name__)


@dataclass
class HousekeepingContext:
    settings: Settings
    clock: Clock
    event_bus: EventBus
    room_repository: RoomRepository
    work_log_repository: WorkLogRepository
    audit_repository: AuditRepository
    registry: RoomRegistry
    audit_trail: AuditTrail
    notifications: NotificationCenter
    engine: WorkflowEngine
    inspections: InspectionService
    staff: StaffDirectory
    ticker: TimerTicker

    def start(self) -> None:
        """加载房间、订阅推送、启动计时刷新"""
        self.engine.sync_rooms()
        self.engine.attach_realtime()
        self.ticker.start()

    def stop(self) -> None:
        self.ticker.stop()
        self.engine.detach_realtime()


def build_context(
    settings: Optional[Settings] = None,
    session_factory: Optional[Callable[[], Session]] = None,
    clock: Optional[Clock] = None,
    staff: Optional[StaffDirectory] = None,
) -> HousekeepingContext:
    """
    组装上下文

    Args:
        settings: 配置，默认使用全局 settings
        session_factory: 提供时使用 SQL 仓储，否则使用内存仓储
        clock: 时钟，默认系统时钟
        staff: 员工目录，默认从 STAFF_ROSTER_FILE 加载（未配置则为空）
    """
    settings = settings or default_settings
    clock = clock if clock is not None else SystemClock()
    bus = EventBus()
    feed = RoomChangeFeed(bus)

    if session_factory is not None:
        from housekeeping.repositories.sql import (
            SqlAuditRepository, SqlRoomRepository, SqlWorkLogRepository
        )
        room_repository = SqlRoomRepository(session_factory, feed=feed, clock=clock)
        work_log_repository = SqlWorkLogRepository(session_factory, clock=clock)
        audit_repository = SqlAuditRepository(session_factory)
    else:
        room_repository = InMemoryRoomRepository(feed=feed, clock=clock)
        work_log_repository = InMemoryWorkLogRepository(clock=clock)
        audit_repository = InMemoryAuditRepository()

    if staff is None:
        staff = load_roster(settings.STAFF_ROSTER_FILE) if settings.STAFF_ROSTER_FILE else StaffDirectory()

    registry = RoomRegistry(now=clock.now)
    audit_trail = AuditTrail(audit_repository)
    notifications = NotificationCenter(limit=settings.NOTIFICATION_LIMIT, clock=clock)
    engine = WorkflowEngine(
        registry=registry,
        room_repository=room_repository,
        work_log_repository=work_log_repository,
        audit_trail=audit_trail,
        notifications=notifications,
        clock=clock,
        event_publisher=bus.publish,
    )
    logger.info(f"Housekeeping context built ({type(room_repository).__name__})")

    return HousekeepingContext(
        settings=settings,
        clock=clock,
        event_bus=bus,
        room_repository=room_repository,
        work_log_repository=work_log_repository,
        audit_repository=audit_repository,
        registry=registry,
        audit_trail=audit_trail,
        notifications=notifications,
        engine=engine,
        inspections=InspectionService(engine, pass_score=settings.INSPECTION_PASS_SCORE),
        staff=staff,
        ticker=TimerTicker(engine.tick_all, interval=settings.TIMER_TICK_SECONDS),
    )
