"""
测试 housekeeping.services.context - 上下文组装
"""
from housekeeping.config import Settings
from housekeeping.models.entities import RoomStatus
from housekeeping.models.events import EventType
from housekeeping.services.context import build_context

from conftest import sample_rooms


def _context(clock, staff_directory):
    context = build_context(Settings(NOTIFICATION_LIMIT=50), clock=clock, staff=staff_directory)
    for room in sample_rooms():
        context.room_repository.add_room(room)
    context.engine.sync_rooms()
    return context


class TestBuildContext:
    def test_engine_shares_collaborators(self, clock, staff_directory):
        """测试引擎使用上下文中的同一组审计、通知、注册表和时钟（即使它们此时为空）"""
        context = build_context(Settings(NOTIFICATION_LIMIT=50), clock=clock, staff=staff_directory)

        assert context.engine.audit_trail is context.audit_trail
        assert context.engine.notifications is context.notifications
        assert context.engine.registry is context.registry
        assert context.engine.clock is clock
        assert context.inspections.engine is context.engine

    def test_change_reaches_audit_repository(self, clock, staff_directory, manager):
        """测试房态变更写入上下文的审计仓储并出现在上下文的通知中"""
        context = _context(clock, staff_directory)

        context.engine.change_status("r-a102", RoomStatus.OCCUPIED, manager)

        assert len(context.audit_repository) == 1
        assert len(context.audit_trail) == 1
        assert context.notifications.list()[0].title == "Status updated"

    def test_engine_events_reach_context_bus(self, clock, staff_directory, manager):
        context = _context(clock, staff_directory)
        received = []
        context.event_bus.subscribe(EventType.ROOM_STATUS_CHANGED.value, received.append)

        context.engine.change_status("r-a102", RoomStatus.OCCUPIED, manager)

        assert [e.data["room_number"] for e in received] == ["A102"]
