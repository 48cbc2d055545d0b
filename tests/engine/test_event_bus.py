"""
事件总线单元测试
"""
import pytest
from datetime import datetime
from unittest.mock import Mock

from roomcore.engine.event_bus import ALL_EVENTS, Event, EventBus


class TestEventBus:
    """事件总线测试"""

    @pytest.fixture
    def bus(self):
        return EventBus(history_size=10)

    @pytest.fixture
    def sample_event(self):
        """创建示例事件"""
        return Event(
            event_type="room.status_changed",
            timestamp=datetime.now(),
            data={"room_number": "A101"},
            source="test"
        )

    def test_subscribe_and_publish(self, bus, sample_event):
        """测试订阅和发布"""
        received = []
        bus.subscribe("room.status_changed", received.append)
        result = bus.publish(sample_event)

        assert received == [sample_event]
        assert result.subscriber_count == 1
        assert result.success_count == 1

    def test_instances_are_independent(self, sample_event):
        """测试不同实例互不共享订阅"""
        first, second = EventBus(), EventBus()
        handler = Mock()
        first.subscribe("room.status_changed", handler)
        second.publish(sample_event)
        handler.assert_not_called()

    def test_duplicate_subscription_ignored(self, bus, sample_event):
        handler = Mock()
        bus.subscribe("room.status_changed", handler)
        bus.subscribe("room.status_changed", handler)
        bus.publish(sample_event)
        assert handler.call_count == 1

    def test_unsubscribe(self, bus, sample_event):
        """测试取消订阅"""
        handler = Mock()
        bus.subscribe("room.status_changed", handler)
        assert bus.unsubscribe("room.status_changed", handler)
        assert not bus.unsubscribe("room.status_changed", handler)
        bus.publish(sample_event)
        handler.assert_not_called()

    def test_handler_error_isolated(self, bus, sample_event):
        """测试处理器异常不影响其他处理器"""
        def failing(event):
            raise RuntimeError("boom")

        ok = Mock()
        bus.subscribe("room.status_changed", failing)
        bus.subscribe("room.status_changed", ok)
        result = bus.publish(sample_event)

        ok.assert_called_once_with(sample_event)
        assert result.failure_count == 1
        assert result.success_count == 1
        assert isinstance(result.errors[0][1], RuntimeError)

    def test_wildcard_subscription(self, bus, sample_event):
        """测试通配订阅"""
        handler = Mock()
        bus.subscribe(ALL_EVENTS, handler)
        bus.publish(sample_event)
        bus.publish(Event(event_type="task.started", timestamp=datetime.now(), data={}))
        assert handler.call_count == 2
        assert bus.has_subscribers("anything")

    def test_history_newest_first(self, bus):
        """测试事件历史"""
        for i in range(12):
            bus.publish(Event(event_type="task.started", timestamp=datetime.now(), data={"i": i}))
        history = bus.get_history(limit=50)
        assert len(history) == 10
        assert history[0].data["i"] == 11
        assert bus.get_history(event_type="room.status_changed") == []

    def test_clear(self, bus, sample_event):
        handler = Mock()
        bus.subscribe("room.status_changed", handler)
        bus.publish(sample_event)
        bus.clear()
        bus.publish(sample_event)
        assert handler.call_count == 1
        assert len(bus.get_history()) == 1
