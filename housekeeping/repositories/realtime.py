"""
房间变更推送 - 基于事件总线的订阅实现

仓储写入成功后调用 publish()，订阅方通过 subscribe() 收到 RoomChange
"""
from datetime import datetime
from typing import Optional
import logging
import threading

from roomcore.engine.event_bus import Event, EventBus, PublishResult
from housekeeping.models.entities import ChangeType, Room, RoomChange
from housekeeping.models.events import EventType
from housekeeping.repositories.interfaces import RoomChangeHandler, Subscription

logger = logging.getLogger(__name__)


class BusSubscription(Subscription):
    """事件总线上的订阅句柄"""

    def __init__(self, bus: EventBus, event_type: str, handler):
        self._bus = bus
        self._event_type = event_type
        self._handler = handler
        self._active = True
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._bus.unsubscribe(self._event_type, self._handler)


class RoomChangeFeed:
    """
    房间变更推送源

    Example:
        >>> feed = RoomChangeFeed()
        >>> sub = feed.subscribe(lambda change: print(change.room.room_number))
        >>> feed.publish(ChangeType.UPDATE, room)
        >>> sub.unsubscribe()
    """

    def __init__(self, bus: Optional[EventBus] = None, source: str = "rooms"):
        self._bus = bus if bus is not None else EventBus()
        self._source = source

    @property
    def bus(self) -> EventBus:
        return self._bus

    def subscribe(self, on_change: RoomChangeHandler) -> Subscription:
        def handle_room_changed(event: Event) -> None:
            on_change(event.data["change"])

        self._bus.subscribe(EventType.ROOM_CHANGED.value, handle_room_changed)
        return BusSubscription(self._bus, EventType.ROOM_CHANGED.value, handle_room_changed)

    def publish(self, change_type: ChangeType, room: Room) -> PublishResult:
        change = RoomChange(change_type=ChangeType(change_type), room=room.copy())
        return self._bus.publish(Event(
            event_type=EventType.ROOM_CHANGED.value,
            timestamp=datetime.now(),
            data={"change": change, "room_number": room.room_number},
            source=self._source,
        ))
