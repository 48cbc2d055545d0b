"""
内存仓储实现 - 用于测试和单机演示
"""
from typing import Dict, Iterable, List, Optional
import logging
import threading
import uuid

from roomcore.engine.audit import AuditLogEntry
from roomcore.engine.clock import Clock, SystemClock
from roomcore.engine.errors import NotFound
from housekeeping.models.entities import (
    ChangeType, Room, RoomStatus, TaskType, WorkLog, WorkLogStatus
)
from housekeeping.models.schemas import AuditLogFilter, WorkLogFilter
from housekeeping.repositories.interfaces import (
    AuditRepository, RoomChangeHandler, RoomRepository, Subscription, WorkLogRepository
)
from housekeeping.repositories.realtime import RoomChangeFeed

logger = logging.getLogger(__name__)


class InMemoryRoomRepository(RoomRepository):
    """内存房间仓储，写入后通过 RoomChangeFeed 推送变更"""

    def __init__(
        self,
        rooms: Iterable[Room] = (),
        feed: Optional[RoomChangeFeed] = None,
        clock: Optional[Clock] = None,
    ):
        self._rooms: Dict[str, Room] = {}
        self._feed = feed if feed is not None else RoomChangeFeed()
        self._clock = clock if clock is not None else SystemClock()
        self._lock = threading.Lock()
        for room in rooms:
            self._rooms[room.id] = room.copy()

    @property
    def feed(self) -> RoomChangeFeed:
        return self._feed

    def add_room(self, room: Room) -> None:
        """外部新增房间（触发 INSERT 推送）"""
        with self._lock:
            self._rooms[room.id] = room.copy()
        self._feed.publish(ChangeType.INSERT, room)

    def get(self, room_id: str) -> Room:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                raise NotFound("Room", room_id)
            return room.copy()

    def fetch_all(self) -> List[Room]:
        with self._lock:
            rooms = [room.copy() for room in self._rooms.values()]
        return sorted(rooms, key=lambda r: r.room_number)

    def patch_status(self, room_id: str, status: RoomStatus, assigned_to: Optional[str] = None) -> None:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                raise NotFound("Room", room_id)
            room.status = RoomStatus(status)
            room.assigned_to = assigned_to
            room.last_updated = self._clock.now()
            updated = room.copy()
        self._feed.publish(ChangeType.UPDATE, updated)

    def subscribe(self, on_change: RoomChangeHandler) -> Subscription:
        return self._feed.subscribe(on_change)


class InMemoryWorkLogRepository(WorkLogRepository):
    """内存工作日志仓储"""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock if clock is not None else SystemClock()
        self._logs: Dict[str, WorkLog] = {}
        self._lock = threading.Lock()

    def _get(self, log_id: str) -> WorkLog:
        log = self._logs.get(log_id)
        if log is None:
            raise NotFound("WorkLog", log_id)
        return log

    def get(self, log_id: str) -> WorkLog:
        with self._lock:
            return WorkLog(**vars(self._get(log_id)))

    def create(
        self,
        room_number: str,
        staff_id: str,
        task_type: TaskType,
        description: Optional[str] = None,
    ) -> str:
        log_id = uuid.uuid4().hex
        now = self._clock.now()
        with self._lock:
            self._logs[log_id] = WorkLog(
                id=log_id,
                room_number=room_number,
                staff_id=staff_id,
                task_type=task_type,
                start_time=now,
                description=description,
                created_at=now,
            )
        return log_id

    def pause(self, log_id: str, elapsed_seconds: int) -> None:
        with self._lock:
            log = self._get(log_id)
            log.pause_time = self._clock.now()
            log.total_duration = int(elapsed_seconds)
            log.status = WorkLogStatus.PAUSED

    def resume(self, log_id: str) -> None:
        with self._lock:
            log = self._get(log_id)
            log.pause_time = None
            log.status = WorkLogStatus.IN_PROGRESS

    def finish(self, log_id: str, total_seconds: int) -> None:
        with self._lock:
            log = self._get(log_id)
            log.end_time = self._clock.now()
            log.total_duration = int(total_seconds)
            log.status = WorkLogStatus.COMPLETED

    def query(self, filters: Optional[WorkLogFilter] = None) -> List[WorkLog]:
        filters = filters or WorkLogFilter()
        with self._lock:
            logs = [WorkLog(**vars(log)) for log in self._logs.values() if filters.matches(log)]
        return sorted(logs, key=lambda log: log.start_time, reverse=True)


class InMemoryAuditRepository(AuditRepository):
    """内存审计仓储（只追加）"""

    def __init__(self):
        self._entries: List[AuditLogEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: AuditLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def query(self, filters: Optional[AuditLogFilter] = None) -> List[AuditLogEntry]:
        filters = filters or AuditLogFilter()
        with self._lock:
            entries = [e for e in reversed(self._entries) if filters.matches(e)]
        if filters.limit is not None:
            entries = entries[:filters.limit]
        return entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
