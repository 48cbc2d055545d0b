"""
房间注册表 - 内存中的权威房间快照

只有工作流引擎（以及它持有的同步钩子）会写入；
读取方拿到的都是副本
"""
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging
import threading

from roomcore.engine.errors import NotFound
from housekeeping.models.entities import ChangeType, Room, RoomChange, RoomStatus

logger = logging.getLogger(__name__)

# apply_patch 允许修改的字段
PATCHABLE_FIELDS = frozenset({
    "status",
    "assigned_to",
    "current_task",
    "last_updated",
    "guest_name",
    "notes",
})

# 外部推送合并时保留本地值的字段
LOCAL_ONLY_FIELDS = frozenset({"current_task"})


class RoomRegistry:
    """房间注册表"""

    def __init__(self, rooms: Iterable[Room] = (), now: Optional[Callable[[], datetime]] = None):
        self._rooms: Dict[str, Room] = {}
        self._by_number: Dict[str, str] = {}
        self._now = now or datetime.now
        self._lock = threading.RLock()
        if rooms:
            self.replace_all(rooms)

    def get(self, room_id: str) -> Room:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                raise NotFound("Room", room_id)
            return room.copy()

    def find_by_number(self, room_number: str) -> Room:
        with self._lock:
            room_id = self._by_number.get(room_number)
            if room_id is None:
                raise NotFound("Room", room_number)
            return self._rooms[room_id].copy()

    def replace_all(self, rooms: Iterable[Room]) -> None:
        """
        整体替换（启动/同步时调用）

        Raises:
            ValueError: 房间号重复
        """
        rooms_by_id: Dict[str, Room] = {}
        by_number: Dict[str, str] = {}
        for room in rooms:
            if room.room_number in by_number:
                raise ValueError(f"duplicate room number {room.room_number}")
            by_number[room.room_number] = room.id
            rooms_by_id[room.id] = room.copy()

        with self._lock:
            # 同步不会覆盖进行中任务的本地字段
            for room_id, room in rooms_by_id.items():
                previous = self._rooms.get(room_id)
                if previous is not None and previous.current_task is not None:
                    room.current_task = previous.current_task
            self._rooms = rooms_by_id
            self._by_number = by_number
        logger.info(f"Room registry loaded {len(rooms_by_id)} rooms")

    def apply_patch(self, room_id: str, **changes: Any) -> Room:
        """
        合并字段修改

        Returns:
            修改后的房间副本

        Raises:
            NotFound: 房间不存在
            ValueError: 字段不允许修改
        """
        unknown = set(changes) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot patch room fields: {', '.join(sorted(unknown))}")

        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                raise NotFound("Room", room_id)

            if "status" in changes:
                new_status = RoomStatus(changes["status"])
                changes["status"] = new_status
                if new_status != room.status and "last_updated" not in changes:
                    changes["last_updated"] = self._now()

            updated = room.copy(**changes)
            self._rooms[room_id] = updated
            return updated.copy()

    def apply_remote_change(self, change: RoomChange) -> None:
        """
        合并外部推送

        UPDATE 合并除本地字段外的所有字段，INSERT 新增，DELETE 忽略
        """
        remote = change.room
        with self._lock:
            if change.change_type == ChangeType.DELETE:
                logger.info(f"Ignoring remote delete for room {remote.room_number}")
                return

            existing = self._rooms.get(remote.id)
            if existing is None:
                if change.change_type == ChangeType.UPDATE:
                    logger.warning(f"Remote update for unknown room {remote.room_number}, adding it")
                owner = self._by_number.get(remote.room_number)
                if owner is not None and owner != remote.id:
                    logger.warning(f"Remote room {remote.room_number} conflicts with {owner}, ignored")
                    return
                self._rooms[remote.id] = remote.copy()
                self._by_number[remote.room_number] = remote.id
                return

            merged = remote.copy(**{name: getattr(existing, name) for name in LOCAL_ONLY_FIELDS})
            if merged.room_number != existing.room_number:
                self._by_number.pop(existing.room_number, None)
                self._by_number[merged.room_number] = merged.id
            self._rooms[remote.id] = merged

    # ============== 查询 ==============

    def list_all(self) -> List[Room]:
        with self._lock:
            rooms = [room.copy() for room in self._rooms.values()]
        return sorted(rooms, key=lambda r: r.room_number)

    def list_by_status(self, status: Any) -> List[Room]:
        status = RoomStatus(status)
        return [room for room in self.list_all() if room.status == status]

    def list_by_building_floor(self, building: str, floor: Optional[int] = None) -> List[Room]:
        return [
            room for room in self.list_all()
            if room.building == building and (floor is None or room.floor == floor)
        ]

    def buildings(self) -> List[str]:
        with self._lock:
            return sorted({room.building for room in self._rooms.values()})

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, room_id: str) -> bool:
        with self._lock:
            return room_id in self._rooms
