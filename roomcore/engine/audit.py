"""
roomcore/engine/audit.py

审计轨迹 - 只追加的房态变更记录
每次提交的状态转换产生且仅产生一条记录，记录一经写入不再修改
"""
from typing import Any, Dict, Iterator, List, Optional
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
import logging
import threading
import uuid

from roomcore.engine.errors import RepositoryFailure

logger = logging.getLogger(__name__)


def _generate_entry_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class AuditLogEntry:
    """
    审计日志条目（不可变）

    Attributes:
        room_number: 房间号
        changed_by: 操作人ID
        changer_name: 操作人姓名
        changer_role: 操作人角色
        from_status: 变更前状态
        to_status: 变更后状态
        timestamp: 提交时间
        notes: 备注
        entry_id: 唯一标识
        sequence: 追加序号（由审计轨迹分配，单调递增）
    """

    room_number: str
    changed_by: str
    changer_name: str
    changer_role: str
    from_status: str
    to_status: str
    timestamp: datetime
    notes: Optional[str] = None
    entry_id: str = field(default_factory=_generate_entry_id)
    sequence: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.entry_id,
            "sequence": self.sequence,
            "room_number": self.room_number,
            "changed_by": self.changed_by,
            "changer_name": self.changer_name,
            "changer_role": self.changer_role,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "timestamp": self.timestamp.isoformat(),
            "notes": self.notes,
        }


class AuditStore(ABC):
    """审计日志持久化接口（由 app 层实现）"""

    @abstractmethod
    def append(self, entry: AuditLogEntry) -> None:
        """持久化一条记录"""

    @abstractmethod
    def query(self, filters: Any = None) -> List[AuditLogEntry]:
        """按条件查询，最新的在前"""


class AuditQuery:
    """
    惰性、可重复迭代的查询结果

    每次迭代都重新读取完整的过滤历史（不是实时流）。
    """

    def __init__(self, trail: "AuditTrail", predicate):
        self._trail = trail
        self._predicate = predicate

    def __iter__(self) -> Iterator[AuditLogEntry]:
        for entry in reversed(self._trail.entries()):
            if self._predicate(entry):
                yield entry

    def first(self) -> Optional[AuditLogEntry]:
        return next(iter(self), None)

    def count(self) -> int:
        return sum(1 for _ in self)


class AuditTrail:
    """
    审计轨迹

    特性：
    - 只追加，已有条目永不修改或删除
    - 本地先记录，再写入持久层
    - 持久层失败时条目进入待同步队列，可调用 flush_pending() 重试

    Example:
        >>> trail = AuditTrail()
        >>> trail.append(entry)
        >>> list(trail.query(room_number="A101"))
    """

    def __init__(self, store: Optional[AuditStore] = None):
        self._store = store
        self._entries: List[AuditLogEntry] = []
        self._pending: List[AuditLogEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        """
        追加一条记录

        Returns:
            带序号的已存储条目

        Raises:
            RepositoryFailure: 持久层写入失败（committed=True，本地记录保留）
        """
        with self._lock:
            stored = replace(entry, sequence=len(self._entries) + 1)
            self._entries.append(stored)

        logger.info(
            f"Audit log: room {stored.room_number} {stored.from_status} -> {stored.to_status} "
            f"by {stored.changed_by}"
        )

        if self._store is not None:
            # 先补写积压条目，持久层中的顺序与序号一致
            if self.pending():
                self.flush_pending()
            if self.pending():
                with self._lock:
                    self._pending.append(stored)
                logger.warning(f"Audit entry {stored.sequence} queued behind pending entries")
                raise RepositoryFailure(
                    "audit.append", RuntimeError("earlier audit entries are still pending"), committed=True
                )
            try:
                self._store.append(stored)
            except Exception as e:
                with self._lock:
                    self._pending.append(stored)
                logger.error(f"Audit append failed for room {stored.room_number}: {e}", exc_info=True)
                if isinstance(e, RepositoryFailure):
                    e.committed = True
                    raise
                raise RepositoryFailure("audit.append", e, committed=True) from e

        return stored

    def entries(self) -> List[AuditLogEntry]:
        """全部条目（按追加顺序）的副本"""
        with self._lock:
            return list(self._entries)

    def query(
        self,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        room_number: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> AuditQuery:
        """
        按条件查询（最新的在前）

        Args:
            date_from: 起始时间（含）
            date_to: 截止时间（含）
            room_number: 房间号
            actor_id: 操作人ID
        """

        def predicate(entry: AuditLogEntry) -> bool:
            if date_from is not None and entry.timestamp < date_from:
                return False
            if date_to is not None and entry.timestamp > date_to:
                return False
            if room_number is not None and entry.room_number != room_number:
                return False
            if actor_id is not None and entry.changed_by != actor_id:
                return False
            return True

        return AuditQuery(self, predicate)

    def history(self, filters: Any = None) -> List[AuditLogEntry]:
        """从持久层读取历史（无持久层时退回本地记录）"""
        if self._store is None:
            return list(reversed(self.entries()))
        try:
            return self._store.query(filters)
        except RepositoryFailure:
            raise
        except Exception as e:
            raise RepositoryFailure("audit.query", e) from e

    def pending(self) -> List[AuditLogEntry]:
        """未能写入持久层的条目"""
        with self._lock:
            return list(self._pending)

    def flush_pending(self) -> int:
        """
        重试写入待同步条目

        Returns:
            成功写入的条数
        """
        if self._store is None:
            return 0
        with self._lock:
            pending, self._pending = self._pending, []

        flushed = 0
        for index, entry in enumerate(pending):
            try:
                self._store.append(entry)
                flushed += 1
            except Exception as e:
                logger.error(f"Audit flush failed: {e}", exc_info=True)
                with self._lock:
                    self._pending = pending[index:] + self._pending
                break
        return flushed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = [
    "AuditLogEntry",
    "AuditStore",
    "AuditQuery",
    "AuditTrail",
]
