"""
通知渠道接口 - 域无关的通知抽象

工作流引擎只依赖 NotificationSink（发出即忘），
NotificationCenter 是保留最近 N 条记录的站内通知实现。
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import logging
import threading
import uuid

from roomcore.engine.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """通知级别"""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    """单条通知"""

    title: str
    message: str
    severity: Severity
    created_at: datetime
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    read: bool = False
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "severity": self.severity.value,
            "created_at": self.created_at.isoformat(),
            "read": self.read,
            "data": self.data,
        }


class NotificationSink(ABC):
    """通知接收方接口"""

    @abstractmethod
    def emit(
        self,
        title: str,
        message: str,
        severity: Severity = Severity.INFO,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """发出一条通知（不得向调用方抛出异常）

        Args:
            title: 通知标题
            message: 通知内容
            severity: 级别
            data: 扩展数据（如房间号、日志ID）
        """


class NotificationCenter(NotificationSink):
    """站内通知中心

    只保留最近 limit 条，最新的在前：
        center = NotificationCenter(limit=50)
        center.emit("Task started", "Cleaning started on room A101", Severity.SUCCESS)
        center.unread_count()
    """

    def __init__(self, limit: int = 50, clock: Optional[Clock] = None):
        if limit <= 0:
            raise ValueError("limit must be positive")
        self._limit = limit
        self._clock = clock if clock is not None else SystemClock()
        self._items: List[Notification] = []
        self._lock = threading.Lock()

    def emit(
        self,
        title: str,
        message: str,
        severity: Severity = Severity.INFO,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        notification = Notification(
            title=title,
            message=message,
            severity=Severity(severity),
            created_at=self._clock.now(),
            data=data,
        )
        with self._lock:
            self._items.insert(0, notification)
            del self._items[self._limit:]
        logger.debug(f"Notification [{notification.severity.value}] {title}: {message}")

    def list(self, unread_only: bool = False) -> List[Notification]:
        """通知列表（最新的在前）"""
        with self._lock:
            items = list(self._items)
        if unread_only:
            items = [n for n in items if not n.read]
        return items

    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for n in self._items if not n.read)

    def mark_read(self, notification_id: str) -> bool:
        """标记已读，通知不存在时返回 False"""
        with self._lock:
            for n in self._items:
                if n.id == notification_id:
                    n.read = True
                    return True
        return False

    def mark_all_read(self) -> int:
        with self._lock:
            count = 0
            for n in self._items:
                if not n.read:
                    n.read = True
                    count += 1
        return count

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
