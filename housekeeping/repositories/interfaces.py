"""
仓储接口 - 工作流核心与持久层之间的边界

核心只通过这些接口读写持久层，具体传输方式（内存、SQL、远程服务）由实现决定。
实现方应把 I/O 错误包装为 RepositoryFailure。
"""
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from roomcore.engine.audit import AuditLogEntry, AuditStore
from housekeeping.models.entities import Room, RoomChange, RoomStatus, TaskType, WorkLog
from housekeeping.models.schemas import AuditLogFilter, WorkLogFilter

RoomChangeHandler = Callable[[RoomChange], None]


class Subscription(ABC):
    """订阅句柄"""

    @abstractmethod
    def unsubscribe(self) -> None:
        """取消订阅（幂等）"""

    @property
    @abstractmethod
    def active(self) -> bool:
        """订阅是否仍然有效"""


class RoomRepository(ABC):
    """房间仓储接口"""

    @abstractmethod
    def fetch_all(self) -> List[Room]:
        """读取全部房间"""

    @abstractmethod
    def patch_status(self, room_id: str, status: RoomStatus, assigned_to: Optional[str] = None) -> None:
        """
        更新房态

        assigned_to 按给定值原样写入，None 表示清空负责人

        Raises:
            NotFound: 房间不存在
            RepositoryFailure: 写入失败
        """

    @abstractmethod
    def subscribe(self, on_change: RoomChangeHandler) -> Subscription:
        """订阅外部房间变更推送"""


class WorkLogRepository(ABC):
    """工作日志仓储接口"""

    @abstractmethod
    def create(
        self,
        room_number: str,
        staff_id: str,
        task_type: TaskType,
        description: Optional[str] = None,
    ) -> str:
        """新建一条进行中的日志，返回日志ID"""

    @abstractmethod
    def pause(self, log_id: str, elapsed_seconds: int) -> None:
        """记录暂停时间与累计耗时"""

    @abstractmethod
    def resume(self, log_id: str) -> None:
        """清空暂停时间，恢复为进行中"""

    @abstractmethod
    def finish(self, log_id: str, total_seconds: int) -> None:
        """记录结束时间与总耗时"""

    @abstractmethod
    def query(self, filters: Optional[WorkLogFilter] = None) -> List[WorkLog]:
        """按条件查询（开始时间倒序）"""


class AuditRepository(AuditStore):
    """审计日志仓储接口"""

    @abstractmethod
    def append(self, entry: AuditLogEntry) -> None:
        """持久化一条审计记录"""

    @abstractmethod
    def query(self, filters: Optional[AuditLogFilter] = None) -> List[AuditLogEntry]:
        """按条件查询（最新的在前）"""


__all__ = [
    "RoomChangeHandler",
    "Subscription",
    "RoomRepository",
    "WorkLogRepository",
    "AuditRepository",
]
