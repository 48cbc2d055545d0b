"""
roomcore/engine/errors.py

工作流异常 - 集中管理所有房态/任务流程异常，方便 API 层统一处理

校验类异常（IllegalTransition / InvalidState / TaskAlreadyActive /
NoActiveTask / NotFound）在任何状态变更之前抛出；
RepositoryFailure 包装协作方的 I/O 错误。
"""
from typing import Any, Optional


class HousekeepingError(Exception):
    """所有工作流异常的基类"""

    #: 面向用户的通知标题
    title = "Operation failed"


class IllegalTransition(HousekeepingError):
    """请求的目标状态不在当前状态的合法集合中"""

    title = "Illegal status change"

    def __init__(self, from_state: Any, to_state: Any, subject: Optional[str] = None):
        self.from_state = from_state
        self.to_state = to_state
        self.subject = subject
        prefix = f"Room {subject}: " if subject else ""
        super().__init__(
            f"{prefix}cannot change status from {_label(from_state)} to {_label(to_state)}"
        )


class InvalidState(HousekeepingError):
    """计时器操作在不允许的状态下被调用"""

    title = "Invalid task state"

    def __init__(self, operation: str, state: Any, message: Optional[str] = None):
        self.operation = operation
        self.state = state
        super().__init__(message or f"cannot {operation} while timer is {_label(state)}")


class TaskAlreadyActive(InvalidState):
    """会话已有未完成的任务时再次开始任务"""

    title = "Task already active"

    def __init__(self, staff_id: str, room_number: Optional[str] = None):
        self.staff_id = staff_id
        self.room_number = room_number
        where = f" on room {room_number}" if room_number else ""
        super().__init__(
            "start",
            "outstanding",
            f"staff {staff_id} already has an outstanding task{where}; finish or abandon it first",
        )


class NoActiveTask(InvalidState):
    """完成/暂停/恢复时没有未完成的任务"""

    title = "No active task"

    def __init__(self, staff_id: str, room_number: Optional[str] = None, operation: str = "finish"):
        self.staff_id = staff_id
        self.room_number = room_number
        where = f" for room {room_number}" if room_number else ""
        super().__init__(operation, "idle", f"staff {staff_id} has no active task{where}")


class NotFound(HousekeepingError):
    """房间/员工/日志不存在"""

    title = "Not found"

    def __init__(self, kind: str, key: Any):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} {key} not found")


class RepositoryFailure(HousekeepingError):
    """
    协作方 I/O 失败

    Attributes:
        operation: 失败的仓储操作（如 "rooms.patch_status"）
        cause: 原始异常
        committed: 为 True 表示本地状态已提交（不回滚），调用方按降级处理
        result: 已提交操作的返回值（如有）
    """

    title = "Storage error"

    def __init__(self, operation: str, cause: Optional[BaseException] = None, committed: bool = False):
        self.operation = operation
        self.cause = cause
        self.committed = committed
        self.result: Any = None
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed{detail}")


def _label(value: Any) -> str:
    return getattr(value, "value", value) if value is not None else "unknown"


__all__ = [
    "HousekeepingError",
    "IllegalTransition",
    "InvalidState",
    "TaskAlreadyActive",
    "NoActiveTask",
    "NotFound",
    "RepositoryFailure",
]
