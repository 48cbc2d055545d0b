"""
领域对象定义
房间、员工、工作日志以及相关枚举（线上取值与持久层一致）
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional


# ============== 枚举定义 ==============

class RoomStatus(str, Enum):
    """房间状态枚举"""
    DIRTY = "Dirty"                                    # 待清洁
    CHECKOUT_INSPECTED = "Check-out Inspected"         # 退房已查
    CLEANING = "Cleaning"                              # 清洁中
    VACANT_CLEAN = "Vacant Clean"                      # 空闲-已清洁
    VACANT_CLEAN_INSPECTED = "Vacant Clean Inspected"  # 空闲-已查房
    OCCUPIED = "Occupied"                              # 入住中
    OUT_OF_ORDER = "Out of Order"                      # 维修中


class TaskType(str, Enum):
    """任务类型"""
    CLEANING = "Cleaning"        # 清洁
    INSPECTION = "Inspection"    # 查房
    REPAIR = "Repair"            # 维修
    MAINTENANCE = "Maintenance"  # 保养


class StaffRole(str, Enum):
    """员工角色"""
    HOUSEKEEPING = "Housekeeping"  # 客房清洁
    SUPERVISOR = "Supervisor"      # 楼层主管
    ENGINEERING = "Engineering"    # 工程维修
    MANAGER = "Manager"            # 经理


class WorkLogStatus(str, Enum):
    """工作日志状态"""
    IN_PROGRESS = "In Progress"
    PAUSED = "Paused"
    COMPLETED = "Completed"


class ChangeType(str, Enum):
    """实时推送的变更类型"""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# ============== 领域对象 ==============

def _coerce_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass
class Room:
    """
    房间快照

    status 永远是 RoomStatus 七个取值之一；
    assigned_to / current_task 只在有任务进行时设置
    """

    id: str
    room_number: str
    building: str
    floor: int
    room_type: str
    status: RoomStatus = RoomStatus.DIRTY
    assigned_to: Optional[str] = None
    current_task: Optional[TaskType] = None
    last_updated: datetime = field(default_factory=datetime.now)
    is_vip: bool = False
    guest_name: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        self.status = RoomStatus(self.status)
        if self.current_task is not None:
            self.current_task = TaskType(self.current_task)
        self.last_updated = _coerce_datetime(self.last_updated)

    def copy(self, **changes) -> "Room":
        return replace(self, **changes)


@dataclass(frozen=True)
class Staff:
    """员工（仅用于操作归属与角色判断）"""

    id: str
    full_name: str
    role: StaffRole

    def __post_init__(self):
        object.__setattr__(self, "role", StaffRole(self.role))


@dataclass
class WorkLog:
    """工作日志（绩效统计的原始数据）"""

    id: str
    room_number: str
    staff_id: str
    task_type: TaskType
    start_time: datetime
    status: WorkLogStatus = WorkLogStatus.IN_PROGRESS
    pause_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    total_duration: int = 0
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.task_type = TaskType(self.task_type)
        self.status = WorkLogStatus(self.status)
        if self.created_at is None:
            self.created_at = self.start_time


@dataclass(frozen=True)
class RoomChange:
    """外部房间变更推送（订阅回调的负载）"""

    change_type: ChangeType
    room: Room


__all__ = [
    "RoomStatus",
    "TaskType",
    "StaffRole",
    "WorkLogStatus",
    "ChangeType",
    "Room",
    "Staff",
    "WorkLog",
    "RoomChange",
]
