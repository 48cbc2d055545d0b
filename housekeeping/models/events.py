"""
领域事件定义 (Domain Events)
工作流引擎在状态提交、任务生命周期变化时发布这些事件
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, Dict, Any


class EventType(str, Enum):
    """事件类型枚举"""
    # 房间相关
    ROOM_STATUS_CHANGED = "room.status_changed"
    ROOM_CHANGED = "room.changed"  # 仓储层推送的外部变更

    # 任务相关
    TASK_STARTED = "task.started"
    TASK_PAUSED = "task.paused"
    TASK_RESUMED = "task.resumed"
    TASK_FINISHED = "task.finished"
    TASK_ABANDONED = "task.abandoned"


@dataclass
class BaseEventData:
    """事件数据基类"""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        result = asdict(self)
        # 处理 datetime 序列化
        for key, value in result.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
        return result


@dataclass
class RoomStatusChangedData(BaseEventData):
    """房间状态变更事件数据"""
    room_id: str = ""
    room_number: str = ""
    old_status: str = ""
    new_status: str = ""
    changed_by: str = ""
    changed_by_name: str = ""
    notes: Optional[str] = None


@dataclass
class TaskEventData(BaseEventData):
    """任务生命周期事件数据"""
    log_id: str = ""
    task_type: str = ""
    room_number: str = ""
    staff_id: str = ""
    staff_name: str = ""
    elapsed_seconds: int = 0
    status_after: Optional[str] = None
