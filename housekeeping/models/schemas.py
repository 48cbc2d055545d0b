"""
Pydantic 模式定义
用于仓储查询过滤条件与 API 请求/响应验证
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from roomcore.notification.channel import Severity
from housekeeping.models.entities import RoomStatus, TaskType, StaffRole, WorkLogStatus


# ============== 查询过滤 ==============

class AuditLogFilter(BaseModel):
    """审计日志查询条件"""
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    room_number: Optional[str] = None
    changed_by: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1)

    def matches(self, entry: Any) -> bool:
        if self.date_from is not None and entry.timestamp < self.date_from:
            return False
        if self.date_to is not None and entry.timestamp > self.date_to:
            return False
        if self.room_number is not None and entry.room_number != self.room_number:
            return False
        if self.changed_by is not None and entry.changed_by != self.changed_by:
            return False
        return True


class WorkLogFilter(BaseModel):
    """工作日志查询条件"""
    room_number: Optional[str] = None
    staff_id: Optional[str] = None
    task_type: Optional[TaskType] = None
    status: Optional[WorkLogStatus] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    def matches(self, log: Any) -> bool:
        if self.room_number is not None and log.room_number != self.room_number:
            return False
        if self.staff_id is not None and log.staff_id != self.staff_id:
            return False
        if self.task_type is not None and log.task_type != self.task_type:
            return False
        if self.status is not None and log.status != self.status:
            return False
        if self.date_from is not None and log.start_time < self.date_from:
            return False
        if self.date_to is not None and log.start_time > self.date_to:
            return False
        return True


# ============== 房间 Schemas ==============

class RoomResponse(BaseModel):
    id: str
    room_number: str
    building: str
    floor: int
    room_type: str
    status: RoomStatus
    assigned_to: Optional[str] = None
    current_task: Optional[TaskType] = None
    last_updated: datetime
    is_vip: bool = False
    guest_name: Optional[str] = None
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class RoomTransitionsResponse(BaseModel):
    room_id: str
    room_number: str
    status: RoomStatus
    allowed: List[RoomStatus]
    actions: List[str] = []


class RoomStatusUpdate(BaseModel):
    status: RoomStatus
    notes: Optional[str] = None


# ============== 任务 Schemas ==============

class TaskStartRequest(BaseModel):
    room_id: str
    task_type: TaskType


class TaskFinishRequest(BaseModel):
    room_id: str
    next_status: Optional[RoomStatus] = None
    notes: Optional[str] = None


class TaskStartResponse(BaseModel):
    log_id: str
    room_number: str
    task_type: TaskType
    status_applied: Optional[RoomStatus] = None
    status_skipped: Optional[RoomStatus] = None


class TaskOutcomeResponse(BaseModel):
    log_id: str
    room_number: str
    task_type: TaskType
    elapsed_seconds: int
    duration: str
    status_before: Optional[RoomStatus] = None
    status_after: Optional[RoomStatus] = None
    degraded: bool = False


class TimerResponse(BaseModel):
    state: str
    log_id: Optional[str] = None
    room_number: Optional[str] = None
    task_type: Optional[TaskType] = None
    staff_id: Optional[str] = None
    elapsed_seconds: int = 0
    duration: str = "00:00:00"
    started_at: Optional[datetime] = None


class ChecklistItemInput(BaseModel):
    item_id: str
    item_name: str
    passed: bool
    notes: Optional[str] = None


class InspectionSubmitRequest(BaseModel):
    room_id: str
    responses: List[ChecklistItemInput] = []
    score: Optional[int] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None


class InspectionResponse(BaseModel):
    room_number: str
    score: int
    passed: bool
    status_after: RoomStatus
    outcome: TaskOutcomeResponse


# ============== 审计 Schemas ==============

class AuditLogResponse(BaseModel):
    id: str
    sequence: int
    room_number: str
    changed_by: str
    changer_name: str
    changer_role: StaffRole
    from_status: RoomStatus
    to_status: RoomStatus
    timestamp: datetime
    notes: Optional[str] = None


# ============== 通知 Schemas ==============

class NotificationResponse(BaseModel):
    id: str
    title: str
    message: str
    severity: Severity
    created_at: datetime
    read: bool
    data: Optional[Dict[str, Any]] = None
    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    unread: int
    items: List[NotificationResponse]
