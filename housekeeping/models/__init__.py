# Domain Models
from housekeeping.models.entities import (
    RoomStatus, TaskType, StaffRole, WorkLogStatus, ChangeType,
    Room, Staff, WorkLog, RoomChange
)

__all__ = [
    'RoomStatus', 'TaskType', 'StaffRole', 'WorkLogStatus', 'ChangeType',
    'Room', 'Staff', 'WorkLog', 'RoomChange'
]
