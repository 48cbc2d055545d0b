"""
housekeeping/domain/rules.py

房态规则 - 所有房态相关的静态规则集中在这里

- 房态转换表（唯一事实来源）
- 任务类型 -> 开始/完成时的隐含房态
- 角色可执行动作（供界面/接口提示，引擎本身只按转换表校验）
"""
from typing import Any, Dict, FrozenSet, List, Optional

from roomcore.engine.state_machine import TransitionTable
from housekeeping.models.entities import Room, RoomStatus, StaffRole, TaskType


# 房态转换表：当前状态 -> 允许的目标状态
ROOM_STATUS_TRANSITIONS: Dict[RoomStatus, List[RoomStatus]] = {
    RoomStatus.DIRTY: [
        RoomStatus.CHECKOUT_INSPECTED,
        RoomStatus.CLEANING,
        RoomStatus.OUT_OF_ORDER,
    ],
    RoomStatus.CHECKOUT_INSPECTED: [
        RoomStatus.CLEANING,
        RoomStatus.OUT_OF_ORDER,
    ],
    RoomStatus.CLEANING: [
        RoomStatus.VACANT_CLEAN,
        RoomStatus.DIRTY,
    ],
    RoomStatus.VACANT_CLEAN: [
        RoomStatus.VACANT_CLEAN_INSPECTED,
        RoomStatus.DIRTY,
        RoomStatus.OCCUPIED,
    ],
    RoomStatus.VACANT_CLEAN_INSPECTED: [
        RoomStatus.OCCUPIED,
        RoomStatus.DIRTY,
    ],
    RoomStatus.OCCUPIED: [
        RoomStatus.DIRTY,
        RoomStatus.OUT_OF_ORDER,
    ],
    RoomStatus.OUT_OF_ORDER: [
        RoomStatus.DIRTY,
    ],
}

room_transition_table = TransitionTable.from_mapping(
    "RoomStatus", ROOM_STATUS_TRANSITIONS, coerce=RoomStatus
)


def legal_next_states(current: Any) -> FrozenSet[RoomStatus]:
    """当前房态的合法后继集合，未知取值返回空集合"""
    return room_transition_table.allowed(current)


def is_legal(from_status: Any, to_status: Any) -> bool:
    return room_transition_table.is_legal(from_status, to_status)


# 开始任务时的隐含房态（None 表示不改变房态）
TASK_START_STATUS: Dict[TaskType, Optional[RoomStatus]] = {
    TaskType.CLEANING: RoomStatus.CLEANING,
    TaskType.INSPECTION: None,
    TaskType.REPAIR: RoomStatus.OUT_OF_ORDER,
    TaskType.MAINTENANCE: RoomStatus.OUT_OF_ORDER,
}

# 完成任务时的默认房态
TASK_FINISH_STATUS: Dict[TaskType, RoomStatus] = {
    TaskType.CLEANING: RoomStatus.VACANT_CLEAN,
    TaskType.INSPECTION: RoomStatus.VACANT_CLEAN_INSPECTED,
    TaskType.REPAIR: RoomStatus.DIRTY,
    TaskType.MAINTENANCE: RoomStatus.DIRTY,
}


def implied_start_status(task_type: Any) -> Optional[RoomStatus]:
    return TASK_START_STATUS[TaskType(task_type)]


def default_finish_status(task_type: Any) -> RoomStatus:
    return TASK_FINISH_STATUS[TaskType(task_type)]


# ============== 角色可执行动作 ==============

def can_clean(role: StaffRole, room: Room) -> bool:
    return role == StaffRole.HOUSEKEEPING and room.status in (
        RoomStatus.DIRTY,
        RoomStatus.CHECKOUT_INSPECTED,
    )


def can_inspect(role: StaffRole, room: Room) -> bool:
    return role == StaffRole.SUPERVISOR and room.status in (
        RoomStatus.VACANT_CLEAN,
        RoomStatus.CHECKOUT_INSPECTED,
    )


def can_repair(role: StaffRole, room: Room) -> bool:
    return role == StaffRole.ENGINEERING and room.status == RoomStatus.OUT_OF_ORDER


def can_manage(role: StaffRole) -> bool:
    return role == StaffRole.MANAGER


def allowed_actions(role: StaffRole, room: Room) -> List[str]:
    """
    角色在该房间上可执行的动作

    Returns:
        动作名列表，取值: "clean" / "inspect" / "repair" / "change_status"
    """
    actions = []
    if can_clean(role, room):
        actions.append("clean")
    if can_inspect(role, room):
        actions.append("inspect")
    if can_repair(role, room):
        actions.append("repair")
    if can_manage(role):
        actions.append("change_status")
    return actions


__all__ = [
    "ROOM_STATUS_TRANSITIONS",
    "room_transition_table",
    "legal_next_states",
    "is_legal",
    "TASK_START_STATUS",
    "TASK_FINISH_STATUS",
    "implied_start_status",
    "default_finish_status",
    "can_clean",
    "can_inspect",
    "can_repair",
    "can_manage",
    "allowed_actions",
]
