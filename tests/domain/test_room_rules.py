"""
测试 housekeeping.domain.rules - 房态转换表与任务映射
"""
import itertools
import pytest

from housekeeping.domain.rules import (
    TASK_FINISH_STATUS,
    TASK_START_STATUS,
    allowed_actions,
    can_clean,
    can_inspect,
    can_manage,
    can_repair,
    default_finish_status,
    implied_start_status,
    is_legal,
    legal_next_states,
)
from housekeeping.models.entities import Room, RoomStatus, StaffRole, TaskType

S = RoomStatus

EXPECTED = {
    S.DIRTY: {S.CHECKOUT_INSPECTED, S.CLEANING, S.OUT_OF_ORDER},
    S.CHECKOUT_INSPECTED: {S.CLEANING, S.OUT_OF_ORDER},
    S.CLEANING: {S.VACANT_CLEAN, S.DIRTY},
    S.VACANT_CLEAN: {S.VACANT_CLEAN_INSPECTED, S.DIRTY, S.OCCUPIED},
    S.VACANT_CLEAN_INSPECTED: {S.OCCUPIED, S.DIRTY},
    S.OCCUPIED: {S.DIRTY, S.OUT_OF_ORDER},
    S.OUT_OF_ORDER: {S.DIRTY},
}


def room_with(status):
    return Room(id="r-1", room_number="A101", building="A", floor=1, room_type="Standard", status=status)


class TestTransitionTable:
    def test_table_matches(self):
        """测试转换表内容"""
        for status in RoomStatus:
            assert legal_next_states(status) == frozenset(EXPECTED[status])

    @pytest.mark.parametrize("from_status,to_status", list(itertools.product(RoomStatus, RoomStatus)))
    def test_every_pair(self, from_status, to_status):
        """测试所有状态组合"""
        assert is_legal(from_status, to_status) == (to_status in EXPECTED[from_status])

    @pytest.mark.parametrize("status", list(RoomStatus))
    def test_self_transition_never_legal(self, status):
        assert not is_legal(status, status)

    def test_wire_values_accepted(self):
        """测试接受线上字符串取值"""
        assert legal_next_states("Out of Order") == frozenset({S.DIRTY})
        assert is_legal("Vacant Clean", "Vacant Clean Inspected")

    def test_unknown_status_fails_closed(self):
        """测试未知状态返回空集合"""
        assert legal_next_states("Haunted") == frozenset()
        assert legal_next_states(None) == frozenset()
        assert not is_legal("Dirty", "Haunted")


class TestTaskStatusMapping:
    def test_every_task_type_mapped(self):
        assert set(TASK_START_STATUS) == set(TaskType)
        assert set(TASK_FINISH_STATUS) == set(TaskType)

    @pytest.mark.parametrize("task_type,expected", [
        (TaskType.CLEANING, S.CLEANING),
        (TaskType.INSPECTION, None),
        (TaskType.REPAIR, S.OUT_OF_ORDER),
        (TaskType.MAINTENANCE, S.OUT_OF_ORDER),
    ])
    def test_start_status(self, task_type, expected):
        assert implied_start_status(task_type) == expected

    @pytest.mark.parametrize("task_type,expected", [
        (TaskType.CLEANING, S.VACANT_CLEAN),
        (TaskType.INSPECTION, S.VACANT_CLEAN_INSPECTED),
        (TaskType.REPAIR, S.DIRTY),
        (TaskType.MAINTENANCE, S.DIRTY),
    ])
    def test_finish_status(self, task_type, expected):
        assert default_finish_status(task_type) == expected

    def test_accepts_wire_value(self):
        assert implied_start_status("Cleaning") == S.CLEANING


class TestRoleActions:
    def test_can_clean(self):
        assert can_clean(StaffRole.HOUSEKEEPING, room_with(S.DIRTY))
        assert can_clean(StaffRole.HOUSEKEEPING, room_with(S.CHECKOUT_INSPECTED))
        assert not can_clean(StaffRole.HOUSEKEEPING, room_with(S.OCCUPIED))
        assert not can_clean(StaffRole.SUPERVISOR, room_with(S.DIRTY))

    def test_can_inspect(self):
        assert can_inspect(StaffRole.SUPERVISOR, room_with(S.VACANT_CLEAN))
        assert can_inspect(StaffRole.SUPERVISOR, room_with(S.CHECKOUT_INSPECTED))
        assert not can_inspect(StaffRole.SUPERVISOR, room_with(S.DIRTY))

    def test_can_repair(self):
        assert can_repair(StaffRole.ENGINEERING, room_with(S.OUT_OF_ORDER))
        assert not can_repair(StaffRole.ENGINEERING, room_with(S.DIRTY))

    def test_can_manage(self):
        assert can_manage(StaffRole.MANAGER)
        assert not can_manage(StaffRole.HOUSEKEEPING)

    def test_allowed_actions(self):
        """测试角色动作列表"""
        assert allowed_actions(StaffRole.HOUSEKEEPING, room_with(S.DIRTY)) == ["clean"]
        assert allowed_actions(StaffRole.MANAGER, room_with(S.DIRTY)) == ["change_status"]
        assert allowed_actions(StaffRole.ENGINEERING, room_with(S.VACANT_CLEAN)) == []
