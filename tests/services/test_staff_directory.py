"""
测试 housekeeping.services.staff_directory
"""
import json
import pytest

from roomcore.engine.errors import NotFound
from housekeeping.models.entities import StaffRole
from housekeeping.services.staff_directory import load_roster


def test_lookup(staff_directory):
    assert staff_directory.get("hk-1").full_name == "Maria Lopez"
    assert staff_directory.find("nobody") is None
    with pytest.raises(NotFound):
        staff_directory.get("nobody")
    assert len(staff_directory) == 5


def test_by_role(staff_directory):
    names = [m.full_name for m in staff_directory.by_role(StaffRole.HOUSEKEEPING)]
    assert names == ["Ahmed Aziz", "Maria Lopez"]


def test_load_roster(tmp_path):
    path = tmp_path / "staff.json"
    path.write_text(json.dumps([
        {"id": "hk-9", "full_name": "Ana Silva", "role": "Housekeeping"},
        {"id": 7, "full_name": "Raj Patel", "role": "Supervisor"},
    ]), encoding="utf-8")

    directory = load_roster(str(path))

    assert directory.get("hk-9").role == StaffRole.HOUSEKEEPING
    assert directory.get("7").role == StaffRole.SUPERVISOR


def test_load_roster_bad_role(tmp_path):
    path = tmp_path / "staff.json"
    path.write_text(json.dumps([{"id": "x", "full_name": "X", "role": "Chef"}]), encoding="utf-8")

    with pytest.raises(ValueError):
        load_roster(str(path))
