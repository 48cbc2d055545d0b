"""
员工目录 - 按ID查找员工及角色（不负责认证）
"""
from typing import Dict, Iterable, List, Optional
import json
import threading

from roomcore.engine.errors import NotFound
from housekeeping.models.entities import Staff, StaffRole


class StaffDirectory:
    """员工目录"""

    def __init__(self, staff: Iterable[Staff] = ()):
        self._staff: Dict[str, Staff] = {}
        self._lock = threading.Lock()
        for member in staff:
            self.add(member)

    def add(self, member: Staff) -> None:
        with self._lock:
            self._staff[member.id] = member

    def get(self, staff_id: str) -> Staff:
        with self._lock:
            member = self._staff.get(staff_id)
        if member is None:
            raise NotFound("Staff", staff_id)
        return member

    def find(self, staff_id: str) -> Optional[Staff]:
        with self._lock:
            return self._staff.get(staff_id)

    def by_role(self, role: StaffRole) -> List[Staff]:
        with self._lock:
            return sorted(
                (m for m in self._staff.values() if m.role == StaffRole(role)),
                key=lambda m: m.full_name,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._staff)


def load_roster(path: str) -> StaffDirectory:
    """
    从 JSON 文件加载员工名单

    文件格式: [{"id": "...", "full_name": "...", "role": "Housekeeping"}, ...]
    """
    with open(path, encoding="utf-8") as f:
        records = json.load(f)
    return StaffDirectory(
        Staff(id=str(r["id"]), full_name=r["full_name"], role=StaffRole(r["role"]))
        for r in records
    )
