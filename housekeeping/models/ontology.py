"""
持久化表定义
rooms / work_logs / audit_logs 三张表，SQL 仓储实现的存储结构
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean

from housekeeping.database import Base


class RoomModel(Base):
    """
    房间表
    current_task 只存在于会话内存中，不落库
    """
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True)
    room_number = Column(String(10), unique=True, nullable=False, index=True)  # 房间号
    building = Column(String(50), nullable=False)                            # 楼栋
    floor = Column(Integer, nullable=False)                                  # 楼层
    room_type = Column(String(50), nullable=False)                           # 房型
    status = Column(String(30), nullable=False, default="Dirty")             # 房态
    assigned_to = Column(String(36), nullable=True)                          # 当前负责人
    is_vip = Column(Boolean, default=False)
    guest_name = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    last_updated = Column(DateTime, default=datetime.now)


class WorkLogModel(Base):
    """工作日志表"""
    __tablename__ = "work_logs"

    id = Column(String(36), primary_key=True)
    room_number = Column(String(10), nullable=False, index=True)
    staff_id = Column(String(36), nullable=False, index=True)
    task_type = Column(String(20), nullable=False)
    start_time = Column(DateTime, nullable=False)
    pause_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    total_duration = Column(Integer, default=0)   # 秒
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="In Progress")
    created_at = Column(DateTime, default=datetime.now)


class AuditLogModel(Base):
    """房态审计日志表（只追加）"""
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True)
    sequence = Column(Integer, nullable=False, default=0)
    room_number = Column(String(10), nullable=False, index=True)
    changed_by = Column(String(36), nullable=False, index=True)
    changer_name = Column(String(100), nullable=False)
    changer_role = Column(String(20), nullable=False)
    from_status = Column(String(30), nullable=False)
    to_status = Column(String(30), nullable=False)
    timestamp = Column(DateTime, nullable=False, index=True)
    notes = Column(Text, nullable=True)
