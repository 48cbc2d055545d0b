"""
SQLAlchemy 仓储实现

每个操作使用独立会话，SQLAlchemyError 统一包装为 RepositoryFailure；
房间写入提交后通过 RoomChangeFeed 推送变更
"""
from contextlib import contextmanager
from typing import Callable, List, Optional
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from roomcore.engine.audit import AuditLogEntry
from roomcore.engine.clock import Clock, SystemClock
from roomcore.engine.errors import NotFound, RepositoryFailure
from housekeeping.database import SessionLocal
from housekeeping.models.entities import (
    ChangeType, Room, RoomStatus, TaskType, WorkLog, WorkLogStatus
)
from housekeeping.models.ontology import AuditLogModel, RoomModel, WorkLogModel
from housekeeping.models.schemas import AuditLogFilter, WorkLogFilter
from housekeeping.repositories.interfaces import (
    AuditRepository, RoomChangeHandler, RoomRepository, Subscription, WorkLogRepository
)
from housekeeping.repositories.realtime import RoomChangeFeed

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


@contextmanager
def _session_scope(session_factory: SessionFactory, operation: str):
    """提交/回滚/关闭会话，数据库异常包装为 RepositoryFailure"""
    session = session_factory()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"{operation} failed: {e}", exc_info=True)
        raise RepositoryFailure(operation, e) from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _room_from_model(model: RoomModel) -> Room:
    return Room(
        id=model.id,
        room_number=model.room_number,
        building=model.building,
        floor=model.floor,
        room_type=model.room_type,
        status=RoomStatus(model.status),
        assigned_to=model.assigned_to,
        last_updated=model.last_updated,
        is_vip=bool(model.is_vip),
        guest_name=model.guest_name,
        notes=model.notes,
    )


def _work_log_from_model(model: WorkLogModel) -> WorkLog:
    return WorkLog(
        id=model.id,
        room_number=model.room_number,
        staff_id=model.staff_id,
        task_type=TaskType(model.task_type),
        start_time=model.start_time,
        status=WorkLogStatus(model.status),
        pause_time=model.pause_time,
        end_time=model.end_time,
        total_duration=model.total_duration or 0,
        description=model.description,
        created_at=model.created_at,
    )


def _audit_from_model(model: AuditLogModel) -> AuditLogEntry:
    return AuditLogEntry(
        room_number=model.room_number,
        changed_by=model.changed_by,
        changer_name=model.changer_name,
        changer_role=model.changer_role,
        from_status=model.from_status,
        to_status=model.to_status,
        timestamp=model.timestamp,
        notes=model.notes,
        entry_id=model.id,
        sequence=model.sequence,
    )


class SqlRoomRepository(RoomRepository):
    """房间仓储（SQL）"""

    def __init__(
        self,
        session_factory: SessionFactory = SessionLocal,
        feed: Optional[RoomChangeFeed] = None,
        clock: Optional[Clock] = None,
    ):
        self._session_factory = session_factory
        self._feed = feed if feed is not None else RoomChangeFeed()
        self._clock = clock if clock is not None else SystemClock()

    def add_room(self, room: Room) -> None:
        """新增房间（触发 INSERT 推送）"""
        with _session_scope(self._session_factory, "rooms.add") as db:
            db.add(RoomModel(
                id=room.id,
                room_number=room.room_number,
                building=room.building,
                floor=room.floor,
                room_type=room.room_type,
                status=room.status.value,
                assigned_to=room.assigned_to,
                is_vip=room.is_vip,
                guest_name=room.guest_name,
                notes=room.notes,
                last_updated=room.last_updated,
            ))
        self._feed.publish(ChangeType.INSERT, room)

    def fetch_all(self) -> List[Room]:
        with _session_scope(self._session_factory, "rooms.fetch_all") as db:
            models = db.query(RoomModel).order_by(RoomModel.room_number).all()
            return [_room_from_model(m) for m in models]

    def patch_status(self, room_id: str, status: RoomStatus, assigned_to: Optional[str] = None) -> None:
        with _session_scope(self._session_factory, "rooms.patch_status") as db:
            model = db.query(RoomModel).filter(RoomModel.id == room_id).first()
            if model is None:
                raise NotFound("Room", room_id)
            model.status = RoomStatus(status).value
            model.assigned_to = assigned_to
            model.last_updated = self._clock.now()
            db.flush()
            updated = _room_from_model(model)
        self._feed.publish(ChangeType.UPDATE, updated)

    def subscribe(self, on_change: RoomChangeHandler) -> Subscription:
        return self._feed.subscribe(on_change)


class SqlWorkLogRepository(WorkLogRepository):
    """工作日志仓储（SQL）"""

    def __init__(self, session_factory: SessionFactory = SessionLocal, clock: Optional[Clock] = None):
        self._session_factory = session_factory
        self._clock = clock if clock is not None else SystemClock()

    def _get(self, db: Session, log_id: str) -> WorkLogModel:
        model = db.query(WorkLogModel).filter(WorkLogModel.id == log_id).first()
        if model is None:
            raise NotFound("WorkLog", log_id)
        return model

    def create(
        self,
        room_number: str,
        staff_id: str,
        task_type: TaskType,
        description: Optional[str] = None,
    ) -> str:
        log_id = uuid.uuid4().hex
        now = self._clock.now()
        with _session_scope(self._session_factory, "work_logs.create") as db:
            db.add(WorkLogModel(
                id=log_id,
                room_number=room_number,
                staff_id=staff_id,
                task_type=TaskType(task_type).value,
                start_time=now,
                status=WorkLogStatus.IN_PROGRESS.value,
                total_duration=0,
                description=description,
                created_at=now,
            ))
        return log_id

    def pause(self, log_id: str, elapsed_seconds: int) -> None:
        with _session_scope(self._session_factory, "work_logs.pause") as db:
            model = self._get(db, log_id)
            model.pause_time = self._clock.now()
            model.total_duration = int(elapsed_seconds)
            model.status = WorkLogStatus.PAUSED.value

    def resume(self, log_id: str) -> None:
        with _session_scope(self._session_factory, "work_logs.resume") as db:
            model = self._get(db, log_id)
            model.pause_time = None
            model.status = WorkLogStatus.IN_PROGRESS.value

    def finish(self, log_id: str, total_seconds: int) -> None:
        with _session_scope(self._session_factory, "work_logs.finish") as db:
            model = self._get(db, log_id)
            model.end_time = self._clock.now()
            model.total_duration = int(total_seconds)
            model.status = WorkLogStatus.COMPLETED.value

    def query(self, filters: Optional[WorkLogFilter] = None) -> List[WorkLog]:
        filters = filters or WorkLogFilter()
        with _session_scope(self._session_factory, "work_logs.query") as db:
            query = db.query(WorkLogModel)
            if filters.room_number:
                query = query.filter(WorkLogModel.room_number == filters.room_number)
            if filters.staff_id:
                query = query.filter(WorkLogModel.staff_id == filters.staff_id)
            if filters.task_type:
                query = query.filter(WorkLogModel.task_type == filters.task_type.value)
            if filters.status:
                query = query.filter(WorkLogModel.status == filters.status.value)
            if filters.date_from:
                query = query.filter(WorkLogModel.start_time >= filters.date_from)
            if filters.date_to:
                query = query.filter(WorkLogModel.start_time <= filters.date_to)
            models = query.order_by(WorkLogModel.start_time.desc()).all()
            return [_work_log_from_model(m) for m in models]


class SqlAuditRepository(AuditRepository):
    """审计日志仓储（SQL，只追加）"""

    def __init__(self, session_factory: SessionFactory = SessionLocal):
        self._session_factory = session_factory

    def append(self, entry: AuditLogEntry) -> None:
        with _session_scope(self._session_factory, "audit_logs.append") as db:
            db.add(AuditLogModel(
                id=entry.entry_id,
                sequence=entry.sequence,
                room_number=entry.room_number,
                changed_by=entry.changed_by,
                changer_name=entry.changer_name,
                changer_role=entry.changer_role,
                from_status=entry.from_status,
                to_status=entry.to_status,
                timestamp=entry.timestamp,
                notes=entry.notes,
            ))

    def query(self, filters: Optional[AuditLogFilter] = None) -> List[AuditLogEntry]:
        filters = filters or AuditLogFilter()
        with _session_scope(self._session_factory, "audit_logs.query") as db:
            query = db.query(AuditLogModel)
            if filters.room_number:
                query = query.filter(AuditLogModel.room_number == filters.room_number)
            if filters.changed_by:
                query = query.filter(AuditLogModel.changed_by == filters.changed_by)
            if filters.date_from:
                query = query.filter(AuditLogModel.timestamp >= filters.date_from)
            if filters.date_to:
                query = query.filter(AuditLogModel.timestamp <= filters.date_to)
            query = query.order_by(AuditLogModel.timestamp.desc(), AuditLogModel.sequence.desc())
            if filters.limit:
                query = query.limit(filters.limit)
            return [_audit_from_model(m) for m in query.all()]
