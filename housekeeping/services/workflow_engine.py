"""
工作流引擎 - 房态变更与任务生命周期的唯一入口

职责：
- 按房态转换表校验并提交状态变更（持久层 -> 注册表 -> 审计 -> 通知）
- 每个员工一个任务计时器，同一时间最多一个未完成任务
- 开始/完成任务时按任务类型映射隐含房态
- 所有失败都会转成一条通知，然后继续向调用方抛出

校验类异常在任何修改之前抛出；
持久层已写入后审计失败属于“已提交但降级”，抛出 committed=True 的 RepositoryFailure
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union
import logging
import threading

from roomcore.engine.audit import AuditLogEntry, AuditTrail
from roomcore.engine.clock import Clock, SystemClock
from roomcore.engine.errors import (
    HousekeepingError,
    IllegalTransition,
    InvalidState,
    NoActiveTask,
    NotFound,
    RepositoryFailure,
    TaskAlreadyActive,
)
from roomcore.engine.event_bus import Event, EventBus
from roomcore.engine.timer import TaskTimer, TimerSnapshot, TimerState, format_duration
from roomcore.notification.channel import NotificationCenter, NotificationSink, Severity
from housekeeping.domain.rules import (
    default_finish_status,
    implied_start_status,
    is_legal,
    room_transition_table,
)
from housekeeping.models.entities import Room, RoomChange, RoomStatus, Staff, TaskType
from housekeeping.models.events import EventType, RoomStatusChangedData, TaskEventData
from housekeeping.repositories.interfaces import RoomRepository, Subscription, WorkLogRepository
from housekeeping.services.room_registry import RoomRegistry

logger = logging.getLogger(__name__)

RoomRef = Union[Room, str]


@dataclass(frozen=True)
class TaskStart:
    """开始任务的结果"""

    log_id: str
    room_number: str
    task_type: TaskType
    status_applied: Optional[RoomStatus] = None
    status_skipped: Optional[RoomStatus] = None
    audit_entry: Optional[AuditLogEntry] = None


@dataclass(frozen=True)
class TaskOutcome:
    """完成（或放弃）任务的结果"""

    log_id: str
    room_number: str
    task_type: TaskType
    elapsed_seconds: int
    status_before: Optional[RoomStatus]
    status_after: Optional[RoomStatus]
    audit_entry: Optional[AuditLogEntry] = None
    degraded: bool = False

    @property
    def duration(self) -> str:
        return format_duration(self.elapsed_seconds)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_id": self.log_id,
            "room_number": self.room_number,
            "task_type": self.task_type.value,
            "elapsed_seconds": self.elapsed_seconds,
            "duration": self.duration,
            "status_before": self.status_before.value if self.status_before else None,
            "status_after": self.status_after.value if self.status_after else None,
            "degraded": self.degraded,
        }


class WorkflowEngine:
    """
    工作流引擎（实例化使用，没有全局单例）

    Example:
        >>> engine = WorkflowEngine(
        ...     registry=registry,
        ...     room_repository=rooms,
        ...     work_log_repository=work_logs,
        ...     audit_trail=AuditTrail(audits),
        ...     notifications=NotificationCenter(),
        ... )
        >>> started = engine.start_task(room, TaskType.CLEANING, staff)
        >>> engine.finish_task(room, staff)
    """

    def __init__(
        self,
        *,
        registry: RoomRegistry,
        room_repository: RoomRepository,
        work_log_repository: WorkLogRepository,
        audit_trail: Optional[AuditTrail] = None,
        notifications: Optional[NotificationSink] = None,
        clock: Optional[Clock] = None,
        event_publisher: Optional[Callable[[Event], Any]] = None,
    ):
        self.registry = registry
        self.room_repository = room_repository
        self.work_log_repository = work_log_repository
        self.audit_trail = audit_trail if audit_trail is not None else AuditTrail()
        self.notifications = notifications if notifications is not None else NotificationCenter()
        self.clock = clock if clock is not None else SystemClock()
        # 事件发布器可注入，默认使用独立的事件总线
        self._publish_event = event_publisher if event_publisher is not None else EventBus().publish

        self._timers: Dict[str, TaskTimer] = {}
        self._room_locks: Dict[str, threading.RLock] = {}
        self._session_locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._subscription: Optional[Subscription] = None

    # ============== 会话与锁 ==============

    @staticmethod
    def _actor_id(actor: Union[Staff, str]) -> str:
        return actor.id if isinstance(actor, Staff) else str(actor)

    @staticmethod
    def _room_id(room: RoomRef) -> str:
        return room.id if isinstance(room, Room) else str(room)

    def timer_for(self, actor: Union[Staff, str]) -> TaskTimer:
        """获取员工会话的计时器（首次访问时创建）"""
        actor_id = self._actor_id(actor)
        with self._locks_guard:
            timer = self._timers.get(actor_id)
            if timer is None:
                timer = TaskTimer(self.clock, staff_id=actor_id)
                self._timers[actor_id] = timer
            return timer

    def active_task(self, actor: Union[Staff, str]) -> TimerSnapshot:
        return self.timer_for(actor).snapshot()

    def _room_lock(self, room_id: str) -> threading.RLock:
        with self._locks_guard:
            return self._room_locks.setdefault(room_id, threading.RLock())

    def _session_lock(self, actor_id: str) -> threading.RLock:
        with self._locks_guard:
            return self._session_locks.setdefault(actor_id, threading.RLock())

    # ============== 内部工具 ==============

    def _call(self, operation: str, func: Callable, *args, **kwargs):
        """调用仓储，非工作流异常包装为 RepositoryFailure"""
        try:
            return func(*args, **kwargs)
        except HousekeepingError:
            raise
        except Exception as e:
            logger.error(f"{operation} failed: {e}", exc_info=True)
            raise RepositoryFailure(operation, e) from e

    def _emit(self, title: str, message: str, severity: Severity, data: Optional[Dict[str, Any]] = None) -> None:
        try:
            self.notifications.emit(title, message, severity, data)
        except Exception as e:
            logger.error(f"Notification sink failed: {e}", exc_info=True)

    def report(self, error: HousekeepingError) -> None:
        """把异常转换为通知（其他服务的失败也走这里）"""
        if isinstance(error, RepositoryFailure) and error.committed:
            self._emit("Saved with warnings", f"Change was applied but {error}", Severity.WARNING)
        else:
            self._emit(error.title, str(error), Severity.ERROR)

    def _publish(self, event_type: EventType, data: Any) -> None:
        event = Event(
            event_type=event_type.value,
            timestamp=self.clock.now(),
            data=data.to_dict(),
            source="workflow_engine",
        )
        try:
            self._publish_event(event)
        except Exception as e:
            logger.error(f"Failed to publish {event_type.value}: {e}", exc_info=True)

    @staticmethod
    def _coerce_task_type(task_type: Any) -> TaskType:
        try:
            return TaskType(task_type)
        except ValueError:
            logger.warning(f"Unknown task type: {task_type}")
            raise InvalidState("start", task_type, f"unknown task type {task_type!r}")

    @staticmethod
    def _coerce_target(current: RoomStatus, target: Any, room_number: str) -> RoomStatus:
        try:
            return RoomStatus(target)
        except ValueError:
            logger.warning(f"Unknown target status for room {room_number}: {target}")
            raise IllegalTransition(current, target, room_number)

    def _commit_status(
        self,
        room_id: str,
        target: RoomStatus,
        actor: Staff,
        notes: Optional[str],
        assigned_to: Optional[str],
    ) -> AuditLogEntry:
        """
        提交一次房态转换：校验 -> 持久层 -> 注册表 -> 事件 -> 审计

        Raises:
            IllegalTransition: 不在转换表中（无任何修改）
            RepositoryFailure: 持久层失败（committed=False，无任何修改）
                               或审计失败（committed=True，状态已提交）
        """
        current = self.registry.get(room_id)
        room_transition_table.validate(current.status, target, current.room_number)

        self._call(
            "rooms.patch_status",
            self.room_repository.patch_status, room_id, target, assigned_to,
        )
        self.registry.apply_patch(
            room_id, status=target, assigned_to=assigned_to, last_updated=self.clock.now()
        )
        logger.info(
            f"Room {current.room_number}: {current.status.value} -> {target.value} by {actor.id}"
        )

        self._publish(EventType.ROOM_STATUS_CHANGED, RoomStatusChangedData(
            timestamp=self.clock.now(),
            room_id=room_id,
            room_number=current.room_number,
            old_status=current.status.value,
            new_status=target.value,
            changed_by=actor.id,
            changed_by_name=actor.full_name,
            notes=notes,
        ))

        entry = self.audit_trail.append(AuditLogEntry(
            room_number=current.room_number,
            changed_by=actor.id,
            changer_name=actor.full_name,
            changer_role=actor.role.value,
            from_status=current.status.value,
            to_status=target.value,
            timestamp=self.clock.now(),
            notes=notes,
        ))
        self._emit(
            "Status updated",
            f"Room {entry.room_number} changed from {entry.from_status} to {entry.to_status}",
            Severity.SUCCESS,
            {"room_number": entry.room_number, "to_status": entry.to_status},
        )
        return entry

    def _commit_tolerant(
        self,
        room_id: str,
        target: RoomStatus,
        actor: Staff,
        notes: Optional[str],
        assigned_to: Optional[str],
    ) -> Tuple[Optional[AuditLogEntry], Optional[RepositoryFailure]]:
        """提交房态；审计降级时返回异常而不是抛出"""
        try:
            return self._commit_status(room_id, target, actor, notes, assigned_to), None
        except RepositoryFailure as e:
            if not e.committed:
                raise
            return None, e

    def _assign(self, room_id: str, status: RoomStatus, assigned_to: Optional[str]) -> None:
        """只更新负责人（房态不变，不产生审计记录）"""
        self._call(
            "rooms.patch_status",
            self.room_repository.patch_status, room_id, status, assigned_to,
        )
        self.registry.apply_patch(room_id, assigned_to=assigned_to)

    # ============== 房态变更 ==============

    def change_status(
        self,
        room: RoomRef,
        new_status: Any,
        actor: Staff,
        notes: Optional[str] = None,
    ) -> AuditLogEntry:
        """
        手动变更房态

        Returns:
            本次转换的审计记录

        Raises:
            NotFound: 房间不存在
            IllegalTransition: 目标状态不合法（房态不变）
            RepositoryFailure: 持久层或审计失败
        """
        room_id = self._room_id(room)
        with self._room_lock(room_id):
            try:
                current = self.registry.get(room_id)
                target = self._coerce_target(current.status, new_status, current.room_number)
                entry = self._commit_status(room_id, target, actor, notes, current.assigned_to)
            except HousekeepingError as e:
                self.report(e)
                raise
        return entry

    # ============== 任务生命周期 ==============

    def start_task(
        self,
        room: RoomRef,
        task_type: Any,
        actor: Staff,
        description: Optional[str] = None,
    ) -> TaskStart:
        """
        开始任务

        隐含房态不合法时跳过房态变更，任务照常开始（结果中的 status_skipped）

        Raises:
            TaskAlreadyActive: 会话已有未完成任务
            InvalidState: 未知的任务类型
            NotFound: 房间不存在
            RepositoryFailure: 日志/房态写入失败
        """
        room_id = self._room_id(room)
        timer = self.timer_for(actor)

        with self._session_lock(actor.id), self._room_lock(room_id):
            try:
                task_type = self._coerce_task_type(task_type)
                if timer.is_outstanding:
                    raise TaskAlreadyActive(actor.id, timer.room_number)

                current = self.registry.get(room_id)
                implied = implied_start_status(task_type)
                apply_status = None
                skipped = None
                if implied is not None and implied != current.status:
                    if is_legal(current.status, implied):
                        apply_status = implied
                    else:
                        skipped = implied
                        logger.info(
                            f"Room {current.room_number}: {task_type.value} implies {implied.value} "
                            f"which is not allowed from {current.status.value}, status unchanged"
                        )

                log_id = self._call(
                    "work_logs.create",
                    self.work_log_repository.create,
                    current.room_number,
                    actor.id,
                    task_type,
                    description or f"{task_type.value} started for room {current.room_number}",
                )
                timer.start(log_id, current.room_number, task_type)

                try:
                    if apply_status is not None:
                        entry, degraded = self._commit_tolerant(
                            room_id, apply_status, actor, f"{task_type.value} started", actor.id
                        )
                    else:
                        entry, degraded = None, None
                        self._assign(room_id, current.status, actor.id)
                except HousekeepingError:
                    timer.stop()
                    raise

                self.registry.apply_patch(room_id, assigned_to=actor.id, current_task=task_type)
                result = TaskStart(
                    log_id=log_id,
                    room_number=current.room_number,
                    task_type=task_type,
                    status_applied=apply_status,
                    status_skipped=skipped,
                    audit_entry=entry,
                )
                self._publish(EventType.TASK_STARTED, TaskEventData(
                    timestamp=self.clock.now(),
                    log_id=log_id,
                    task_type=task_type.value,
                    room_number=current.room_number,
                    staff_id=actor.id,
                    staff_name=actor.full_name,
                    status_after=(apply_status or current.status).value,
                ))

                if degraded is not None:
                    degraded.result = result
                    raise degraded
            except HousekeepingError as e:
                self.report(e)
                raise

        self._emit(
            "Task started",
            f"{task_type.value} started for room {result.room_number}",
            Severity.SUCCESS,
            {"room_number": result.room_number, "log_id": log_id},
        )
        return result

    def pause_task(self, actor: Staff) -> TimerSnapshot:
        """
        暂停当前任务

        Raises:
            NoActiveTask: 没有未完成任务
            InvalidState: 任务不在运行中
        """
        timer = self.timer_for(actor)
        with self._session_lock(actor.id):
            try:
                if timer.state is TimerState.IDLE:
                    raise NoActiveTask(actor.id, operation="pause")
                if timer.state is not TimerState.RUNNING:
                    raise InvalidState("pause", timer.state)
                self._call(
                    "work_logs.pause",
                    self.work_log_repository.pause, timer.log_id, timer.elapsed_seconds,
                )
                timer.pause()
            except HousekeepingError as e:
                self.report(e)
                raise
            snapshot = timer.snapshot()

        self._publish(EventType.TASK_PAUSED, self._task_event(snapshot, actor))
        self._emit(
            "Task paused",
            f"Task paused at {format_duration(snapshot.elapsed)}",
            Severity.INFO,
            {"log_id": snapshot.log_id},
        )
        return snapshot

    def resume_task(self, actor: Staff) -> TimerSnapshot:
        """
        恢复暂停的任务

        Raises:
            NoActiveTask: 没有未完成任务
            InvalidState: 任务不在暂停中
        """
        timer = self.timer_for(actor)
        with self._session_lock(actor.id):
            try:
                if timer.state is TimerState.IDLE:
                    raise NoActiveTask(actor.id, operation="resume")
                if timer.state is not TimerState.PAUSED:
                    raise InvalidState("resume", timer.state)
                self._call("work_logs.resume", self.work_log_repository.resume, timer.log_id)
                timer.resume()
            except HousekeepingError as e:
                self.report(e)
                raise
            snapshot = timer.snapshot()

        self._publish(EventType.TASK_RESUMED, self._task_event(snapshot, actor))
        self._emit("Task resumed", "Task timer resumed", Severity.INFO, {"log_id": snapshot.log_id})
        return snapshot

    def finish_task(
        self,
        room: RoomRef,
        actor: Staff,
        explicit_next_status: Any = None,
        notes: Optional[str] = None,
    ) -> TaskOutcome:
        """
        完成任务

        目标房态：显式指定，否则按任务类型映射。
        目标不合法时在任何 I/O 之前失败，任务保持未完成以便重试。

        Raises:
            NoActiveTask: 该房间上没有本会话的未完成任务
            IllegalTransition: 目标房态不合法
            RepositoryFailure: 日志/房态写入失败，或审计降级（committed=True，result 为 TaskOutcome）
        """
        room_id = self._room_id(room)
        timer = self.timer_for(actor)

        with self._session_lock(actor.id), self._room_lock(room_id):
            try:
                current = self.registry.get(room_id)
                if not timer.is_outstanding or timer.room_number != current.room_number:
                    raise NoActiveTask(actor.id, current.room_number)

                task_type = TaskType(timer.task_type)
                if explicit_next_status is not None:
                    target = self._coerce_target(current.status, explicit_next_status, current.room_number)
                else:
                    target = default_finish_status(task_type)
                if target != current.status:
                    room_transition_table.validate(current.status, target, current.room_number)

                log_id = timer.log_id
                elapsed = timer.elapsed_seconds
                self._call("work_logs.finish", self.work_log_repository.finish, log_id, elapsed)

                # 房间已改派给他人时保留其负责人
                owns_room = current.assigned_to in (actor.id, None)
                assigned_to = None if owns_room else current.assigned_to
                if target != current.status:
                    entry, degraded = self._commit_tolerant(
                        room_id, target, actor, notes or f"{task_type.value} completed", assigned_to
                    )
                else:
                    entry, degraded = None, None
                    if owns_room:
                        self._assign(room_id, current.status, None)

                timer.stop()
                if owns_room:
                    self.registry.apply_patch(room_id, current_task=None)
                outcome = TaskOutcome(
                    log_id=log_id,
                    room_number=current.room_number,
                    task_type=task_type,
                    elapsed_seconds=elapsed,
                    status_before=current.status,
                    status_after=target,
                    audit_entry=entry,
                    degraded=degraded is not None,
                )
                self._publish(EventType.TASK_FINISHED, TaskEventData(
                    timestamp=self.clock.now(),
                    log_id=log_id,
                    task_type=task_type.value,
                    room_number=current.room_number,
                    staff_id=actor.id,
                    staff_name=actor.full_name,
                    elapsed_seconds=elapsed,
                    status_after=target.value,
                ))

                if degraded is not None:
                    degraded.result = outcome
                    raise degraded
            except HousekeepingError as e:
                self.report(e)
                raise

        self._emit(
            "Task completed",
            f"{task_type.value} completed for room {outcome.room_number} in {outcome.duration}",
            Severity.SUCCESS,
            {"room_number": outcome.room_number, "log_id": log_id, "elapsed_seconds": elapsed},
        )
        return outcome

    def abandon_task(self, actor: Staff) -> TaskOutcome:
        """
        放弃当前任务：停止计时、清空房间负责人，房态不变

        房间已从注册表中消失（例如同步后被移除）时任务照常放弃，
        结果中的房态为 None

        Raises:
            NoActiveTask: 没有未完成任务
            RepositoryFailure: 日志写入失败（任务保持未完成）
        """
        timer = self.timer_for(actor)
        with self._session_lock(actor.id):
            try:
                if not timer.is_outstanding:
                    raise NoActiveTask(actor.id, operation="abandon")
                log_id = timer.log_id
                room_number = timer.room_number
                task_type = TaskType(timer.task_type)
                elapsed = timer.elapsed_seconds
                self._call("work_logs.finish", self.work_log_repository.finish, log_id, elapsed)
                timer.stop()

                try:
                    current = self.registry.find_by_number(room_number)
                except NotFound:
                    current = None
                    logger.warning(f"Room {room_number} no longer exists, abandoned task without room update")

                if current is not None:
                    with self._room_lock(current.id):
                        if current.assigned_to in (actor.id, None):
                            if current.assigned_to == actor.id:
                                self._assign(current.id, current.status, None)
                            self.registry.apply_patch(current.id, current_task=None)
            except HousekeepingError as e:
                self.report(e)
                raise

        status = current.status if current is not None else None
        outcome = TaskOutcome(
            log_id=log_id,
            room_number=room_number,
            task_type=task_type,
            elapsed_seconds=elapsed,
            status_before=status,
            status_after=status,
        )
        self._publish(EventType.TASK_ABANDONED, TaskEventData(
            timestamp=self.clock.now(),
            log_id=log_id,
            task_type=task_type.value,
            room_number=room_number,
            staff_id=actor.id,
            staff_name=actor.full_name,
            elapsed_seconds=elapsed,
            status_after=status.value if status is not None else None,
        ))
        self._emit(
            "Task abandoned",
            f"{task_type.value} on room {room_number} abandoned after {outcome.duration}",
            Severity.WARNING,
            {"room_number": room_number, "log_id": log_id},
        )
        return outcome

    def _task_event(self, snapshot: TimerSnapshot, actor: Staff) -> TaskEventData:
        return TaskEventData(
            timestamp=self.clock.now(),
            log_id=snapshot.log_id or "",
            task_type=getattr(snapshot.task_type, "value", snapshot.task_type) or "",
            room_number=snapshot.room_number or "",
            staff_id=actor.id,
            staff_name=actor.full_name,
            elapsed_seconds=snapshot.elapsed_seconds,
        )

    # ============== 同步与计时 ==============

    def sync_rooms(self) -> int:
        """
        从持久层重新加载全部房间，并补写待同步的审计记录

        Returns:
            房间数

        Raises:
            RepositoryFailure: 读取房间失败
            InvalidState: 持久层返回了重复的房间号（注册表保持不变）
        """
        try:
            rooms = self._call("rooms.fetch_all", self.room_repository.fetch_all)
            try:
                self.registry.replace_all(rooms)
            except ValueError as e:
                raise InvalidState("sync", "rooms", f"cannot load rooms: {e}") from e
        except HousekeepingError as e:
            self.report(e)
            raise
        if self.audit_trail.pending():
            flushed = self.audit_trail.flush_pending()
            logger.info(f"Flushed {flushed} pending audit entries")
        return len(rooms)

    def attach_realtime(self) -> None:
        """订阅外部房间变更（幂等）"""
        if self._subscription is not None and self._subscription.active:
            return
        self._subscription = self.room_repository.subscribe(self._on_remote_change)
        logger.info("Realtime room sync attached")

    def detach_realtime(self) -> None:
        """取消订阅（幂等）"""
        if self._subscription is None:
            return
        self._subscription.unsubscribe()
        self._subscription = None
        logger.info("Realtime room sync detached")

    @property
    def realtime_attached(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def _on_remote_change(self, change: RoomChange) -> None:
        self.registry.apply_remote_change(change)

    def tick_all(self) -> None:
        """刷新所有运行中的计时器"""
        with self._locks_guard:
            timers = list(self._timers.values())
        for timer in timers:
            with self._session_lock(timer.staff_id):
                timer.tick()
