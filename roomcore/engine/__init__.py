"""
roomcore/engine - 核心引擎模块

包含与业务无关的引擎组件：
- clock: 时钟抽象
- errors: 工作流异常
- state_machine: 状态转换表
- timer: 任务计时器
- audit: 审计轨迹
- event_bus: 事件总线（发布/订阅）

使用方式:
    >>> from roomcore.engine import TransitionTable, TaskTimer, AuditTrail, EventBus
"""

from roomcore.engine.clock import Clock, SystemClock, ManualClock

from roomcore.engine.errors import (
    HousekeepingError,
    IllegalTransition,
    InvalidState,
    TaskAlreadyActive,
    NoActiveTask,
    NotFound,
    RepositoryFailure,
)

from roomcore.engine.state_machine import (
    StateTransition,
    StateMachineConfig,
    TransitionTable,
)

from roomcore.engine.timer import (
    TimerState,
    TimerSnapshot,
    TaskTimer,
    format_duration,
)

from roomcore.engine.audit import (
    AuditLogEntry,
    AuditStore,
    AuditQuery,
    AuditTrail,
)

from roomcore.engine.event_bus import (
    ALL_EVENTS,
    Event,
    PublishResult,
    EventBus,
)

__all__ = [
    # 时钟
    "Clock",
    "SystemClock",
    "ManualClock",
    # 异常
    "HousekeepingError",
    "IllegalTransition",
    "InvalidState",
    "TaskAlreadyActive",
    "NoActiveTask",
    "NotFound",
    "RepositoryFailure",
    # 状态转换
    "StateTransition",
    "StateMachineConfig",
    "TransitionTable",
    # 计时器
    "TimerState",
    "TimerSnapshot",
    "TaskTimer",
    "format_duration",
    # 审计
    "AuditLogEntry",
    "AuditStore",
    "AuditQuery",
    "AuditTrail",
    # 事件总线
    "ALL_EVENTS",
    "Event",
    "PublishResult",
    "EventBus",
]
