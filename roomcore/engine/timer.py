"""
roomcore/engine/timer.py

任务计时器 - 每个员工会话持有一个实例

状态: IDLE -> RUNNING <-> PAUSED -> IDLE
对外报告的耗时 = 累计耗时 + (now - start)（运行中），暂停时冻结
"""
from typing import Any, Dict, Optional
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import logging
import math

from roomcore.engine.clock import Clock, SystemClock
from roomcore.engine.errors import InvalidState

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    """计时器状态"""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


# 操作 -> 允许调用的源状态（stop/reset 任何状态都允许）
TIMER_OPERATIONS = {
    "start": frozenset({TimerState.IDLE}),
    "pause": frozenset({TimerState.RUNNING}),
    "resume": frozenset({TimerState.PAUSED}),
}


def format_duration(seconds: float) -> str:
    """秒数格式化为 HH:MM:SS"""
    total = max(int(seconds), 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class TimerSnapshot:
    """计时器快照（只读）"""

    state: TimerState
    log_id: Optional[str]
    room_number: Optional[str]
    task_type: Optional[Any]
    staff_id: Optional[str]
    elapsed: float
    started_at: Optional[datetime]

    @property
    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    @property
    def is_outstanding(self) -> bool:
        return self.state is not TimerState.IDLE

    @property
    def elapsed_seconds(self) -> int:
        return int(math.floor(self.elapsed))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "log_id": self.log_id,
            "room_number": self.room_number,
            "task_type": getattr(self.task_type, "value", self.task_type),
            "staff_id": self.staff_id,
            "elapsed": self.elapsed,
            "elapsed_seconds": self.elapsed_seconds,
            "started_at": self.started_at.isoformat() if self.started_at else None,
        }


class TaskTimer:
    """
    单任务计时器

    调用方需串行化同一会话的调用（一个会话 = 一个顺序事件队列）。

    Example:
        >>> timer = TaskTimer(clock)
        >>> timer.start("log-1", "A101", "Cleaning")
        >>> clock.advance(30)
        >>> timer.pause()
        30.0
    """

    def __init__(self, clock: Optional[Clock] = None, staff_id: Optional[str] = None):
        self._clock = clock if clock is not None else SystemClock()
        self._staff_id = staff_id
        self._state = TimerState.IDLE
        self._accumulated = 0.0
        self._start_mark: Optional[float] = None
        self._started_at: Optional[datetime] = None
        self._log_id: Optional[str] = None
        self._room_number: Optional[str] = None
        self._task_type: Optional[Any] = None

    # ============== 属性访问 ==============

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def staff_id(self) -> Optional[str]:
        return self._staff_id

    @property
    def log_id(self) -> Optional[str]:
        return self._log_id

    @property
    def room_number(self) -> Optional[str]:
        return self._room_number

    @property
    def task_type(self) -> Optional[Any]:
        return self._task_type

    @property
    def is_running(self) -> bool:
        return self._state is TimerState.RUNNING

    @property
    def is_outstanding(self) -> bool:
        """运行中或暂停中都算未完成任务"""
        return self._state is not TimerState.IDLE

    @property
    def elapsed(self) -> float:
        """当前耗时（秒）"""
        if self._state is TimerState.RUNNING and self._start_mark is not None:
            return self._accumulated + max(self._clock.monotonic() - self._start_mark, 0.0)
        return self._accumulated

    @property
    def elapsed_seconds(self) -> int:
        """当前耗时（整秒，向下取整）"""
        return int(math.floor(self.elapsed))

    # ============== 状态转换 ==============

    def _require(self, operation: str) -> None:
        if self._state not in TIMER_OPERATIONS[operation]:
            raise InvalidState(operation, self._state)

    def start(self, log_id: str, room_number: str, task_type: Any) -> None:
        """
        开始计时

        Raises:
            InvalidState: 已有未完成任务
        """
        self._require("start")
        self._log_id = log_id
        self._room_number = room_number
        self._task_type = task_type
        self._accumulated = 0.0
        self._start_mark = self._clock.monotonic()
        self._started_at = self._clock.now()
        self._state = TimerState.RUNNING
        logger.info(f"Timer started: log={log_id} room={room_number} task={task_type}")

    def pause(self) -> float:
        """
        暂停计时，返回冻结的累计耗时

        Raises:
            InvalidState: 当前不在运行中
        """
        self._require("pause")
        self._fold()
        self._start_mark = None
        self._state = TimerState.PAUSED
        logger.info(f"Timer paused: log={self._log_id} elapsed={self._accumulated:.1f}s")
        return self._accumulated

    def resume(self) -> None:
        """
        恢复计时

        Raises:
            InvalidState: 当前不在暂停中
        """
        self._require("resume")
        self._start_mark = self._clock.monotonic()
        self._state = TimerState.RUNNING
        logger.info(f"Timer resumed: log={self._log_id}")

    def tick(self) -> None:
        """周期调用：运行中时把已流逝时间折叠进累计值并重置起点，其他状态无操作"""
        if self._state is not TimerState.RUNNING:
            return
        self._fold()

    def stop(self) -> None:
        """强制回到 IDLE，清空所有字段（幂等）"""
        if self._state is not TimerState.IDLE:
            logger.info(f"Timer stopped: log={self._log_id} elapsed={self.elapsed:.1f}s")
        self._state = TimerState.IDLE
        self._accumulated = 0.0
        self._start_mark = None
        self._started_at = None
        self._log_id = None
        self._room_number = None
        self._task_type = None

    reset = stop

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            state=self._state,
            log_id=self._log_id,
            room_number=self._room_number,
            task_type=self._task_type,
            staff_id=self._staff_id,
            elapsed=self.elapsed,
            started_at=self._started_at,
        )

    def _fold(self) -> None:
        now = self._clock.monotonic()
        if self._start_mark is not None:
            self._accumulated += max(now - self._start_mark, 0.0)
        self._start_mark = now


__all__ = [
    "TimerState",
    "TimerSnapshot",
    "TaskTimer",
    "TIMER_OPERATIONS",
    "format_duration",
]
