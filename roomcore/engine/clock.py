"""
roomcore/engine/clock.py

时钟抽象 - 为任务计时器提供单调时间，为审计日志提供时间戳
测试中注入 ManualClock 以获得确定性结果
"""
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
import time


class Clock(ABC):
    """时钟接口"""

    @abstractmethod
    def now(self) -> datetime:
        """当前墙上时间（用于审计/日志时间戳）"""

    @abstractmethod
    def monotonic(self) -> float:
        """单调递增秒数（用于计时）"""


class SystemClock(Clock):
    """系统时钟"""

    def now(self) -> datetime:
        return datetime.now()

    def monotonic(self) -> float:
        return time.monotonic()


class ManualClock(Clock):
    """
    手动推进的时钟

    Example:
        >>> clock = ManualClock()
        >>> clock.advance(125)
        >>> clock.monotonic()
        125.0
    """

    def __init__(self, start: datetime = datetime(2024, 1, 1, 8, 0, 0)):
        self._wall = start
        self._mono = 0.0

    def now(self) -> datetime:
        return self._wall

    def monotonic(self) -> float:
        return self._mono

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("clock cannot move backwards")
        self._mono += seconds
        self._wall = self._wall + timedelta(seconds=seconds)


__all__ = ["Clock", "SystemClock", "ManualClock"]
