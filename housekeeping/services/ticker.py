"""
计时刷新 - 基于 APScheduler 的固定周期任务（默认每秒刷新一次所有计时器）
"""
from typing import Callable, Optional
import logging
import threading

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)


class TimerTicker:
    """
    后台周期任务

    start() / stop() 都是幂等的，重复进入不会注册重复的刷新任务。
    每次 start() 使用新的调度器，停止后可以重新启动。

    Example:
        >>> ticker = TimerTicker(engine.tick_all, interval=1.0)
        >>> ticker.start()
        >>> ticker.stop()
    """

    def __init__(self, callback: Callable[[], None], interval: float = 1.0, name: str = "timer-ticker"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._callback = callback
        self._interval = interval
        self._name = name
        self._scheduler: Optional[BackgroundScheduler] = None
        self._lock = threading.Lock()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def scheduler(self) -> Optional[BackgroundScheduler]:
        """当前的调度器（未运行时为 None）"""
        return self._scheduler

    def start(self) -> bool:
        """启动调度器，已在运行时返回 False"""
        with self._lock:
            if self.running:
                return False
            scheduler = BackgroundScheduler(daemon=True)
            scheduler.add_job(
                self._run,
                trigger="interval",
                seconds=self._interval,
                id=self._name,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            scheduler.start()
            self._scheduler = scheduler
        logger.info(f"{self._name} started (interval={self._interval}s)")
        return True

    def stop(self) -> bool:
        """停止调度器，未运行时返回 False"""
        with self._lock:
            scheduler = self._scheduler
            if scheduler is None:
                return False
            self._scheduler = None
        if scheduler.running:
            scheduler.shutdown(wait=False)
        logger.info(f"{self._name} stopped")
        return True

    def _run(self) -> None:
        try:
            self._callback()
        except Exception as e:
            logger.error(f"{self._name} callback error: {e}", exc_info=True)
