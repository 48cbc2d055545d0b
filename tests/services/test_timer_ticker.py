"""
测试 housekeeping.services.ticker
"""
from datetime import timedelta
import threading
import pytest

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from housekeeping.services.ticker import TimerTicker


class TestTimerTicker:
    """测试基于 APScheduler 的计时刷新"""

    def test_calls_callback(self):
        called = threading.Event()
        ticker = TimerTicker(called.set, interval=0.01)

        assert ticker.start()
        try:
            assert called.wait(2)
        finally:
            ticker.stop()

    def test_registers_interval_job(self):
        """测试启动后在 APScheduler 中注册了一个固定周期任务"""
        ticker = TimerTicker(lambda: None, interval=0.5, name="tick-test")
        ticker.start()
        try:
            assert isinstance(ticker.scheduler, BackgroundScheduler)
            job = ticker.scheduler.get_job("tick-test")
            assert job is not None
            assert isinstance(job.trigger, IntervalTrigger)
            assert job.trigger.interval == timedelta(seconds=0.5)
            assert len(ticker.scheduler.get_jobs()) == 1
        finally:
            ticker.stop()
        assert ticker.scheduler is None

    def test_start_is_idempotent(self):
        ticker = TimerTicker(lambda: None, interval=0.01)
        assert ticker.start()
        assert not ticker.start()
        assert ticker.running
        assert ticker.stop()
        assert not ticker.stop()
        assert not ticker.running

    def test_restart(self):
        """测试停止后可以重新启动（使用新的调度器）"""
        called = threading.Event()
        ticker = TimerTicker(called.set, interval=0.01)
        ticker.start()
        ticker.stop()
        called.clear()
        assert ticker.start()
        try:
            assert called.wait(2)
        finally:
            ticker.stop()

    def test_callback_error_keeps_running(self):
        calls = []
        done = threading.Event()

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            done.set()

        ticker = TimerTicker(flaky, interval=0.01)
        ticker.start()
        try:
            assert done.wait(2)
        finally:
            ticker.stop()

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            TimerTicker(lambda: None, interval=0)
