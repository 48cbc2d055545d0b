"""
测试 roomcore.engine.timer - 任务计时器
"""
import pytest

from roomcore.engine.clock import ManualClock
from roomcore.engine.errors import InvalidState
from roomcore.engine.timer import TaskTimer, TimerState, format_duration


@pytest.fixture
def timer(clock):
    return TaskTimer(clock, staff_id="hk-1")


class TestFormatDuration:
    @pytest.mark.parametrize("seconds,expected", [
        (0, "00:00:00"),
        (59, "00:00:59"),
        (125, "00:02:05"),
        (3600, "01:00:00"),
        (36125.9, "10:02:05"),
        (-5, "00:00:00"),
    ])
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestTaskTimer:
    def test_initial_state(self, timer):
        """测试初始为 IDLE"""
        assert timer.state is TimerState.IDLE
        assert timer.elapsed == 0
        assert not timer.is_outstanding

    def test_start(self, timer, clock):
        """测试开始计时"""
        timer.start("log-1", "A101", "Cleaning")
        assert timer.state is TimerState.RUNNING
        assert timer.log_id == "log-1"
        assert timer.room_number == "A101"
        assert timer.task_type == "Cleaning"
        clock.advance(30)
        assert timer.elapsed == 30

    def test_start_twice_rejected(self, timer):
        timer.start("log-1", "A101", "Cleaning")
        with pytest.raises(InvalidState):
            timer.start("log-2", "A102", "Cleaning")

    def test_start_while_paused_rejected(self, timer):
        """测试暂停中不能开始新任务"""
        timer.start("log-1", "A101", "Cleaning")
        timer.pause()
        with pytest.raises(InvalidState):
            timer.start("log-2", "A102", "Cleaning")
        assert timer.log_id == "log-1"

    def test_pause_freezes_elapsed(self, timer, clock):
        """测试暂停后耗时冻结"""
        timer.start("log-1", "A101", "Cleaning")
        clock.advance(125)
        assert timer.pause() == 125
        clock.advance(600)
        assert timer.elapsed == 125
        assert timer.state is TimerState.PAUSED

    def test_resume_continues(self, timer, clock):
        """测试恢复后继续累计"""
        timer.start("log-1", "A101", "Cleaning")
        clock.advance(10)
        timer.pause()
        clock.advance(100)
        timer.resume()
        clock.advance(5)
        assert timer.elapsed == 15

    def test_pause_requires_running(self, timer):
        with pytest.raises(InvalidState):
            timer.pause()
        timer.start("log-1", "A101", "Cleaning")
        timer.pause()
        with pytest.raises(InvalidState):
            timer.pause()

    def test_resume_requires_paused(self, timer):
        with pytest.raises(InvalidState):
            timer.resume()
        timer.start("log-1", "A101", "Cleaning")
        with pytest.raises(InvalidState):
            timer.resume()

    def test_tick_folds_elapsed(self, timer, clock):
        """测试 tick 折叠耗时且不改变总量"""
        timer.start("log-1", "A101", "Cleaning")
        for _ in range(5):
            clock.advance(1)
            timer.tick()
        assert timer.elapsed == 5
        clock.advance(0.5)
        assert timer.elapsed == 5.5
        assert timer.elapsed_seconds == 5

    def test_tick_is_noop_when_not_running(self, timer, clock):
        timer.tick()
        assert timer.state is TimerState.IDLE
        timer.start("log-1", "A101", "Cleaning")
        clock.advance(3)
        timer.pause()
        clock.advance(3)
        timer.tick()
        assert timer.elapsed == 3

    def test_elapsed_monotonic_while_running(self, timer, clock):
        """测试运行中耗时单调不减"""
        timer.start("log-1", "A101", "Cleaning")
        readings = []
        for step in (0.2, 0.7, 1.0, 0.0, 3.1):
            clock.advance(step)
            if step > 0.5:
                timer.tick()
            readings.append(timer.elapsed)
        assert readings == sorted(readings)

    def test_stop_resets(self, timer, clock):
        """测试 stop 清空所有字段且幂等"""
        timer.start("log-1", "A101", "Cleaning")
        clock.advance(10)
        timer.stop()
        timer.stop()
        assert timer.state is TimerState.IDLE
        assert timer.elapsed == 0
        assert timer.log_id is None
        assert timer.room_number is None
        assert timer.task_type is None

    def test_reset_alias(self, timer):
        timer.start("log-1", "A101", "Cleaning")
        timer.reset()
        assert timer.state is TimerState.IDLE

    def test_snapshot(self, timer, clock):
        """测试快照"""
        timer.start("log-1", "A101", "Cleaning")
        clock.advance(61)
        snapshot = timer.snapshot()
        assert snapshot.is_running
        assert snapshot.is_outstanding
        assert snapshot.elapsed_seconds == 61
        assert snapshot.staff_id == "hk-1"
        data = snapshot.to_dict()
        assert data["state"] == "running"
        assert data["started_at"] == "2024-01-01T08:00:00"

    def test_independent_timers(self):
        """测试不同会话的计时器互不影响"""
        clock = ManualClock()
        first = TaskTimer(clock, staff_id="a")
        second = TaskTimer(clock, staff_id="b")
        first.start("log-1", "A101", "Cleaning")
        clock.advance(10)
        second.start("log-2", "A102", "Cleaning")
        clock.advance(5)
        assert first.elapsed == 15
        assert second.elapsed == 5


class TestManualClock:
    def test_advance(self):
        clock = ManualClock()
        clock.advance(90)
        assert clock.monotonic() == 90
        assert clock.now().minute == 1

    def test_cannot_go_backwards(self):
        with pytest.raises(ValueError):
            ManualClock().advance(-1)
