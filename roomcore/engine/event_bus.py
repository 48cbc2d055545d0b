"""
roomcore/engine/event_bus.py

事件总线 - 内存级发布/订阅模式
每个工作流/仓储实例持有自己的总线，没有全局单例
"""
from typing import Callable, Dict, List, Any, Optional, Protocol, Tuple
from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
import logging
import threading
import uuid

logger = logging.getLogger(__name__)

# 通配订阅：接收所有事件类型
ALL_EVENTS = "*"


def _generate_event_id() -> str:
    """生成唯一事件ID"""
    return f"{datetime.now().strftime('%Y%m%d%H%M%S')}_{uuid.uuid4().hex[:8]}"


class EventHandler(Protocol):
    """事件处理器协议"""

    def __call__(self, event: "Event") -> None:
        ...


@dataclass
class Event:
    """
    事件

    Attributes:
        event_type: 事件类型（如 "room.status_changed"）
        timestamp: 事件时间戳
        data: 事件数据
        source: 触发来源（服务名）
        event_id: 唯一事件ID
    """

    event_type: str
    timestamp: datetime
    data: Dict[str, Any]
    source: str = ""
    event_id: str = field(default_factory=_generate_event_id)


@dataclass
class PublishResult:
    """
    事件发布结果

    Attributes:
        event_type: 事件类型
        subscriber_count: 订阅者数量
        success_count: 成功处理的处理器数量
        failure_count: 失败的处理器数量
        errors: 处理器错误列表 (handler, exception) 元组
    """

    event_type: str
    subscriber_count: int
    success_count: int = 0
    failure_count: int = 0
    errors: List[Tuple[Callable, Exception]] = field(default_factory=list)


def _handler_name(handler: Callable) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class EventBus:
    """
    事件总线（线程安全）

    特性：
    - 同步分发，处理器异常隔离并记录
    - 事件历史记录（可配置大小）
    - 支持 "*" 通配订阅

    Example:
        >>> bus = EventBus()
        >>> bus.subscribe("room.status_changed", handler)
        >>> bus.publish(Event(event_type="room.status_changed", timestamp=datetime.now(), data={}))
    """

    def __init__(self, history_size: int = 100):
        self._subscribers: Dict[str, List[EventHandler]] = {}
        self._event_history: deque = deque(maxlen=history_size)
        self._lock = threading.RLock()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """
        订阅事件（同一处理器重复订阅无效果）

        Args:
            event_type: 事件类型，或 "*" 订阅全部
            handler: 处理函数，接收 Event 对象
        """
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.debug(f"Handler {_handler_name(handler)} subscribed to {event_type}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """
        取消订阅

        Returns:
            是否确实移除了处理器
        """
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
                logger.debug(f"Handler {_handler_name(handler)} unsubscribed from {event_type}")
                return True
            return False

    def has_subscribers(self, event_type: str) -> bool:
        with self._lock:
            return bool(self._subscribers.get(event_type) or self._subscribers.get(ALL_EVENTS))

    def publish(self, event: Event) -> PublishResult:
        """
        发布事件（同步执行所有处理器）

        处理器异常不会影响其他处理器的执行。
        """
        with self._lock:
            self._event_history.append(event)
            handlers = list(self._subscribers.get(event.event_type, []))
            handlers += [h for h in self._subscribers.get(ALL_EVENTS, []) if h not in handlers]

        result = PublishResult(event_type=event.event_type, subscriber_count=len(handlers))

        for handler in handlers:
            try:
                handler(event)
                result.success_count += 1
            except Exception as e:
                result.failure_count += 1
                result.errors.append((handler, e))
                logger.error(
                    f"Event handler {_handler_name(handler)} error for {event.event_type}: {e}",
                    exc_info=True,
                )

        return result

    def get_history(self, event_type: Optional[str] = None, limit: int = 50) -> List[Event]:
        """
        获取事件历史（用于调试）

        Returns:
            事件列表（最新的在前）
        """
        with self._lock:
            history = list(self._event_history)
        if event_type:
            history = [e for e in history if e.event_type == event_type]
        return list(reversed(history))[:limit]

    def clear(self) -> None:
        """清空订阅与历史"""
        with self._lock:
            self._subscribers.clear()
            self._event_history.clear()


__all__ = [
    "ALL_EVENTS",
    "EventHandler",
    "Event",
    "PublishResult",
    "EventBus",
]
