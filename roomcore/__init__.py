"""
roomcore - 房态工作流运行时框架

与具体酒店业务无关的引擎层：
- engine: 时钟、状态转换表、任务计时器、审计轨迹、事件总线
- notification: 通知渠道接口与站内通知中心

使用方式:
    >>> from roomcore.engine import TransitionTable, TaskTimer
    >>> from roomcore.notification import NotificationCenter
"""
