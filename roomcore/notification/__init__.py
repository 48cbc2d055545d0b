"""通知模块 - 渠道接口与站内通知中心"""
from roomcore.notification.channel import (
    Severity,
    Notification,
    NotificationSink,
    NotificationCenter,
)

__all__ = [
    "Severity",
    "Notification",
    "NotificationSink",
    "NotificationCenter",
]
