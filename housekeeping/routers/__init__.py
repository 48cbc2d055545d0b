# API Routers
from housekeeping.routers import rooms, tasks, audit_logs, notifications

__all__ = ['rooms', 'tasks', 'audit_logs', 'notifications']
