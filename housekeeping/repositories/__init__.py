# Repositories
from housekeeping.repositories.interfaces import (
    Subscription, RoomRepository, WorkLogRepository, AuditRepository
)
from housekeeping.repositories.realtime import RoomChangeFeed
from housekeeping.repositories.memory import (
    InMemoryRoomRepository, InMemoryWorkLogRepository, InMemoryAuditRepository
)

__all__ = [
    'Subscription', 'RoomRepository', 'WorkLogRepository', 'AuditRepository',
    'RoomChangeFeed',
    'InMemoryRoomRepository', 'InMemoryWorkLogRepository', 'InMemoryAuditRepository',
]
