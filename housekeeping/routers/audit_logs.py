"""
审计日志路由
"""
from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query

from roomcore.engine.errors import HousekeepingError
from housekeeping.models.schemas import AuditLogFilter, AuditLogResponse
from housekeeping.routers.deps import get_context, to_http_exception
from housekeeping.services.context import HousekeepingContext

router = APIRouter(prefix="/audit-logs", tags=["审计日志"])


@router.get("", response_model=List[AuditLogResponse])
def list_audit_logs(
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    room_number: Optional[str] = None,
    changed_by: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    context: HousekeepingContext = Depends(get_context),
):
    """查询房态审计日志（最新的在前）"""
    filters = AuditLogFilter(
        date_from=date_from,
        date_to=date_to,
        room_number=room_number,
        changed_by=changed_by,
        limit=limit,
    )
    try:
        entries = context.audit_trail.history(filters)
    except HousekeepingError as e:
        raise to_http_exception(e)
    return [AuditLogResponse(**e.to_dict()) for e in entries]
