"""
站内通知路由
"""
from fastapi import APIRouter, Depends, HTTPException, status

from housekeeping.models.schemas import NotificationListResponse, NotificationResponse
from housekeeping.routers.deps import get_context
from housekeeping.services.context import HousekeepingContext

router = APIRouter(prefix="/notifications", tags=["通知"])


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = False,
    context: HousekeepingContext = Depends(get_context),
):
    """获取通知列表（最新的在前）"""
    center = context.notifications
    return NotificationListResponse(
        unread=center.unread_count(),
        items=[NotificationResponse.model_validate(n) for n in center.list(unread_only)],
    )


@router.post("/{notification_id}/read")
def mark_notification_read(notification_id: str, context: HousekeepingContext = Depends(get_context)):
    """标记已读"""
    if not context.notifications.mark_read(notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="通知不存在")
    return {"message": "已标记为已读"}


@router.delete("")
def clear_notifications(context: HousekeepingContext = Depends(get_context)):
    """清空通知"""
    context.notifications.clear()
    return {"message": "通知已清空"}
