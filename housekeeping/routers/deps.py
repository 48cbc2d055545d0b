"""
路由依赖 - 上下文获取、当前员工识别、异常到 HTTP 状态的映射
"""
from fastapi import Depends, Header, HTTPException, Request, status

from roomcore.engine.errors import (
    HousekeepingError, IllegalTransition, InvalidState, NotFound, RepositoryFailure
)
from housekeeping.models.entities import Room, Staff
from housekeeping.models.schemas import RoomResponse
from housekeeping.services.context import HousekeepingContext
from housekeeping.services.workflow_engine import WorkflowEngine


def get_context(request: Request) -> HousekeepingContext:
    return request.app.state.context


def get_engine(context: HousekeepingContext = Depends(get_context)) -> WorkflowEngine:
    return context.engine


def get_current_actor(
    x_staff_id: str = Header(..., alias="X-Staff-Id"),
    context: HousekeepingContext = Depends(get_context),
) -> Staff:
    """按 X-Staff-Id 请求头识别员工"""
    actor = context.staff.find(x_staff_id)
    if actor is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="未知员工")
    return actor


def to_http_exception(error: HousekeepingError) -> HTTPException:
    if isinstance(error, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, (IllegalTransition, InvalidState)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, RepositoryFailure):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(error))


def room_response(room: Room) -> RoomResponse:
    return RoomResponse.model_validate(room)
