"""
房间路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends

from roomcore.engine.errors import HousekeepingError, RepositoryFailure
from housekeeping.domain.rules import allowed_actions, legal_next_states
from housekeeping.models.entities import RoomStatus, Staff
from housekeeping.models.schemas import RoomResponse, RoomStatusUpdate, RoomTransitionsResponse
from housekeeping.routers.deps import (
    get_context, get_current_actor, get_engine, room_response, to_http_exception
)
from housekeeping.services.context import HousekeepingContext
from housekeeping.services.workflow_engine import WorkflowEngine

router = APIRouter(prefix="/rooms", tags=["房间管理"])


@router.get("", response_model=List[RoomResponse])
def list_rooms(
    status: Optional[RoomStatus] = None,
    building: Optional[str] = None,
    floor: Optional[int] = None,
    context: HousekeepingContext = Depends(get_context),
):
    """获取房间列表"""
    registry = context.registry
    if building:
        rooms = registry.list_by_building_floor(building, floor)
    else:
        rooms = registry.list_all()
        if floor is not None:
            rooms = [r for r in rooms if r.floor == floor]
    if status:
        rooms = [r for r in rooms if r.status == status]
    return [room_response(r) for r in rooms]


@router.get("/buildings", response_model=List[str])
def list_buildings(context: HousekeepingContext = Depends(get_context)):
    """获取楼栋列表"""
    return context.registry.buildings()


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(room_id: str, context: HousekeepingContext = Depends(get_context)):
    """获取房间详情"""
    try:
        return room_response(context.registry.get(room_id))
    except HousekeepingError as e:
        raise to_http_exception(e)


@router.get("/{room_id}/transitions", response_model=RoomTransitionsResponse)
def get_room_transitions(
    room_id: str,
    context: HousekeepingContext = Depends(get_context),
    current_user: Staff = Depends(get_current_actor),
):
    """获取房间可转换的目标状态与当前员工可执行的动作"""
    try:
        room = context.registry.get(room_id)
    except HousekeepingError as e:
        raise to_http_exception(e)
    allowed = sorted(legal_next_states(room.status), key=lambda s: s.value)
    return RoomTransitionsResponse(
        room_id=room.id,
        room_number=room.room_number,
        status=room.status,
        allowed=allowed,
        actions=allowed_actions(current_user.role, room),
    )


@router.post("/{room_id}/status", response_model=RoomResponse)
def change_room_status(
    room_id: str,
    data: RoomStatusUpdate,
    engine: WorkflowEngine = Depends(get_engine),
    current_user: Staff = Depends(get_current_actor),
):
    """变更房态"""
    try:
        engine.change_status(room_id, data.status, current_user, data.notes)
    except RepositoryFailure as e:
        if not e.committed:
            raise to_http_exception(e)
    except HousekeepingError as e:
        raise to_http_exception(e)
    return room_response(engine.registry.get(room_id))
