"""
任务路由 - 当前员工的任务计时与完成
"""
from fastapi import APIRouter, Depends

from roomcore.engine.errors import HousekeepingError, RepositoryFailure
from roomcore.engine.timer import TimerSnapshot, format_duration
from housekeeping.models.entities import Staff
from housekeeping.models.schemas import (
    InspectionResponse, InspectionSubmitRequest, TaskFinishRequest,
    TaskOutcomeResponse, TaskStartRequest, TaskStartResponse, TimerResponse
)
from housekeeping.routers.deps import get_context, get_current_actor, get_engine, to_http_exception
from housekeeping.services.context import HousekeepingContext
from housekeeping.services.inspection_service import ChecklistResponse
from housekeeping.services.workflow_engine import TaskOutcome, TaskStart, WorkflowEngine

router = APIRouter(prefix="/tasks", tags=["任务管理"])


def _timer_response(snapshot: TimerSnapshot) -> TimerResponse:
    return TimerResponse(
        state=snapshot.state.value,
        log_id=snapshot.log_id,
        room_number=snapshot.room_number,
        task_type=snapshot.task_type,
        staff_id=snapshot.staff_id,
        elapsed_seconds=snapshot.elapsed_seconds,
        duration=format_duration(snapshot.elapsed),
        started_at=snapshot.started_at,
    )


def _outcome_response(outcome: TaskOutcome) -> TaskOutcomeResponse:
    return TaskOutcomeResponse(**outcome.to_dict())


def _committed_result(error: RepositoryFailure):
    """审计降级的操作已经生效，返回其结果；否则转为 HTTP 异常"""
    if error.committed and error.result is not None:
        return error.result
    raise to_http_exception(error)


@router.get("/current", response_model=TimerResponse)
def get_current_task(
    engine: WorkflowEngine = Depends(get_engine),
    current_user: Staff = Depends(get_current_actor),
):
    """获取当前任务计时"""
    return _timer_response(engine.active_task(current_user))


@router.post("/start", response_model=TaskStartResponse)
def start_task(
    data: TaskStartRequest,
    engine: WorkflowEngine = Depends(get_engine),
    current_user: Staff = Depends(get_current_actor),
):
    """开始任务"""
    try:
        result: TaskStart = engine.start_task(data.room_id, data.task_type, current_user)
    except RepositoryFailure as e:
        result = _committed_result(e)
    except HousekeepingError as e:
        raise to_http_exception(e)
    return TaskStartResponse(
        log_id=result.log_id,
        room_number=result.room_number,
        task_type=result.task_type,
        status_applied=result.status_applied,
        status_skipped=result.status_skipped,
    )


@router.post("/pause", response_model=TimerResponse)
def pause_task(
    engine: WorkflowEngine = Depends(get_engine),
    current_user: Staff = Depends(get_current_actor),
):
    """暂停任务"""
    try:
        return _timer_response(engine.pause_task(current_user))
    except HousekeepingError as e:
        raise to_http_exception(e)


@router.post("/resume", response_model=TimerResponse)
def resume_task(
    engine: WorkflowEngine = Depends(get_engine),
    current_user: Staff = Depends(get_current_actor),
):
    """恢复任务"""
    try:
        return _timer_response(engine.resume_task(current_user))
    except HousekeepingError as e:
        raise to_http_exception(e)


@router.post("/finish", response_model=TaskOutcomeResponse)
def finish_task(
    data: TaskFinishRequest,
    engine: WorkflowEngine = Depends(get_engine),
    current_user: Staff = Depends(get_current_actor),
):
    """完成任务"""
    try:
        outcome = engine.finish_task(data.room_id, current_user, data.next_status, data.notes)
    except RepositoryFailure as e:
        outcome = _committed_result(e)
    except HousekeepingError as e:
        raise to_http_exception(e)
    return _outcome_response(outcome)


@router.post("/abandon", response_model=TaskOutcomeResponse)
def abandon_task(
    engine: WorkflowEngine = Depends(get_engine),
    current_user: Staff = Depends(get_current_actor),
):
    """放弃任务（房态不变）"""
    try:
        return _outcome_response(engine.abandon_task(current_user))
    except HousekeepingError as e:
        raise to_http_exception(e)


@router.post("/inspection", response_model=InspectionResponse)
def submit_inspection(
    data: InspectionSubmitRequest,
    context: HousekeepingContext = Depends(get_context),
    current_user: Staff = Depends(get_current_actor),
):
    """提交查房结果并完成查房任务"""
    responses = [
        ChecklistResponse(item_id=r.item_id, item_name=r.item_name, passed=r.passed, notes=r.notes)
        for r in data.responses
    ]
    try:
        result = context.inspections.submit(
            data.room_id, current_user, responses, notes=data.notes, score=data.score
        )
    except HousekeepingError as e:
        raise to_http_exception(e)
    return InspectionResponse(
        room_number=result.room_number,
        score=result.score,
        passed=result.passed,
        status_after=result.status_after,
        outcome=_outcome_response(result.outcome),
    )
