"""
查房服务 - 检查表评分，合格进入已查房，不合格退回待清洁
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
import logging

from roomcore.engine.errors import InvalidState
from housekeeping.models.entities import RoomStatus, Staff, TaskType
from housekeeping.services.workflow_engine import RoomRef, TaskOutcome, WorkflowEngine

logger = logging.getLogger(__name__)

DEFAULT_PASS_SCORE = 80


@dataclass(frozen=True)
class ChecklistResponse:
    """检查项结果"""

    item_id: str
    item_name: str
    passed: bool
    notes: Optional[str] = None


def score_checklist(responses: Iterable[ChecklistResponse]) -> int:
    """检查表得分 0-100（通过项占比，四舍五入）；空检查表记 100 分"""
    responses = list(responses)
    if not responses:
        return 100
    passed = sum(1 for r in responses if r.passed)
    return int(round(passed * 100 / len(responses)))


def status_after_inspection(score: int, pass_score: int = DEFAULT_PASS_SCORE) -> RoomStatus:
    if score >= pass_score:
        return RoomStatus.VACANT_CLEAN_INSPECTED
    return RoomStatus.DIRTY


@dataclass(frozen=True)
class InspectionResult:
    room_number: str
    inspector_id: str
    score: int
    passed: bool
    status_after: RoomStatus
    outcome: TaskOutcome
    notes: Optional[str] = None
    checklist: List[ChecklistResponse] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_number": self.room_number,
            "inspector_id": self.inspector_id,
            "score": self.score,
            "passed": self.passed,
            "status_after": self.status_after.value,
            "notes": self.notes,
            "outcome": self.outcome.to_dict(),
        }


class InspectionService:
    """查房服务"""

    def __init__(self, engine: WorkflowEngine, pass_score: int = DEFAULT_PASS_SCORE):
        self.engine = engine
        self.pass_score = pass_score

    def submit(
        self,
        room: RoomRef,
        actor: Staff,
        responses: Iterable[ChecklistResponse] = (),
        notes: Optional[str] = None,
        score: Optional[int] = None,
    ) -> InspectionResult:
        """
        提交查房结果并完成查房任务

        Args:
            score: 直接给定的得分，未给定时按检查表计算

        Raises:
            InvalidState: 当前任务不是查房
            NoActiveTask / IllegalTransition / RepositoryFailure: 同 finish_task
        """
        responses = list(responses)
        timer = self.engine.timer_for(actor)
        if timer.is_outstanding and timer.task_type != TaskType.INSPECTION:
            error = InvalidState(
                "inspect",
                timer.task_type,
                f"current task is {getattr(timer.task_type, 'value', timer.task_type)}, not Inspection",
            )
            self.engine.report(error)
            raise error

        final_score = score if score is not None else score_checklist(responses)
        target = status_after_inspection(final_score, self.pass_score)
        failed = [r.item_name for r in responses if not r.passed]
        summary = f"Inspection score {final_score}"
        if failed:
            summary += f"; failed: {', '.join(failed)}"
        if notes:
            summary += f". {notes}"

        outcome = self.engine.finish_task(room, actor, explicit_next_status=target, notes=summary)
        logger.info(f"Inspection of room {outcome.room_number} scored {final_score} -> {target.value}")

        return InspectionResult(
            room_number=outcome.room_number,
            inspector_id=actor.id,
            score=final_score,
            passed=final_score >= self.pass_score,
            status_after=target,
            outcome=outcome,
            notes=notes,
            checklist=responses,
        )
