# Services
from housekeeping.services.room_registry import RoomRegistry
from housekeeping.services.workflow_engine import WorkflowEngine, TaskStart, TaskOutcome
from housekeeping.services.inspection_service import (
    ChecklistResponse, InspectionResult, InspectionService,
    score_checklist, status_after_inspection
)
from housekeeping.services.ticker import TimerTicker
from housekeeping.services.staff_directory import StaffDirectory

__all__ = [
    'RoomRegistry', 'WorkflowEngine', 'TaskStart', 'TaskOutcome',
    'ChecklistResponse', 'InspectionResult', 'InspectionService',
    'score_checklist', 'status_after_inspection',
    'TimerTicker', 'StaffDirectory',
]
