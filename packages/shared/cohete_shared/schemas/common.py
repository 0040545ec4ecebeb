from enum import Enum
from typing import Any

from pydantic import BaseModel

class UserRole(str, Enum):
    ADMIN = "admin"
    PROJECT_MANAGER = "project_manager"
    CONTENT_CREATOR = "content_creator"
    DESIGNER = "designer"
    DEVELOPER = "developer"
    STAKEHOLDER = "stakeholder"

class ProjectStatus(str, Enum):
    ACTIVE = "active"
    PLANNING = "planning"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"

class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    BLOCKED = "blocked"
    DEFERRED = "deferred"

class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
    CRITICAL = "critical"

class TaskGroup(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    UPCOMING = "upcoming"

# Kanban column order, used for sorting task lists
TASK_GROUP_ORDER: list["TaskGroup"] = [
    TaskGroup.TODO,
    TaskGroup.IN_PROGRESS,
    TaskGroup.BLOCKED,
    TaskGroup.UPCOMING,
    TaskGroup.COMPLETED,
]

class NotificationType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"
    COMMENT = "comment"
    MENTION = "mention"
    ASSIGNMENT = "assignment"

class AnalysisStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

class ImageAnalysisType(str, Enum):
    BRAND = "brand"
    CONTENT = "content"
    AUDIENCE = "audience"

class ViewType(str, Enum):
    LIST = "list"
    KANBAN = "kanban"
    CALENDAR = "calendar"
    GANTT = "gantt"
    TABLE = "table"

class AutomationTrigger(str, Enum):
    STATUS_CHANGE = "status_change"
    ASSIGNMENT = "assignment"
    DUE_DATE = "due_date"
    CREATION = "creation"
    COMPLETION = "completion"

class AutomationAction(str, Enum):
    NOTIFY = "notify"
    ASSIGN = "assign"
    MOVE = "move"
    UPDATE_STATUS = "update_status"
    CREATE_TASK = "create_task"

class PeriodType(str, Enum):
    BIWEEKLY = "quincenal"
    MONTHLY = "mensual"

PERIOD_DAYS: dict["PeriodType", int] = {
    PeriodType.BIWEEKLY: 15,
    PeriodType.MONTHLY: 31,
}

class MessageResponse(BaseModel):
    message: str

def reject_null(value: Any) -> Any:
    """Field validator body for partial updates of columns that cannot be empty."""
    if value is None:
        raise ValueError("may not be null")
    return value
