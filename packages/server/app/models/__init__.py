# SQLModel definitions, imported here so Alembic sees the full metadata.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User, PasswordResetToken  # noqa: F401
from .project import Project, ProjectMember, AnalysisResult  # noqa: F401
from .document import Document  # noqa: F401
from .schedule import Schedule, ScheduleEntry, ContentHistory  # noqa: F401
from .chat import ChatMessage  # noqa: F401
from .task import Task, TaskAttachment, TaskComment, TimeEntry  # noqa: F401
from .dependency import TaskDependency  # noqa: F401
from .notification import Notification  # noqa: F401
from .product import Product  # noqa: F401
from .team import Team, TeamMember  # noqa: F401
from .view import ProjectView  # noqa: F401
from .automation import AutomationRule  # noqa: F401
from .settings import UserSettings  # noqa: F401
