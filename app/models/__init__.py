from app.models.auth_magic_link import AuthMagicLink
from app.models.lead import Lead
from app.models.notification import Notification
from app.models.task import Task, task_watchers
from app.models.task_update import TaskUpdate
from app.models.user import User

__all__ = ["User", "Lead", "Task", "TaskUpdate", "Notification", "AuthMagicLink", "task_watchers"]
