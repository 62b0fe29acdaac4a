from enum import Enum

class TaskStatus(str, Enum):
    todo = "Todo"
    in_progress = "In Progress"
    done = "Done"

class TaskPriority(str, Enum):
    low = "Low"
    medium = "Medium"
    high = "High"
    urgent = "Urgent"

class NotificationType(str, Enum):
    task_assigned = "task_assigned"
    task_updated = "task_updated"
    task_completed = "task_completed"

def enum_values(enum_cls: type[Enum]) -> list[str]:
    # persist the wire values ("In Progress"), not the member names
    return [m.value for m in enum_cls]
