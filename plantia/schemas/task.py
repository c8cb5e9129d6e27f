from enum import Enum
from pydantic import Field
from typing import Optional
from datetime import datetime

from plantia.schemas.base import CamelModel


class TaskType(str, Enum):
    WATER = "water"
    FERTILIZE = "fertilize"
    PRUNE = "prune"
    REPOT = "repot"
    CUSTOM = "custom"


class TaskCreate(CamelModel):
    type: TaskType = TaskType.CUSTOM
    title: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = None
    next_run_at: datetime


class Task(CamelModel):
    id: str
    plant_id: str
    type: TaskType
    title: str
    notes: Optional[str] = None
    next_run_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def pending(self) -> bool:
        return self.completed_at is None


class CompletionResult(CamelModel):
    """Outcome of completing a task: the task itself and its successor, if any."""
    task: Task
    successor: Optional[Task] = None
