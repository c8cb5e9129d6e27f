import uuid
import logging
from datetime import datetime, timedelta, timezone
from typing import List

from plantia.exceptions import AlreadyCompleted
from plantia.schemas import CareProfileData, CompletionResult, Task, TaskType
from plantia.services.frequency import frequency_days

logger = logging.getLogger(__name__)

# Care profile field -> (task type, title) for tasks seeded at plant creation
SEEDED_TASKS = (
    ("watering", TaskType.WATER, "Water Plant"),
    ("fertilizer", TaskType.FERTILIZE, "Fertilize"),
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class RecurrenceEngine:
    """
    Seeds care tasks from a care profile and derives successor tasks.

    The next occurrence is always computed from the completion time, never
    from the original due date, so late completions shift the schedule.
    """

    def seed_tasks(self, plant_id: str, care_profile: CareProfileData, now: datetime) -> List[Task]:
        """
        Build the initial pending tasks for a new plant.

        Args:
            plant_id: Plant the tasks belong to
            care_profile: Care plan with free-text watering/fertilizer instructions
            now: Creation time

        Returns:
            Zero to two pending tasks; instructions without a schedule yield none
        """
        tasks = []
        for field, task_type, title in SEEDED_TASKS:
            instruction = getattr(care_profile, field)
            days = frequency_days(instruction)
            if days <= 0:
                continue
            tasks.append(Task(
                id=new_id(),
                plant_id=plant_id,
                type=task_type,
                title=title,
                notes=instruction,
                next_run_at=now + timedelta(days=days)
            ))
        return tasks

    def complete_task(self, task: Task, now: datetime) -> CompletionResult:
        """
        Mark a pending task completed and derive its successor.

        Raises:
            AlreadyCompleted: If the task is already terminal
        """
        if not task.pending:
            raise AlreadyCompleted(task.id)

        completed = task.model_copy(update={"completed_at": now})
        days = frequency_days(task.notes)
        if days <= 0:
            return CompletionResult(task=completed)

        successor = Task(
            id=new_id(),
            plant_id=task.plant_id,
            type=task.type,
            title=task.title,
            notes=task.notes,
            next_run_at=now + timedelta(days=days)
        )
        logger.debug(f"Task {task.id} recurs in {days} days as {successor.id}")
        return CompletionResult(task=completed, successor=successor)
