"""
Entity store contract.

Both backends (embedded per-device SQLite, remote owner-scoped database)
implement EntityStore and are validated by the same contract test suite.
Multi-entity writes run inside one native transaction of the backend; a
failure rolls every write of the operation back.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional

from plantia.exceptions import ValidationFailed
from plantia.schemas import (
    AIHistory,
    AIHistoryCreate,
    CareProfile,
    Category,
    CompletionResult,
    Photo,
    Plant,
    PlantDetails,
    PlantIdentification,
    PlantUpdate,
    Task,
    TaskCreate
)
from plantia.services.recurrence import RecurrenceEngine, new_id, utcnow

INITIAL_PHOTO_NOTE = "Initial photo"


class EntityStore(ABC):
    """
    Owner-scoped persistence for plants, care profiles, photos, tasks,
    AI history and categories.

    Referential integrity is enforced here, not by the storage medium:
    deleting a plant cascades to everything referencing it, deleting a
    category clears the reference on its plants.
    """

    def __init__(
        self,
        owner_id: str,
        recurrence: Optional[RecurrenceEngine] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.owner_id = owner_id
        self.recurrence = recurrence or RecurrenceEngine()
        self.clock = clock

    # Reads

    @abstractmethod
    async def list_plants(self) -> List[Plant]:
        """All plants, newest first."""

    @abstractmethod
    async def list_categories(self) -> List[Category]:
        """All categories, newest first."""

    @abstractmethod
    async def list_photos(self) -> List[Photo]:
        """All photos, unordered."""

    @abstractmethod
    async def list_tasks(self) -> List[Task]:
        """All tasks, unordered."""

    @abstractmethod
    async def get_plant_details(self, plant_id: str) -> PlantDetails:
        """
        Plant with its care profile, photos (newest first), tasks (soonest
        first) and AI history (newest first).

        Raises:
            NotFound: If the plant is unknown to this owner
        """

    @abstractmethod
    async def list_ai_history(self, plant_id: str) -> List[AIHistory]:
        """AI history of one plant, newest first."""

    # Writes

    @abstractmethod
    async def add_plant(
        self,
        identification: PlantIdentification,
        nickname: Optional[str] = None,
        location: Optional[str] = None,
        category_id: Optional[str] = None,
        initial_photo: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Plant:
        """
        Create plant, care profile, optional initial photo and seeded tasks
        as one atomic unit.

        Raises:
            NotFound: If category_id is set but unknown to this owner
        """

    @abstractmethod
    async def update_plant(self, plant_id: str, changes: PlantUpdate) -> Plant:
        """Apply the explicitly set mutable fields of a plant."""

    @abstractmethod
    async def delete_plant(self, plant_id: str) -> None:
        """Delete a plant, its care profile, photos, tasks and AI history."""

    @abstractmethod
    async def add_category(self, name: str) -> Category:
        """
        Raises:
            ValidationFailed: If the name is empty after trimming
        """

    @abstractmethod
    async def delete_category(self, category_id: str) -> None:
        """Delete a category and unset category_id on every plant using it."""

    @abstractmethod
    async def add_photo(self, plant_id: str, url: str, notes: Optional[str] = None) -> Photo:
        pass

    @abstractmethod
    async def delete_photo(self, photo_id: str) -> None:
        pass

    @abstractmethod
    async def add_task(self, plant_id: str, task: TaskCreate) -> Task:
        pass

    @abstractmethod
    async def complete_task(self, task_id: str) -> CompletionResult:
        """
        Complete a task and persist its successor, if any, atomically.

        Completing an already completed task is a no-op that returns the
        unchanged task without a successor.
        """

    @abstractmethod
    async def delete_task(self, task_id: str) -> None:
        pass

    @abstractmethod
    async def add_ai_history(self, entry: AIHistoryCreate) -> AIHistory:
        pass

    @abstractmethod
    async def delete_ai_history(self, history_id: str) -> None:
        pass

    @abstractmethod
    async def clear_all_data(self) -> None:
        """Empty all six collections for the current owner only."""

    async def close(self) -> None:
        """Release backend resources."""

    # Entity construction shared by both backends

    def _new_plant(
        self,
        identification: PlantIdentification,
        nickname: Optional[str],
        location: Optional[str],
        category_id: Optional[str],
        notes: Optional[str],
        now: datetime
    ) -> Plant:
        return Plant(
            id=new_id(),
            species=identification.species,
            common_name=identification.common_name,
            confidence=identification.confidence,
            nickname=nickname,
            location=location,
            category_id=category_id,
            notes=notes,
            created_at=now
        )

    def _new_care_profile(self, plant: Plant, identification: PlantIdentification) -> CareProfile:
        return CareProfile(
            id=plant.id,
            plant_id=plant.id,
            species=identification.species,
            **identification.care_profile.model_dump()
        )

    def _new_photo(self, plant_id: str, url: str, notes: Optional[str], now: datetime) -> Photo:
        return Photo(id=new_id(), plant_id=plant_id, url=url, notes=notes, taken_at=now)

    def _new_task(self, plant_id: str, task: TaskCreate) -> Task:
        return Task(id=new_id(), plant_id=plant_id, **task.model_dump())

    def _new_ai_history(self, entry: AIHistoryCreate, now: datetime) -> AIHistory:
        return AIHistory(id=new_id(), created_at=now, **entry.model_dump())

    def _new_category(self, name: str, now: datetime) -> Category:
        name = (name or "").strip()
        if not name:
            raise ValidationFailed("Category name is required", entity="Category")
        return Category(id=new_id(), name=name, created_at=now)


def sort_details(details: PlantDetails) -> PlantDetails:
    """Apply the detail view orderings in place and return the details."""
    details.photos.sort(key=lambda p: p.taken_at, reverse=True)
    details.tasks.sort(key=lambda t: t.next_run_at)
    details.history.sort(key=lambda h: h.created_at, reverse=True)
    return details
