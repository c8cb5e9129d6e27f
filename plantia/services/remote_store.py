"""
Remote entity store: relational tables shared by all accounts, each row
carrying an owner_id. Every statement is filtered by the store's owner, so
ids belonging to someone else behave exactly like unknown ids.
"""
import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from plantia import models
from plantia.exceptions import AlreadyCompleted, ConnectivityLost, NotFound, Unauthenticated
from plantia.schemas.base import blank_to_none
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
from plantia.services.store import EntityStore, INITIAL_PHOTO_NOTE, sort_details

logger = logging.getLogger(__name__)

# Children first so foreign keys hold while deleting
OWNED_MODELS = (
    models.Photo,
    models.Task,
    models.AIHistory,
    models.CareProfile,
    models.Plant,
    models.Category
)


def _lost_connection(error: Exception) -> bool:
    if isinstance(error, (OperationalError, InterfaceError)):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


class RemoteEntityStore(EntityStore):
    """Entity store scoped to one authenticated account."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        owner_id: Optional[str],
        engine: Optional[AsyncEngine] = None,
        **kwargs
    ):
        if not owner_id:
            raise Unauthenticated()
        super().__init__(owner_id, **kwargs)
        self.session_factory = session_factory
        self.engine = engine  # disposed on close when the store owns it

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()

    @asynccontextmanager
    async def _session(self):
        try:
            async with self.session_factory() as session:
                yield session
        except OSError as e:
            logger.warning(f"Remote store unreachable: {e}")
            raise ConnectivityLost() from e
        except DBAPIError as e:
            if _lost_connection(e):
                logger.warning(f"Remote store connection lost: {e.orig}")
                raise ConnectivityLost() from e
            raise

    @asynccontextmanager
    async def _transaction(self):
        async with self._session() as session:
            async with session.begin():
                yield session

    def _row(self, model, entity, exclude=None):
        data = entity.model_dump(exclude=exclude)
        for key, value in data.items():
            if isinstance(value, Enum):
                data[key] = value.value
        return model(owner_id=self.owner_id, **data)

    def _owned(self, model):
        return select(model).where(model.owner_id == self.owner_id)

    async def _require(self, session: AsyncSession, model, entity_id: str, entity: str):
        result = await session.execute(self._owned(model).where(model.id == entity_id))
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFound(entity, entity_id)
        return row

    # Reads

    async def list_plants(self) -> List[Plant]:
        async with self._session() as session:
            result = await session.execute(
                self._owned(models.Plant).order_by(models.Plant.created_at.desc())
            )
            return [Plant.model_validate(p) for p in result.scalars().all()]

    async def list_categories(self) -> List[Category]:
        async with self._session() as session:
            result = await session.execute(
                self._owned(models.Category).order_by(models.Category.created_at.desc())
            )
            return [Category.model_validate(c) for c in result.scalars().all()]

    async def list_photos(self) -> List[Photo]:
        async with self._session() as session:
            result = await session.execute(self._owned(models.Photo))
            return [Photo.model_validate(p) for p in result.scalars().all()]

    async def list_tasks(self) -> List[Task]:
        async with self._session() as session:
            result = await session.execute(self._owned(models.Task))
            return [Task.model_validate(t) for t in result.scalars().all()]

    async def get_plant_details(self, plant_id: str) -> PlantDetails:
        async with self._session() as session:
            plant = await self._require(session, models.Plant, plant_id, "Plant")
            care_profile = await self._require(session, models.CareProfile, plant_id, "CareProfile")

            photos = await session.execute(
                self._owned(models.Photo).where(models.Photo.plant_id == plant_id)
            )
            tasks = await session.execute(
                self._owned(models.Task).where(models.Task.plant_id == plant_id)
            )
            history = await session.execute(
                self._owned(models.AIHistory).where(models.AIHistory.plant_id == plant_id)
            )

            return sort_details(PlantDetails(
                plant=Plant.model_validate(plant),
                care_profile=CareProfile.model_validate(care_profile),
                photos=[Photo.model_validate(p) for p in photos.scalars().all()],
                tasks=[Task.model_validate(t) for t in tasks.scalars().all()],
                history=[AIHistory.model_validate(h) for h in history.scalars().all()]
            ))

    async def list_ai_history(self, plant_id: str) -> List[AIHistory]:
        async with self._session() as session:
            await self._require(session, models.Plant, plant_id, "Plant")
            result = await session.execute(
                self._owned(models.AIHistory)
                .where(models.AIHistory.plant_id == plant_id)
                .order_by(models.AIHistory.created_at.desc())
            )
            return [AIHistory.model_validate(h) for h in result.scalars().all()]

    # Plants

    async def add_plant(
        self,
        identification: PlantIdentification,
        nickname: Optional[str] = None,
        location: Optional[str] = None,
        category_id: Optional[str] = None,
        initial_photo: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Plant:
        now = self.clock()
        category_id = blank_to_none(category_id)
        async with self._transaction() as session:
            if category_id:
                await self._require(session, models.Category, category_id, "Category")

            plant = self._new_plant(identification, nickname, location, category_id, notes, now)
            session.add(self._row(models.Plant, plant))
            await session.flush()

            care_profile = self._new_care_profile(plant, identification)
            session.add(self._row(models.CareProfile, care_profile, exclude={"plant_id"}))

            if initial_photo:
                photo = self._new_photo(plant.id, initial_photo, INITIAL_PHOTO_NOTE, now)
                session.add(self._row(models.Photo, photo))

            for task in self.recurrence.seed_tasks(plant.id, identification.care_profile, now):
                session.add(self._row(models.Task, task))

        logger.info(f"Added plant {plant.id} ({plant.species}) for owner {self.owner_id}")
        return plant

    async def update_plant(self, plant_id: str, changes: PlantUpdate) -> Plant:
        async with self._transaction() as session:
            row = await self._require(session, models.Plant, plant_id, "Plant")
            update_data = changes.model_dump(exclude_unset=True)

            new_category = update_data.get("category_id")
            if new_category:
                await self._require(session, models.Category, new_category, "Category")

            for field, value in update_data.items():
                setattr(row, field, value)
            await session.flush()
            return Plant.model_validate(row)

    async def delete_plant(self, plant_id: str) -> None:
        async with self._transaction() as session:
            await self._require(session, models.Plant, plant_id, "Plant")
            for model in (models.Photo, models.Task, models.AIHistory):
                await session.execute(
                    delete(model).where(model.owner_id == self.owner_id, model.plant_id == plant_id)
                )
            for model in (models.CareProfile, models.Plant):
                await session.execute(
                    delete(model).where(model.owner_id == self.owner_id, model.id == plant_id)
                )
        logger.info(f"Deleted plant {plant_id} for owner {self.owner_id}")

    # Categories

    async def add_category(self, name: str) -> Category:
        category = self._new_category(name, self.clock())
        async with self._transaction() as session:
            session.add(self._row(models.Category, category))
        return category

    async def delete_category(self, category_id: str) -> None:
        async with self._transaction() as session:
            await self._require(session, models.Category, category_id, "Category")
            await session.execute(
                update(models.Plant)
                .where(models.Plant.owner_id == self.owner_id, models.Plant.category_id == category_id)
                .values(category_id=None)
            )
            await session.execute(
                delete(models.Category)
                .where(models.Category.owner_id == self.owner_id, models.Category.id == category_id)
            )
        logger.info(f"Deleted category {category_id} for owner {self.owner_id}")

    # Photos

    async def add_photo(self, plant_id: str, url: str, notes: Optional[str] = None) -> Photo:
        async with self._transaction() as session:
            await self._require(session, models.Plant, plant_id, "Plant")
            photo = self._new_photo(plant_id, url, notes, self.clock())
            session.add(self._row(models.Photo, photo))
        return photo

    async def delete_photo(self, photo_id: str) -> None:
        await self._delete_one(models.Photo, photo_id, "Photo")

    async def _delete_one(self, model, entity_id: str, entity: str):
        async with self._transaction() as session:
            row = await self._require(session, model, entity_id, entity)
            await session.delete(row)

    # Tasks

    async def add_task(self, plant_id: str, task: TaskCreate) -> Task:
        async with self._transaction() as session:
            await self._require(session, models.Plant, plant_id, "Plant")
            new_task = self._new_task(plant_id, task)
            session.add(self._row(models.Task, new_task))
        return new_task

    async def complete_task(self, task_id: str) -> CompletionResult:
        async with self._transaction() as session:
            row = await self._require(session, models.Task, task_id, "Task")
            task = Task.model_validate(row)
            try:
                result = self.recurrence.complete_task(task, self.clock())
            except AlreadyCompleted:
                logger.info(f"Task {task_id} already completed, nothing to do")
                return CompletionResult(task=task)

            row.completed_at = result.task.completed_at
            if result.successor:
                session.add(self._row(models.Task, result.successor))
        return result

    async def delete_task(self, task_id: str) -> None:
        await self._delete_one(models.Task, task_id, "Task")

    # AI history

    async def add_ai_history(self, entry: AIHistoryCreate) -> AIHistory:
        async with self._transaction() as session:
            await self._require(session, models.Plant, entry.plant_id, "Plant")
            history = self._new_ai_history(entry, self.clock())
            session.add(self._row(models.AIHistory, history))
        return history

    async def delete_ai_history(self, history_id: str) -> None:
        await self._delete_one(models.AIHistory, history_id, "AIHistory")

    # Whole account

    async def clear_all_data(self) -> None:
        async with self._transaction() as session:
            for model in OWNED_MODELS:
                await session.execute(delete(model).where(model.owner_id == self.owner_id))
        logger.info(f"Cleared remote data for owner {self.owner_id}")
