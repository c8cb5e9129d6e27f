"""
Embedded entity store: one SQLite file per device.

Each collection is a flat table of (id, JSON record) rows holding camelCase
records, plus a key-value settings table that is not part of the data model.
SQLite knows nothing about the references between records, so cascades run
here, driven by in-memory secondary indexes:

    plant_id    -> photo / task / ai_history ids
    category_id -> plant ids

The indexes are rebuilt when the store is opened and only change after a
transaction commits, so a rolled back write never leaves them stale.
"""
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy import Column, JSON, MetaData, String, Table, delete, event, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from plantia.database import create_engine, init_db
from plantia.exceptions import AlreadyCompleted, NotFound, StorageExhausted
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

metadata = MetaData()

COLLECTIONS = ("plants", "care_profiles", "photos", "tasks", "ai_history", "categories")
CHILD_COLLECTIONS = ("photos", "tasks", "ai_history")

TABLES: Dict[str, Table] = {
    name: Table(
        name,
        metadata,
        Column("id", String(64), primary_key=True),
        Column("data", JSON, nullable=False),
    )
    for name in COLLECTIONS
}

settings_table = Table(
    "settings",
    metadata,
    Column("key", String(255), primary_key=True),
    Column("value", JSON, nullable=True),
)


class SecondaryIndexes:
    """Reverse references used for cascades instead of full collection scans."""

    def __init__(self):
        self.children = {name: defaultdict(set) for name in CHILD_COLLECTIONS}
        self.category_plants = defaultdict(set)

    def child_ids(self, collection: str, plant_id: str) -> Set[str]:
        return set(self.children[collection].get(plant_id, ()))

    def plant_ids(self, category_id: str) -> Set[str]:
        return set(self.category_plants.get(category_id, ()))

    def add_child(self, collection: str, plant_id: str, entity_id: str):
        self.children[collection][plant_id].add(entity_id)

    def remove_child(self, collection: str, plant_id: str, entity_id: str):
        self.children[collection][plant_id].discard(entity_id)

    def set_category(self, plant_id: str, old: Optional[str], new: Optional[str]):
        if old:
            self.category_plants[old].discard(plant_id)
        if new:
            self.category_plants[new].add(plant_id)

    def drop_plant(self, plant_id: str, category_id: Optional[str]):
        for collection in CHILD_COLLECTIONS:
            self.children[collection].pop(plant_id, None)
        self.set_category(plant_id, category_id, None)

    def drop_category(self, category_id: str):
        self.category_plants.pop(category_id, None)

    def clear(self):
        for collection in CHILD_COLLECTIONS:
            self.children[collection].clear()
        self.category_plants.clear()


class PendingIndexUpdates:
    """Index mutations staged during a transaction, applied after commit."""

    def __init__(self):
        self._ops = []

    def stage(self, method: str, *args):
        self._ops.append((method, args))

    def apply(self, indexes: SecondaryIndexes):
        for method, args in self._ops:
            getattr(indexes, method)(*args)


def _is_disk_full(error: OperationalError) -> bool:
    return "full" in str(error.orig).lower()


class LocalEntityStore(EntityStore):
    """Entity store backed by a per-device SQLite file."""

    def __init__(self, engine: AsyncEngine, device_id: str, **kwargs):
        super().__init__(device_id, **kwargs)
        self.engine = engine
        self.indexes = SecondaryIndexes()

    @classmethod
    async def open(
        cls,
        path: str,
        device_id: str,
        max_page_count: Optional[int] = None,
        echo: bool = False,
        **kwargs
    ) -> "LocalEntityStore":
        """Open (creating if needed) the device database and build its indexes."""
        engine = create_engine(f"sqlite+aiosqlite:///{path}", echo=echo)

        if max_page_count:
            @event.listens_for(engine.sync_engine, "connect")
            def _limit_size(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute(f"PRAGMA max_page_count = {int(max_page_count)}")
                cursor.close()

        await init_db(engine, metadata)
        store = cls(engine, device_id, **kwargs)
        await store.rebuild_indexes()
        logger.info(f"Opened local store at {path} for device {device_id}")
        return store

    async def close(self) -> None:
        await self.engine.dispose()

    async def rebuild_indexes(self):
        indexes = SecondaryIndexes()
        async with self.engine.connect() as conn:
            for collection in CHILD_COLLECTIONS:
                for record in await self._all(conn, collection):
                    indexes.add_child(collection, record["plantId"], record["id"])
            for record in await self._all(conn, "plants"):
                indexes.set_category(record["id"], None, record.get("categoryId"))
        self.indexes = indexes

    @asynccontextmanager
    async def _transaction(self):
        pending = PendingIndexUpdates()
        try:
            async with self.engine.begin() as conn:
                yield conn, pending
        except OperationalError as e:
            if _is_disk_full(e):
                logger.warning(f"Local store full: {e.orig}")
                raise StorageExhausted() from e
            raise
        pending.apply(self.indexes)

    # Record access

    async def _all(self, conn: AsyncConnection, collection: str) -> List[dict]:
        result = await conn.execute(select(TABLES[collection].c.data))
        return [row.data for row in result]

    async def _get(self, conn: AsyncConnection, collection: str, entity_id: str) -> Optional[dict]:
        table = TABLES[collection]
        result = await conn.execute(select(table.c.data).where(table.c.id == entity_id))
        row = result.first()
        return row.data if row else None

    async def _get_many(self, conn: AsyncConnection, collection: str, ids: Iterable[str]) -> List[dict]:
        ids = list(ids)
        if not ids:
            return []
        table = TABLES[collection]
        result = await conn.execute(select(table.c.data).where(table.c.id.in_(ids)))
        return [row.data for row in result]

    async def _require(self, conn: AsyncConnection, collection: str, entity_id: str, entity: str) -> dict:
        record = await self._get(conn, collection, entity_id)
        if record is None:
            raise NotFound(entity, entity_id)
        return record

    async def _insert(self, conn: AsyncConnection, collection: str, entity):
        await conn.execute(TABLES[collection].insert().values(id=entity.id, data=entity.to_record()))

    async def _put(self, conn: AsyncConnection, collection: str, entity_id: str, record: dict):
        table = TABLES[collection]
        await conn.execute(update(table).where(table.c.id == entity_id).values(data=record))

    async def _delete(self, conn: AsyncConnection, collection: str, ids: Iterable[str]):
        ids = list(ids)
        if ids:
            table = TABLES[collection]
            await conn.execute(delete(table).where(table.c.id.in_(ids)))

    # Reads

    async def list_plants(self) -> List[Plant]:
        async with self.engine.connect() as conn:
            plants = [Plant.model_validate(r) for r in await self._all(conn, "plants")]
        return sorted(plants, key=lambda p: p.created_at, reverse=True)

    async def list_categories(self) -> List[Category]:
        async with self.engine.connect() as conn:
            categories = [Category.model_validate(r) for r in await self._all(conn, "categories")]
        return sorted(categories, key=lambda c: c.created_at, reverse=True)

    async def list_photos(self) -> List[Photo]:
        async with self.engine.connect() as conn:
            return [Photo.model_validate(r) for r in await self._all(conn, "photos")]

    async def list_tasks(self) -> List[Task]:
        async with self.engine.connect() as conn:
            return [Task.model_validate(r) for r in await self._all(conn, "tasks")]

    async def get_plant_details(self, plant_id: str) -> PlantDetails:
        async with self.engine.connect() as conn:
            plant = await self._require(conn, "plants", plant_id, "Plant")
            care_profile = await self._get(conn, "care_profiles", plant_id)
            children = {
                collection: await self._get_many(conn, collection, self.indexes.child_ids(collection, plant_id))
                for collection in CHILD_COLLECTIONS
            }

        return sort_details(PlantDetails(
            plant=Plant.model_validate(plant),
            care_profile=CareProfile.model_validate(care_profile),
            photos=[Photo.model_validate(r) for r in children["photos"]],
            tasks=[Task.model_validate(r) for r in children["tasks"]],
            history=[AIHistory.model_validate(r) for r in children["ai_history"]]
        ))

    async def list_ai_history(self, plant_id: str) -> List[AIHistory]:
        async with self.engine.connect() as conn:
            await self._require(conn, "plants", plant_id, "Plant")
            records = await self._get_many(conn, "ai_history", self.indexes.child_ids("ai_history", plant_id))
        history = [AIHistory.model_validate(r) for r in records]
        return sorted(history, key=lambda h: h.created_at, reverse=True)

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
        async with self._transaction() as (conn, pending):
            if category_id:
                await self._require(conn, "categories", category_id, "Category")

            plant = self._new_plant(identification, nickname, location, category_id, notes, now)
            await self._insert(conn, "plants", plant)
            await self._insert(conn, "care_profiles", self._new_care_profile(plant, identification))
            pending.stage("set_category", plant.id, None, category_id)

            if initial_photo:
                photo = self._new_photo(plant.id, initial_photo, INITIAL_PHOTO_NOTE, now)
                await self._insert(conn, "photos", photo)
                pending.stage("add_child", "photos", plant.id, photo.id)

            for task in self.recurrence.seed_tasks(plant.id, identification.care_profile, now):
                await self._insert(conn, "tasks", task)
                pending.stage("add_child", "tasks", plant.id, task.id)

        logger.info(f"Added plant {plant.id} ({plant.species})")
        return plant

    async def update_plant(self, plant_id: str, changes: PlantUpdate) -> Plant:
        async with self._transaction() as (conn, pending):
            record = await self._require(conn, "plants", plant_id, "Plant")
            plant = Plant.model_validate(record)
            update_data = changes.model_dump(exclude_unset=True)

            if "category_id" in update_data:
                new_category = update_data["category_id"]
                if new_category:
                    await self._require(conn, "categories", new_category, "Category")
                pending.stage("set_category", plant_id, plant.category_id, new_category)

            plant = plant.model_copy(update=update_data)
            await self._put(conn, "plants", plant_id, plant.to_record())
        return plant

    async def delete_plant(self, plant_id: str) -> None:
        async with self._transaction() as (conn, pending):
            record = await self._require(conn, "plants", plant_id, "Plant")
            for collection in CHILD_COLLECTIONS:
                await self._delete(conn, collection, self.indexes.child_ids(collection, plant_id))
            await self._delete(conn, "care_profiles", [plant_id])
            await self._delete(conn, "plants", [plant_id])
            pending.stage("drop_plant", plant_id, record.get("categoryId"))
        logger.info(f"Deleted plant {plant_id}")

    # Categories

    async def add_category(self, name: str) -> Category:
        category = self._new_category(name, self.clock())
        async with self._transaction() as (conn, pending):
            await self._insert(conn, "categories", category)
        return category

    async def delete_category(self, category_id: str) -> None:
        async with self._transaction() as (conn, pending):
            await self._require(conn, "categories", category_id, "Category")
            for record in await self._get_many(conn, "plants", self.indexes.plant_ids(category_id)):
                record.pop("categoryId", None)
                await self._put(conn, "plants", record["id"], record)
            await self._delete(conn, "categories", [category_id])
            pending.stage("drop_category", category_id)
        logger.info(f"Deleted category {category_id}")

    # Photos

    async def add_photo(self, plant_id: str, url: str, notes: Optional[str] = None) -> Photo:
        async with self._transaction() as (conn, pending):
            await self._require(conn, "plants", plant_id, "Plant")
            photo = self._new_photo(plant_id, url, notes, self.clock())
            await self._insert(conn, "photos", photo)
            pending.stage("add_child", "photos", plant_id, photo.id)
        return photo

    async def delete_photo(self, photo_id: str) -> None:
        await self._delete_child("photos", photo_id, "Photo")

    async def _delete_child(self, collection: str, entity_id: str, entity: str):
        async with self._transaction() as (conn, pending):
            record = await self._require(conn, collection, entity_id, entity)
            await self._delete(conn, collection, [entity_id])
            pending.stage("remove_child", collection, record["plantId"], entity_id)

    # Tasks

    async def add_task(self, plant_id: str, task: TaskCreate) -> Task:
        async with self._transaction() as (conn, pending):
            await self._require(conn, "plants", plant_id, "Plant")
            new_task = self._new_task(plant_id, task)
            await self._insert(conn, "tasks", new_task)
            pending.stage("add_child", "tasks", plant_id, new_task.id)
        return new_task

    async def complete_task(self, task_id: str) -> CompletionResult:
        async with self._transaction() as (conn, pending):
            task = Task.model_validate(await self._require(conn, "tasks", task_id, "Task"))
            try:
                result = self.recurrence.complete_task(task, self.clock())
            except AlreadyCompleted:
                logger.info(f"Task {task_id} already completed, nothing to do")
                return CompletionResult(task=task)

            await self._put(conn, "tasks", task_id, result.task.to_record())
            if result.successor:
                await self._insert(conn, "tasks", result.successor)
                pending.stage("add_child", "tasks", task.plant_id, result.successor.id)
        return result

    async def delete_task(self, task_id: str) -> None:
        await self._delete_child("tasks", task_id, "Task")

    # AI history

    async def add_ai_history(self, entry: AIHistoryCreate) -> AIHistory:
        async with self._transaction() as (conn, pending):
            await self._require(conn, "plants", entry.plant_id, "Plant")
            history = self._new_ai_history(entry, self.clock())
            await self._insert(conn, "ai_history", history)
            pending.stage("add_child", "ai_history", entry.plant_id, history.id)
        return history

    async def delete_ai_history(self, history_id: str) -> None:
        await self._delete_child("ai_history", history_id, "AIHistory")

    # Whole store

    async def clear_all_data(self) -> None:
        async with self._transaction() as (conn, pending):
            for collection in COLLECTIONS:
                await conn.execute(delete(TABLES[collection]))
            pending.stage("clear")
        logger.info(f"Cleared local data for device {self.owner_id}")

    async def get_setting(self, key: str, default: Any = None) -> Any:
        async with self.engine.connect() as conn:
            result = await conn.execute(select(settings_table.c.value).where(settings_table.c.key == key))
            row = result.first()
        return row.value if row else default

    async def set_setting(self, key: str, value: Any) -> None:
        stmt = sqlite_insert(settings_table).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(index_elements=[settings_table.c.key], set_={"value": value})
        async with self._transaction() as (conn, pending):
            await conn.execute(stmt)
