from fastapi import APIRouter, Depends, Query
from datetime import timedelta
from typing import List, Optional

from plantia.dependencies import get_store
from plantia.schemas import CompletionResult, Task, TaskCreate
from plantia.services import EntityStore, tasks_due

router = APIRouter(prefix="/api/v1", tags=["tasks"])


@router.get("/tasks", response_model=List[Task])
async def list_tasks(
    due_within_days: Optional[int] = Query(None, ge=0),
    store: EntityStore = Depends(get_store)
):
    """All tasks, or only pending tasks (overdue included) due within the given number of days"""
    tasks = await store.list_tasks()
    if due_within_days is None:
        return tasks
    return tasks_due(tasks, store.clock() + timedelta(days=due_within_days))


@router.post("/plants/{plant_id}/tasks", response_model=Task, status_code=201)
async def add_task(
    plant_id: str,
    task_create: TaskCreate,
    store: EntityStore = Depends(get_store)
):
    return await store.add_task(plant_id, task_create)


@router.post("/tasks/{task_id}/complete", response_model=CompletionResult)
async def complete_task(
    task_id: str,
    store: EntityStore = Depends(get_store)
):
    """Complete a task; recurring tasks come back with their successor"""
    return await store.complete_task(task_id)


@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    store: EntityStore = Depends(get_store)
):
    await store.delete_task(task_id)
