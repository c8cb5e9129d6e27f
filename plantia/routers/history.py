from fastapi import APIRouter, Depends
from typing import List

from plantia.dependencies import get_store
from plantia.schemas import AIHistory, AIHistoryCreate
from plantia.services import EntityStore

router = APIRouter(prefix="/api/v1", tags=["history"])


@router.get("/plants/{plant_id}/history", response_model=List[AIHistory])
async def list_ai_history(
    plant_id: str,
    store: EntityStore = Depends(get_store)
):
    """AI assistant questions and answers for a plant, newest first"""
    return await store.list_ai_history(plant_id)


@router.post("/history", response_model=AIHistory, status_code=201)
async def add_ai_history(
    entry: AIHistoryCreate,
    store: EntityStore = Depends(get_store)
):
    return await store.add_ai_history(entry)


@router.delete("/history/{history_id}", status_code=204)
async def delete_ai_history(
    history_id: str,
    store: EntityStore = Depends(get_store)
):
    await store.delete_ai_history(history_id)
