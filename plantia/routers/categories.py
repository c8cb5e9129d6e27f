from fastapi import APIRouter, Depends
from typing import List

from plantia.dependencies import get_store
from plantia.schemas import Category, CategoryCreate
from plantia.services import EntityStore

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


@router.get("", response_model=List[Category])
async def list_categories(store: EntityStore = Depends(get_store)):
    return await store.list_categories()


@router.post("", response_model=Category, status_code=201)
async def add_category(
    category_create: CategoryCreate,
    store: EntityStore = Depends(get_store)
):
    return await store.add_category(category_create.name)


@router.delete("/{category_id}", status_code=204)
async def delete_category(
    category_id: str,
    store: EntityStore = Depends(get_store)
):
    """Delete category; its plants are kept and become uncategorised"""
    await store.delete_category(category_id)
