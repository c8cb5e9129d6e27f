from fastapi import APIRouter, Depends
from typing import List

from plantia.dependencies import get_store
from plantia.schemas import Plant, PlantCreate, PlantUpdate, PlantDetails
from plantia.services import EntityStore

router = APIRouter(prefix="/api/v1/plants", tags=["plants"])


@router.get("", response_model=List[Plant])
async def list_plants(store: EntityStore = Depends(get_store)):
    """Get all plants, newest first"""
    return await store.list_plants()


@router.post("", response_model=Plant, status_code=201)
async def add_plant(
    plant_create: PlantCreate,
    store: EntityStore = Depends(get_store)
):
    """Register a plant with its care profile and seeded care tasks"""
    return await store.add_plant(
        plant_create.identification,
        nickname=plant_create.nickname,
        location=plant_create.location,
        category_id=plant_create.category_id,
        initial_photo=plant_create.initial_photo_url,
        notes=plant_create.notes
    )


@router.get("/{plant_id}", response_model=PlantDetails)
async def get_plant_details(
    plant_id: str,
    store: EntityStore = Depends(get_store)
):
    """Get plant with care profile, photos, tasks and AI history"""
    return await store.get_plant_details(plant_id)


@router.patch("/{plant_id}", response_model=Plant)
async def update_plant(
    plant_id: str,
    plant_update: PlantUpdate,
    store: EntityStore = Depends(get_store)
):
    """Update nickname, location, category or notes"""
    return await store.update_plant(plant_id, plant_update)


@router.delete("/{plant_id}", status_code=204)
async def delete_plant(
    plant_id: str,
    store: EntityStore = Depends(get_store)
):
    """Delete plant and everything that belongs to it"""
    await store.delete_plant(plant_id)
