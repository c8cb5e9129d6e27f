from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from typing import List, Optional
import logging
import os
import uuid

from plantia.config import Settings
from plantia.dependencies import get_settings, get_store
from plantia.schemas import Photo, PhotoCreate
from plantia.services import EntityStore, resize_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["photos"])


@router.get("/photos", response_model=List[Photo])
async def list_photos(store: EntityStore = Depends(get_store)):
    return await store.list_photos()


@router.post("/plants/{plant_id}/photos", response_model=Photo, status_code=201)
async def add_photo(
    plant_id: str,
    photo_create: PhotoCreate,
    store: EntityStore = Depends(get_store)
):
    """Add photo by reference to an existing plant"""
    return await store.add_photo(plant_id, photo_create.url, photo_create.notes)


@router.post("/plants/{plant_id}/photos/upload", response_model=Photo, status_code=201)
async def upload_photo(
    plant_id: str,
    file: UploadFile = File(...),
    notes: Optional[str] = None,
    store: EntityStore = Depends(get_store),
    settings: Settings = Depends(get_settings)
):
    """Upload a progress photo; it is resized and stored under the upload dir"""
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be image")

    contents = await file.read()
    try:
        resized = resize_image(contents, settings.photo_max_width, settings.photo_max_height)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    os.makedirs(settings.upload_dir, exist_ok=True)
    file_path = os.path.join(settings.upload_dir, f"{uuid.uuid4()}.jpg")
    with open(file_path, "wb") as f:
        f.write(resized)

    try:
        return await store.add_photo(plant_id, file_path, notes)
    except Exception:
        # Photo row was not written, so the file would be orphaned
        os.remove(file_path)
        raise


@router.delete("/photos/{photo_id}", status_code=204)
async def delete_photo(
    photo_id: str,
    store: EntityStore = Depends(get_store)
):
    await store.delete_photo(photo_id)
