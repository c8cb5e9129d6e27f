from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime

from plantia.schemas.base import CamelModel, blank_to_none
from plantia.schemas.photo import Photo
from plantia.schemas.task import Task
from plantia.schemas.history import AIHistory


class CareProfileData(CamelModel):
    """Care plan as returned by the identification service."""
    sunlight: str
    watering: str
    soil: str
    fertilizer: str
    temp_range: str
    humidity: str
    tips: Optional[str] = None


class PlantIdentification(CamelModel):
    species: str = Field(..., min_length=1, max_length=255)
    common_name: Optional[str] = Field(None, max_length=255)
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)  # absent when entered by hand
    care_profile: CareProfileData


class CareProfile(CareProfileData):
    id: str
    plant_id: str
    species: str


class Plant(CamelModel):
    id: str
    species: str
    common_name: Optional[str] = None
    confidence: Optional[float] = None
    nickname: Optional[str] = None
    location: Optional[str] = None
    category_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class PlantCreate(CamelModel):
    identification: PlantIdentification
    nickname: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    category_id: Optional[str] = None
    notes: Optional[str] = None
    initial_photo_url: Optional[str] = None

    @field_validator("category_id")
    @classmethod
    def blank_category_is_none(cls, value):
        return blank_to_none(value)


class PlantUpdate(CamelModel):
    """Mutable plant fields; only fields explicitly set are applied."""
    nickname: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    category_id: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("category_id")
    @classmethod
    def blank_category_is_none(cls, value):
        return blank_to_none(value)


class PlantDetails(CamelModel):
    plant: Plant
    care_profile: CareProfile
    photos: List[Photo] = []
    tasks: List[Task] = []
    history: List[AIHistory] = []
