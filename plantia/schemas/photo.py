from typing import Optional
from datetime import datetime

from plantia.schemas.base import CamelModel


class PhotoCreate(CamelModel):
    url: str
    notes: Optional[str] = None


class Photo(CamelModel):
    id: str
    plant_id: str
    url: str
    taken_at: datetime
    notes: Optional[str] = None
