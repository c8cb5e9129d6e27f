from pydantic import Field
from typing import Optional
from datetime import datetime

from plantia.schemas.base import CamelModel


class AIHistoryCreate(CamelModel):
    plant_id: str
    question: str = Field(..., min_length=1)
    answer: str
    photo_url: Optional[str] = None


class AIHistory(CamelModel):
    id: str
    plant_id: str
    question: str
    answer: str
    photo_url: Optional[str] = None
    created_at: datetime
