from datetime import datetime

from plantia.schemas.base import CamelModel


class CategoryCreate(CamelModel):
    name: str


class Category(CamelModel):
    id: str
    name: str
    created_at: datetime
