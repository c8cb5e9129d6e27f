from plantia.models.category import Category
from plantia.models.plant import Plant, CareProfile
from plantia.models.photo import Photo
from plantia.models.task import Task
from plantia.models.ai_history import AIHistory

__all__ = [
    "Category",
    "Plant",
    "CareProfile",
    "Photo",
    "Task",
    "AIHistory"
]
