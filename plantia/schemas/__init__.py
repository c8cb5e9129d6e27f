from plantia.schemas.category import (
    Category,
    CategoryCreate
)
from plantia.schemas.photo import (
    Photo,
    PhotoCreate
)
from plantia.schemas.task import (
    TaskType,
    Task,
    TaskCreate,
    CompletionResult
)
from plantia.schemas.history import (
    AIHistory,
    AIHistoryCreate
)
from plantia.schemas.plant import (
    CareProfileData,
    PlantIdentification,
    CareProfile,
    Plant,
    PlantCreate,
    PlantUpdate,
    PlantDetails
)

__all__ = [
    "Category",
    "CategoryCreate",
    "Photo",
    "PhotoCreate",
    "TaskType",
    "Task",
    "TaskCreate",
    "CompletionResult",
    "AIHistory",
    "AIHistoryCreate",
    "CareProfileData",
    "PlantIdentification",
    "CareProfile",
    "Plant",
    "PlantCreate",
    "PlantUpdate",
    "PlantDetails"
]
