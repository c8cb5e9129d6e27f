"""
Error taxonomy shared by both entity store backends.

Every failure surfaces as a StoreError subclass carrying the HTTP status the
API layer answers with. Nothing here retries; retry policy belongs to callers.
"""
from typing import Optional


class StoreError(Exception):
    """Base class for entity store failures."""
    status_code = 500

    def __init__(self, message: str, entity: Optional[str] = None, entity_id: Optional[str] = None):
        self.message = message
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.__class__.__name__}


class NotFound(StoreError):
    """Id unknown or not owned by the caller."""
    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found", entity=entity, entity_id=entity_id)


class Unauthenticated(StoreError):
    """Remote backend used without a verified owner."""
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ValidationFailed(StoreError):
    status_code = 422


class StorageExhausted(StoreError):
    """Embedded backend ran out of device quota."""
    status_code = 507

    def __init__(self, message: str = "Local storage is full"):
        super().__init__(message)


class ConnectivityLost(StoreError):
    """Remote backend could not be reached."""
    status_code = 503

    def __init__(self, message: str = "Remote store unreachable"):
        super().__init__(message)


class AlreadyCompleted(StoreError):
    status_code = 409

    def __init__(self, task_id: str):
        super().__init__("Task already completed", entity="Task", entity_id=task_id)
