from plantia.services.frequency import frequency_days, FREQUENCY_RULES
from plantia.services.recurrence import RecurrenceEngine
from plantia.services.store import EntityStore
from plantia.services.local_store import LocalEntityStore
from plantia.services.remote_store import RemoteEntityStore
from plantia.services.selector import BackendKind, SessionSignals, choose_backend, open_store
from plantia.services.reminders import tasks_due, tasks_due_today
from plantia.services.images import resize_image

__all__ = [
    "frequency_days", "FREQUENCY_RULES",
    "RecurrenceEngine",
    "EntityStore",
    "LocalEntityStore",
    "RemoteEntityStore",
    "BackendKind", "SessionSignals", "choose_backend", "open_store",
    "tasks_due", "tasks_due_today",
    "resize_image"
]
