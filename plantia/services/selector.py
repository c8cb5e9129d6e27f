"""
Backend selection, made once per session.

The caller passes the session's signals in explicitly and keeps the returned
store for the rest of the session; nothing here is global.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from plantia.config import Settings, settings as default_settings
from plantia.database import create_engine, create_session_factory, init_db
from plantia.services.local_store import LocalEntityStore
from plantia.services.remote_store import RemoteEntityStore
from plantia.services.store import EntityStore

logger = logging.getLogger(__name__)


class BackendKind(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class SessionSignals:
    owner_id: Optional[str] = None  # verified account id, None when signed out
    online: bool = False
    constrained: bool = False  # e.g. running inside a worker with no network budget

    @property
    def authenticated(self) -> bool:
        return bool(self.owner_id)


def choose_backend(signals: SessionSignals) -> BackendKind:
    """Remote only for an authenticated, online, unconstrained session."""
    if signals.authenticated and signals.online and not signals.constrained:
        return BackendKind.REMOTE
    return BackendKind.LOCAL


async def open_store(signals: SessionSignals, settings: Optional[Settings] = None, **kwargs) -> EntityStore:
    """
    Construct the entity store for a session.

    Args:
        signals: Capability/availability signals of the session
        settings: Connection settings (defaults to environment settings)
        **kwargs: Passed to the store (recurrence engine, clock)

    Returns:
        The store every operation of this session should use
    """
    settings = settings or default_settings
    kind = choose_backend(signals)
    logger.info(f"Using {kind.value} entity store")

    if kind is BackendKind.REMOTE:
        engine = create_engine(settings.database_url, echo=settings.sql_echo)
        await init_db(engine)
        return RemoteEntityStore(create_session_factory(engine), signals.owner_id, engine=engine, **kwargs)

    return await LocalEntityStore.open(
        settings.local_database_path,
        settings.device_id,
        max_page_count=settings.local_max_page_count,
        echo=settings.sql_echo,
        **kwargs
    )
