"""
Shared fixtures for the plantia test suite.

Provides:
- A deterministic clock that advances one second per call
- Embedded and remote entity stores on throwaway SQLite files
- A parametrized `store` fixture so contract tests run against both backends
- A factory for identification results as returned by the AI service
"""
import logging
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from plantia.database import create_engine, create_session_factory, init_db
from plantia.schemas import CareProfileData, PlantIdentification
from plantia.services import LocalEntityStore, RemoteEntityStore

logging.getLogger("plantia").setLevel(logging.WARNING)

START = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


class TickingClock:
    """Strictly increasing UTC time, one second per call."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture()
def clock():
    return TickingClock()


@pytest.fixture()
def make_identification():
    """Factory for identification results with overridable care instructions."""

    def _make(watering="Every 7 days; let top soil dry", fertilizer="Balanced feed monthly", **overrides):
        data = {
            "species": "Monstera deliciosa",
            "common_name": "Swiss cheese plant",
            "confidence": 0.93,
            "care_profile": CareProfileData(
                sunlight="Bright indirect light",
                watering=watering,
                soil="Chunky aroid mix",
                fertilizer=fertilizer,
                temp_range="18-27°C",
                humidity="Prefers high humidity",
                tips="Wipe leaves monthly",
            ),
        }
        data.update(overrides)
        return PlantIdentification(**data)

    return _make


@pytest_asyncio.fixture()
async def local_store(tmp_path, clock):
    store = await LocalEntityStore.open(str(tmp_path / "device.db"), "device-1", clock=clock)
    yield store
    await store.close()


@pytest_asyncio.fixture()
async def remote_session_factory(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'remote.db'}")
    await init_db(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest_asyncio.fixture()
async def remote_store(remote_session_factory, clock):
    return RemoteEntityStore(remote_session_factory, "owner-1", clock=clock)


@pytest_asyncio.fixture(params=["local", "remote"])
async def store(request, tmp_path, clock):
    """Each contract test runs once per backend."""
    if request.param == "local":
        store = await LocalEntityStore.open(str(tmp_path / "contract-device.db"), "device-1", clock=clock)
    else:
        engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'contract-remote.db'}")
        await init_db(engine)
        store = RemoteEntityStore(create_session_factory(engine), "owner-1", engine=engine, clock=clock)

    yield store
    await store.close()
